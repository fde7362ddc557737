import tempfile
from pathlib import Path
from unittest import mock

from django.core.files.base import ContentFile
from django.db import DatabaseError
from django.test import TestCase, override_settings

from .. import services
from ..exceptions import NotFound, StorageError, ValidationError
from ..models import ActivityLogEntry, Attachment
from .helpers import EstateFixturesMixin


class AttachmentTests(EstateFixturesMixin, TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.media = Path(tmp.name)
        settings_override = override_settings(MEDIA_ROOT=tmp.name)
        settings_override.enable()
        self.addCleanup(settings_override.disable)

        self.layout = self.make_layout()
        self.plot = self.make_plot(self.layout)

    def upload(self, name="plan.pdf", content=b"%PDF-1.4 site plan"):
        return ContentFile(content, name=name)

    def stored_files(self):
        return [p for p in self.media.rglob("*") if p.is_file()]

    def test_add_attachment_stores_file_and_row(self):
        attachment = services.add_attachment("plot", self.plot.pk, self.upload())

        self.assertEqual(attachment.filename, "plan.pdf")
        self.assertEqual(attachment.filesize, len(b"%PDF-1.4 site plan"))
        self.assertTrue((self.media / attachment.filepath).is_file())
        self.assertTrue(attachment.filepath.startswith(f"attachments/plot/{self.plot.pk}/"))
        self.assertTrue(
            ActivityLogEntry.objects.for_entity("attachment", attachment.pk).filter(action="CREATE").exists()
        )

    def test_owner_must_exist_and_be_attachable(self):
        with self.assertRaises(NotFound):
            services.add_attachment("plot", 999999, self.upload())
        with self.assertRaises(ValidationError):
            services.add_attachment("payment", self.plot.pk, self.upload())

        self.assertEqual(self.stored_files(), [])
        self.assertFalse(Attachment.objects.exists())

    def test_failed_insert_removes_the_stored_file(self):
        with mock.patch(
            "estate_core.services.attachments.log_action",
            side_effect=DatabaseError("database is locked"),
        ):
            with self.assertRaises(StorageError):
                services.add_attachment("plot", self.plot.pk, self.upload())

        self.assertEqual(self.stored_files(), [])
        self.assertFalse(Attachment.objects.exists())

    def test_delete_attachment_removes_file_after_commit(self):
        attachment = services.add_attachment("layout", self.layout.pk, self.upload())

        with self.captureOnCommitCallbacks(execute=True):
            self.assertEqual(services.delete_attachment(attachment.pk), 1)

        self.assertFalse(Attachment.objects.exists())
        self.assertEqual(self.stored_files(), [])

    def test_owner_delete_takes_stored_files_along(self):
        services.add_attachment("plot", self.plot.pk, self.upload())
        services.add_attachment("plot", self.plot.pk, self.upload("survey.pdf"))

        with self.captureOnCommitCallbacks(execute=True):
            self.assertEqual(services.delete_plot(self.plot.pk), 3)

        self.assertEqual(self.stored_files(), [])
