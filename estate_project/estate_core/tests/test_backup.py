import tempfile
from pathlib import Path
from unittest import mock

from django.db import transaction
from django.test import TransactionTestCase

from ..exceptions import NotFound, RestoreError, StorageError, ValidationError
from ..models import ActivityLogEntry, BackupRecord, Layout
from ..services import BackupController
from .helpers import EstateFixturesMixin


class BackupTests(EstateFixturesMixin, TransactionTestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.backup_dir = Path(tmp.name)
        self.controller = BackupController(backup_dir=self.backup_dir)
        self.user = self.make_user()

    def test_create_backup_writes_artifact_and_record(self):
        self.make_layout()

        record = self.controller.create_backup(user=self.user)

        self.assertEqual(record.status, "completed")
        self.assertTrue(Path(record.filepath).is_file())
        self.assertEqual(record.size, Path(record.filepath).stat().st_size)
        entry = ActivityLogEntry.objects.for_entity("backup", record.pk).get()
        self.assertEqual(entry.action, "BACKUP")
        self.assertEqual(entry.actor, self.user)

    def test_failed_snapshot_is_recorded_not_raised(self):
        with mock.patch.object(BackupController, "_snapshot_to", side_effect=OSError("disk full")):
            record = self.controller.create_backup()

        self.assertEqual(record.status, "failed")
        self.assertIsNone(record.filepath)
        self.assertIn("disk full", record.notes)
        entry = ActivityLogEntry.objects.for_entity("backup", record.pk).get()
        self.assertEqual(entry.details["status"], "failed")

    def test_unknown_backup_kind(self):
        with self.assertRaises(ValidationError):
            self.controller.create_backup(kind="tape")
        self.assertFalse(BackupRecord.objects.exists())

    def test_prune_keeps_newest(self):
        records = [self.controller.create_backup() for _ in range(3)]

        removed = self.controller.prune_backups(keep=1)

        self.assertEqual(removed, 2)
        self.assertEqual(list(BackupRecord.objects.values_list("pk", flat=True)), [records[-1].pk])
        self.assertTrue(Path(records[-1].filepath).is_file())
        for record in records[:-1]:
            self.assertFalse(Path(record.filepath).exists())
        self.assertTrue(ActivityLogEntry.objects.filter(action="PRUNE_BACKUPS").exists())


class RestoreTests(EstateFixturesMixin, TransactionTestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.backup_dir = Path(tmp.name)
        self.controller = BackupController(backup_dir=self.backup_dir)
        self.user = self.make_user()

        self.make_layout(name="Before")
        self.artifact = Path(self.controller.create_backup().filepath)
        self.make_layout(name="After")

    def layout_names(self):
        return set(Layout.objects.values_list("name", flat=True))

    def test_restore_replaces_the_store(self):
        safety = self.controller.restore_from_backup(self.artifact, user=self.user)

        self.assertEqual(self.layout_names(), {"Before"})
        self.assertTrue(safety.is_file())
        entry = ActivityLogEntry.objects.get(action="RESTORE")
        self.assertEqual(entry.entity_type, "system")
        self.assertEqual(entry.actor, self.user)
        self.assertEqual(entry.details["source"], str(self.artifact))

        # the store answers writes after the reload
        self.make_layout(name="Afterwards")
        self.assertEqual(self.layout_names(), {"Before", "Afterwards"})

    def test_failed_reload_rolls_back_to_safety_snapshot(self):
        real_reinitialize = BackupController._reinitialize
        calls = []

        def flaky(controller):
            calls.append(controller)
            if len(calls) == 1:
                raise RestoreError("connection did not come back")
            return real_reinitialize(controller)

        with mock.patch.object(BackupController, "_reinitialize", autospec=True, side_effect=flaky):
            with self.assertRaises(RestoreError) as ctx:
                self.controller.restore_from_backup(self.artifact)

        self.assertIsInstance(ctx.exception.__cause__, RestoreError)
        self.assertEqual(len(calls), 2)
        # exactly the pre-restore data, and still writable
        self.assertEqual(self.layout_names(), {"Before", "After"})
        self.assertFalse(ActivityLogEntry.objects.filter(action="RESTORE").exists())
        self.make_layout(name="Still works")

    def test_corrupt_artifact_is_refused(self):
        garbage = self.backup_dir / "garbage.sqlite3"
        garbage.write_bytes(b"this is not a database" * 100)

        with self.assertRaises(RestoreError):
            self.controller.restore_from_backup(garbage)

        self.assertEqual(self.layout_names(), {"Before", "After"})

    def test_missing_artifact(self):
        with self.assertRaises(NotFound):
            self.controller.restore_from_backup(self.backup_dir / "nope.sqlite3")

    def test_restore_refuses_to_run_inside_a_transaction(self):
        with transaction.atomic():
            with self.assertRaises(StorageError):
                self.controller.restore_from_backup(self.artifact)
        self.assertEqual(self.layout_names(), {"Before", "After"})
