import logging
import os

from django.core.files.storage import default_storage
from django.db import transaction

from ..exceptions import ValidationError
from ..models import Attachment, Billing, Client, Expense, Layout, Plot
from .audit_helper import log_action
from .validation import atomic_mutation, fetch

logger = logging.getLogger(__name__)

# entity_type → model the polymorphic reference must resolve to
ATTACHMENT_TARGETS = {
    "layout": Layout,
    "plot": Plot,
    "client": Client,
    "billing": Billing,
    "expense": Expense,
}


def resolve_target(entity_type: str, entity_id):
    """Check the (entity_type, entity_id) pair points at a live row."""
    model = ATTACHMENT_TARGETS.get(entity_type)
    if model is None:
        raise ValidationError(f"Attachments cannot belong to {entity_type!r}.")
    return fetch(model, entity_id)


def _remove_stored_file(path):
    if path and default_storage.exists(path):
        default_storage.delete(path)


def purge_attachments(entity_type: str, entity_ids) -> int:
    """
    Delete the attachment rows of the given owners as part of a cascade.
    Stored files go only once the enclosing transaction has committed.
    """
    qs = Attachment.objects.for_entities(entity_type, entity_ids)
    paths = list(qs.values_list("filepath", flat=True))
    deleted, _ = qs.delete()
    for path in paths:
        transaction.on_commit(lambda path=path: _remove_stored_file(path))
    return deleted


# ----------------------------
# Attachment workflows
# ----------------------------
def add_attachment(entity_type: str, entity_id, upload, user=None) -> Attachment:
    """
    Store an uploaded file and attach it to a record.
    `upload` is a Django File/UploadedFile. If the database write fails the
    stored bytes are removed again, so no file is left without its row.
    """
    target = resolve_target(entity_type, entity_id)

    filename = os.path.basename(getattr(upload, "name", "") or "")
    if not filename:
        raise ValidationError("Attachment needs a file name.")

    path = default_storage.save(f"attachments/{entity_type}/{target.pk}/{filename}", upload)
    try:
        with atomic_mutation("add attachment"):
            attachment = Attachment.objects.create(
                entity_type=entity_type,
                entity_id=target.pk,
                filename=filename,
                filepath=path,
                filetype=getattr(upload, "content_type", None) or "application/octet-stream",
                filesize=default_storage.size(path),
                uploaded_by=user if getattr(user, "is_authenticated", False) else None,
            )
            log_action(
                action="CREATE",
                entity_type="attachment",
                entity_id=attachment.pk,
                user=user,
                details={"filename": filename, "owner": [entity_type, target.pk]},
            )
    except Exception:
        logger.warning("Removing orphaned upload %s after failed insert", path)
        _remove_stored_file(path)
        raise
    return attachment


def delete_attachment(attachment_id, user=None) -> int:
    with atomic_mutation("delete attachment"):
        attachment = fetch(Attachment, attachment_id, for_update=True)
        path = attachment.filepath
        attachment.delete()
        log_action(
            action="DELETE",
            entity_type="attachment",
            entity_id=attachment_id,
            user=user,
            details={
                "filename": attachment.filename,
                "owner": [attachment.entity_type, attachment.entity_id],
            },
        )
        transaction.on_commit(lambda: _remove_stored_file(path))
    return 1
