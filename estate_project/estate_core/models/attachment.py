from django.conf import settings
from django.db import models

from ..managers import AttachmentQuerySet

# Closed set of owners an attachment may point at
ATTACHMENT_ENTITY_CHOICES = [
    ("layout", "Layout"),
    ("plot", "Plot"),
    ("client", "Client"),
    ("billing", "Billing"),
    ("expense", "Expense"),
]


class Attachment(models.Model):
    """
    File attached to a layout, plot, client, billing or expense.
    The owner reference is polymorphic, so it is not a database FK:
    the mutation services check the owner exists and remove its
    attachments when the owner goes.
    """

    entity_type = models.CharField(max_length=20, choices=ATTACHMENT_ENTITY_CHOICES)
    entity_id = models.PositiveBigIntegerField()
    filename = models.CharField(max_length=255)
    filepath = models.CharField(max_length=500)
    filetype = models.CharField(max_length=100, default="application/octet-stream")
    filesize = models.PositiveBigIntegerField(default=0)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = AttachmentQuerySet.as_manager()

    class Meta:
        db_table = "attachments"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="attachment_entity_idx"),
        ]

    def __str__(self):
        return f"{self.filename} → {self.entity_type}({self.entity_id})"
