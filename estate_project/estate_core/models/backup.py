from django.conf import settings
from django.db import models

BACKUP_KIND_CHOICES = [
    ("local", "Local"),
    ("external", "External"),
    ("cloud", "Cloud"),
]

BACKUP_STATUS_CHOICES = [
    ("completed", "Completed"),
    ("failed", "Failed"),
]


class BackupRecord(models.Model):  # One row per backup attempt, good or bad
    kind = models.CharField(max_length=10, choices=BACKUP_KIND_CHOICES, default="local")
    status = models.CharField(max_length=10, choices=BACKUP_STATUS_CHOICES)
    size = models.PositiveBigIntegerField(null=True, blank=True)
    filepath = models.CharField(max_length=500, null=True, blank=True)
    # error text for failed attempts
    notes = models.TextField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "backup_logs"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.kind} backup {self.status} at {self.created_at:%Y-%m-%d %H:%M}"
