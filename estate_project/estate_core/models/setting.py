from django.conf import settings
from django.db import models

BACKUP_SCHEDULE_CHOICES = [
    ("daily", "Daily"),
    ("weekly", "Weekly"),
    ("monthly", "Monthly"),
    ("manual", "Manual only"),
]


class Setting(models.Model):
    """Company profile and backup policy. Exactly one row, id=1."""

    SINGLETON_ID = 1

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID)
    company_name = models.CharField(max_length=200, null=True, blank=True)
    company_address = models.TextField(null=True, blank=True)
    company_phone = models.CharField(max_length=30, null=True, blank=True)
    company_email = models.EmailField(null=True, blank=True)
    company_logo = models.CharField(max_length=500, null=True, blank=True)
    backup_schedule = models.CharField(
        max_length=10, choices=BACKUP_SCHEDULE_CHOICES, default="daily"
    )
    backup_location = models.CharField(max_length=500, null=True, blank=True)
    # number of completed backups to keep
    backup_retention = models.PositiveIntegerField(default=7)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "settings"

    def __str__(self):
        return self.company_name or "Settings"
