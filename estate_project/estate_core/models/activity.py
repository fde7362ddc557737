from django.conf import settings
from django.db import models

from ..managers import ActivityLogQuerySet


# ---------- Audit / Activity log ----------
class ActivityLogEntry(models.Model):  # Who did what to which record

    # Nullable for automated actions (scheduled jobs, restores by the system)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    action = models.CharField(max_length=50)  # CREATE, UPDATE, DELETE, ADD_PAYMENT ...
    entity_type = models.CharField(max_length=50)  # layout, plot, billing, system ...
    entity_id = models.PositiveBigIntegerField(null=True, blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ActivityLogQuerySet.as_manager()

    class Meta:
        db_table = "activity_logs"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="activity_entity_idx"),
            models.Index(fields=["actor", "created_at"], name="activity_actor_created_idx"),
        ]
        verbose_name_plural = "activity log entries"

    def __str__(self):
        return (
            f"[{self.created_at:%Y-%m-%d %H:%M}] {self.actor_id} "
            f"{self.action} {self.entity_type}({self.entity_id})"
        )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            raise TypeError("Activity log entries are append-only.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise TypeError("Activity log entries are append-only.")
