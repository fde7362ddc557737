import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)

# beat fires daily; weekly/monthly policies skip until their interval is up
SCHEDULE_INTERVALS = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
}
# beat jitter: yesterday's 02:00:05 run must not block today's 02:00:00 run
SCHEDULE_SLACK = timedelta(hours=1)


def _backup_due(schedule):
    from .models import BackupRecord

    interval = SCHEDULE_INTERVALS.get(schedule)
    if interval is None:
        return False
    last = BackupRecord.objects.filter(status="completed").order_by("-created_at").first()
    return last is None or timezone.now() - last.created_at >= interval - SCHEDULE_SLACK


@shared_task  # register this function as a Celery task
def run_scheduled_backup():
    """
    Backup under the company's backup policy, then retention.
    A failed snapshot is recorded as data and never fails the task.
    """
    # import services lazily to avoid circular imports at module import time
    from .services import BackupController, get_settings

    policy = get_settings()
    if not _backup_due(policy.backup_schedule):
        logger.info("Scheduled backup skipped (schedule: %s)", policy.backup_schedule)
        return None

    controller = BackupController(backup_dir=policy.backup_location or None)
    record = controller.create_backup(kind="local")
    if record.status == "completed":
        controller.prune_backups(keep=policy.backup_retention)
    else:
        logger.warning("Scheduled backup %s failed: %s", record.pk, record.notes)
    return record.pk


@shared_task
def flag_overdue_billings():
    """Move unpaid billings past their due date to overdue."""
    from .services import mark_overdue

    return mark_overdue()
