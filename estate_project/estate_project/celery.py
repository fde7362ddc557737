from __future__ import annotations
import os
from celery import Celery
from celery.schedules import crontab

# ensure Django settings are set for Celery
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "estate_project.settings")

# name should match the project package
celery_app = Celery("estate_project")

# read config from Django settings, using CELERY_ prefix
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# autoload tasks from installed apps
celery_app.autodiscover_tasks()

# Backups run nightly; the task itself decides whether the configured
# schedule (daily/weekly/monthly/manual) is due today
celery_app.conf.beat_schedule = {
    "estate-scheduled-backup": {
        "task": "estate_core.tasks.run_scheduled_backup",
        "schedule": crontab(hour=2, minute=0),
    },
    "estate-flag-overdue-billings": {
        "task": "estate_core.tasks.flag_overdue_billings",
        "schedule": crontab(hour=0, minute=30),
    },
}
