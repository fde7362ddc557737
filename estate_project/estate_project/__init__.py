# Celery instance is defined in estate_project/celery.py
# It points the worker at the Django settings of this project
from .celery import celery_app

# 'from estate_project import *' only exports celery_app
__all__ = ("celery_app",)

""" When you run Celery workers, "celery -A estate_project worker -l info"
    (and "celery -A estate_project beat" for scheduled backups)
    Import estate_project/__init__.py →
    which exposes celery_app →  now Celery knows what to run. """
