"""Celery application for background ride processing (proposal expiry sweep)."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "roadside_backend.settings")

app = Celery("roadside_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
