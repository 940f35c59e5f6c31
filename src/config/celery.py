"""Celery application for the sales-order backend.

``DJANGO_SETTINGS_MODULE`` is set before the app is created so Celery
reads its configuration from Django settings (``CELERY_`` prefix).
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("sales_orders")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Finds tasks.py in every installed app (e.g. modules.orders.tasks)
app.autodiscover_tasks()
