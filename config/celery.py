import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# Celery reads every CELERY_* key from the Django settings module.
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
