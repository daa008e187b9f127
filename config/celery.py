"""
Celery configuration for the Inkwell publishing platform.

Drives scheduled publishing: beat enqueues
``apps.articles.tasks.publish_scheduled_articles`` every
PUBLISHING_TICK_INTERVAL seconds.

Publishing tasks go to the ``publishing`` queue, so at least one worker
must consume it alongside the default queue:

    celery -A config worker -Q default,publishing
    celery -A config beat
"""

import os
from celery import Celery

# Set default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('inkwell')

# Load configuration from Django settings with CELERY namespace
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()

# Configure task routing (workers need -Q default,publishing)
app.conf.task_routes = {
    'apps.articles.tasks.*': {'queue': 'publishing'},
}

# Default queue if not specified
app.conf.task_default_queue = 'default'

