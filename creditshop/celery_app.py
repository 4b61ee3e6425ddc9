"""
Celery configuration for the creditshop project.

Automated fulfillment runs on the worker so the order request returns as soon
as the charge and the order row are committed.
"""
import os
from celery import Celery

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('creditshop')

# Load configuration from Django settings with CELERY namespace
app.config_from_object('django.conf:settings', namespace='CELERY')

# 'tasks_dispatch.py' is not a default autodiscover module name
app.autodiscover_tasks(lambda: ['apps.orders'], related_name='tasks_dispatch')
app.autodiscover_tasks(lambda: ['apps.providers'], related_name='tasks')
