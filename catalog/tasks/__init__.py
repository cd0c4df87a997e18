# Async task definitions
from catalog.tasks.celery_app import celery_app
from catalog.tasks import maintenance  # Import to register tasks

__all__ = ["celery_app"]
