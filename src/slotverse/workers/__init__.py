"""Celery application and periodic maintenance of the job store."""
