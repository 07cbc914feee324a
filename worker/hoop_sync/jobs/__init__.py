"""Celery tasks for scheduled syncs."""
