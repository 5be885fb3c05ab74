"""Celery worker that sends queued notifications.

Run with ``celery -A herald.worker.celery worker -Q critical,high,normal,low``.
"""
