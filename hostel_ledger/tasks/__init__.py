"""
Background tasks: scheduled fee generation and cascade retries.
"""

from hostel_ledger.tasks.celery_app import celery_app

__all__ = ["celery_app"]
