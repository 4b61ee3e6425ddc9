"""
Periodic sweep over failed automated deliveries.
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=0)
def retry_failed_fulfillments(self, limit: int | None = None):
    from apps.providers.services import retry_all_failed

    report = retry_all_failed(limit=limit)
    logger.info("Scheduled fulfillment retry", extra=report.as_dict())
    return report.as_dict()
