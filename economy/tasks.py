import logging

from celery import shared_task

from economy.services.engagement import EngagementService

logger = logging.getLogger(__name__)


@shared_task(bind=True, acks_late=True, max_retries=3, default_retry_delay=5)
def record_nft_view(self, nft_id: int):
    """
    Increment an NFT's view counter.

    Dispatched after the detail read has been served; a missing NFT is
    logged and dropped, database errors are retried with backoff.
    """
    try:
        if not EngagementService.record_view(nft_id):
            logger.warning("View not recorded, NFT %d not found.", nft_id)
            return {"nft_id": nft_id, "recorded": False}
        return {"nft_id": nft_id, "recorded": True}

    except Exception as exc:
        logger.exception("Unexpected error recording view for nft=%d: %s", nft_id, str(exc))
        raise self.retry(exc=exc, countdown=2**self.request.retries * 5)
