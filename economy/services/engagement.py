import logging

from django.db import IntegrityError, transaction
from django.db.models import F

from economy.exceptions import NotFoundError
from economy.models import NFT, NFTLike

logger = logging.getLogger(__name__)


class EngagementService:
    """Likes and views. These counters never touch balances or ownership."""

    @staticmethod
    @transaction.atomic
    def like(user_id, nft_id) -> bool:
        """Like an NFT. Returns False when the user had already liked it."""
        if not NFT.objects.filter(pk=nft_id).exists():
            raise NotFoundError("NFT not found.")

        try:
            with transaction.atomic():
                NFTLike.objects.create(nft_id=nft_id, user_id=user_id)
        except IntegrityError:
            return False

        NFT.objects.filter(pk=nft_id).update(like_count=F("like_count") + 1)
        logger.info("NFT liked: nft=%s user=%s", nft_id, user_id)
        return True

    @staticmethod
    @transaction.atomic
    def unlike(user_id, nft_id) -> bool:
        """Remove a like. Returns False when there was nothing to remove."""
        deleted, _ = NFTLike.objects.filter(nft_id=nft_id, user_id=user_id).delete()
        if not deleted:
            return False

        NFT.objects.filter(pk=nft_id, like_count__gt=0).update(
            like_count=F("like_count") - 1
        )
        logger.info("NFT unliked: nft=%s user=%s", nft_id, user_id)
        return True

    @staticmethod
    def record_view(nft_id) -> bool:
        return bool(NFT.objects.filter(pk=nft_id).update(view_count=F("view_count") + 1))

    @staticmethod
    def categories():
        return [
            {"value": value, "label": label} for value, label in NFT.Category.choices
        ]
