from django.conf import settings
from django.db import models

from economy.models.base import BaseModel
from economy.models.nft import NFT


class Bid(BaseModel):
    """
    An offer of Agon for an NFT.

    Funds stay in the bidder's wallet until the bid is accepted. Status moves
    from ACTIVE to CANCELLED or ACCEPTED exactly once; a bidder has at most one
    ACTIVE bid per NFT.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        CANCELLED = "cancelled", "Cancelled"
        ACCEPTED = "accepted", "Accepted"

    nft = models.ForeignKey(NFT, on_delete=models.CASCADE, related_name="bids")
    bidder = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="nft_bids",
    )
    bid_amount = models.DecimalField(max_digits=18, decimal_places=2)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )

    class Meta(BaseModel.Meta):
        db_table = "nft_bids"
        constraints = [
            models.UniqueConstraint(
                fields=["nft", "bidder"],
                condition=models.Q(status="active"),
                name="uniq_active_bid_per_bidder",
            ),
        ]
        indexes = [
            models.Index(fields=["nft", "status"], name="idx_bid_nft_status"),
        ]

    def __str__(self):
        return f"Bid {self.id} | nft={self.nft_id} | {self.bid_amount} | {self.status}"

    @classmethod
    def order_book(cls, nft_id):
        """Active bids for an NFT, highest first; the earliest bid wins ties."""
        return cls.objects.filter(nft_id=nft_id, status=cls.Status.ACTIVE).order_by(
            "-bid_amount", "created_at", "id"
        )
