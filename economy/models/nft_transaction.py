from django.conf import settings
from django.db import models

from economy.models.base import AppendOnlyModel
from economy.models.bid import Bid
from economy.models.nft import NFT


class NFTTransaction(AppendOnlyModel):
    """
    Audit trail of every marketplace action on an NFT.

    One row is written per state-changing action, including zero-value
    LIST and UNLIST rows. Rows are never updated or deleted.
    """

    class TransactionType(models.TextChoices):
        MINT = "mint", "Mint"
        LIST = "list", "List"
        UNLIST = "unlist", "Unlist"
        SALE = "sale", "Sale"
        BID_ACCEPTED = "bid_accepted", "Bid accepted"

    nft = models.ForeignKey(NFT, on_delete=models.PROTECT, related_name="transactions")
    from_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="nft_transactions_sent",
    )
    to_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="nft_transactions_received",
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    fee = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    net_amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    transaction_type = models.CharField(
        max_length=16,
        choices=TransactionType.choices,
    )
    bid = models.ForeignKey(
        Bid,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )
    notes = models.CharField(max_length=255, blank=True, default="")

    class Meta(AppendOnlyModel.Meta):
        db_table = "nft_transactions"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["nft", "created_at"], name="idx_nft_tx_created"),
            models.Index(fields=["transaction_type"], name="idx_nft_tx_type"),
        ]

    def __str__(self):
        return (
            f"NFTTransaction {self.id} | {self.transaction_type} | "
            f"nft={self.nft_id} | {self.amount}"
        )

    @classmethod
    def recent_for_nft(cls, nft_id, limit=20):
        """Return the most recent ledger rows for an NFT."""
        return cls.objects.filter(nft_id=nft_id).select_related(
            "from_user", "to_user"
        )[:limit]
