from rest_framework import serializers

from economy.models import NFTTransaction


class NFTTransactionSerializer(serializers.ModelSerializer):
    """Read-only serializer for ledger rows."""

    from_username = serializers.CharField(
        source="from_user.username", read_only=True, default=None
    )
    to_username = serializers.CharField(source="to_user.username", read_only=True)

    class Meta:
        model = NFTTransaction
        fields = (
            "id",
            "nft_id",
            "from_user_id",
            "from_username",
            "to_user_id",
            "to_username",
            "amount",
            "fee",
            "net_amount",
            "transaction_type",
            "bid_id",
            "notes",
            "created_at",
        )
        read_only_fields = fields
