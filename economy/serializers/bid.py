from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from economy.models import Bid

MAX_PRICE = getattr(settings, "MARKETPLACE_MAX_BID", Decimal("1000000000"))


class BidSerializer(serializers.ModelSerializer):
    bidder_username = serializers.CharField(source="bidder.username", read_only=True)

    class Meta:
        model = Bid
        fields = (
            "id",
            "nft_id",
            "bidder_id",
            "bidder_username",
            "bid_amount",
            "status",
            "created_at",
        )
        read_only_fields = fields


class PlaceBidSerializer(serializers.Serializer):
    """Validates bid requests."""

    bid_amount = serializers.DecimalField(max_digits=18, decimal_places=2)

    def validate_bid_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Valid bid amount is required.")
        if value > MAX_PRICE:
            raise serializers.ValidationError(f"Bid amount must not exceed {MAX_PRICE}.")
        return value


class AcceptBidSerializer(serializers.Serializer):
    bid_id = serializers.IntegerField(min_value=1)
