from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from economy.models import NFT
from economy.services.queries import SORT_FIELDS

MAX_PRICE = getattr(settings, "MARKETPLACE_MAX_BID", Decimal("1000000000"))


class NFTSerializer(serializers.ModelSerializer):
    creator_username = serializers.CharField(source="creator.username", read_only=True)
    owner_username = serializers.CharField(
        source="current_owner.username", read_only=True
    )

    class Meta:
        model = NFT
        fields = (
            "id",
            "creator_id",
            "creator_username",
            "current_owner_id",
            "owner_username",
            "name",
            "description",
            "image_ref",
            "category",
            "tags",
            "edition_number",
            "edition_total",
            "mint_price",
            "is_listed",
            "ask_price",
            "like_count",
            "view_count",
            "minted_at",
            "listed_at",
            "last_traded_at",
        )
        read_only_fields = fields


class NFTSummarySerializer(NFTSerializer):
    """NFT row with order-book stats, as returned by browse and collection queries."""

    active_bids_count = serializers.IntegerField(read_only=True)
    highest_bid = serializers.DecimalField(
        max_digits=18, decimal_places=2, read_only=True, allow_null=True
    )

    class Meta(NFTSerializer.Meta):
        fields = NFTSerializer.Meta.fields + ("active_bids_count", "highest_bid")
        read_only_fields = fields


class NFTFilterSerializer(serializers.Serializer):
    """Validates browse query parameters."""

    category = serializers.ChoiceField(choices=NFT.Category.choices, required=False)
    listed_only = serializers.BooleanField(required=False, default=False)
    creator_id = serializers.IntegerField(required=False, min_value=1)
    owner_id = serializers.IntegerField(required=False, min_value=1)
    search = serializers.CharField(required=False, allow_blank=True)
    min_price = serializers.DecimalField(
        max_digits=18, decimal_places=2, required=False, min_value=Decimal("0")
    )
    max_price = serializers.DecimalField(
        max_digits=18, decimal_places=2, required=False, min_value=Decimal("0")
    )
    sort_by = serializers.ChoiceField(choices=SORT_FIELDS, required=False, default="minted_at")
    order = serializers.ChoiceField(choices=("asc", "desc"), required=False, default="desc")


class MintNFTSerializer(serializers.Serializer):
    """Validates mint requests. The image itself lives in the object store."""

    name = serializers.CharField(max_length=255)
    image_ref = serializers.CharField(max_length=500)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category = serializers.ChoiceField(
        choices=NFT.Category.choices, required=False, default=NFT.Category.OTHER
    )
    tags = serializers.JSONField(required=False, default=list)
    edition_number = serializers.IntegerField(required=False, min_value=1, default=1)
    edition_total = serializers.IntegerField(required=False, min_value=1, default=1)

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("NFT name is required.")
        return value.strip()

    def validate_tags(self, value):
        if isinstance(value, (str, list)):
            return value
        raise serializers.ValidationError("Tags must be a list or a comma-separated string.")

    def validate(self, attrs):
        if attrs.get("edition_number", 1) > attrs.get("edition_total", 1):
            raise serializers.ValidationError(
                {"edition_number": "Edition number cannot exceed the edition total."}
            )
        return attrs


class ListNFTSerializer(serializers.Serializer):
    """Validates listing requests."""

    ask_price = serializers.DecimalField(max_digits=18, decimal_places=2)

    def validate_ask_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Valid ask price is required.")
        if value > MAX_PRICE:
            raise serializers.ValidationError(f"Ask price must not exceed {MAX_PRICE}.")
        return value
