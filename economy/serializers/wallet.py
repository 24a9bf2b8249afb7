from rest_framework import serializers

from economy.models import Wallet


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ("user_id", "agon", "game_chips", "updated_at")
        read_only_fields = fields
