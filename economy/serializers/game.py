from django.conf import settings
from rest_framework import serializers

from economy.models import GameRound
from economy.services.choices import CRASH_MAX_MULTIPLIER, CRASH_MIN_CASHOUT, parse_choice


class BetSerializer(serializers.Serializer):
    # Up to 18 significant digits; the game service rounds to cents.
    betAmount = serializers.DecimalField(max_digits=18, decimal_places=None)

    def validate_betAmount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Valid bet amount is required.")
        return value


class CoinflipSerializer(BetSerializer):
    choice = serializers.ChoiceField(choices=("heads", "tails"))


class CrashSerializer(BetSerializer):
    cashOutAt = serializers.DecimalField(
        max_digits=6,
        decimal_places=2,
        min_value=CRASH_MIN_CASHOUT,
        max_value=CRASH_MAX_MULTIPLIER,
    )


class GameRoundSerializer(serializers.ModelSerializer):
    # Stored choices are read back through the schema of their game type.
    choice = serializers.SerializerMethodField()

    class Meta:
        model = GameRound
        fields = (
            "id",
            "game_type",
            "bet_amount",
            "choice",
            "result",
            "won",
            "amount_change",
            "created_at",
        )
        read_only_fields = fields

    def get_choice(self, obj):
        return parse_choice(obj.game_type, obj.choice).to_json()


class GameHistoryQuerySerializer(serializers.Serializer):
    game_type = serializers.ChoiceField(choices=GameRound.GameType.choices, required=False)
    limit = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=getattr(settings, "GAME_HISTORY_MAX_LIMIT", 100),
        default=20,
    )
