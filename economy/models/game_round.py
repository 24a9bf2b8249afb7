from django.conf import settings
from django.db import models

from economy.models.base import AppendOnlyModel


class GameRound(AppendOnlyModel):
    """
    One settled casino round.

    ``choice`` holds the per-game player input (see economy.services.choices),
    ``result`` the server-drawn outcome and ``amount_change`` the signed wallet
    delta in game chips.
    """

    class GameType(models.TextChoices):
        COINFLIP = "coinflip", "Coin flip"
        CRASH = "crash", "Crash"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="game_rounds",
    )
    game_type = models.CharField(max_length=16, choices=GameType.choices)
    bet_amount = models.DecimalField(max_digits=18, decimal_places=2)
    choice = models.JSONField()
    result = models.CharField(max_length=32)
    won = models.BooleanField()
    amount_change = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta(AppendOnlyModel.Meta):
        db_table = "game_history"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "game_type"], name="idx_game_user_type"),
        ]

    def __str__(self):
        return (
            f"GameRound {self.id} | {self.game_type} | user={self.user_id} | "
            f"{'won' if self.won else 'lost'} {self.amount_change}"
        )
