from django.conf import settings
from django.db import models

from economy.models.base import BaseModel


class Wallet(BaseModel):
    """
    Holds a user's balances in the two play-money currencies.

    Agon is the marketplace currency; game chips are wagered in the casino.
    Both balances are non-negative at all times. Concurrency safety is handled
    at the service layer via select_for_update(), conditional updates and F()
    expressions; the check constraints are the last line of defence.
    """

    class Currency(models.TextChoices):
        AGON = "agon", "Agon"
        GAME_CHIPS = "game_chips", "Game Chips"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wallet",
    )
    agon = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    game_chips = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    class Meta(BaseModel.Meta):
        db_table = "wallets"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(agon__gte=0), name="wallet_agon_non_negative"
            ),
            models.CheckConstraint(
                condition=models.Q(game_chips__gte=0),
                name="wallet_game_chips_non_negative",
            ),
        ]

    def __str__(self):
        return f"Wallet of user {self.user_id} (agon={self.agon}, game_chips={self.game_chips})"

    def balance_of(self, currency):
        return getattr(self, Wallet.Currency(currency).value)
