"""
Per-game player input stored in GameRound.choice.

Each game type has one variant class; CHOICE_TYPES maps the game type to it
so a stored JSON blob is always read back through the schema it was written with.
"""

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

from economy.exceptions import InvalidArgumentError
from economy.models import GameRound
from economy.services.money import parse_amount

CRASH_MIN_CASHOUT = getattr(settings, "CRASH_MIN_CASHOUT", Decimal("1.01"))
CRASH_MAX_MULTIPLIER = getattr(settings, "CRASH_MAX_MULTIPLIER", Decimal("5.00"))


@dataclass(frozen=True)
class CoinflipChoice:
    SIDES = ("heads", "tails")

    side: str

    def __post_init__(self):
        if self.side not in self.SIDES:
            raise InvalidArgumentError("Choice must be 'heads' or 'tails'.")

    @classmethod
    def from_json(cls, data):
        return cls(side=str(data.get("side", "")).strip().lower())

    def to_json(self):
        return {"side": self.side}

    def opposite(self):
        return "tails" if self.side == "heads" else "heads"


@dataclass(frozen=True)
class CrashChoice:
    cash_out_at: Decimal

    def __post_init__(self):
        if not CRASH_MIN_CASHOUT <= self.cash_out_at <= CRASH_MAX_MULTIPLIER:
            raise InvalidArgumentError(
                f"Auto cashout must be between {CRASH_MIN_CASHOUT}x and "
                f"{CRASH_MAX_MULTIPLIER}x."
            )

    @classmethod
    def from_json(cls, data):
        return cls(cash_out_at=parse_amount(data.get("cashOutAt"), "cashOutAt"))

    def to_json(self):
        return {"cashOutAt": str(self.cash_out_at)}


CHOICE_TYPES = {
    GameRound.GameType.COINFLIP: CoinflipChoice,
    GameRound.GameType.CRASH: CrashChoice,
}


def parse_choice(game_type, data):
    """Rebuild the typed choice of a stored round."""
    try:
        choice_type = CHOICE_TYPES[GameRound.GameType(game_type)]
    except (KeyError, ValueError):
        raise InvalidArgumentError(f"Unknown game type: {game_type}.")
    return choice_type.from_json(data or {})
