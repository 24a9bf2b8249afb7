import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import transaction

from economy.exceptions import InsufficientFundsError, InvalidArgumentError
from economy.models import GameRound, Wallet
from economy.services.choices import CRASH_MAX_MULTIPLIER, CoinflipChoice, CrashChoice
from economy.services.money import money_exceeds, parse_amount, to_money, truncate_money
from economy.services.wallet import WalletService

logger = logging.getLogger(__name__)

COINFLIP_WIN_PROBABILITY = getattr(settings, "COINFLIP_WIN_PROBABILITY", 0.45)
CRASH_INSTANT_PROBABILITY = getattr(settings, "CRASH_INSTANT_PROBABILITY", 0.20)
CRASH_HOUSE_EDGE = getattr(settings, "CRASH_HOUSE_EDGE", 0.10)

ONE = Decimal("1.00")

_rng = secrets.SystemRandom()


def draw_coinflip_win(rng=_rng) -> bool:
    """Win/lose draw at the house win rate; the coin side is derived from it."""
    return rng.random() < COINFLIP_WIN_PROBABILITY


def draw_crash_point(rng=_rng) -> Decimal:
    """
    Draw the multiplier at which a crash round ends.

    With probability CRASH_INSTANT_PROBABILITY the round crashes at 1.00x.
    Otherwise the point follows (1 - edge) / (1 - u) for uniform u, floored
    at 1.00x, capped at CRASH_MAX_MULTIPLIER and truncated to cents.
    """
    if rng.random() < CRASH_INSTANT_PROBABILITY:
        return ONE

    u = rng.random()
    raw = (1.0 - CRASH_HOUSE_EDGE) / (1.0 - u)
    point = truncate_money(Decimal(str(raw)))
    return min(max(point, ONE), CRASH_MAX_MULTIPLIER)


def settle_crash(bet_amount, cash_out_at, crash_point):
    """Return (won, amount_change) for a crash round."""
    won = crash_point >= cash_out_at
    if won:
        payout = truncate_money(bet_amount * cash_out_at)
        return True, payout - bet_amount
    return False, -bet_amount


@dataclass
class RoundResult:
    round: GameRound
    won: bool
    result: str
    amount_change: Decimal
    new_balance: Decimal
    crash_point: Optional[Decimal] = None
    cash_out_at: Optional[Decimal] = None


class GameService:
    """
    Settles casino rounds against the game-chips balance.

    The outcome is drawn server-side first; then, inside one transaction, the
    wallet is debited or credited and the GameRound row is written. Neither
    happens without the other.
    """

    @staticmethod
    def _validate_bet(user_id, bet_amount) -> Decimal:
        bet_amount = to_money(parse_amount(bet_amount, "betAmount"))
        if bet_amount <= 0:
            raise InvalidArgumentError("Valid bet amount is required.")

        wallet = WalletService.get_wallet(user_id, lock=True)
        if money_exceeds(bet_amount, wallet.game_chips):
            raise InsufficientFundsError("Insufficient Game Chips balance.")
        return bet_amount

    @staticmethod
    def _apply(user_id, amount_change) -> Wallet:
        if amount_change > 0:
            return WalletService.credit(user_id, amount_change, Wallet.Currency.GAME_CHIPS)
        if amount_change < 0:
            return WalletService.debit(user_id, -amount_change, Wallet.Currency.GAME_CHIPS)
        return WalletService.get_wallet(user_id)

    @staticmethod
    @transaction.atomic
    def play_coinflip(user_id, bet_amount, side) -> RoundResult:
        """
        Flip a coin for ``bet_amount`` game chips.

        A win pays even money (+bet), a loss costs the bet (-bet).

        Raises:
            InvalidArgumentError: Bad bet or side.
            InsufficientFundsError: If the bet exceeds the balance.
        """
        choice = CoinflipChoice(side=str(side or "").strip().lower())
        bet_amount = GameService._validate_bet(user_id, bet_amount)

        won = draw_coinflip_win()
        result = choice.side if won else choice.opposite()
        amount_change = bet_amount if won else -bet_amount

        wallet = GameService._apply(user_id, amount_change)
        game_round = GameRound.objects.create(
            user_id=user_id,
            game_type=GameRound.GameType.COINFLIP,
            bet_amount=bet_amount,
            choice=choice.to_json(),
            result=result,
            won=won,
            amount_change=amount_change,
        )

        logger.info(
            "Coinflip settled: user=%s bet=%s side=%s result=%s change=%s round=%s",
            user_id,
            bet_amount,
            choice.side,
            result,
            amount_change,
            game_round.pk,
        )
        return RoundResult(
            round=game_round,
            won=won,
            result=result,
            amount_change=amount_change,
            new_balance=wallet.game_chips,
        )

    @staticmethod
    @transaction.atomic
    def play_crash(user_id, bet_amount, cash_out_at) -> RoundResult:
        """
        Play one crash round with an automatic cash-out target.

        The crash point is drawn before settlement; the round is won when the
        crash point reaches the target, paying bet * target.

        Raises:
            InvalidArgumentError: Bad bet or a target outside the allowed range.
            InsufficientFundsError: If the bet exceeds the balance.
        """
        choice = CrashChoice(
            cash_out_at=to_money(parse_amount(cash_out_at, "cashOutAt"))
        )
        bet_amount = GameService._validate_bet(user_id, bet_amount)

        crash_point = draw_crash_point()
        won, amount_change = settle_crash(bet_amount, choice.cash_out_at, crash_point)

        wallet = GameService._apply(user_id, amount_change)
        game_round = GameRound.objects.create(
            user_id=user_id,
            game_type=GameRound.GameType.CRASH,
            bet_amount=bet_amount,
            choice=choice.to_json(),
            result=str(crash_point),
            won=won,
            amount_change=amount_change,
        )

        logger.info(
            "Crash settled: user=%s bet=%s cash_out_at=%s crash_point=%s change=%s round=%s",
            user_id,
            bet_amount,
            choice.cash_out_at,
            crash_point,
            amount_change,
            game_round.pk,
        )
        return RoundResult(
            round=game_round,
            won=won,
            result=str(crash_point),
            amount_change=amount_change,
            new_balance=wallet.game_chips,
            crash_point=crash_point,
            cash_out_at=choice.cash_out_at,
        )

    @staticmethod
    def history(user_id, game_type=None, limit=20):
        """The user's most recent rounds, newest first."""
        queryset = GameRound.objects.filter(user_id=user_id)
        if game_type:
            queryset = queryset.filter(game_type=game_type)
        return list(queryset[:limit])
