import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F

from economy.exceptions import (
    BalanceRaceError,
    InsufficientFundsError,
    InvalidArgumentError,
    NotFoundError,
)
from economy.models import Wallet
from economy.services.money import parse_amount, to_money

logger = logging.getLogger(__name__)


class WalletService:
    """
    Balance primitives shared by the trading and game settlement services.

    Every mutation locks the wallet row with select_for_update() and applies
    the change with an F() expression. Debits are conditional on the balance
    covering the amount, and the balance is re-read afterwards so a negative
    value aborts the enclosing transaction.
    """

    @staticmethod
    def get_wallet(user_id, lock=False) -> Wallet:
        queryset = Wallet.objects.select_for_update() if lock else Wallet.objects
        try:
            return queryset.get(user_id=user_id)
        except Wallet.DoesNotExist:
            raise NotFoundError("Wallet not found.")

    @staticmethod
    @transaction.atomic
    def open_wallet(user) -> Wallet:
        """Create the user's wallet with the configured opening balances, once."""
        wallet, created = Wallet.objects.get_or_create(
            user=user,
            defaults={
                "agon": getattr(settings, "WALLET_STARTING_AGON", 0),
                "game_chips": getattr(settings, "WALLET_STARTING_GAME_CHIPS", 0),
            },
        )
        if created:
            logger.info(
                "Wallet opened: user=%s agon=%s game_chips=%s",
                user.pk,
                wallet.agon,
                wallet.game_chips,
            )
        return wallet

    @staticmethod
    @transaction.atomic
    def debit(user_id, amount, currency=Wallet.Currency.AGON) -> Wallet:
        """
        Remove ``amount`` of ``currency`` from the user's wallet.

        Args:
            user_id: Owner of the wallet.
            amount: Positive amount to remove.
            currency: Wallet.Currency to debit.

        Returns:
            The refreshed Wallet.

        Raises:
            NotFoundError: If the user has no wallet.
            InvalidArgumentError: If amount is not positive.
            InsufficientFundsError: If the balance does not cover the amount.
            BalanceRaceError: If the balance reads negative after the update.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidArgumentError("Debit amount must be positive.")
        field = Wallet.Currency(currency).value

        # Lock the wallet row to prevent concurrent modification
        wallet = WalletService.get_wallet(user_id, lock=True)

        updated = Wallet.objects.filter(
            pk=wallet.pk, **{f"{field}__gte": amount}
        ).update(**{field: F(field) - amount})
        if not updated:
            raise InsufficientFundsError(
                f"Insufficient {Wallet.Currency(currency).label} balance."
            )

        wallet.refresh_from_db()
        if wallet.balance_of(currency) < 0:
            logger.warning(
                "Negative balance after debit: user=%s currency=%s balance=%s amount=%s",
                user_id,
                field,
                wallet.balance_of(currency),
                amount,
            )
            raise BalanceRaceError(
                "Balance changed during the transaction. Please try again."
            )
        return wallet

    @staticmethod
    @transaction.atomic
    def credit(user_id, amount, currency=Wallet.Currency.AGON) -> Wallet:
        """Add ``amount`` of ``currency`` to the user's wallet and return it refreshed."""
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidArgumentError("Credit amount must be positive.")
        field = Wallet.Currency(currency).value

        wallet = WalletService.get_wallet(user_id, lock=True)

        # Use F() expression for atomic increment, avoids read-modify-write race
        Wallet.objects.filter(pk=wallet.pk).update(**{field: F(field) + amount})
        wallet.refresh_from_db()
        return wallet

    @staticmethod
    @transaction.atomic
    def adjust(user_id, amount, currency=Wallet.Currency.AGON) -> Wallet:
        """Administrative signed adjustment: positive credits, negative debits."""
        amount = to_money(parse_amount(amount))
        if amount == 0:
            raise InvalidArgumentError("Adjustment amount must not be zero.")

        if amount > 0:
            wallet = WalletService.credit(user_id, amount, currency)
        else:
            wallet = WalletService.debit(user_id, -amount, currency)

        logger.info(
            "Wallet adjusted: user=%s currency=%s amount=%s new_balance=%s",
            user_id,
            Wallet.Currency(currency).value,
            amount,
            wallet.balance_of(currency),
        )
        return wallet

    @staticmethod
    def lock_wallets(*user_ids):
        """
        Lock several wallets in primary-key order.

        Operations touching two wallets call this first so that concurrent
        trades between the same pair of users always acquire locks in the
        same order.
        """
        wallets = list(
            Wallet.objects.select_for_update()
            .filter(user_id__in=set(user_ids))
            .order_by("pk")
        )
        found = {wallet.user_id for wallet in wallets}
        if found != set(user_ids):
            raise NotFoundError("Wallet not found.")
        return {wallet.user_id: wallet for wallet in wallets}
