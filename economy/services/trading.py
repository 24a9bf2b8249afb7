import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from economy.exceptions import (
    ForbiddenError,
    InsufficientFundsError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from economy.models import NFT, Bid, NFTTransaction, Wallet
from economy.services.ledger import record_nft_transaction
from economy.services.money import money_exceeds, parse_amount, split_sale, to_money
from economy.services.wallet import WalletService

logger = logging.getLogger(__name__)

MAX_PRICE = getattr(settings, "MARKETPLACE_MAX_BID", Decimal("1000000000"))


@dataclass
class SaleResult:
    """Outcome of an ownership transfer, as seen by the caller's side of the trade."""

    nft: NFT
    wallet: Wallet
    price: Decimal
    fee: Decimal
    received: Decimal
    transaction: NFTTransaction


def _validate_price(value, field):
    amount = to_money(parse_amount(value, field))
    if amount <= 0:
        raise InvalidArgumentError(f"Valid {field.replace('_', ' ')} is required.")
    if amount > MAX_PRICE:
        raise InvalidArgumentError(
            f"{field.replace('_', ' ').capitalize()} must not exceed {MAX_PRICE}."
        )
    return amount


def _lock_nft(nft_id) -> NFT:
    try:
        return NFT.objects.select_for_update().get(pk=nft_id)
    except NFT.DoesNotExist:
        raise NotFoundError("NFT not found.")


def _require_owner(nft, user_id):
    if nft.current_owner_id != user_id:
        raise ForbiddenError("You do not own this NFT.")


class TradingService:
    """
    Moves NFT ownership and Agon between users.

    Every operation runs in one transaction.atomic block: the NFT row is locked
    with select_for_update() first, wallets are locked in primary-key order,
    debits are conditional on the balance, and one audit row is appended to the
    NFT ledger. Any raised EconomyError rolls the whole unit back.
    """

    @staticmethod
    @transaction.atomic
    def list_nft(owner_id, nft_id, ask_price) -> NFT:
        """
        Put an NFT up for instant purchase at ``ask_price``.

        Re-listing a listed NFT replaces its price.

        Raises:
            InvalidArgumentError: If the price is not positive or above the ceiling.
            NotFoundError: If the NFT does not exist.
            ForbiddenError: If the caller is not the current owner.
        """
        ask_price = _validate_price(ask_price, "ask_price")

        nft = _lock_nft(nft_id)
        _require_owner(nft, owner_id)

        nft.is_listed = True
        nft.ask_price = ask_price
        nft.listed_at = timezone.now()
        nft.save(update_fields=["is_listed", "ask_price", "listed_at", "updated_at"])

        record_nft_transaction(
            nft,
            NFTTransaction.TransactionType.LIST,
            from_user_id=owner_id,
            to_user_id=owner_id,
            notes=f"Listed for {ask_price} Agon",
        )

        logger.info("NFT listed: nft=%s owner=%s ask_price=%s", nft.pk, owner_id, ask_price)
        return nft

    @staticmethod
    @transaction.atomic
    def unlist_nft(owner_id, nft_id) -> NFT:
        """Withdraw an NFT from sale. Bids on it stay active."""
        nft = _lock_nft(nft_id)
        _require_owner(nft, owner_id)

        nft.is_listed = False
        nft.ask_price = None
        nft.save(update_fields=["is_listed", "ask_price", "updated_at"])

        record_nft_transaction(
            nft,
            NFTTransaction.TransactionType.UNLIST,
            from_user_id=owner_id,
            to_user_id=owner_id,
            notes="Unlisted from marketplace",
        )

        logger.info("NFT unlisted: nft=%s owner=%s", nft.pk, owner_id)
        return nft

    @staticmethod
    @transaction.atomic
    def place_bid(bidder_id, nft_id, bid_amount) -> Bid:
        """
        Place a bid, replacing the bidder's previous active bid on the NFT.

        The bidder's Agon balance must cover the bid now; nothing is held, and
        the balance is checked again when the bid is accepted.

        Raises:
            InvalidArgumentError: Bad amount, or the bidder owns the NFT.
            NotFoundError: If the NFT does not exist.
            InsufficientFundsError: If the balance does not cover the bid.
        """
        bid_amount = _validate_price(bid_amount, "bid_amount")

        nft = _lock_nft(nft_id)
        if nft.current_owner_id == bidder_id:
            raise InvalidArgumentError("You cannot bid on your own NFT.")

        wallet = WalletService.get_wallet(bidder_id)
        if money_exceeds(bid_amount, wallet.agon):
            raise InsufficientFundsError("Insufficient Agon balance.")

        replaced = Bid.objects.filter(
            nft=nft, bidder_id=bidder_id, status=Bid.Status.ACTIVE
        ).update(status=Bid.Status.CANCELLED, updated_at=timezone.now())

        bid = Bid.objects.create(
            nft=nft,
            bidder_id=bidder_id,
            bid_amount=bid_amount,
            status=Bid.Status.ACTIVE,
        )

        logger.info(
            "Bid placed: nft=%s bid=%s bidder=%s amount=%s replaced=%d",
            nft.pk,
            bid.pk,
            bidder_id,
            bid_amount,
            replaced,
        )
        return bid

    @staticmethod
    @transaction.atomic
    def cancel_bid(bidder_id, bid_id) -> Bid:
        """
        Cancel one of the caller's active bids.

        Raises:
            NotFoundError: If the bid does not exist.
            ForbiddenError: If the caller did not place the bid.
            InvalidStateError: If the bid is already cancelled or accepted.
        """
        try:
            bid = Bid.objects.select_for_update().get(pk=bid_id)
        except Bid.DoesNotExist:
            raise NotFoundError("Bid not found.")

        if bid.bidder_id != bidder_id:
            raise ForbiddenError("You do not own this bid.")
        if bid.status != Bid.Status.ACTIVE:
            raise InvalidStateError("Bid is not active.")

        bid.status = Bid.Status.CANCELLED
        bid.save(update_fields=["status", "updated_at"])

        logger.info("Bid cancelled: bid=%s nft=%s bidder=%s", bid.pk, bid.nft_id, bidder_id)
        return bid

    @staticmethod
    @transaction.atomic
    def accept_bid(owner_id, nft_id, bid_id) -> SaleResult:
        """
        Sell the NFT to the author of an active bid.

        The buyer is debited the full bid, the seller credited the bid minus
        the platform fee, ownership moves, the listing is cleared, the accepted
        bid is closed and every other active bid on the NFT is cancelled.

        Returns:
            SaleResult carrying the seller's wallet.

        Raises:
            NotFoundError: If the NFT or the bid (on this NFT) does not exist.
            ForbiddenError: If the caller is not the current owner.
            InvalidStateError: If the bid is no longer active.
            InsufficientFundsError: If the buyer can no longer cover the bid.
        """
        nft = _lock_nft(nft_id)
        _require_owner(nft, owner_id)

        try:
            bid = Bid.objects.select_for_update().get(pk=bid_id, nft=nft)
        except Bid.DoesNotExist:
            raise NotFoundError("Bid not found.")
        if bid.status != Bid.Status.ACTIVE:
            raise InvalidStateError("Bid is not active.")

        buyer_id = bid.bidder_id
        if buyer_id == owner_id:
            raise InvalidStateError("Bid was placed by the current owner.")

        price, fee, seller_receives = split_sale(bid.bid_amount)

        wallets = WalletService.lock_wallets(buyer_id, owner_id)
        if money_exceeds(price, wallets[buyer_id].agon):
            raise InsufficientFundsError("Buyer has insufficient Agon balance.")

        WalletService.debit(buyer_id, price, Wallet.Currency.AGON)
        seller_wallet = WalletService.credit(owner_id, seller_receives, Wallet.Currency.AGON)

        now = timezone.now()
        nft.current_owner_id = buyer_id
        nft.is_listed = False
        nft.ask_price = None
        nft.last_traded_at = now
        nft.save(
            update_fields=[
                "current_owner",
                "is_listed",
                "ask_price",
                "last_traded_at",
                "updated_at",
            ]
        )

        bid.status = Bid.Status.ACCEPTED
        bid.save(update_fields=["status", "updated_at"])
        Bid.objects.filter(nft=nft, status=Bid.Status.ACTIVE).exclude(pk=bid.pk).update(
            status=Bid.Status.CANCELLED, updated_at=now
        )

        ledger_row = record_nft_transaction(
            nft,
            NFTTransaction.TransactionType.BID_ACCEPTED,
            from_user_id=owner_id,
            to_user_id=buyer_id,
            amount=price,
            fee=fee,
            net_amount=seller_receives,
            bid=bid,
            notes=f"Bid accepted for {price} Agon",
        )

        logger.info(
            "Bid accepted: nft=%s bid=%s seller=%s buyer=%s price=%s fee=%s",
            nft.pk,
            bid.pk,
            owner_id,
            buyer_id,
            price,
            fee,
        )
        return SaleResult(
            nft=nft,
            wallet=seller_wallet,
            price=price,
            fee=fee,
            received=seller_receives,
            transaction=ledger_row,
        )

    @staticmethod
    @transaction.atomic
    def buy_nft(buyer_id, nft_id) -> SaleResult:
        """
        Buy a listed NFT at its ask price.

        An instant buy invalidates the order book: every active bid on the NFT,
        the buyer's included, is cancelled.

        Returns:
            SaleResult carrying the buyer's wallet.

        Raises:
            NotFoundError: If the NFT does not exist.
            InvalidStateError: If the NFT is not listed.
            InvalidArgumentError: If the buyer already owns it.
            InsufficientFundsError: If the buyer cannot cover the ask price.
        """
        nft = _lock_nft(nft_id)
        if not nft.is_listed or nft.ask_price is None:
            raise InvalidStateError("NFT is not listed for sale.")
        if nft.current_owner_id == buyer_id:
            raise InvalidArgumentError("You cannot buy your own NFT.")

        seller_id = nft.current_owner_id
        price, fee, seller_receives = split_sale(nft.ask_price)

        wallets = WalletService.lock_wallets(buyer_id, seller_id)
        if money_exceeds(price, wallets[buyer_id].agon):
            raise InsufficientFundsError("Insufficient Agon balance.")

        buyer_wallet = WalletService.debit(buyer_id, price, Wallet.Currency.AGON)
        WalletService.credit(seller_id, seller_receives, Wallet.Currency.AGON)

        now = timezone.now()
        nft.current_owner_id = buyer_id
        nft.is_listed = False
        nft.ask_price = None
        nft.last_traded_at = now
        nft.save(
            update_fields=[
                "current_owner",
                "is_listed",
                "ask_price",
                "last_traded_at",
                "updated_at",
            ]
        )

        Bid.objects.filter(nft=nft, status=Bid.Status.ACTIVE).update(
            status=Bid.Status.CANCELLED, updated_at=now
        )

        ledger_row = record_nft_transaction(
            nft,
            NFTTransaction.TransactionType.SALE,
            from_user_id=seller_id,
            to_user_id=buyer_id,
            amount=price,
            fee=fee,
            net_amount=seller_receives,
            notes=f"Instant buy for {price} Agon",
        )

        logger.info(
            "NFT bought: nft=%s seller=%s buyer=%s price=%s fee=%s",
            nft.pk,
            seller_id,
            buyer_id,
            price,
            fee,
        )
        return SaleResult(
            nft=nft,
            wallet=buyer_wallet,
            price=price,
            fee=fee,
            received=seller_receives,
            transaction=ledger_row,
        )
