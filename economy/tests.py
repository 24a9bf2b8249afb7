import random
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.management import CommandError, call_command
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError
from django.test import TestCase, TransactionTestCase
from rest_framework.test import APIClient

from economy.exceptions import (
    BalanceRaceError,
    ForbiddenError,
    InsufficientFundsError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from economy.models import NFT, Bid, GameRound, NFTLike, NFTTransaction, Wallet
from economy.services import (
    EngagementService,
    GameService,
    MintService,
    TradingService,
    WalletService,
)
from economy.services import queries
from economy.services.choices import CoinflipChoice, CrashChoice, parse_choice
from economy.services.games import draw_coinflip_win, draw_crash_point, settle_crash
from economy.services.mint import normalize_tags
from economy.services.money import (
    money_exceeds,
    parse_amount,
    platform_fee,
    split_sale,
    to_money,
    truncate_money,
)

User = get_user_model()


def make_user(username, agon=0, game_chips=0):
    user = User.objects.create_user(username=username, password="pass")
    Wallet.objects.filter(user=user).update(agon=agon, game_chips=game_chips)
    return user


def make_nft(owner, name="Flag of Ardania", **kwargs):
    return NFT.objects.create(
        creator=owner,
        current_owner=owner,
        name=name,
        image_ref=f"nfts/{name.lower().replace(' ', '-')}.png",
        **kwargs,
    )


def agon_of(user):
    return Wallet.objects.get(user=user).agon


class FixedRandom:
    """Stands in for SystemRandom, returning queued values from random()."""

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


# ============================================================
# Model Tests
# ============================================================


class WalletModelTest(TestCase):
    def test_wallet_opened_for_new_user(self):
        user = User.objects.create_user(username="alice", password="pass")
        wallet = Wallet.objects.get(user=user)
        self.assertEqual(wallet.agon, 0)
        self.assertEqual(wallet.game_chips, 0)

    def test_wallet_str(self):
        user = make_user("alice", agon=10)
        self.assertIn(str(user.pk), str(user.wallet))

    def test_balance_of(self):
        user = make_user("alice", agon=10, game_chips=3)
        wallet = Wallet.objects.get(user=user)
        self.assertEqual(wallet.balance_of(Wallet.Currency.AGON), 10)
        self.assertEqual(wallet.balance_of("game_chips"), 3)

    def test_negative_balance_rejected_by_database(self):
        user = make_user("alice")
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Wallet.objects.filter(user=user).update(agon=-1)


class NFTModelTest(TestCase):
    def setUp(self):
        self.owner = make_user("alice")

    def test_defaults(self):
        nft = make_nft(self.owner)
        self.assertFalse(nft.is_listed)
        self.assertIsNone(nft.ask_price)
        self.assertEqual(nft.category, NFT.Category.OTHER)
        self.assertEqual(nft.tags, [])
        self.assertEqual(nft.edition_number, 1)

    def test_listed_without_ask_price_rejected(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_nft(self.owner, is_listed=True)

    def test_ask_price_without_listing_rejected(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_nft(self.owner, ask_price=Decimal("10.00"))

    def test_edition_number_above_total_rejected(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_nft(self.owner, edition_number=3, edition_total=2)

    def test_one_like_per_user(self):
        nft = make_nft(self.owner)
        NFTLike.objects.create(nft=nft, user=self.owner)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                NFTLike.objects.create(nft=nft, user=self.owner)


class BidModelTest(TestCase):
    def setUp(self):
        self.owner = make_user("alice")
        self.bidder = make_user("bob")
        self.nft = make_nft(self.owner)

    def test_one_active_bid_per_bidder(self):
        Bid.objects.create(nft=self.nft, bidder=self.bidder, bid_amount=50)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Bid.objects.create(nft=self.nft, bidder=self.bidder, bid_amount=80)

    def test_inactive_bids_do_not_conflict(self):
        Bid.objects.create(
            nft=self.nft, bidder=self.bidder, bid_amount=50, status=Bid.Status.CANCELLED
        )
        Bid.objects.create(
            nft=self.nft, bidder=self.bidder, bid_amount=60, status=Bid.Status.CANCELLED
        )
        Bid.objects.create(nft=self.nft, bidder=self.bidder, bid_amount=80)
        self.assertEqual(Bid.objects.filter(nft=self.nft).count(), 3)

    def test_order_book_highest_first_earliest_wins_ties(self):
        carol = make_user("carol")
        dave = make_user("dave")
        early = Bid.objects.create(nft=self.nft, bidder=self.bidder, bid_amount=50)
        late = Bid.objects.create(nft=self.nft, bidder=carol, bid_amount=50)
        high = Bid.objects.create(nft=self.nft, bidder=dave, bid_amount=75)
        Bid.objects.create(
            nft=self.nft, bidder=self.owner, bid_amount=99, status=Bid.Status.CANCELLED
        )

        book = list(Bid.order_book(self.nft.id))
        self.assertEqual([bid.id for bid in book], [high.id, early.id, late.id])


class AppendOnlyModelTest(TestCase):
    def setUp(self):
        self.user = make_user("alice")
        self.nft = make_nft(self.user)

    def test_ledger_row_cannot_be_updated(self):
        row = NFTTransaction.objects.create(
            nft=self.nft,
            to_user=self.user,
            transaction_type=NFTTransaction.TransactionType.MINT,
        )
        row.notes = "changed"
        with self.assertRaises(InvalidStateError):
            row.save()

    def test_ledger_row_cannot_be_deleted(self):
        row = NFTTransaction.objects.create(
            nft=self.nft,
            to_user=self.user,
            transaction_type=NFTTransaction.TransactionType.MINT,
        )
        with self.assertRaises(InvalidStateError):
            row.delete()
        self.assertTrue(NFTTransaction.objects.filter(pk=row.pk).exists())

    def test_game_round_cannot_be_updated(self):
        game_round = GameRound.objects.create(
            user=self.user,
            game_type=GameRound.GameType.COINFLIP,
            bet_amount=10,
            choice={"side": "heads"},
            result="tails",
            won=False,
            amount_change=-10,
        )
        game_round.won = True
        with self.assertRaises(InvalidStateError):
            game_round.save()

    def test_recent_for_nft_limit(self):
        for _ in range(25):
            NFTTransaction.objects.create(
                nft=self.nft,
                to_user=self.user,
                transaction_type=NFTTransaction.TransactionType.LIST,
            )
        rows = list(NFTTransaction.recent_for_nft(self.nft.id))
        self.assertEqual(len(rows), 20)
        self.assertGreater(rows[0].id, rows[-1].id)

    def test_nft_with_ledger_rows_cannot_be_deleted(self):
        NFTTransaction.objects.create(
            nft=self.nft,
            to_user=self.user,
            transaction_type=NFTTransaction.TransactionType.MINT,
        )
        with self.assertRaises(ProtectedError):
            self.nft.delete()
        self.assertEqual(NFTTransaction.objects.filter(nft=self.nft).count(), 1)

    def test_user_with_game_rounds_cannot_be_deleted(self):
        player = make_user("bob")
        GameRound.objects.create(
            user=player,
            game_type=GameRound.GameType.CRASH,
            bet_amount=10,
            choice={"cashOutAt": "2.00"},
            result="1.00",
            won=False,
            amount_change=-10,
        )
        with self.assertRaises(ProtectedError):
            player.delete()
        self.assertTrue(GameRound.objects.filter(user=player).exists())


# ============================================================
# Money Tests
# ============================================================


class MoneyTest(TestCase):
    def test_fee_truncates(self):
        # 2.5% of 99.99 is 2.49975
        self.assertEqual(platform_fee(Decimal("99.99")), Decimal("2.49"))
        self.assertEqual(platform_fee(Decimal("0.39")), Decimal("0.00"))
        self.assertEqual(platform_fee(Decimal("200")), Decimal("5.00"))

    def test_split_sale_sums_to_price(self):
        for raw in ("0.01", "1.00", "33.33", "99.99", "123456.78", "1000000000"):
            price, fee, received = split_sale(Decimal(raw))
            self.assertEqual(received + fee, price)
            self.assertEqual(fee, platform_fee(price))

    def test_money_exceeds_rounds_both_sides(self):
        self.assertFalse(money_exceeds(Decimal("100.004"), Decimal("100.00")))
        self.assertTrue(money_exceeds(Decimal("100.01"), Decimal("100.00")))
        self.assertFalse(money_exceeds(Decimal("0.1") + Decimal("0.2"), Decimal("0.3")))

    def test_overflowing_amounts_rejected(self):
        for raw in ("1e40", "-1e40", "10000000000000000", Decimal("1E+27")):
            with self.assertRaises(InvalidArgumentError):
                parse_amount(raw)
            with self.assertRaises(InvalidArgumentError):
                to_money(raw)
            with self.assertRaises(InvalidArgumentError):
                truncate_money(raw)
        self.assertEqual(
            to_money("9999999999999999.99"), Decimal("9999999999999999.99")
        )


# ============================================================
# Service Tests
# ============================================================


class WalletServiceTest(TransactionTestCase):
    def setUp(self):
        self.user = make_user("alice", agon=100, game_chips=50)

    def test_debit_success(self):
        wallet = WalletService.debit(self.user.pk, Decimal("40.50"))
        self.assertEqual(wallet.agon, Decimal("59.50"))

    def test_debit_game_chips(self):
        wallet = WalletService.debit(self.user.pk, 50, Wallet.Currency.GAME_CHIPS)
        self.assertEqual(wallet.game_chips, 0)
        self.assertEqual(wallet.agon, 100)

    def test_debit_insufficient_balance(self):
        with self.assertRaises(InsufficientFundsError):
            WalletService.debit(self.user.pk, Decimal("100.01"))
        self.assertEqual(agon_of(self.user), 100)

    def test_debit_zero_amount_raises(self):
        with self.assertRaises(InvalidArgumentError):
            WalletService.debit(self.user.pk, 0)

    def test_debit_negative_after_update_raises_race_error(self):
        with patch.object(Wallet, "balance_of", return_value=Decimal("-1.00")):
            with self.assertRaises(BalanceRaceError):
                WalletService.debit(self.user.pk, 10)
        # The conditional update was rolled back with the transaction
        self.assertEqual(agon_of(self.user), 100)

    def test_credit_success(self):
        wallet = WalletService.credit(self.user.pk, Decimal("0.01"))
        self.assertEqual(wallet.agon, Decimal("100.01"))

    def test_missing_wallet_raises(self):
        with self.assertRaises(NotFoundError):
            WalletService.credit(999999, 10)

    def test_adjust_signed(self):
        WalletService.adjust(self.user.pk, "25")
        wallet = WalletService.adjust(self.user.pk, "-125")
        self.assertEqual(wallet.agon, 0)

    def test_adjust_zero_raises(self):
        with self.assertRaises(InvalidArgumentError):
            WalletService.adjust(self.user.pk, "0")

    def test_lock_wallets_missing_user_raises(self):
        with self.assertRaises(NotFoundError):
            with transaction.atomic():
                WalletService.lock_wallets(self.user.pk, 999999)


class MintServiceTest(TransactionTestCase):
    def setUp(self):
        self.creator = make_user("alice", agon=250)

    def test_mint_success(self):
        nft = MintService.mint(
            self.creator.pk,
            name="  Capital Skyline ",
            image_ref="nfts/skyline.png",
            category=NFT.Category.NOTABLE_BUILDS,
            tags="city, build, ,skyline",
        )

        self.assertEqual(nft.name, "Capital Skyline")
        self.assertEqual(nft.creator_id, self.creator.pk)
        self.assertEqual(nft.current_owner_id, self.creator.pk)
        self.assertEqual(nft.tags, ["city", "build", "skyline"])
        self.assertEqual(nft.mint_price, Decimal("100.00"))
        self.assertEqual(agon_of(self.creator), Decimal("150.00"))

        row = NFTTransaction.objects.get(nft=nft)
        self.assertEqual(row.transaction_type, NFTTransaction.TransactionType.MINT)
        self.assertEqual(row.amount, Decimal("100.00"))
        self.assertIsNone(row.from_user_id)

    def test_mint_insufficient_balance(self):
        poor = make_user("bob", agon=Decimal("99.99"))
        with self.assertRaises(InsufficientFundsError):
            MintService.mint(poor.pk, name="Meme", image_ref="nfts/meme.png")
        self.assertFalse(NFT.objects.exists())
        self.assertEqual(agon_of(poor), Decimal("99.99"))

    def test_mint_blank_name_raises(self):
        with self.assertRaises(InvalidArgumentError):
            MintService.mint(self.creator.pk, name="   ", image_ref="nfts/x.png")

    def test_mint_unknown_category_raises(self):
        with self.assertRaises(InvalidArgumentError):
            MintService.mint(
                self.creator.pk, name="X", image_ref="nfts/x.png", category="weapons"
            )

    def test_mint_edition_out_of_range_raises(self):
        with self.assertRaises(InvalidArgumentError):
            MintService.mint(
                self.creator.pk,
                name="X",
                image_ref="nfts/x.png",
                edition_number=4,
                edition_total=3,
            )
        self.assertEqual(agon_of(self.creator), 250)

    def test_normalize_tags(self):
        self.assertEqual(normalize_tags(None), [])
        self.assertEqual(normalize_tags(["a", " b ", ""]), ["a", "b"])
        with self.assertRaises(InvalidArgumentError):
            normalize_tags(42)


class ListingServiceTest(TransactionTestCase):
    def setUp(self):
        self.owner = make_user("alice", agon=1000)
        self.other = make_user("bob", agon=1000)
        self.nft = make_nft(self.owner)

    def test_list_success(self):
        nft = TradingService.list_nft(self.owner.pk, self.nft.id, Decimal("200"))

        self.assertTrue(nft.is_listed)
        self.assertEqual(nft.ask_price, Decimal("200.00"))
        self.assertIsNotNone(nft.listed_at)
        row = NFTTransaction.objects.get(nft=self.nft)
        self.assertEqual(row.transaction_type, NFTTransaction.TransactionType.LIST)
        self.assertEqual(row.amount, 0)

    def test_relist_replaces_price(self):
        TradingService.list_nft(self.owner.pk, self.nft.id, 200)
        nft = TradingService.list_nft(self.owner.pk, self.nft.id, 150)
        self.assertEqual(nft.ask_price, Decimal("150.00"))

    def test_list_not_owner_raises(self):
        with self.assertRaises(ForbiddenError):
            TradingService.list_nft(self.other.pk, self.nft.id, 200)
        self.assertFalse(NFTTransaction.objects.exists())

    def test_list_missing_nft_raises(self):
        with self.assertRaises(NotFoundError):
            TradingService.list_nft(self.owner.pk, 999999, 200)

    def test_list_non_positive_price_raises(self):
        for price in (0, -5, "abc", Decimal("0.001"), "1e40", Decimal("1E+30")):
            with self.assertRaises(InvalidArgumentError):
                TradingService.list_nft(self.owner.pk, self.nft.id, price)

    def test_unlist_success(self):
        TradingService.list_nft(self.owner.pk, self.nft.id, 200)
        nft = TradingService.unlist_nft(self.owner.pk, self.nft.id)

        self.assertFalse(nft.is_listed)
        self.assertIsNone(nft.ask_price)
        types = list(
            NFTTransaction.objects.filter(nft=self.nft)
            .order_by("id")
            .values_list("transaction_type", flat=True)
        )
        self.assertEqual(types, ["list", "unlist"])

    def test_unlist_keeps_bids_active(self):
        TradingService.list_nft(self.owner.pk, self.nft.id, 200)
        bid = TradingService.place_bid(self.other.pk, self.nft.id, 50)
        TradingService.unlist_nft(self.owner.pk, self.nft.id)
        bid.refresh_from_db()
        self.assertEqual(bid.status, Bid.Status.ACTIVE)

    def test_unlist_not_owner_raises(self):
        with self.assertRaises(ForbiddenError):
            TradingService.unlist_nft(self.other.pk, self.nft.id)


class BidServiceTest(TransactionTestCase):
    def setUp(self):
        self.owner = make_user("alice", agon=1000)
        self.bidder = make_user("bob", agon=500)
        self.nft = make_nft(self.owner)

    def test_place_bid_success(self):
        bid = TradingService.place_bid(self.bidder.pk, self.nft.id, Decimal("50"))
        self.assertEqual(bid.status, Bid.Status.ACTIVE)
        self.assertEqual(bid.bid_amount, Decimal("50.00"))
        # Nothing is held at placement time
        self.assertEqual(agon_of(self.bidder), 500)

    def test_new_bid_replaces_previous(self):
        first = TradingService.place_bid(self.bidder.pk, self.nft.id, 50)
        second = TradingService.place_bid(self.bidder.pk, self.nft.id, 80)

        first.refresh_from_db()
        self.assertEqual(first.status, Bid.Status.CANCELLED)
        active = Bid.objects.filter(
            nft=self.nft, bidder=self.bidder, status=Bid.Status.ACTIVE
        )
        self.assertEqual(list(active), [second])
        self.assertEqual(second.bid_amount, Decimal("80.00"))

    def test_many_bids_leave_one_active(self):
        for amount in (10, 20, 30, 25, 40):
            TradingService.place_bid(self.bidder.pk, self.nft.id, amount)
        active = Bid.objects.filter(
            nft=self.nft, bidder=self.bidder, status=Bid.Status.ACTIVE
        )
        self.assertEqual(active.count(), 1)
        self.assertEqual(active.get().bid_amount, Decimal("40.00"))

    def test_self_bid_raises(self):
        with self.assertRaises(InvalidArgumentError):
            TradingService.place_bid(self.owner.pk, self.nft.id, 50)

    def test_bid_above_balance_raises(self):
        with self.assertRaises(InsufficientFundsError):
            TradingService.place_bid(self.bidder.pk, self.nft.id, Decimal("500.01"))
        self.assertFalse(Bid.objects.exists())

    def test_failed_bid_keeps_previous_active(self):
        first = TradingService.place_bid(self.bidder.pk, self.nft.id, 50)
        with self.assertRaises(InsufficientFundsError):
            TradingService.place_bid(self.bidder.pk, self.nft.id, 600)
        first.refresh_from_db()
        self.assertEqual(first.status, Bid.Status.ACTIVE)

    def test_bid_amount_out_of_range_raises(self):
        for amount in (0, -1, Decimal("1000000000.01"), "1e40", Decimal("-1E+40")):
            with self.assertRaises(InvalidArgumentError):
                TradingService.place_bid(self.bidder.pk, self.nft.id, amount)

    def test_bid_missing_nft_raises(self):
        with self.assertRaises(NotFoundError):
            TradingService.place_bid(self.bidder.pk, 999999, 50)

    def test_cancel_bid_success(self):
        bid = TradingService.place_bid(self.bidder.pk, self.nft.id, 50)
        cancelled = TradingService.cancel_bid(self.bidder.pk, bid.id)
        self.assertEqual(cancelled.status, Bid.Status.CANCELLED)

    def test_cancel_twice_raises(self):
        bid = TradingService.place_bid(self.bidder.pk, self.nft.id, 50)
        TradingService.cancel_bid(self.bidder.pk, bid.id)
        with self.assertRaises(InvalidStateError):
            TradingService.cancel_bid(self.bidder.pk, bid.id)

    def test_cancel_someone_elses_bid_raises(self):
        bid = TradingService.place_bid(self.bidder.pk, self.nft.id, 50)
        with self.assertRaises(ForbiddenError):
            TradingService.cancel_bid(self.owner.pk, bid.id)

    def test_cancel_missing_bid_raises(self):
        with self.assertRaises(NotFoundError):
            TradingService.cancel_bid(self.bidder.pk, 999999)


class AcceptBidServiceTest(TransactionTestCase):
    def setUp(self):
        self.seller = make_user("alice", agon=1000)
        self.buyer = make_user("bob", agon=500)
        self.other = make_user("carol", agon=500)
        self.nft = make_nft(self.seller)

    def test_accept_bid_success(self):
        TradingService.list_nft(self.seller.pk, self.nft.id, 300)
        bid = TradingService.place_bid(self.buyer.pk, self.nft.id, Decimal("99.99"))
        losing = TradingService.place_bid(self.other.pk, self.nft.id, 60)

        sale = TradingService.accept_bid(self.seller.pk, self.nft.id, bid.id)

        self.assertEqual(sale.price, Decimal("99.99"))
        self.assertEqual(sale.fee, Decimal("2.49"))
        self.assertEqual(sale.received, Decimal("97.50"))
        self.assertEqual(sale.wallet.user_id, self.seller.pk)
        self.assertEqual(sale.wallet.agon, Decimal("1097.50"))
        self.assertEqual(agon_of(self.buyer), Decimal("400.01"))

        self.nft.refresh_from_db()
        self.assertEqual(self.nft.current_owner_id, self.buyer.pk)
        self.assertEqual(self.nft.creator_id, self.seller.pk)
        self.assertFalse(self.nft.is_listed)
        self.assertIsNone(self.nft.ask_price)
        self.assertIsNotNone(self.nft.last_traded_at)

        bid.refresh_from_db()
        losing.refresh_from_db()
        self.assertEqual(bid.status, Bid.Status.ACCEPTED)
        self.assertEqual(losing.status, Bid.Status.CANCELLED)

        row = NFTTransaction.objects.get(
            nft=self.nft, transaction_type=NFTTransaction.TransactionType.BID_ACCEPTED
        )
        self.assertEqual(row.amount, Decimal("99.99"))
        self.assertEqual(row.fee, Decimal("2.49"))
        self.assertEqual(row.net_amount, Decimal("97.50"))
        self.assertEqual(row.bid_id, bid.id)
        self.assertEqual(row.from_user_id, self.seller.pk)
        self.assertEqual(row.to_user_id, self.buyer.pk)

    def test_accept_when_buyer_balance_dropped_raises(self):
        bid = TradingService.place_bid(self.buyer.pk, self.nft.id, 400)
        WalletService.debit(self.buyer.pk, 200)

        with self.assertRaises(InsufficientFundsError):
            TradingService.accept_bid(self.seller.pk, self.nft.id, bid.id)

        self.nft.refresh_from_db()
        bid.refresh_from_db()
        self.assertEqual(self.nft.current_owner_id, self.seller.pk)
        self.assertEqual(bid.status, Bid.Status.ACTIVE)
        self.assertEqual(agon_of(self.seller), 1000)
        self.assertEqual(agon_of(self.buyer), 300)
        self.assertFalse(NFTTransaction.objects.exists())

    def test_accept_race_error_rolls_back(self):
        bid = TradingService.place_bid(self.buyer.pk, self.nft.id, 100)

        with patch.object(Wallet, "balance_of", return_value=Decimal("-0.01")):
            with self.assertRaises(BalanceRaceError):
                TradingService.accept_bid(self.seller.pk, self.nft.id, bid.id)

        self.nft.refresh_from_db()
        self.assertEqual(self.nft.current_owner_id, self.seller.pk)
        self.assertEqual(agon_of(self.buyer), 500)
        self.assertEqual(agon_of(self.seller), 1000)

    def test_accept_not_owner_raises(self):
        bid = TradingService.place_bid(self.buyer.pk, self.nft.id, 100)
        with self.assertRaises(ForbiddenError):
            TradingService.accept_bid(self.other.pk, self.nft.id, bid.id)

    def test_accept_bid_on_other_nft_raises(self):
        other_nft = make_nft(self.seller, name="Other")
        bid = TradingService.place_bid(self.buyer.pk, other_nft.id, 100)
        with self.assertRaises(NotFoundError):
            TradingService.accept_bid(self.seller.pk, self.nft.id, bid.id)

    def test_accept_cancelled_bid_raises(self):
        bid = TradingService.place_bid(self.buyer.pk, self.nft.id, 100)
        TradingService.cancel_bid(self.buyer.pk, bid.id)
        with self.assertRaises(InvalidStateError):
            TradingService.accept_bid(self.seller.pk, self.nft.id, bid.id)

    def test_accepted_bid_is_terminal(self):
        bid = TradingService.place_bid(self.buyer.pk, self.nft.id, 100)
        TradingService.accept_bid(self.seller.pk, self.nft.id, bid.id)

        # The buyer now owns the NFT; their own accepted bid cannot be reused
        with self.assertRaises(InvalidStateError):
            TradingService.accept_bid(self.buyer.pk, self.nft.id, bid.id)
        with self.assertRaises(InvalidStateError):
            TradingService.cancel_bid(self.buyer.pk, bid.id)
        bid.refresh_from_db()
        self.assertEqual(bid.status, Bid.Status.ACCEPTED)


class BuyServiceTest(TransactionTestCase):
    def setUp(self):
        self.seller = make_user("alice", agon=1000)
        self.buyer = make_user("bob", agon=500)
        self.nft = make_nft(self.seller)

    def test_mint_list_buy_round_trip(self):
        nft = MintService.mint(self.seller.pk, name="Founding Charter", image_ref="c.png")
        TradingService.list_nft(self.seller.pk, nft.id, Decimal("123.45"))

        sale = TradingService.buy_nft(self.buyer.pk, nft.id)

        fee = Decimal("3.08")
        self.assertEqual(sale.fee, fee)
        self.assertEqual(sale.wallet.user_id, self.buyer.pk)
        self.assertEqual(agon_of(self.buyer), Decimal("500") - Decimal("123.45"))
        self.assertEqual(agon_of(self.seller), Decimal("900") + Decimal("123.45") - fee)

        nft.refresh_from_db()
        self.assertEqual(nft.current_owner_id, self.buyer.pk)
        self.assertFalse(nft.is_listed)
        self.assertIsNone(nft.ask_price)

        sales = NFTTransaction.objects.filter(
            nft=nft, transaction_type=NFTTransaction.TransactionType.SALE
        )
        self.assertEqual(sales.count(), 1)
        self.assertEqual(sales.get().amount, Decimal("123.45"))
        self.assertEqual(sales.get().fee, fee)

    def test_buy_cancels_every_active_bid(self):
        carol = make_user("carol", agon=100)
        TradingService.list_nft(self.seller.pk, self.nft.id, 200)
        TradingService.place_bid(self.buyer.pk, self.nft.id, 50)
        TradingService.place_bid(carol.pk, self.nft.id, 60)

        TradingService.buy_nft(self.buyer.pk, self.nft.id)

        self.assertFalse(
            Bid.objects.filter(nft=self.nft, status=Bid.Status.ACTIVE).exists()
        )

    def test_buy_insufficient_balance_leaves_listing(self):
        TradingService.list_nft(self.seller.pk, self.nft.id, 200)
        Wallet.objects.filter(user=self.buyer).update(agon=150)

        with self.assertRaises(InsufficientFundsError):
            TradingService.buy_nft(self.buyer.pk, self.nft.id)

        self.nft.refresh_from_db()
        self.assertTrue(self.nft.is_listed)
        self.assertEqual(self.nft.ask_price, Decimal("200.00"))
        self.assertEqual(self.nft.current_owner_id, self.seller.pk)
        self.assertEqual(agon_of(self.buyer), 150)
        self.assertEqual(agon_of(self.seller), 1000)

    def test_buy_unlisted_raises(self):
        with self.assertRaises(InvalidStateError):
            TradingService.buy_nft(self.buyer.pk, self.nft.id)

    def test_buy_own_nft_raises(self):
        TradingService.list_nft(self.seller.pk, self.nft.id, 200)
        with self.assertRaises(InvalidArgumentError):
            TradingService.buy_nft(self.seller.pk, self.nft.id)

    def test_buy_missing_nft_raises(self):
        with self.assertRaises(NotFoundError):
            TradingService.buy_nft(self.buyer.pk, 999999)

    def test_second_buyer_finds_nft_unlisted(self):
        carol = make_user("carol", agon=500)
        TradingService.list_nft(self.seller.pk, self.nft.id, 200)
        TradingService.buy_nft(self.buyer.pk, self.nft.id)

        with self.assertRaises(InvalidStateError):
            TradingService.buy_nft(carol.pk, self.nft.id)
        self.assertEqual(agon_of(carol), 500)


class EngagementServiceTest(TestCase):
    def setUp(self):
        self.user = make_user("alice")
        self.nft = make_nft(self.user)

    def test_like_and_unlike(self):
        self.assertTrue(EngagementService.like(self.user.pk, self.nft.id))
        self.assertFalse(EngagementService.like(self.user.pk, self.nft.id))
        self.nft.refresh_from_db()
        self.assertEqual(self.nft.like_count, 1)

        self.assertTrue(EngagementService.unlike(self.user.pk, self.nft.id))
        self.assertFalse(EngagementService.unlike(self.user.pk, self.nft.id))
        self.nft.refresh_from_db()
        self.assertEqual(self.nft.like_count, 0)

    def test_like_missing_nft_raises(self):
        with self.assertRaises(NotFoundError):
            EngagementService.like(self.user.pk, 999999)

    def test_record_view(self):
        self.assertTrue(EngagementService.record_view(self.nft.id))
        self.assertFalse(EngagementService.record_view(999999))
        self.nft.refresh_from_db()
        self.assertEqual(self.nft.view_count, 1)

    def test_categories(self):
        values = [c["value"] for c in EngagementService.categories()]
        self.assertIn("nation_flags", values)
        self.assertEqual(len(values), len(NFT.Category.choices))


class QueryTest(TestCase):
    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.flag = make_nft(
            self.alice,
            name="Flag",
            category=NFT.Category.NATION_FLAGS,
            is_listed=True,
            ask_price=Decimal("50.00"),
        )
        self.castle = make_nft(
            self.alice,
            name="Castle",
            category=NFT.Category.NOTABLE_BUILDS,
            description="A big stone keep",
        )
        self.meme = make_nft(
            self.bob,
            name="Meme",
            is_listed=True,
            ask_price=Decimal("5.00"),
        )

    def test_filter_by_category(self):
        result = list(queries.search_nfts(category=NFT.Category.NATION_FLAGS))
        self.assertEqual(result, [self.flag])

    def test_listed_only_and_price_bounds(self):
        result = list(queries.search_nfts(listed_only=True, min_price=Decimal("10")))
        self.assertEqual(result, [self.flag])

    def test_search_matches_description(self):
        result = list(queries.search_nfts(search="stone"))
        self.assertEqual(result, [self.castle])

    def test_sort_by_ask_price(self):
        result = list(queries.search_nfts(listed_only=True, sort_by="ask_price", order="asc"))
        self.assertEqual(result, [self.meme, self.flag])

    def test_bid_stats_annotation(self):
        Bid.objects.create(nft=self.flag, bidder=self.bob, bid_amount=20)
        Bid.objects.create(
            nft=self.flag, bidder=self.alice, bid_amount=90, status=Bid.Status.CANCELLED
        )
        nft = queries.search_nfts().get(pk=self.flag.pk)
        self.assertEqual(nft.active_bids_count, 1)
        self.assertEqual(nft.highest_bid, Decimal("20.00"))

    def test_nft_detail(self):
        Bid.objects.create(nft=self.flag, bidder=self.bob, bid_amount=20)
        nft, bids, rows = queries.nft_detail(self.flag.id)
        self.assertEqual(nft, self.flag)
        self.assertEqual(len(bids), 1)
        self.assertEqual(rows, [])

    def test_nft_detail_missing_raises(self):
        with self.assertRaises(NotFoundError):
            queries.nft_detail(999999)

    def test_user_collection(self):
        self.castle.current_owner = self.bob
        self.castle.save()

        nfts, stats = queries.user_collection(self.alice.pk)
        self.assertEqual(nfts, [self.flag])
        self.assertEqual(stats["owned_count"], 1)
        self.assertEqual(stats["created_count"], 2)
        self.assertEqual(stats["total_value"], Decimal("50.00"))

        nfts, _ = queries.user_collection(self.alice.pk, include_created=True)
        self.assertEqual({nft.pk for nft in nfts}, {self.flag.pk, self.castle.pk})


# ============================================================
# Game Tests
# ============================================================


class GameDrawTest(TestCase):
    def test_coinflip_draw_uses_win_probability(self):
        self.assertTrue(draw_coinflip_win(FixedRandom(0.44)))
        self.assertFalse(draw_coinflip_win(FixedRandom(0.45)))

    def test_instant_crash(self):
        self.assertEqual(draw_crash_point(FixedRandom(0.19)), Decimal("1.00"))

    def test_crash_point_follows_edge_curve(self):
        # 0.90 / 0.38379 = 2.3450..., truncated to cents
        self.assertEqual(draw_crash_point(FixedRandom(0.5, 0.61621)), Decimal("2.34"))

    def test_crash_point_floored_and_capped(self):
        self.assertEqual(draw_crash_point(FixedRandom(0.5, 0.0)), Decimal("1.00"))
        self.assertEqual(draw_crash_point(FixedRandom(0.5, 0.9999)), Decimal("5.00"))

    def test_crash_point_always_in_range(self):
        rng = random.Random(1234)
        for _ in range(2000):
            point = draw_crash_point(rng)
            self.assertGreaterEqual(point, Decimal("1.00"))
            self.assertLessEqual(point, Decimal("5.00"))
            self.assertEqual(point, point.quantize(Decimal("0.01")))

    def test_settle_crash(self):
        bet = Decimal("10.00")
        self.assertEqual(
            settle_crash(bet, Decimal("2.00"), Decimal("1.50")), (False, Decimal("-10.00"))
        )
        self.assertEqual(
            settle_crash(bet, Decimal("2.00"), Decimal("3.00")), (True, Decimal("10.00"))
        )
        # Reaching the target exactly is a win
        self.assertEqual(
            settle_crash(bet, Decimal("2.00"), Decimal("2.00")), (True, Decimal("10.00"))
        )

    def test_settle_crash_truncates_payout(self):
        won, change = settle_crash(Decimal("0.33"), Decimal("1.51"), Decimal("2.00"))
        # 0.33 * 1.51 = 0.4983
        self.assertTrue(won)
        self.assertEqual(change, Decimal("0.16"))


class GameChoiceTest(TestCase):
    def test_coinflip_choice(self):
        choice = CoinflipChoice(side="heads")
        self.assertEqual(choice.opposite(), "tails")
        self.assertEqual(choice.to_json(), {"side": "heads"})
        with self.assertRaises(InvalidArgumentError):
            CoinflipChoice(side="edge")

    def test_crash_choice_range(self):
        CrashChoice(cash_out_at=Decimal("1.01"))
        CrashChoice(cash_out_at=Decimal("5.00"))
        for value in ("1.00", "5.01"):
            with self.assertRaises(InvalidArgumentError):
                CrashChoice(cash_out_at=Decimal(value))

    def test_parse_choice_by_game_type(self):
        self.assertEqual(
            parse_choice("coinflip", {"side": "Tails"}), CoinflipChoice(side="tails")
        )
        self.assertEqual(
            parse_choice("crash", {"cashOutAt": "2.50"}),
            CrashChoice(cash_out_at=Decimal("2.50")),
        )
        with self.assertRaises(InvalidArgumentError):
            parse_choice("plinko", {})


class GameServiceTest(TransactionTestCase):
    def setUp(self):
        self.user = make_user("alice", game_chips=100)

    def chips(self):
        return Wallet.objects.get(user=self.user).game_chips

    @patch("economy.services.games.draw_coinflip_win", return_value=False)
    def test_coinflip_loss(self, mock_draw):
        outcome = GameService.play_coinflip(self.user.pk, 100, "heads")

        self.assertFalse(outcome.won)
        self.assertEqual(outcome.result, "tails")
        self.assertEqual(outcome.amount_change, Decimal("-100.00"))
        self.assertEqual(outcome.new_balance, 0)
        self.assertEqual(self.chips(), 0)

        game_round = GameRound.objects.get(user=self.user)
        self.assertFalse(game_round.won)
        self.assertEqual(game_round.amount_change, Decimal("-100.00"))
        self.assertEqual(game_round.choice, {"side": "heads"})
        self.assertEqual(game_round.result, "tails")

    @patch("economy.services.games.draw_coinflip_win", return_value=True)
    def test_coinflip_win(self, mock_draw):
        outcome = GameService.play_coinflip(self.user.pk, Decimal("25.50"), "tails")

        self.assertTrue(outcome.won)
        self.assertEqual(outcome.result, "tails")
        self.assertEqual(outcome.amount_change, Decimal("25.50"))
        self.assertEqual(self.chips(), Decimal("125.50"))

    def test_coinflip_bet_above_balance_raises(self):
        with self.assertRaises(InsufficientFundsError):
            GameService.play_coinflip(self.user.pk, Decimal("100.01"), "heads")
        self.assertFalse(GameRound.objects.exists())

    def test_coinflip_bad_bet_or_side_raises(self):
        for bet, side in (
            (0, "heads"),
            (-5, "heads"),
            ("x", "heads"),
            (10, "edge"),
            ("1e40", "heads"),
        ):
            with self.assertRaises(InvalidArgumentError):
                GameService.play_coinflip(self.user.pk, bet, side)
        self.assertEqual(self.chips(), 100)

    @patch("economy.services.games.draw_crash_point", return_value=Decimal("1.50"))
    def test_crash_loss(self, mock_draw):
        outcome = GameService.play_crash(self.user.pk, 10, "2.00")

        self.assertFalse(outcome.won)
        self.assertEqual(outcome.crash_point, Decimal("1.50"))
        self.assertEqual(outcome.amount_change, Decimal("-10.00"))
        self.assertEqual(outcome.new_balance, Decimal("90.00"))

        game_round = GameRound.objects.get(user=self.user)
        self.assertEqual(game_round.result, "1.50")
        self.assertEqual(game_round.choice, {"cashOutAt": "2.00"})

    @patch("economy.services.games.draw_crash_point", return_value=Decimal("3.00"))
    def test_crash_win(self, mock_draw):
        outcome = GameService.play_crash(self.user.pk, 10, "2.00")

        self.assertTrue(outcome.won)
        self.assertEqual(outcome.amount_change, Decimal("10.00"))
        self.assertEqual(outcome.new_balance, Decimal("110.00"))

    def test_crash_target_out_of_range_raises(self):
        for target in ("1.00", "5.01", "abc", "1e40"):
            with self.assertRaises(InvalidArgumentError):
                GameService.play_crash(self.user.pk, 10, target)
        with self.assertRaises(InvalidArgumentError):
            GameService.play_crash(self.user.pk, "1e40", "2.00")
        self.assertFalse(GameRound.objects.exists())

    @patch("economy.services.games.draw_crash_point", return_value=Decimal("1.00"))
    def test_settlement_rolls_back_with_history_write(self, mock_draw):
        with patch.object(GameRound.objects, "create", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                GameService.play_crash(self.user.pk, 10, "2.00")
        self.assertEqual(self.chips(), 100)

    @patch("economy.services.games.draw_coinflip_win", return_value=True)
    def test_history(self, mock_draw):
        GameService.play_coinflip(self.user.pk, 1, "heads")
        GameService.play_coinflip(self.user.pk, 2, "heads")
        with patch("economy.services.games.draw_crash_point", return_value=Decimal("4.00")):
            GameService.play_crash(self.user.pk, 3, "1.50")

        rounds = GameService.history(self.user.pk)
        self.assertEqual([r.bet_amount for r in rounds], [3, 2, 1])
        coinflips = GameService.history(self.user.pk, game_type="coinflip", limit=1)
        self.assertEqual([r.bet_amount for r in coinflips], [2])


# ============================================================
# API Tests
# ============================================================


class WalletAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("alice", agon=10, game_chips=5)

    def test_retrieve_wallet(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get("/api/wallet/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["agon"], Decimal("10.00"))
        self.assertEqual(response.data["game_chips"], Decimal("5.00"))

    def test_requires_authentication(self):
        response = self.client.get("/api/wallet/")
        self.assertIn(response.status_code, (401, 403))


class MarketplaceAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.alice = make_user("alice", agon=1000)
        self.bob = make_user("bob", agon=500)
        self.nft = make_nft(self.alice)

    def test_browse_is_public(self):
        TradingService.list_nft(self.alice.pk, self.nft.id, 200)
        response = self.client.get("/api/nfts/", {"listed_only": "true"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["ask_price"], Decimal("200.00"))
        self.assertEqual(response.data["results"][0]["active_bids_count"], 0)

    def test_browse_rejects_unknown_category(self):
        response = self.client.get("/api/nfts/", {"category": "weapons"})
        self.assertEqual(response.status_code, 400)

    def test_categories(self):
        response = self.client.get("/api/nfts/categories/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["categories"]), len(NFT.Category.choices))

    @patch("economy.views.nft.record_nft_view")
    def test_detail_dispatches_view_count(self, mock_task):
        TradingService.place_bid(self.bob.pk, self.nft.id, 40)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.get(f"/api/nfts/{self.nft.id}/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["nft"]["id"], self.nft.id)
        self.assertEqual(len(response.data["bids"]), 1)
        mock_task.delay.assert_called_once_with(self.nft.id)

    @patch("economy.views.nft.record_nft_view")
    def test_detail_missing_nft(self, mock_task):
        response = self.client.get("/api/nfts/999999/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"], "not_found")
        mock_task.delay.assert_not_called()

    def test_user_collection(self):
        response = self.client.get(f"/api/nfts/user/{self.alice.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["nfts"]), 1)
        self.assertEqual(response.data["stats"]["owned_count"], 1)

    def test_mint(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(
            "/api/nfts/mint/",
            {"name": "Harbor", "image_ref": "nfts/harbor.png", "tags": ["port"]},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["nft"]["tags"], ["port"])
        self.assertEqual(response.data["wallet"]["agon"], Decimal("900.00"))

    def test_mint_insufficient_funds(self):
        poor = make_user("carol", agon=10)
        self.client.force_authenticate(user=poor)
        response = self.client.post(
            "/api/nfts/mint/",
            {"name": "Harbor", "image_ref": "nfts/harbor.png"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], "insufficient_funds")

    def test_list_and_unlist(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(
            f"/api/nfts/{self.nft.id}/list/", {"ask_price": "200.00"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["nft"]["is_listed"])

        response = self.client.post(f"/api/nfts/{self.nft.id}/unlist/", format="json")
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.data["nft"]["ask_price"])

    def test_list_zero_price(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(
            f"/api/nfts/{self.nft.id}/list/", {"ask_price": 0}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_overflowing_prices_rejected(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(
            f"/api/nfts/{self.nft.id}/list/", {"ask_price": "1e40"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

        self.client.force_authenticate(user=self.bob)
        response = self.client.post(
            f"/api/nfts/{self.nft.id}/bid/", {"bid_amount": "1e40"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Bid.objects.exists())

    def test_list_not_owner(self):
        self.client.force_authenticate(user=self.bob)
        response = self.client.post(
            f"/api/nfts/{self.nft.id}/list/", {"ask_price": 10}, format="json"
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"], "forbidden")

    def test_bid_cancel_flow(self):
        self.client.force_authenticate(user=self.bob)
        response = self.client.post(
            f"/api/nfts/{self.nft.id}/bid/", {"bid_amount": 50}, format="json"
        )
        self.assertEqual(response.status_code, 201)
        bid_id = response.data["bid"]["id"]

        response = self.client.delete(f"/api/nfts/bids/{bid_id}/")
        self.assertEqual(response.status_code, 200)

        response = self.client.delete(f"/api/nfts/bids/{bid_id}/")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"], "invalid_state")

    def test_self_bid(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(
            f"/api/nfts/{self.nft.id}/bid/", {"bid_amount": 50}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], "invalid_argument")

    def test_accept_bid(self):
        bid = TradingService.place_bid(self.bob.pk, self.nft.id, 200)
        self.client.force_authenticate(user=self.alice)

        response = self.client.post(
            f"/api/nfts/{self.nft.id}/accept-bid/", {"bid_id": bid.id}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["nft"]["current_owner_id"], self.bob.pk)
        self.assertEqual(response.data["wallet"]["agon"], Decimal("1195.00"))
        self.assertEqual(
            response.data["sale"],
            {"price": Decimal("200.00"), "fee": Decimal("5.00"), "received": Decimal("195.00")},
        )

    def test_buy(self):
        TradingService.list_nft(self.alice.pk, self.nft.id, 200)
        self.client.force_authenticate(user=self.bob)

        response = self.client.post(f"/api/nfts/{self.nft.id}/buy/", format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["nft"]["owner_username"], "bob")
        self.assertEqual(response.data["wallet"]["agon"], Decimal("300.00"))
        self.assertEqual(
            response.data["purchase"], {"price": Decimal("200.00"), "fee": Decimal("5.00")}
        )

    def test_buy_unlisted(self):
        self.client.force_authenticate(user=self.bob)
        response = self.client.post(f"/api/nfts/{self.nft.id}/buy/", format="json")
        self.assertEqual(response.status_code, 409)

    def test_like_and_unlike(self):
        self.client.force_authenticate(user=self.bob)
        response = self.client.post(f"/api/nfts/{self.nft.id}/like/")
        self.assertEqual(response.data, {"liked": True, "created": True})
        response = self.client.delete(f"/api/nfts/{self.nft.id}/like/")
        self.assertEqual(response.data, {"liked": False, "removed": True})

    def test_trading_requires_authentication(self):
        response = self.client.post(f"/api/nfts/{self.nft.id}/buy/", format="json")
        self.assertIn(response.status_code, (401, 403))


class GameAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("alice", game_chips=100)
        self.client.force_authenticate(user=self.user)

    @patch("economy.services.games.draw_coinflip_win", return_value=False)
    def test_coinflip(self, mock_draw):
        response = self.client.post(
            "/api/games/coinflip/", {"betAmount": 100, "choice": "heads"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["won"], False)
        self.assertEqual(response.data["result"], "tails")
        self.assertEqual(response.data["amountChange"], Decimal("-100.00"))
        self.assertEqual(response.data["newBalance"], Decimal("0.00"))

    def test_coinflip_bad_choice(self):
        response = self.client.post(
            "/api/games/coinflip/", {"betAmount": 10, "choice": "edge"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_coinflip_insufficient_funds(self):
        response = self.client.post(
            "/api/games/coinflip/", {"betAmount": 500, "choice": "heads"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], "insufficient_funds")

    @patch("economy.services.games.draw_crash_point", return_value=Decimal("3.00"))
    def test_crash(self, mock_draw):
        response = self.client.post(
            "/api/games/crash/", {"betAmount": 10, "cashOutAt": "2.00"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["won"], True)
        self.assertEqual(response.data["crashPoint"], Decimal("3.00"))
        self.assertEqual(response.data["cashOutAt"], Decimal("2.00"))
        self.assertEqual(response.data["amountChange"], Decimal("10.00"))
        self.assertEqual(response.data["newBalance"], Decimal("110.00"))

    def test_crash_target_out_of_range(self):
        response = self.client.post(
            "/api/games/crash/", {"betAmount": 10, "cashOutAt": "5.50"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_overflowing_bets_rejected(self):
        response = self.client.post(
            "/api/games/coinflip/", {"betAmount": "1e40", "choice": "heads"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/api/games/crash/", {"betAmount": "1e40", "cashOutAt": "2.00"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(GameRound.objects.exists())
        self.assertEqual(Wallet.objects.get(user=self.user).game_chips, 100)

    @patch("economy.services.games.draw_coinflip_win", return_value=True)
    def test_history(self, mock_draw):
        GameService.play_coinflip(self.user.pk, 5, "heads")
        response = self.client.get("/api/games/history/", {"game_type": "coinflip"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["games"]), 1)
        self.assertEqual(response.data["games"][0]["choice"], {"side": "heads"})

    def test_history_reads_choice_through_its_schema(self):
        GameRound.objects.create(
            user=self.user,
            game_type=GameRound.GameType.COINFLIP,
            bet_amount=5,
            choice={"side": " Heads ", "legacy": True},
            result="heads",
            won=True,
            amount_change=5,
        )
        GameRound.objects.create(
            user=self.user,
            game_type=GameRound.GameType.CRASH,
            bet_amount=5,
            choice={"cashOutAt": "2.50"},
            result="1.20",
            won=False,
            amount_change=-5,
        )

        response = self.client.get("/api/games/history/")

        self.assertEqual(response.status_code, 200)
        choices = [game["choice"] for game in response.data["games"]]
        self.assertEqual(choices, [{"cashOutAt": "2.50"}, {"side": "heads"}])


# ============================================================
# Celery Task Tests
# ============================================================


class CeleryTaskTest(TransactionTestCase):
    def setUp(self):
        self.user = make_user("alice")
        self.nft = make_nft(self.user)

    def test_record_nft_view(self):
        from economy.tasks import record_nft_view

        # Use .apply() to run synchronously in tests
        result = record_nft_view.apply(args=[self.nft.id])

        self.assertEqual(result.get(), {"nft_id": self.nft.id, "recorded": True})
        self.nft.refresh_from_db()
        self.assertEqual(self.nft.view_count, 1)

    def test_record_view_missing_nft(self):
        from economy.tasks import record_nft_view

        result = record_nft_view.apply(args=[999999])
        self.assertEqual(result.get()["recorded"], False)


# ============================================================
# Management Command Tests
# ============================================================


class AdjustWalletCommandTest(TestCase):
    def setUp(self):
        self.user = make_user("alice", agon=10)

    def test_credit_and_debit(self):
        out = StringIO()
        call_command("adjust_wallet", "alice", "90", stdout=out)
        self.assertIn("agon=100.00", out.getvalue())

        call_command("adjust_wallet", "alice", "25", "--currency", "game_chips", stdout=out)
        wallet = Wallet.objects.get(user=self.user)
        self.assertEqual(wallet.game_chips, 25)

    def test_overdraw_fails(self):
        with self.assertRaises(CommandError):
            call_command("adjust_wallet", "alice", "-10.01", stdout=StringIO())
        self.assertEqual(agon_of(self.user), 10)

    def test_unknown_user_fails(self):
        with self.assertRaises(CommandError):
            call_command("adjust_wallet", "nobody", "5", stdout=StringIO())
