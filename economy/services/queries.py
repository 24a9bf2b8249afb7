"""
Read-side queries for the marketplace.

These never lock rows or write; they back the public browse, detail and
collection endpoints.
"""

from django.db.models import Count, DecimalField, Max, Q, Sum, Value
from django.db.models.functions import Coalesce

from economy.exceptions import NotFoundError
from economy.models import NFT, Bid, NFTTransaction

SORT_FIELDS = ("minted_at", "ask_price", "view_count", "like_count", "name")


def with_bid_stats(queryset):
    active = Q(bids__status=Bid.Status.ACTIVE)
    return queryset.annotate(
        active_bids_count=Count("bids", filter=active),
        highest_bid=Max("bids__bid_amount", filter=active),
    )


def search_nfts(
    category=None,
    listed_only=False,
    creator_id=None,
    owner_id=None,
    search=None,
    min_price=None,
    max_price=None,
    sort_by="minted_at",
    order="desc",
):
    """Filtered, sorted NFT queryset annotated with order-book stats."""
    queryset = NFT.objects.select_related("creator", "current_owner")

    if category:
        queryset = queryset.filter(category=category)
    if listed_only:
        queryset = queryset.filter(is_listed=True)
    if creator_id:
        queryset = queryset.filter(creator_id=creator_id)
    if owner_id:
        queryset = queryset.filter(current_owner_id=owner_id)
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(description__icontains=search)
        )
    if min_price is not None:
        queryset = queryset.filter(ask_price__gte=min_price)
    if max_price is not None:
        queryset = queryset.filter(ask_price__lte=max_price)

    sort_field = sort_by if sort_by in SORT_FIELDS else "minted_at"
    prefix = "" if order == "asc" else "-"
    return with_bid_stats(queryset).order_by(f"{prefix}{sort_field}", f"{prefix}id")


def nft_detail(nft_id, transaction_limit=20):
    """Return (nft, order book, recent ledger rows) for one NFT."""
    try:
        nft = NFT.objects.select_related("creator", "current_owner").get(pk=nft_id)
    except NFT.DoesNotExist:
        raise NotFoundError("NFT not found.")

    bids = Bid.order_book(nft_id).select_related("bidder")
    transactions = NFTTransaction.recent_for_nft(nft_id, limit=transaction_limit)
    return nft, list(bids), list(transactions)


def user_collection(user_id, include_created=False):
    """Return (nfts, stats) for a user's collection."""
    owned_or_created = Q(current_owner_id=user_id)
    if include_created:
        owned_or_created |= Q(creator_id=user_id)
    nfts = with_bid_stats(
        NFT.objects.filter(owned_or_created).select_related("creator")
    ).order_by("-minted_at", "-id")

    stats = NFT.objects.filter(Q(current_owner_id=user_id) | Q(creator_id=user_id)).aggregate(
        owned_count=Count("id", filter=Q(current_owner_id=user_id)),
        created_count=Count("id", filter=Q(creator_id=user_id)),
        total_value=Coalesce(
            Sum("ask_price", filter=Q(current_owner_id=user_id, ask_price__isnull=False)),
            Value(0),
            output_field=DecimalField(max_digits=18, decimal_places=2),
        ),
    )
    return list(nfts), stats
