import logging

from django.conf import settings
from django.db import transaction
from kombu.exceptions import OperationalError
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from economy.exceptions import EconomyError
from economy.serializers import (
    BidSerializer,
    MintNFTSerializer,
    NFTFilterSerializer,
    NFTSerializer,
    NFTSummarySerializer,
    NFTTransactionSerializer,
    WalletSerializer,
)
from economy.services import EngagementService, MintService, WalletService
from economy.services import queries
from economy.tasks import record_nft_view
from economy.views.base import error_response

logger = logging.getLogger(__name__)


class NFTPagination(LimitOffsetPagination):
    default_limit = 50
    max_limit = 100


def dispatch_view_count(nft_id):
    try:
        record_nft_view.delay(nft_id)
    except OperationalError as exc:
        logger.warning("Could not dispatch view count for nft=%s: %s", nft_id, exc)


class NFTListView(ListAPIView):
    """
    GET /api/nfts/ — Browse NFTs.

    Query params:
        - category, listed_only, creator_id, owner_id, search
        - min_price, max_price: bounds on the ask price
        - sort_by: minted_at | ask_price | view_count | like_count | name
        - order: asc | desc
        - limit (max 100), offset
    """

    serializer_class = NFTSummarySerializer
    pagination_class = NFTPagination
    permission_classes = [AllowAny]

    def get_queryset(self):
        filters = NFTFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        return queries.search_nfts(**filters.validated_data)


class CategoryListView(APIView):
    """GET /api/nfts/categories/ — The fixed category list."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response({"categories": EngagementService.categories()})


class NFTDetailView(APIView):
    """GET /api/nfts/<id>/ — NFT, order book and recent ledger rows."""

    permission_classes = [AllowAny]

    def get(self, request, id, *args, **kwargs):
        try:
            nft, bids, transactions = queries.nft_detail(id)
        except EconomyError as exc:
            return error_response(exc)

        if getattr(settings, "NFT_VIEW_TASK_ENABLED", True):
            transaction.on_commit(lambda: dispatch_view_count(nft.pk))

        return Response(
            {
                "nft": NFTSerializer(nft).data,
                "bids": BidSerializer(bids, many=True).data,
                "transactions": NFTTransactionSerializer(transactions, many=True).data,
            }
        )


class UserCollectionView(APIView):
    """
    GET /api/nfts/user/<user_id>/ — A user's NFTs and collection stats.

    Query params:
        - include_created: also return NFTs the user minted but no longer owns
    """

    permission_classes = [AllowAny]

    def get(self, request, user_id, *args, **kwargs):
        include_created = request.query_params.get("include_created") == "true"
        nfts, stats = queries.user_collection(user_id, include_created=include_created)
        return Response(
            {
                "nfts": NFTSummarySerializer(nfts, many=True).data,
                "stats": stats,
            }
        )


class MintNFTView(APIView):
    """
    POST /api/nfts/mint/ — Mint an NFT for the fixed Agon cost.

    Request body: {"name", "image_ref", "description"?, "category"?, "tags"?,
    "edition_number"?, "edition_total"?}
    """

    def post(self, request, *args, **kwargs):
        serializer = MintNFTSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            nft = MintService.mint(creator_id=request.user.pk, **serializer.validated_data)
            wallet = WalletService.get_wallet(request.user.pk)
        except EconomyError as exc:
            return error_response(exc)

        return Response(
            {
                "nft": NFTSerializer(nft).data,
                "wallet": WalletSerializer(wallet).data,
            },
            status=status.HTTP_201_CREATED,
        )


class LikeNFTView(APIView):
    """POST /api/nfts/<id>/like/ likes an NFT; DELETE removes the like."""

    def post(self, request, id, *args, **kwargs):
        try:
            liked = EngagementService.like(request.user.pk, id)
        except EconomyError as exc:
            return error_response(exc)
        return Response({"liked": True, "created": liked})

    def delete(self, request, id, *args, **kwargs):
        removed = EngagementService.unlike(request.user.pk, id)
        return Response({"liked": False, "removed": removed})
