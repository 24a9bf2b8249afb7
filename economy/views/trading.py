import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from economy.exceptions import EconomyError
from economy.serializers import (
    AcceptBidSerializer,
    BidSerializer,
    ListNFTSerializer,
    NFTSerializer,
    PlaceBidSerializer,
    WalletSerializer,
)
from economy.services import TradingService
from economy.views.base import error_response

logger = logging.getLogger(__name__)


class ListNFTView(APIView):
    """
    POST /api/nfts/<id>/list/ — Put an owned NFT up for sale.

    Request body: {"ask_price": <positive decimal>}
    """

    def post(self, request, id, *args, **kwargs):
        serializer = ListNFTSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            nft = TradingService.list_nft(
                owner_id=request.user.pk,
                nft_id=id,
                ask_price=serializer.validated_data["ask_price"],
            )
        except EconomyError as exc:
            return error_response(exc)

        return Response({"nft": NFTSerializer(nft).data})


class UnlistNFTView(APIView):
    """POST /api/nfts/<id>/unlist/ — Take an owned NFT off sale."""

    def post(self, request, id, *args, **kwargs):
        try:
            nft = TradingService.unlist_nft(owner_id=request.user.pk, nft_id=id)
        except EconomyError as exc:
            return error_response(exc)

        return Response({"nft": NFTSerializer(nft).data})


class PlaceBidView(APIView):
    """
    POST /api/nfts/<id>/bid/ — Bid on someone else's NFT.

    Request body: {"bid_amount": <positive decimal>}
    Note: the balance is checked now and again on acceptance; nothing is held.
    """

    def post(self, request, id, *args, **kwargs):
        serializer = PlaceBidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bid = TradingService.place_bid(
                bidder_id=request.user.pk,
                nft_id=id,
                bid_amount=serializer.validated_data["bid_amount"],
            )
        except EconomyError as exc:
            return error_response(exc)

        return Response({"bid": BidSerializer(bid).data}, status=status.HTTP_201_CREATED)


class CancelBidView(APIView):
    """DELETE /api/nfts/bids/<bid_id>/ — Cancel one of the caller's active bids."""

    def delete(self, request, bid_id, *args, **kwargs):
        try:
            bid = TradingService.cancel_bid(bidder_id=request.user.pk, bid_id=bid_id)
        except EconomyError as exc:
            return error_response(exc)

        return Response({"message": "Bid cancelled.", "bid_id": bid.pk})


class AcceptBidView(APIView):
    """
    POST /api/nfts/<id>/accept-bid/ — Sell an owned NFT to an active bid.

    Request body: {"bid_id": <int>}
    """

    def post(self, request, id, *args, **kwargs):
        serializer = AcceptBidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            sale = TradingService.accept_bid(
                owner_id=request.user.pk,
                nft_id=id,
                bid_id=serializer.validated_data["bid_id"],
            )
        except EconomyError as exc:
            return error_response(exc)

        return Response(
            {
                "nft": NFTSerializer(sale.nft).data,
                "wallet": WalletSerializer(sale.wallet).data,
                "sale": {
                    "price": sale.price,
                    "fee": sale.fee,
                    "received": sale.received,
                },
            }
        )


class BuyNFTView(APIView):
    """POST /api/nfts/<id>/buy/ — Buy a listed NFT at its ask price."""

    def post(self, request, id, *args, **kwargs):
        try:
            sale = TradingService.buy_nft(buyer_id=request.user.pk, nft_id=id)
        except EconomyError as exc:
            return error_response(exc)

        return Response(
            {
                "nft": NFTSerializer(sale.nft).data,
                "wallet": WalletSerializer(sale.wallet).data,
                "purchase": {"price": sale.price, "fee": sale.fee},
            }
        )
