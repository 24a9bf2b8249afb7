from rest_framework.response import Response
from rest_framework.views import APIView

from economy.exceptions import EconomyError
from economy.serializers import (
    CoinflipSerializer,
    CrashSerializer,
    GameHistoryQuerySerializer,
    GameRoundSerializer,
)
from economy.services import GameService
from economy.views.base import error_response


class CoinflipView(APIView):
    """
    POST /api/games/coinflip/ — Flip a coin for game chips.

    Request body: {"betAmount": <positive decimal>, "choice": "heads" | "tails"}
    """

    def post(self, request, *args, **kwargs):
        serializer = CoinflipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            outcome = GameService.play_coinflip(
                user_id=request.user.pk,
                bet_amount=serializer.validated_data["betAmount"],
                side=serializer.validated_data["choice"],
            )
        except EconomyError as exc:
            return error_response(exc)

        return Response(
            {
                "won": outcome.won,
                "result": outcome.result,
                "amountChange": outcome.amount_change,
                "newBalance": outcome.new_balance,
            }
        )


class CrashView(APIView):
    """
    POST /api/games/crash/ — Play a crash round with an auto cash-out target.

    Request body: {"betAmount": <positive decimal>, "cashOutAt": 1.01..5.00}
    """

    def post(self, request, *args, **kwargs):
        serializer = CrashSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            outcome = GameService.play_crash(
                user_id=request.user.pk,
                bet_amount=serializer.validated_data["betAmount"],
                cash_out_at=serializer.validated_data["cashOutAt"],
            )
        except EconomyError as exc:
            return error_response(exc)

        return Response(
            {
                "won": outcome.won,
                "crashPoint": outcome.crash_point,
                "cashOutAt": outcome.cash_out_at,
                "amountChange": outcome.amount_change,
                "newBalance": outcome.new_balance,
            }
        )


class GameHistoryView(APIView):
    """
    GET /api/games/history/ — The caller's recent rounds.

    Query params:
        - game_type: coinflip | crash
        - limit: number of rounds (default 20)
    """

    def get(self, request, *args, **kwargs):
        query = GameHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        rounds = GameService.history(
            request.user.pk,
            game_type=query.validated_data.get("game_type"),
            limit=query.validated_data["limit"],
        )
        return Response({"games": GameRoundSerializer(rounds, many=True).data})
