from rest_framework.response import Response
from rest_framework.views import APIView

from economy.exceptions import NotFoundError
from economy.serializers import WalletSerializer
from economy.services import WalletService
from economy.views.base import error_response


class RetrieveWalletView(APIView):
    """GET /api/wallet/ — The caller's balances."""

    def get(self, request, *args, **kwargs):
        try:
            wallet = WalletService.get_wallet(request.user.pk)
        except NotFoundError as exc:
            return error_response(exc)
        return Response(WalletSerializer(wallet).data)
