import logging

from rest_framework import status
from rest_framework.response import Response

from economy.exceptions import ErrorKind

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.INSUFFICIENT_FUNDS: status.HTTP_400_BAD_REQUEST,
}


def error_response(exc):
    """Translate an EconomyError into its HTTP response."""
    logger.info("Request rejected: kind=%s message=%s", exc.kind.value, exc.message)
    return Response(
        {"error": exc.kind.value, "message": exc.message},
        status=STATUS_BY_KIND[exc.kind],
    )
