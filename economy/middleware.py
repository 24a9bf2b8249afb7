import logging
import time

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """
    Logs every API call with the authenticated user, the response status
    and the time spent producing it.

    Request bodies are not logged; trade and wager payloads are recorded
    by the services themselves.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        user = getattr(request, "user", None)
        user_id = user.pk if user is not None and user.is_authenticated else None

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "API %s %s user=%s status=%d duration_ms=%.1f",
            request.method,
            request.get_full_path(),
            user_id,
            response.status_code,
            elapsed_ms,
        )
        return response
