import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Log one line per request: method, path, status and duration."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start = time.monotonic()
        response = self.get_response(request)
        duration = (time.monotonic() - start) * 1000
        logger.info(
            '%s  %s  %s  %dms',
            request.method, request.get_full_path(), response.status_code, duration
        )
        return response
