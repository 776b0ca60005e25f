import logging
import time

logger = logging.getLogger('apps.http')


class RequestLoggingMiddleware:
    """Log method, path, status code and duration of every request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] [%s] [%s] [%s] [%.0fms]",
            request.method,
            request.get_full_path(),
            response.status_code,
            request.META.get('REMOTE_ADDR', '-'),
            elapsed_ms,
        )
        return response
