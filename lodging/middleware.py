import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Log ``METHOD path - ip`` and the response status for every request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        ip = request.META.get('HTTP_X_FORWARDED_FOR', '').split(',')[0].strip() or request.META.get('REMOTE_ADDR')
        logger.info('%s %s - %s', request.method, request.path, ip)
        response = self.get_response(request)
        logger.debug('%s %s -> %s in %.1fms', request.method, request.path, response.status_code,
                     (time.monotonic() - started) * 1000)
        return response
