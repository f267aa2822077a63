import logging
import uuid
from contextvars import ContextVar

_request_id: ContextVar[str] = ContextVar('request_id', default='-')


class RequestIdMiddleware:
    """Tag each request with an id that is echoed back and attached to log records."""
    HEADER = 'HTTP_X_REQUEST_ID'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        rid = (request.META.get(self.HEADER) or '').strip()[:64] or uuid.uuid4().hex
        request.request_id = rid
        token = _request_id.set(rid)
        try:
            response = self.get_response(request)
        finally:
            _request_id.reset(token)
        response['X-Request-ID'] = rid
        return response


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True
