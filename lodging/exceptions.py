"""
Domain exceptions and the DRF exception handler.

Every error leaves the API as ``{"success": false, "message", "type"}``.
Framework, database and payment-processor exceptions are translated to
DRF ``APIException`` instances first so that one code path renders them.
"""
from __future__ import annotations

import logging
import re
import traceback

import stripe
from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, InterfaceError, OperationalError
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

ERROR_TYPES = {
    400: 'ValidationError',
    401: 'AuthenticationError',
    403: 'AuthorizationError',
    404: 'NotFoundError',
    409: 'ConflictError',
    429: 'RateLimitError',
}


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource conflict.'
    default_code = 'conflict'


class BookingStateError(Conflict):
    default_detail = 'Booking status does not allow this operation.'
    default_code = 'booking_state'


class PaymentProviderError(exceptions.APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Payment provider error.'
    default_code = 'payment_provider_error'


class ServiceUnavailable(exceptions.APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Service temporarily unavailable.'
    default_code = 'service_unavailable'


_DUPLICATE_PATTERNS = [
    re.compile(r'UNIQUE constraint failed: [\w]+\.(\w+)'),
    re.compile(r'Key \((\w+)\)='),
    re.compile(r"Duplicate entry .* for key '(?:[\w]+\.)?(\w+)'"),
]


def _duplicate_field(exc: IntegrityError) -> str | None:
    text = str(exc)
    for pattern in _DUPLICATE_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return None


def translate_exception(exc):
    """Map non-DRF exceptions onto ``APIException`` instances (or return as is)."""
    if isinstance(exc, (Http404, ObjectDoesNotExist)):
        return exceptions.NotFound('Resource not found')
    if isinstance(exc, DjangoPermissionDenied):
        return exceptions.PermissionDenied()
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        return exceptions.ValidationError(detail)
    if isinstance(exc, ProtectedError):
        return Conflict('Resource is referenced by other records and cannot be deleted')
    if isinstance(exc, IntegrityError):
        field = _duplicate_field(exc)
        return exceptions.ValidationError(f'{field} already exists' if field else 'Duplicate value')
    if isinstance(exc, stripe.CardError):
        return exceptions.ValidationError(f'Payment failed: {exc.user_message or exc}')
    if isinstance(exc, stripe.InvalidRequestError):
        return exceptions.ValidationError('Invalid payment request')
    if isinstance(exc, stripe.StripeError):
        return PaymentProviderError(exc.user_message or 'Payment provider error')
    if isinstance(exc, (OperationalError, InterfaceError)):
        return ServiceUnavailable('Database connection error')
    return exc


def _first_message(detail) -> str:
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return 'Validation failed'
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else 'Validation failed'
    return str(detail)


def error_body(status_code: int, message: str) -> dict:
    body = {'success': False, 'message': message}
    if status_code in ERROR_TYPES:
        body['type'] = ERROR_TYPES[status_code]
    elif status_code >= 500:
        body['type'] = 'ServerError'
    return body


def api_exception_handler(exc, context):
    request = context.get('request')
    translated = translate_exception(exc)
    resp = drf_exception_handler(translated, context)
    if resp is None:
        logger.error('Unhandled error on %s %s', getattr(request, 'method', '?'),
                     getattr(request, 'path', '?'), exc_info=exc)
        body = error_body(500, 'Server Error')
        if settings.DEBUG:
            body['stack'] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return Response(body, status=500)

    if resp.status_code >= 500:
        logger.error('%s on %s %s: %s', type(exc).__name__, getattr(request, 'method', '?'),
                     getattr(request, 'path', '?'), exc)
    else:
        logger.info('%s %s -> %s', getattr(request, 'method', '?'), getattr(request, 'path', '?'),
                    resp.status_code)

    if isinstance(translated, exceptions.Throttled):
        body = error_body(429, 'Too many requests, please try again later')
        body['retryAfter'] = int(translated.wait) if translated.wait else 60
    else:
        body = error_body(resp.status_code, _first_message(translated.detail))
        if isinstance(translated, exceptions.ValidationError) and isinstance(translated.detail, dict):
            body['errors'] = resp.data
    resp.data = body
    return resp
