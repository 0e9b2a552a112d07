"""
Global exception handler for consistent API error responses.
Follows DRF convention and returns a uniform structure: { "detail": str, "code": str }.
"""
import logging
from rest_framework.views import exception_handler, set_rollback
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.conf import settings

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    DRF exceptions keep their status; AuthorizationDenied/ConstraintViolation carry
    their own code. Unique-constraint races surface as 409 conflicts, never as 500.
    """
    response = exception_handler(exc, context)
    if response is not None:
        data = response.data if isinstance(response.data, dict) else {'detail': _get_detail(exc)}
        if 'detail' not in data:
            # Field errors from serializers: keep them under "errors"
            data = {'detail': _get_detail(exc), 'errors': data}
        data.setdefault('code', _get_code(exc))
        response.data = data
        return response

    # Handled below without DRF: the open request transaction must still roll back
    set_rollback()

    if isinstance(exc, PermissionDenied):
        return Response(
            {'detail': str(exc) or 'Permission denied', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN
        )
    if isinstance(exc, DjangoValidationError):
        detail = '; '.join(exc.messages) if hasattr(exc, 'messages') else str(exc)
        return Response(
            {'detail': detail, 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(exc, IntegrityError):
        logger.info('Constraint violation: %s', exc)
        return Response(
            {'detail': 'The record conflicts with an existing one.', 'code': 'conflict'},
            status=status.HTTP_409_CONFLICT
        )

    logger.exception('Unhandled exception: %s', exc)
    error_detail = 'An internal error occurred.'
    if settings.DEBUG:
        error_detail = f'An internal error occurred: {str(exc)}'
    # Never expose stack traces to the client
    return Response(
        {'detail': error_detail, 'code': 'internal_error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _get_detail(exc):
    if hasattr(exc, 'detail'):
        d = exc.detail
        if isinstance(d, list):
            return str(d[0]) if d else 'Error'
        if isinstance(d, dict):
            if 'detail' in d:
                return str(d['detail'])
            first = next(iter(d.values()), 'Error')
            return str(first[0]) if isinstance(first, list) and first else str(first)
        return str(d)
    return str(exc)


def _get_code(exc):
    code = getattr(exc, 'default_code', None)
    if code in ('authorization_denied', 'conflict'):
        return code
    codes = {
        'AuthenticationFailed': 'invalid_credentials',
        'NotAuthenticated': 'not_authenticated',
        'NotFound': 'not_found',
        'PermissionDenied': 'permission_denied',
        'ValidationError': 'validation_error',
    }
    return codes.get(type(exc).__name__, 'error')
