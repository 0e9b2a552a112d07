"""
Domain errors surfaced verbatim to API clients.
"""
from rest_framework import status
from rest_framework.exceptions import APIException, PermissionDenied


class AuthorizationDenied(PermissionDenied):
    """A mutability predicate was false, or an RPC caller is not a member of the organization."""
    default_detail = 'Acceso no autorizado'
    default_code = 'authorization_denied'


class ConstraintViolation(APIException):
    """Natural-key conflict (duplicate document id, session, attendance record...)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The record conflicts with an existing one.'
    default_code = 'conflict'
