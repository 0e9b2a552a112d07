"""
Request-level permissions. Row-level rules live in core.policies.
"""
from rest_framework import permissions

from core.identity import primary_organization


class HasOrganization(permissions.BasePermission):
    """Caller belongs to at least one organization (finished onboarding)."""
    message = 'Complete onboarding: create or join an organization first.'

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            primary_organization(request.user) is not None
        )
