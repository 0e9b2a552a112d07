"""
Identity & membership resolver.

Every policy predicate starts from "which organizations does the caller belong to,
and with which role". These lookups read organization_members directly through the
model manager, never through core.policies.scoped(): the membership visibility
policy itself depends on them, so routing them through the policy layer would
re-enter that policy forever.

Only the policy engine, the analytics service and the caller's own /me endpoint
use this module; nothing exposes it to clients with an arbitrary principal id.
"""
from core.models import OrganizationMember


def _principal_id(principal):
    """Accept a user instance or a raw id. Anonymous users resolve to None."""
    if principal is None:
        return None
    if hasattr(principal, 'is_authenticated'):
        if not principal.is_authenticated:
            return None
        return principal.pk
    return principal


def organizations_for_principal(principal):
    """Set of organization ids the principal is a member of. Never raises."""
    pid = _principal_id(principal)
    if pid is None:
        return set()
    return set(
        OrganizationMember.objects.filter(user_id=pid).values_list('organization_id', flat=True)
    )


def role_in_organization(principal, org_id):
    """The principal's role in org_id, or None when not a member."""
    pid = _principal_id(principal)
    if pid is None or org_id is None:
        return None
    return (
        OrganizationMember.objects.filter(user_id=pid, organization_id=org_id)
        .values_list('role', flat=True)
        .first()
    )


def is_member(principal, org_id):
    return role_in_organization(principal, org_id) is not None


def is_manager(principal, org_id):
    """owner or admin of org_id."""
    return role_in_organization(principal, org_id) in OrganizationMember.MANAGER_ROLES


def primary_organization(principal):
    """Organization id of the oldest membership (the app assumes one primary organization)."""
    pid = _principal_id(principal)
    if pid is None:
        return None
    return (
        OrganizationMember.objects.filter(user_id=pid)
        .order_by('created_at')
        .values_list('organization_id', flat=True)
        .first()
    )
