"""
Organization services - onboarding and academic-year lifecycle.
"""
import logging
import secrets

from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify

from core import policies
from core.models import AcademicYear, Organization, OrganizationMember

logger = logging.getLogger(__name__)


def make_slug(name):
    """Slug from the name plus a short random suffix, e.g. 'escuela-norte-k3x9q2'."""
    base = slugify(name)[:80] or 'org'
    return f"{base}-{secrets.token_hex(3)}"


@transaction.atomic
def bootstrap_organization(user, name, slug=None, year=None):
    """
    Self-service tenant bootstrap: organization + owner membership + active academic year.
    All three rows are created or none is.
    """
    org = Organization(name=name.strip(), slug=slug or make_slug(name))
    policies.authorize(user, policies.CREATE, org)
    org.save()

    membership = OrganizationMember(organization=org, user=user, role=OrganizationMember.ROLE_OWNER)
    policies.authorize(user, policies.CREATE, membership)
    membership.save()

    academic_year = AcademicYear(
        organization=org,
        year=year or timezone.localdate().year,
        is_active=True,
    )
    policies.authorize(user, policies.CREATE, academic_year)
    academic_year.save()

    logger.info('Organization %s bootstrapped by user %s', org.pk, user.pk)
    return org


def active_academic_year(org_id):
    return (
        AcademicYear.objects.filter(organization_id=org_id, is_active=True)
        .order_by('-year')
        .first()
    )


@transaction.atomic
def activate_academic_year(user, academic_year):
    """Mark one year active and deactivate the organization's other years."""
    policies.authorize(user, policies.CHANGE, academic_year)
    others = AcademicYear.objects.select_for_update().filter(
        organization_id=academic_year.organization_id
    ).exclude(pk=academic_year.pk)
    for other in others.filter(is_active=True):
        policies.authorize(user, policies.CHANGE, other)
    others.update(is_active=False)
    academic_year.is_active = True
    academic_year.save(update_fields=['is_active'])
    return academic_year
