"""
Core models - Organization (tenant boundary), OrganizationMember (membership + role), AcademicYear.
"""
import uuid

from django.conf import settings
from django.db import models


class Organization(models.Model):
    """
    Organization / institution. Created at onboarding, never deleted automatically.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'organizations'
        verbose_name = 'Organization'
        verbose_name_plural = 'Organizations'
        ordering = ['name']

    def __str__(self):
        return self.name


class OrganizationMember(models.Model):
    """
    Links a user to exactly one role within one organization.
    A user may belong to several organizations; the oldest membership is the primary one.
    """
    ROLE_OWNER = 'owner'
    ROLE_ADMIN = 'admin'
    ROLE_MEMBER = 'member'

    ROLE_CHOICES = [
        (ROLE_OWNER, 'Owner'),
        (ROLE_ADMIN, 'Admin'),
        (ROLE_MEMBER, 'Member (teacher)'),
    ]
    MANAGER_ROLES = (ROLE_OWNER, ROLE_ADMIN)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='members',
        db_column='org_id',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='memberships',
        db_column='user_id',
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'organization_members'
        verbose_name = 'Organization Member'
        verbose_name_plural = 'Organization Members'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'user'], name='unique_org_member'),
        ]
        indexes = [
            models.Index(fields=['user', 'organization'], name='org_member_user_org_idx'),
        ]

    def __str__(self):
        return f"{self.user} @ {self.organization} ({self.role})"


class AcademicYear(models.Model):
    """
    School year of an organization. One active year per organization is expected
    (see core.services.activate_academic_year), not enforced by a constraint.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name='academic_years',
        db_column='org_id',
    )
    year = models.PositiveIntegerField()
    is_active = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'academic_years'
        verbose_name = 'Academic Year'
        verbose_name_plural = 'Academic Years'
        ordering = ['-year']

    def __str__(self):
        return f"{self.year} ({self.organization})"
