"""
Group (course / workshop) and GroupStudent (roster link).
GroupStudent.organization is a copy of its group's organization, derived on every save.
"""
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction


class Group(models.Model):
    """
    Group owned by one teacher. Its organization must match its academic year's
    organization; when omitted it is taken from the academic year.
    """
    TYPE_COURSE = 'course'
    TYPE_WORKSHOP = 'workshop'

    TYPE_CHOICES = [
        (TYPE_COURSE, 'Course'),
        (TYPE_WORKSHOP, 'Workshop'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.PROTECT,
        related_name='groups',
        db_column='org_id',
    )
    academic_year = models.ForeignKey(
        'core.AcademicYear',
        on_delete=models.PROTECT,
        related_name='groups',
        db_column='academic_year_id',
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='taught_groups',
        db_column='teacher_id',
    )
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_COURSE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        verbose_name = 'Group'
        verbose_name_plural = 'Groups'
        ordering = ['name']
        indexes = [
            models.Index(fields=['organization', 'teacher'], name='group_org_teacher_idx'),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.academic_year_id is None:
            return
        year_org = self.academic_year.organization_id
        if self.organization_id is None:
            self.organization_id = year_org
        elif self.organization_id != year_org:
            raise ValidationError({'academic_year': 'The academic year belongs to another organization.'})

    def save(self, *args, **kwargs):
        # post_save propagation to children runs inside the same transaction
        with transaction.atomic():
            self.clean()
            super().save(*args, **kwargs)


class GroupStudent(models.Model):
    """Roster link. Unique (group, student); organization follows the group."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='group_memberships',
        db_column='org_id',
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='group_students',
    )
    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='group_memberships',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_students'
        verbose_name = 'Group Student'
        verbose_name_plural = 'Group Students'
        constraints = [
            models.UniqueConstraint(fields=['group', 'student'], name='unique_group_student'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.group.name} - {self.student}"

    def save(self, *args, **kwargs):
        self.organization_id = self.group.organization_id
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'organization' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['organization']
        super().save(*args, **kwargs)
