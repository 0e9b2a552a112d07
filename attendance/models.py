"""
Attendance models: Session (one attendance-taking event) and AttendanceRecord.
Unique constraints: Session (group, date, class_index); AttendanceRecord (session, student).
Both carry the group's organization, derived on save.
"""
import uuid

from django.conf import settings
from django.db import models


def _with_organization(kwargs):
    update_fields = kwargs.get('update_fields')
    if update_fields is not None and 'organization' not in update_fields:
        kwargs['update_fields'] = list(update_fields) + ['organization']
    return kwargs


class Session(models.Model):
    """
    One attendance-taking event for a group on a date. class_index allows several
    sessions per day; the UI always uses 1.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='sessions',
        db_column='org_id',
    )
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='sessions',
    )
    date = models.DateField(db_index=True)
    class_index = models.PositiveSmallIntegerField(default=1)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sessions_created',
        db_column='created_by',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sessions'
        verbose_name = 'Session'
        verbose_name_plural = 'Sessions'
        constraints = [
            models.UniqueConstraint(
                fields=['group', 'date', 'class_index'],
                name='unique_group_date_class_index',
            ),
        ]
        indexes = [
            models.Index(fields=['organization', 'date'], name='session_org_date_idx'),
        ]
        ordering = ['-date', 'class_index']

    def __str__(self):
        return f"{self.group.name} - {self.date} #{self.class_index}"

    def save(self, *args, **kwargs):
        self.organization_id = self.group.organization_id
        super().save(*args, **_with_organization(kwargs))


class AttendanceRecord(models.Model):
    """
    One student's outcome for one session. justification only applies to absences.
    No access rule of its own: scope is Session -> Group -> Organization.
    """
    STATUS_PRESENT = 'present'
    STATUS_ABSENT = 'absent'
    STATUS_LATE = 'late'
    STATUS_JUSTIFIED = 'justified'

    STATUS_CHOICES = [
        (STATUS_PRESENT, 'Present'),
        (STATUS_ABSENT, 'Absent'),
        (STATUS_LATE, 'Late'),
        (STATUS_JUSTIFIED, 'Justified'),
    ]

    JUSTIFICATION_JUSTIFIED = 'justified'
    JUSTIFICATION_UNJUSTIFIED = 'unjustified'

    JUSTIFICATION_CHOICES = [
        (JUSTIFICATION_JUSTIFIED, 'Justified'),
        (JUSTIFICATION_UNJUSTIFIED, 'Unjustified'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='attendance_records',
        db_column='org_id',
    )
    session = models.ForeignKey(
        Session,
        on_delete=models.CASCADE,
        related_name='records',
    )
    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='attendance_records',
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PRESENT)
    justification = models.CharField(max_length=20, choices=JUSTIFICATION_CHOICES, null=True, blank=True)
    comment = models.TextField(blank=True, default='')
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='attendance_updated',
        db_column='updated_by',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'attendance_records'
        verbose_name = 'Attendance Record'
        verbose_name_plural = 'Attendance Records'
        constraints = [
            models.UniqueConstraint(fields=['session', 'student'], name='unique_session_student'),
        ]
        indexes = [
            models.Index(fields=['student', 'session'], name='record_student_session_idx'),
            models.Index(fields=['organization', 'status'], name='record_org_status_idx'),
        ]
        ordering = ['session', 'student']

    def __str__(self):
        return f"{self.student} - {self.session.date} - {self.status}"

    def save(self, *args, **kwargs):
        self.organization_id = self.session.group.organization_id
        if self.status != self.STATUS_ABSENT:
            self.justification = None
        elif not self.justification:
            self.justification = self.JUSTIFICATION_UNJUSTIFIED
        super().save(*args, **_with_organization(kwargs))
