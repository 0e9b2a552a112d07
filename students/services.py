"""
Student services - creation/update with document-id pre-check, destructive delete,
duplicate merge.
"""
import logging
from collections import defaultdict

from django.db import transaction
from rest_framework.exceptions import ValidationError

from core import policies
from core.exceptions import ConstraintViolation
from students.models import Student

logger = logging.getLogger(__name__)


def ensure_unique_doc_id(org_id, doc_id, exclude_pk=None):
    """Raise ConstraintViolation if another student of the organization has this doc_id."""
    doc_id = (doc_id or '').strip()
    if not doc_id:
        return
    qs = Student.objects.filter(organization_id=org_id, doc_id=doc_id)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise ConstraintViolation(f'A student with document {doc_id} already exists in this organization.')


@transaction.atomic
def create_student(user, organization_id, first_name, last_name, doc_id=None, is_active=True):
    student = Student(
        organization_id=organization_id,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        doc_id=doc_id,
        is_active=is_active,
    )
    policies.authorize(user, policies.CREATE, student)
    ensure_unique_doc_id(organization_id, doc_id)
    student.save()
    return student


@transaction.atomic
def update_student(user, student, **changes):
    """Apply field changes; moving a student to another organization is not allowed."""
    policies.authorize(user, policies.CHANGE, student)
    if 'organization_id' in changes and changes['organization_id'] != student.organization_id:
        raise ValidationError({'org_id': 'A student cannot change organization.'})
    for field, value in changes.items():
        setattr(student, field, value)
    if 'doc_id' in changes:
        ensure_unique_doc_id(student.organization_id, student.doc_id, exclude_pk=student.pk)
    student.save()
    return student


@transaction.atomic
def delete_student(user, student, confirm=False):
    """
    Hard delete. Cascades roster links and the student's whole attendance history,
    so the caller must confirm explicitly.
    """
    if not confirm:
        raise ValidationError({'confirm': 'Deleting a student removes their attendance history. Pass confirm=true.'})
    policies.authorize(user, policies.DELETE, student)
    logger.info('Deleting student %s (org %s) by user %s', student.pk, student.organization_id, user.pk)
    student.delete()


def find_duplicate_students(org_id=None):
    """
    {(org_id, name_key): [students oldest first]} for every normalized name that
    appears more than once inside one organization.
    """
    qs = Student.objects.all().order_by('created_at', 'id')
    if org_id:
        qs = qs.filter(organization_id=org_id)
    buckets = defaultdict(list)
    for student in qs:
        buckets[(student.organization_id, student.name_key)].append(student)
    return {key: students for key, students in buckets.items() if len(students) > 1}


@transaction.atomic
def merge_students(master, duplicates):
    """
    Re-point roster links and attendance records of `duplicates` to `master`, then delete
    the duplicates. Where master already has a row for the same group/session, the
    duplicate's row is dropped. Returns (links_moved, records_moved).
    """
    from attendance.models import AttendanceRecord
    from groups.models import GroupStudent

    dup_ids = [d.pk for d in duplicates if d.pk != master.pk]
    if not dup_ids:
        return 0, 0

    master_groups = set(GroupStudent.objects.filter(student=master).values_list('group_id', flat=True))
    links_moved = 0
    for link in GroupStudent.objects.filter(student_id__in=dup_ids).order_by('created_at'):
        if link.group_id in master_groups:
            link.delete()
            continue
        link.student = master
        link.save(update_fields=['student'])
        master_groups.add(link.group_id)
        links_moved += 1

    master_sessions = set(AttendanceRecord.objects.filter(student=master).values_list('session_id', flat=True))
    records_moved = 0
    for record in AttendanceRecord.objects.filter(student_id__in=dup_ids).order_by('-updated_at'):
        if record.session_id in master_sessions:
            record.delete()
            continue
        record.student = master
        record.save(update_fields=['student'])
        master_sessions.add(record.session_id)
        records_moved += 1

    Student.objects.filter(pk__in=dup_ids).delete()
    logger.info('Merged students %s into %s', dup_ids, master.pk)
    return links_moved, records_moved
