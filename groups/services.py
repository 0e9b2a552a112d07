"""
Group services - group lifecycle, roster links and roster import.
All writes go through core.policies before touching the database.
"""
import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from core import policies
from students.models import Student, normalize_name_key
from students.services import create_student
from .models import Group, GroupStudent

logger = logging.getLogger(__name__)


def propagate_group_organization(group):
    """
    Copy group.organization_id onto its roster links, sessions and attendance records.
    Returns {'links': n, 'sessions': n, 'records': n}.
    """
    from attendance.models import AttendanceRecord, Session

    org_id = group.organization_id
    counts = {
        'links': GroupStudent.objects.filter(group=group).exclude(organization_id=org_id).update(organization_id=org_id),
        'sessions': Session.objects.filter(group=group).exclude(organization_id=org_id).update(organization_id=org_id),
        'records': AttendanceRecord.objects.filter(session__group=group).exclude(
            organization_id=org_id).update(organization_id=org_id),
    }
    if any(counts.values()):
        logger.info('Group %s organization propagated to %s: %s', group.pk, org_id, counts)
    return counts


def get_roster(user, group):
    """Students linked to the group and visible to the caller, by last name."""
    return (
        policies.scoped(Student, user)
        .filter(group_memberships__group=group)
        .order_by('last_name', 'first_name')
    )


def _check_same_organization(group, student):
    if student.organization_id != group.organization_id:
        raise ValidationError({'student_id': 'The student belongs to another organization.'})


@transaction.atomic
def create_group(user, organization_id=None, academic_year=None, name='', type=Group.TYPE_COURSE,
                 teacher_id=None, students=None):
    """
    Create a group (teacher defaults to the caller) and optionally an inline roster:
    `students` is a list of {'first_name', 'last_name', 'doc_id'} rows created and linked
    in the same transaction.
    """
    group = Group(
        organization_id=organization_id,
        academic_year=academic_year,
        name=name.strip(),
        type=type,
        teacher_id=teacher_id or user.pk,
    )
    group.clean()
    policies.authorize(user, policies.CREATE, group)
    group.save()
    logger.info('Group %s created in organization %s by user %s', group.pk, group.organization_id, user.pk)

    for row in students or []:
        student = create_student(
            user,
            group.organization_id,
            row['first_name'],
            row['last_name'],
            doc_id=row.get('doc_id'),
        )
        link_student(user, group, student)
    return group


@transaction.atomic
def update_group(user, group, **changes):
    """
    Check the stored row, apply changes, check the new row; both must pass.
    Moving the group to another organization takes its linked students along.
    """
    policies.authorize(user, policies.CHANGE, group)
    previous_org = group.organization_id
    for field, value in changes.items():
        setattr(group, field, value)
    group.clean()
    policies.authorize(user, policies.CHANGE, group)
    if group.organization_id != previous_org:
        students = _students_to_move(group.organization_id, [group])
        for student in students:
            policies.authorize(user, policies.CHANGE, student)
            student.organization_id = group.organization_id
            policies.authorize(user, policies.CHANGE, student)
        _move_students(group.organization_id, students)
    group.save()
    return group


@transaction.atomic
def delete_group(user, group):
    policies.authorize(user, policies.DELETE, group)
    logger.info('Deleting group %s by user %s', group.pk, user.pk)
    group.delete()


@transaction.atomic
def link_student(user, group, student):
    """Idempotent: an existing link is returned unchanged. Returns (link, created)."""
    _check_same_organization(group, student)
    link = GroupStudent(group=group, student=student, organization_id=group.organization_id)
    policies.authorize(user, policies.CREATE, link)
    return GroupStudent.objects.get_or_create(group=group, student=student)


@transaction.atomic
def unlink_student(user, group, student):
    """Remove only the roster link; the student and their attendance history stay."""
    link = GroupStudent.objects.filter(group=group, student=student).first()
    if link is None:
        return False
    policies.authorize(user, policies.DELETE, link)
    link.delete()
    return True


@transaction.atomic
def import_roster(user, group, rows):
    """
    Link parsed roster rows ({'first_name', 'last_name', 'doc_id'?}) to the group.
    Each row matches an existing student of the organization by doc_id, then by
    normalized "first|last" name; unmatched rows create a student. Links are deduplicated.
    Returns {'created': n, 'matched': n, 'linked': n, 'skipped': n}.
    """
    policies.authorize(user, policies.CREATE, GroupStudent(group=group, organization_id=group.organization_id))

    by_doc = {}
    by_name = {}
    for student in Student.objects.filter(organization_id=group.organization_id).order_by('created_at'):
        if student.doc_id:
            by_doc.setdefault(student.doc_id, student)
        by_name.setdefault(student.name_key, student)

    summary = {'created': 0, 'matched': 0, 'linked': 0, 'skipped': 0}
    to_link = {}
    for row in rows:
        first_name = (row.get('first_name') or '').strip()
        last_name = (row.get('last_name') or '').strip()
        if not first_name or not last_name:
            summary['skipped'] += 1
            continue
        doc_id = (row.get('doc_id') or '').strip() or None
        key = normalize_name_key(first_name, last_name)

        student = by_doc.get(doc_id) if doc_id else None
        if student is None:
            student = by_name.get(key)
        if student is None:
            student = Student(
                organization_id=group.organization_id,
                first_name=first_name,
                last_name=last_name,
                doc_id=doc_id,
            )
            policies.authorize(user, policies.CREATE, student)
            student.save()
            summary['created'] += 1
            if doc_id:
                by_doc[doc_id] = student
            by_name.setdefault(key, student)
        else:
            summary['matched'] += 1
        to_link[student.pk] = student

    already = set(GroupStudent.objects.filter(group=group).values_list('student_id', flat=True))
    new_links = [
        GroupStudent(group=group, student=student, organization_id=group.organization_id)
        for pk, student in to_link.items() if pk not in already
    ]
    GroupStudent.objects.bulk_create(new_links, ignore_conflicts=True)
    summary['linked'] = len(new_links)
    logger.info('Roster import into group %s: %s', group.pk, summary)
    return summary


def plan_reassignment(organization, groups):
    """
    Linked students of the groups not yet in `organization` (instance or id), split into
    (movable, blocked): blocked students are also linked to a group staying elsewhere.
    """
    group_ids = [g.pk for g in groups]
    linked = Student.objects.filter(group_memberships__group_id__in=group_ids).exclude(
        organization=organization
    ).distinct()
    staying = set(
        GroupStudent.objects.filter(student__in=linked)
        .exclude(group_id__in=group_ids)
        .exclude(group__organization=organization)
        .values_list('student_id', flat=True)
    )
    movable = [s for s in linked if s.pk not in staying]
    blocked = [s for s in linked if s.pk in staying]
    return movable, blocked


def _students_to_move(organization_id, groups):
    """All linked students, or ValidationError when one of them also sits on a group staying behind."""
    movable, blocked = plan_reassignment(organization_id, groups)
    if blocked:
        names = ', '.join(sorted(f'{s.first_name} {s.last_name}' for s in blocked))
        raise ValidationError({
            'students': f'Also enrolled in groups that stay in their organization: {names}. '
                        'Move those groups too or unlink the students first.'
        })
    return movable


def _move_students(organization_id, students):
    moved = Student.objects.filter(pk__in=[s.pk for s in students]).update(organization_id=organization_id)
    if moved:
        logger.info('Moved %d students to organization %s', moved, organization_id)
    return moved


@transaction.atomic
def reassign_groups(organization, groups, year=None):
    """
    Operator-level move of groups into another organization: ensures an academic year
    there, moves the groups (roster links, sessions and attendance records follow) and
    moves every linked student. Refused (ValidationError) while a linked student is
    also enrolled in a group that stays behind.
    Returns {'academic_year': AcademicYear, 'groups': n, 'students': n}.
    """
    from core.models import AcademicYear
    from core.services import active_academic_year

    students = _students_to_move(organization.pk, groups)

    if year is not None:
        academic_year, _ = AcademicYear.objects.get_or_create(
            organization=organization, year=year, defaults={'is_active': True},
        )
    else:
        academic_year = active_academic_year(organization.pk)
        if academic_year is None:
            from django.utils import timezone
            academic_year = AcademicYear.objects.create(
                organization=organization, year=timezone.localdate().year, is_active=True,
            )

    _move_students(organization.pk, students)

    for group in groups:
        group.organization = organization
        group.academic_year = academic_year
        group.save()
        # propagation also runs for groups already in the organization with stale children
        propagate_group_organization(group)

    logger.info('Reassigned %d groups and %d students to organization %s',
                len(groups), len(students), organization.pk)
    return {
        'academic_year': academic_year,
        'groups': len(groups),
        'students': len(students),
    }
