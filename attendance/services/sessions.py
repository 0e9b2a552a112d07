"""
Taking attendance: idempotent upsert of a Session and its AttendanceRecords.

Submitting the same (group, date, class_index) twice updates the existing rows;
concurrent submissions converge on one row per unique key and the last commit wins.
"""
import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from core import policies
from students.models import Student
from ..models import AttendanceRecord, Session

logger = logging.getLogger(__name__)


@transaction.atomic
def take_attendance(user, group, date, records, class_index=1):
    """
    records: [{'student_id', 'status', 'justification'?, 'comment'?}]
    Returns (session, [AttendanceRecord]).
    """
    student_ids = {row['student_id'] for row in records}
    students = {
        s.pk: s for s in Student.objects.filter(pk__in=student_ids, organization_id=group.organization_id)
    }
    missing = student_ids - set(students)
    if missing:
        raise ValidationError({'records': f'Unknown students for this organization: {sorted(str(m) for m in missing)}'})

    session = Session.objects.filter(group=group, date=date, class_index=class_index).first()
    if session is None:
        policies.authorize(user, policies.CREATE, Session(group=group, date=date, class_index=class_index))
    else:
        policies.authorize(user, policies.CHANGE, session)

    session, created = Session.objects.update_or_create(
        group=group,
        date=date,
        class_index=class_index,
        create_defaults={'created_by': user},
        defaults={},
    )

    saved = []
    for row in records:
        record = AttendanceRecord(session=session, student=students[row['student_id']])
        policies.authorize(user, policies.CREATE, record)
        record, _ = AttendanceRecord.objects.update_or_create(
            session=session,
            student=students[row['student_id']],
            defaults={
                'status': row['status'],
                'justification': row.get('justification'),
                'comment': row.get('comment') or '',
                'updated_by': user,
            },
        )
        saved.append(record)

    logger.info(
        'Attendance %s for group %s on %s (#%s): %d records by user %s',
        'taken' if created else 'updated', group.pk, date, class_index, len(saved), user.pk,
    )
    return session, saved
