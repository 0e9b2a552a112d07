"""
Attendance aggregation.

Every entry point first resolves the caller's membership in the organization that
owns the requested data and raises AuthorizationDenied before computing anything.
Two percentage formulas coexist:
- organization analytics weigh late arrivals at LATE_WEIGHT and round to a whole number;
- group and student stats count only 'present' and round to two decimals.
A zero denominator always yields 0.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count, Q

from core.exceptions import AuthorizationDenied
from core.identity import role_in_organization
from core.models import OrganizationMember
from groups.models import Group
from students.models import Student
from ..models import AttendanceRecord, Session

logger = logging.getLogger(__name__)

LATE_WEIGHT = Decimal('0.5')
STUDENT_HISTORY_LIMIT = 10

STATUSES = (
    AttendanceRecord.STATUS_PRESENT,
    AttendanceRecord.STATUS_ABSENT,
    AttendanceRecord.STATUS_LATE,
    AttendanceRecord.STATUS_JUSTIFIED,
)


def _status_counts():
    """Aggregate kwargs: total plus one filtered count per status."""
    counts = {'total': Count('id')}
    for status in STATUSES:
        counts[status] = Count('id', filter=Q(status=status))
    return counts


def weighted_percentage(present, late, total):
    """round(((present + late * LATE_WEIGHT) / total) * 100), half up, as int."""
    if not total:
        return 0
    value = (Decimal(present) + Decimal(late) * LATE_WEIGHT) / Decimal(total) * 100
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def present_percentage(present, total):
    """round(present / total * 100, 2), half up, as Decimal."""
    if not total:
        return Decimal('0')
    value = Decimal(present) / Decimal(total) * 100
    return value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def _require_member(user, org_id, operation):
    role = role_in_organization(user, org_id)
    if role is None:
        logger.warning('%s denied for user %s on organization %s', operation, getattr(user, 'pk', None), org_id)
        raise AuthorizationDenied()
    return role


def _group_org_or_deny(user, group_id, operation):
    """Organization of the group after a membership check. A missing group is denied, not 404."""
    org_id = Group.objects.filter(pk=group_id).values_list('organization_id', flat=True).first()
    _require_member(user, org_id, operation)
    return org_id


def get_org_analytics(user, org_id, start_date, end_date, teacher_id=None):
    """
    Organization dashboard over [start_date, end_date].
    Anyone other than an admin of the organization is restricted to their own groups,
    whatever teacher_id they ask for.
    """
    role = _require_member(user, org_id, 'get_org_analytics')
    if role != OrganizationMember.ROLE_ADMIN:
        teacher_id = user.pk

    groups = Group.objects.filter(organization_id=org_id)
    records = AttendanceRecord.objects.filter(
        session__organization_id=org_id,
        session__date__gte=start_date,
        session__date__lte=end_date,
    )
    if teacher_id:
        groups = groups.filter(teacher_id=teacher_id)
        records = records.filter(session__group__teacher_id=teacher_id)

    per_group = {
        row['session__group_id']: row
        for row in records.values('session__group_id').annotate(**_status_counts()).order_by()
    }

    group_rows = []
    for group in groups.order_by('name'):
        stats = per_group.get(group.pk, {})
        total = stats.get('total', 0)
        counts = {status: stats.get(status, 0) for status in STATUSES}
        group_rows.append({
            'id': group.pk,
            'name': group.name,
            'type': group.type,
            'total': total,
            **counts,
            'percentage': weighted_percentage(counts['present'], counts['late'], total),
        })

    with_records = [row['percentage'] for row in group_rows if row['total'] > 0]
    avg_percentage = None
    if with_records:
        avg_percentage = int(
            (Decimal(sum(with_records)) / len(with_records)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        )

    return {
        'global': {
            'total_students': Student.objects.filter(organization_id=org_id).count(),
            'total_groups': len(group_rows),
            'avg_percentage': avg_percentage,
            **{status: sum(row[status] for row in group_rows) for status in STATUSES},
        },
        'groups': group_rows,
    }


def get_group_stats(user, group_id, start_date, end_date):
    """Totals for one group; only sessions with at least one record count as sessions."""
    _group_org_or_deny(user, group_id, 'get_group_stats')

    records = AttendanceRecord.objects.filter(
        session__group_id=group_id,
        session__date__gte=start_date,
        session__date__lte=end_date,
    )
    totals = records.aggregate(sessions=Count('session', distinct=True), **_status_counts())
    return {
        'total_sessions': totals['sessions'],
        'avg_attendance': present_percentage(totals['present'], totals['total']),
        'total_present': totals['present'],
        'total_absent': totals['absent'],
        'total_late': totals['late'],
        'total_justified': totals['justified'],
    }


def get_student_stats(user, student_id, group_id):
    """One student's attendance within one group, with the most recent records first."""
    _group_org_or_deny(user, group_id, 'get_student_stats')

    records = AttendanceRecord.objects.filter(student_id=student_id, session__group_id=group_id)
    totals = records.aggregate(
        total=Count('id'),
        present=Count('id', filter=Q(status=AttendanceRecord.STATUS_PRESENT)),
    )
    history = [
        {'date': row['session__date'], 'status': row['status']}
        for row in records.order_by('-session__date', '-session__class_index')
        .values('session__date', 'status')[:STUDENT_HISTORY_LIMIT]
    ]
    return {
        'total_sessions': totals['total'],
        'attendance_percentage': present_percentage(totals['present'], totals['total']),
        'history': history,
    }


def get_daily_attendance_summary(user, group_id, date):
    """Per-status counts for a group's sessions on one date."""
    _group_org_or_deny(user, group_id, 'get_daily_attendance_summary')

    sessions = Session.objects.filter(group_id=group_id, date=date)
    totals = AttendanceRecord.objects.filter(session__in=sessions).aggregate(
        unjustified=Count('id', filter=Q(justification=AttendanceRecord.JUSTIFICATION_UNJUSTIFIED)),
        **_status_counts(),
    )
    return {
        'group_id': group_id,
        'date': date,
        'total_sessions': sessions.count(),
        'total_records': totals['total'],
        **{status: totals[status] for status in STATUSES},
        'absent_unjustified': totals['unjustified'],
    }
