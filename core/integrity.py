"""
Consistency checks for the denormalized organization column on roster links,
sessions and attendance records. The group is the source of truth.
"""
from django.db.models import F, Q

# (label, model path, ORM path from the row to the group's organization id)
DENORMALIZED = (
    ('group_students', 'groups.GroupStudent', 'group__organization_id'),
    ('sessions', 'attendance.Session', 'group__organization_id'),
    ('attendance_records', 'attendance.AttendanceRecord', 'session__group__organization_id'),
)


def stale_rows(model, source):
    """Rows whose organization is null or differs from the value at `source`."""
    return model.objects.filter(Q(organization__isnull=True) | ~Q(organization_id=F(source)))


def find_org_mismatches():
    """{label: queryset of stale rows} for every denormalized table."""
    from django.apps import apps

    return {
        label: stale_rows(apps.get_model(path), source)
        for label, path, source in DENORMALIZED
    }


def repair_org_mismatches():
    """Re-derive the organization of every stale row. Returns {label: fixed count}."""
    fixed = {}
    for label, stale in find_org_mismatches().items():
        count = 0
        for row in stale.iterator():
            # save() derives organization from the group
            row.save(update_fields=['organization'])
            count += 1
        fixed[label] = count
    return fixed
