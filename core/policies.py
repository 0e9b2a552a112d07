"""
Row-level authorization policies.

One policy per model, registered by app label. A policy answers two questions:
- visible(queryset, user): which rows the caller may read (everything else is absent, not forbidden);
- check(user, action, obj): whether the caller may create/change/delete this row.

Tenant isolation is the base of every predicate: the row's organization must be one
of the caller's organizations. Teacher-owned rows (groups and everything hanging off
them) additionally require owner/admin role or being the group's teacher to write.

Views never query domain models directly; they go through scoped(), get_visible_or_404()
and authorize(), and a change is checked against the stored row and the new row inside
the request transaction.
"""
import logging

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured, ValidationError
from rest_framework.exceptions import NotFound

from core.exceptions import AuthorizationDenied
from core.identity import is_manager, is_member, organizations_for_principal

logger = logging.getLogger(__name__)

READ = 'read'
CREATE = 'create'
CHANGE = 'change'
DELETE = 'delete'
ACTIONS = (READ, CREATE, CHANGE, DELETE)

_registry = {}


def register(label):
    """Class decorator: register a policy instance for the model `app_label.ModelName`."""
    def decorator(cls):
        _registry[label.lower()] = cls()
        return cls
    return decorator


def policy_for(model_or_obj):
    label = model_or_obj._meta.label_lower
    try:
        return _registry[label]
    except KeyError:
        raise ImproperlyConfigured(f'No authorization policy registered for {label}')


def _walk(obj, path):
    """Follow a Django-style `a__b` attribute path; None if a hop is missing."""
    if not path:
        return obj
    for hop in path.split('__'):
        obj = getattr(obj, hop, None)
        if obj is None:
            return None
    return obj


class BasePolicy:
    """Organization membership is enough for every action."""
    # ORM path from the row to its Organization
    org_path = 'organization'

    def org_id_of(self, obj):
        *hops, last = self.org_path.split('__')
        target = _walk(obj, '__'.join(hops))
        if target is None:
            return None
        if last == 'pk':
            return target.pk
        return getattr(target, f'{last}_id', None)

    def visible(self, queryset, user):
        orgs = organizations_for_principal(user)
        if not orgs:
            return queryset.none()
        return queryset.filter(**{f'{self.org_path}__in': orgs})

    def can_read(self, user, obj):
        return is_member(user, self.org_id_of(obj))

    def can_write(self, user, obj):
        return is_member(user, self.org_id_of(obj))

    def can_create(self, user, obj):
        return self.can_write(user, obj)

    def can_change(self, user, obj):
        return self.can_write(user, obj)

    def can_delete(self, user, obj):
        return self.can_write(user, obj)

    def check(self, user, action, obj):
        if not getattr(user, 'is_authenticated', False):
            return False
        return getattr(self, f'can_{action}')(user, obj)


class TeacherOwnedPolicy(BasePolicy):
    """
    Read: organization member. Write: member of the owning group's organization AND
    (owner/admin there OR teacher of the group).
    """
    # ORM path from the row to its Group ('' when the row is the group)
    group_path = ''

    def can_write(self, user, obj):
        group = _walk(obj, self.group_path)
        if group is None:
            return False
        orgs = organizations_for_principal(user)
        own_org = self.org_id_of(obj)
        if own_org is not None and own_org not in orgs:
            return False
        if group.organization_id not in orgs:
            return False
        if is_manager(user, group.organization_id):
            return True
        return group.teacher_id is not None and group.teacher_id == user.pk


@register('core.Organization')
class OrganizationPolicy(BasePolicy):
    org_path = 'pk'

    def can_create(self, user, obj):
        # Self-service tenant bootstrap
        return True

    def can_change(self, user, obj):
        return is_manager(user, obj.pk)

    def can_delete(self, user, obj):
        return False


@register('core.OrganizationMember')
class MembershipPolicy(BasePolicy):
    """Co-members see each other; a user may only ever insert a membership for themself."""

    def can_create(self, user, obj):
        return obj.user_id == user.pk

    def can_change(self, user, obj):
        return False

    def can_delete(self, user, obj):
        return False


@register('core.AcademicYear')
class AcademicYearPolicy(BasePolicy):
    pass


@register('students.Student')
class StudentPolicy(BasePolicy):
    """Students are shared institution-wide: any member reads and writes them."""


@register('groups.Group')
class GroupPolicy(TeacherOwnedPolicy):
    group_path = ''


@register('groups.GroupStudent')
class GroupStudentPolicy(TeacherOwnedPolicy):
    group_path = 'group'


@register('attendance.Session')
class SessionPolicy(TeacherOwnedPolicy):
    group_path = 'group'


@register('attendance.AttendanceRecord')
class AttendanceRecordPolicy(TeacherOwnedPolicy):
    # No rule of its own: scope comes from Session -> Group -> Organization
    org_path = 'session__group__organization'
    group_path = 'session__group'


def scoped(model, user):
    """Queryset of `model` rows visible to `user`. Accepts a model class or 'app.Model' label."""
    if isinstance(model, str):
        model = apps.get_model(model)
    return policy_for(model).visible(model.objects.all(), user)


def can(user, action, obj):
    if action not in ACTIONS:
        raise ValueError(f'Unknown action {action!r}')
    return policy_for(obj).check(user, action, obj)


def authorize(user, action, obj):
    """Raise AuthorizationDenied unless `user` may perform `action` on `obj`."""
    if not can(user, action, obj):
        logger.info(
            'Denied %s on %s %s for user %s',
            action, obj._meta.label, getattr(obj, 'pk', None), getattr(user, 'pk', None),
        )
        raise AuthorizationDenied()


def get_visible_or_404(model, user, **lookup):
    """Fetch one visible row; invisible and missing rows are indistinguishable (404)."""
    queryset = scoped(model, user)
    try:
        return queryset.get(**lookup)
    except (queryset.model.DoesNotExist, ValidationError, ValueError):
        raise NotFound(f'{queryset.model._meta.verbose_name.capitalize()} not found')
