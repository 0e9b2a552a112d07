"""
Identity resolver and policy engine, exercised without HTTP.
"""
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from rest_framework.exceptions import NotFound

from attendance.models import AttendanceRecord, Session
from core import identity, policies
from core.exceptions import AuthorizationDenied
from core.models import AcademicYear, Organization, OrganizationMember
from core.testing import OrgFixturesMixin
from groups.models import Group, GroupStudent
from students.models import Student


class IdentityResolverTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.user = self.make_user()
        self.first = self.make_org('First')
        self.second = self.make_org('Second')
        self.add_member(self.first, self.user, OrganizationMember.ROLE_ADMIN)
        self.add_member(self.second, self.user)

    def test_organizations_for_principal(self):
        self.assertEqual(identity.organizations_for_principal(self.user), {self.first.pk, self.second.pk})
        self.assertEqual(identity.organizations_for_principal(self.user.pk), {self.first.pk, self.second.pk})

    def test_role_is_per_organization(self):
        self.assertEqual(identity.role_in_organization(self.user, self.first.pk), 'admin')
        self.assertEqual(identity.role_in_organization(self.user, self.second.pk), 'member')
        self.assertIsNone(identity.role_in_organization(self.user, self.make_org().pk))

    def test_anonymous_resolves_to_nothing(self):
        self.assertEqual(identity.organizations_for_principal(AnonymousUser()), set())
        self.assertIsNone(identity.role_in_organization(None, self.first.pk))
        self.assertFalse(identity.is_manager(AnonymousUser(), self.first.pk))
        self.assertIsNone(identity.primary_organization(AnonymousUser()))

    def test_primary_organization_is_oldest_membership(self):
        self.assertEqual(identity.primary_organization(self.user), self.first.pk)

    def test_is_member_per_organization(self):
        self.assertTrue(identity.is_member(self.user, self.second.pk))
        self.assertFalse(identity.is_member(self.user, self.make_org().pk))
        self.assertFalse(identity.is_member(self.user, None))

    def test_is_manager_per_organization(self):
        self.assertTrue(identity.is_manager(self.user, self.first.pk))
        self.assertFalse(identity.is_manager(self.user, self.second.pk))


class TenantIsolationTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org_a = self.make_org('A')
        self.org_b = self.make_org('B')
        self.user_a = self.make_user()
        self.user_b = self.make_user()
        self.add_member(self.org_a, self.user_a, OrganizationMember.ROLE_OWNER)
        self.add_member(self.org_b, self.user_b, OrganizationMember.ROLE_OWNER)
        for org, user in ((self.org_a, self.user_a), (self.org_b, self.user_b)):
            group = self.make_group(org, user)
            student = self.make_student(org)
            self.link(group, student)
            self.record(self.make_session(group), student)

    def test_every_model_is_scoped_to_own_organization(self):
        for model in (Organization, OrganizationMember, AcademicYear, Student, Group, GroupStudent,
                      Session, AttendanceRecord):
            rows = policies.scoped(model, self.user_a)
            self.assertEqual(rows.count(), 1, model.__name__)
            self.assertEqual(policies.policy_for(model).org_id_of(rows.get()), self.org_a.pk)

    def test_scoped_accepts_model_label(self):
        self.assertEqual(policies.scoped('groups.Group', self.user_b).get().organization, self.org_b)

    def test_user_without_membership_sees_nothing(self):
        loner = self.make_user()
        self.assertFalse(policies.scoped(Student, loner).exists())
        self.assertFalse(policies.scoped(Group, AnonymousUser()).exists())

    def test_invisible_row_is_not_found(self):
        group_b = Group.objects.get(organization=self.org_b)
        with self.assertRaises(NotFound):
            policies.get_visible_or_404(Group, self.user_a, pk=group_b.pk)
        with self.assertRaises(NotFound):
            policies.get_visible_or_404(Group, self.user_a, pk='not-a-uuid')

    def test_cannot_create_rows_in_foreign_organization(self):
        student = Student(organization=self.org_b, first_name='X', last_name='Y')
        with self.assertRaises(AuthorizationDenied):
            policies.authorize(self.user_a, policies.CREATE, student)


class OwnershipGatingTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.teacher = self.make_user('Teacher')
        self.other = self.make_user('Other')
        self.admin = self.make_user('Admin')
        self.owner = self.make_user('Owner')
        self.add_member(self.org, self.teacher)
        self.add_member(self.org, self.other)
        self.add_member(self.org, self.admin, OrganizationMember.ROLE_ADMIN)
        self.add_member(self.org, self.owner, OrganizationMember.ROLE_OWNER)
        self.group = self.make_group(self.org, self.teacher)
        self.student = self.make_student(self.org)
        self.link_row = self.link(self.group, self.student)
        self.session = self.make_session(self.group)
        self.record_row = self.record(self.session, self.student)

    def _owned_rows(self):
        return (self.group, self.link_row, self.session, self.record_row)

    def test_non_teacher_member_cannot_write_owned_rows(self):
        for row in self._owned_rows():
            for action in (policies.CHANGE, policies.DELETE):
                self.assertFalse(policies.can(self.other, action, row), (row, action))
            self.assertTrue(policies.can(self.other, policies.READ, row))

    def test_teacher_admin_and_owner_can_write_owned_rows(self):
        for user in (self.teacher, self.admin, self.owner):
            for row in self._owned_rows():
                self.assertTrue(policies.can(user, policies.CHANGE, row), (user, row))
                self.assertTrue(policies.can(user, policies.DELETE, row), (user, row))

    def test_admin_of_another_organization_cannot_write(self):
        stranger = self.make_user()
        self.add_member(self.make_org(), stranger, OrganizationMember.ROLE_ADMIN)
        for row in self._owned_rows():
            self.assertFalse(policies.can(stranger, policies.CHANGE, row))

    def test_admin_role_elsewhere_does_not_leak(self):
        # admin in another organization, plain member here
        other_org = self.make_org()
        self.add_member(other_org, self.other, OrganizationMember.ROLE_ADMIN)
        self.assertFalse(policies.can(self.other, policies.CHANGE, self.group))

    def test_change_checks_new_state_too(self):
        foreign = self.make_org()
        self.group.organization = foreign
        self.assertFalse(policies.can(self.teacher, policies.CHANGE, self.group))

    def test_student_writable_by_any_member(self):
        self.assertTrue(policies.can(self.other, policies.CHANGE, self.student))
        self.assertTrue(policies.can(self.other, policies.DELETE, self.student))

    def test_membership_only_for_self(self):
        mine = OrganizationMember(organization=self.make_org(), user=self.other)
        theirs = OrganizationMember(organization=self.org, user=self.make_user())
        self.assertTrue(policies.can(self.other, policies.CREATE, mine))
        self.assertFalse(policies.can(self.owner, policies.CREATE, theirs))
        self.assertFalse(policies.can(self.owner, policies.DELETE, OrganizationMember.objects.first()))

    def test_organization_never_deletable(self):
        self.assertFalse(policies.can(self.owner, policies.DELETE, self.org))
        self.assertTrue(policies.can(self.owner, policies.CHANGE, self.org))
        self.assertFalse(policies.can(self.teacher, policies.CHANGE, self.org))

    def test_anonymous_cannot_write(self):
        self.assertFalse(policies.can(AnonymousUser(), policies.CREATE, Organization(name='x', slug='x')))

    def test_unknown_action_rejected(self):
        with self.assertRaises(ValueError):
            policies.can(self.owner, 'publish', self.group)
