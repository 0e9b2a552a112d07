"""
RBAC over the API:
- login/me expose only the caller's own memberships
- rows of another organization are absent (404 / empty), never forbidden
- a member who does not teach a group cannot mutate it or its attendance (403)
- owner/admin can
"""
from django.test import TestCase

from core.models import OrganizationMember
from core.testing import OrgFixturesMixin
from groups.models import Group


class AuthTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org('Test Org')
        self.user = self.make_user('Teacher')
        self.add_member(self.org, self.user, OrganizationMember.ROLE_ADMIN)

    def test_login_returns_tokens_and_memberships(self):
        res = self.api().post('/api/auth/login', {'email': self.user.email.upper(), 'password': 'pass12345'},
                              format='json')
        self.assertEqual(res.status_code, 200)
        self.assertIn('accessToken', res.data)
        self.assertEqual(res.data['user']['memberships'][0]['role'], 'admin')

    def test_login_bad_password_returns_401(self):
        res = self.api().post('/api/auth/login', {'email': self.user.email, 'password': 'nope'}, format='json')
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.data['code'], 'invalid_credentials')

    def test_me_requires_authentication(self):
        self.assertEqual(self.api().get('/api/auth/me').status_code, 401)

    def test_me_lists_own_memberships_only(self):
        other = self.make_user()
        self.add_member(self.make_org('Other'), other)
        res = self.api(self.user).get('/api/auth/me')
        self.assertEqual(res.status_code, 200)
        self.assertEqual([m['org_name'] for m in res.data['memberships']], ['Test Org'])


class RBACTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org('Test Org')
        self.owner = self.make_user('Owner')
        self.teacher = self.make_user('Teacher')
        self.colleague = self.make_user('Colleague')
        self.add_member(self.org, self.owner, OrganizationMember.ROLE_OWNER)
        self.add_member(self.org, self.teacher)
        self.add_member(self.org, self.colleague)
        self.group = self.make_group(self.org, self.teacher)
        self.student = self.make_student(self.org)
        self.link(self.group, self.student)

        self.other_org = self.make_org('Other Org')
        self.outsider = self.make_user('Outsider')
        self.add_member(self.other_org, self.outsider, OrganizationMember.ROLE_OWNER)

    def test_outsider_cannot_see_group(self):
        client = self.api(self.outsider)
        self.assertEqual(client.get(f'/api/groups/{self.group.pk}').status_code, 404)
        self.assertEqual(client.get('/api/groups').data, [])

    def test_outsider_cannot_see_student(self):
        client = self.api(self.outsider)
        self.assertEqual(client.get(f'/api/students/{self.student.pk}').status_code, 404)
        self.assertEqual(client.get('/api/students').data['count'], 0)

    def test_colleague_can_read_but_not_rename_group(self):
        client = self.api(self.colleague)
        self.assertEqual(client.get(f'/api/groups/{self.group.pk}').status_code, 200)
        res = client.patch(f'/api/groups/{self.group.pk}', {'name': 'Hijacked'}, format='json')
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.data['code'], 'authorization_denied')
        self.group.refresh_from_db()
        self.assertEqual(self.group.name, 'Matemática 1A')

    def test_colleague_cannot_take_attendance(self):
        res = self.api(self.colleague).post('/api/attendance/sessions', {
            'group_id': str(self.group.pk),
            'date': '2026-03-02',
            'records': [{'student_id': str(self.student.pk), 'status': 'present'}],
        }, format='json')
        self.assertEqual(res.status_code, 403)

    def test_teacher_can_rename_own_group(self):
        res = self.api(self.teacher).patch(f'/api/groups/{self.group.pk}', {'name': 'Álgebra'}, format='json')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data['name'], 'Álgebra')

    def test_owner_can_delete_any_group(self):
        res = self.api(self.owner).delete(f'/api/groups/{self.group.pk}')
        self.assertEqual(res.status_code, 204)
        self.assertFalse(Group.objects.filter(pk=self.group.pk).exists())

    def test_teacher_cannot_hand_group_to_foreign_organization(self):
        foreign_year = self.make_year(self.other_org)
        res = self.api(self.teacher).patch(
            f'/api/groups/{self.group.pk}',
            {'org_id': str(self.other_org.pk), 'academic_year_id': str(foreign_year.pk)},
            format='json',
        )
        # the foreign academic year is not visible to the teacher
        self.assertEqual(res.status_code, 404)

    def test_any_member_may_edit_students(self):
        res = self.api(self.colleague).patch(
            f'/api/students/{self.student.pk}', {'first_name': 'Ana María'}, format='json',
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data['first_name'], 'Ana María')

    def test_user_without_organization_is_rejected(self):
        loner = self.make_user('Loner')
        res = self.api(loner).get('/api/groups')
        self.assertEqual(res.status_code, 403)
