"""
Onboarding, memberships and academic years over the API.
"""
from django.test import TestCase
from django.utils import timezone

from core.models import AcademicYear, Organization, OrganizationMember
from core.testing import OrgFixturesMixin


class OnboardingTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.user = self.make_user('Founder')
        self.client = self.api(self.user)

    def test_create_organization_bootstraps_owner_and_year(self):
        res = self.client.post('/api/organizations', {'name': 'Escuela Norte'}, format='json')
        self.assertEqual(res.status_code, 201)
        org = Organization.objects.get(pk=res.data['id'])
        self.assertTrue(org.slug.startswith('escuela-norte-'))
        membership = OrganizationMember.objects.get(organization=org, user=self.user)
        self.assertEqual(membership.role, OrganizationMember.ROLE_OWNER)
        year = AcademicYear.objects.get(organization=org)
        self.assertTrue(year.is_active)
        self.assertEqual(year.year, timezone.localdate().year)

    def test_duplicate_slug_is_a_conflict(self):
        Organization.objects.create(name='Taken', slug='taken')
        res = self.client.post('/api/organizations', {'name': 'Other', 'slug': 'taken'}, format='json')
        self.assertEqual(res.status_code, 400)
        self.assertFalse(OrganizationMember.objects.filter(user=self.user).exists())

    def test_list_only_own_organizations(self):
        self.make_org('Foreign')
        self.client.post('/api/organizations', {'name': 'Mine'}, format='json')
        res = self.client.get('/api/organizations')
        self.assertEqual([o['name'] for o in res.data], ['Mine'])

    def test_member_cannot_rename_organization(self):
        org = self.make_org('Colegio')
        self.add_member(org, self.user)
        res = self.client.patch(f'/api/organizations/{org.pk}', {'name': 'Mío'}, format='json')
        self.assertEqual(res.status_code, 403)


class MembershipTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.owner = self.make_user('Owner')
        self.add_member(self.org, self.owner, OrganizationMember.ROLE_OWNER)

    def test_self_join(self):
        newcomer = self.make_user('Newcomer')
        res = self.api(newcomer).post('/api/memberships', {'org_id': str(self.org.pk)}, format='json')
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data['role'], 'member')
        self.assertTrue(OrganizationMember.objects.filter(organization=self.org, user=newcomer).exists())

    def test_cannot_enrol_someone_else(self):
        victim = self.make_user('Victim')
        res = self.api(self.owner).post(
            '/api/memberships', {'org_id': str(self.org.pk), 'user_id': str(victim.pk)}, format='json',
        )
        self.assertEqual(res.status_code, 403)
        self.assertFalse(OrganizationMember.objects.filter(user=victim).exists())

    def test_joining_twice_is_a_conflict(self):
        res = self.api(self.owner).post('/api/memberships', {'org_id': str(self.org.pk)}, format='json')
        self.assertIn(res.status_code, (400, 409))

    def test_co_members_visible_strangers_not(self):
        colleague = self.make_user('Colleague')
        self.add_member(self.org, colleague)
        stranger = self.make_user('Stranger')
        self.add_member(self.make_org(), stranger)
        res = self.api(colleague).get('/api/memberships')
        emails = {m['email'] for m in res.data}
        self.assertEqual(emails, {self.owner.email, colleague.email})


class AcademicYearTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.owner = self.make_user('Owner')
        self.add_member(self.org, self.owner, OrganizationMember.ROLE_OWNER)
        self.current = self.make_year(self.org, 2025, is_active=True)

    def test_activate_deactivates_others(self):
        upcoming = self.make_year(self.org, 2026, is_active=False)
        res = self.api(self.owner).post(f'/api/academic-years/{upcoming.pk}/activate')
        self.assertEqual(res.status_code, 200)
        self.current.refresh_from_db()
        upcoming.refresh_from_db()
        self.assertFalse(self.current.is_active)
        self.assertTrue(upcoming.is_active)

    def test_create_active_year(self):
        res = self.api(self.owner).post(
            '/api/academic-years', {'org_id': str(self.org.pk), 'year': 2027, 'is_active': True}, format='json',
        )
        self.assertEqual(res.status_code, 201)
        self.current.refresh_from_db()
        self.assertFalse(self.current.is_active)

    def test_foreign_year_not_found(self):
        outsider = self.make_user()
        self.add_member(self.make_org(), outsider)
        res = self.api(outsider).post(f'/api/academic-years/{self.current.pk}/activate')
        self.assertEqual(res.status_code, 404)
