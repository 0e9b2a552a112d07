"""
Groups: creation with inline roster, roster link/unlink/import, reassignment.
"""
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from attendance.models import AttendanceRecord, Session
from core.models import AcademicYear, OrganizationMember
from core.testing import OrgFixturesMixin
from groups.models import Group, GroupStudent
from groups.services import import_roster
from students.models import Student


class GroupApiTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.year = self.make_year(self.org)
        self.teacher = self.make_user('Teacher')
        self.add_member(self.org, self.teacher)
        self.client = self.api(self.teacher)

    def test_create_with_inline_roster(self):
        res = self.client.post('/api/groups', {
            'academic_year_id': str(self.year.pk),
            'name': 'Historia 2B',
            'type': 'workshop',
            'students': [
                {'first_name': 'Ana', 'last_name': 'López', 'doc_id': '123'},
                {'first_name': 'Beto', 'last_name': 'Ríos'},
            ],
        }, format='json')
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data['org_id'], str(self.org.pk))
        self.assertEqual(res.data['teacher_id'], str(self.teacher.pk))
        self.assertEqual(res.data['student_count'], 2)
        group = Group.objects.get(pk=res.data['id'])
        self.assertEqual(group.type, Group.TYPE_WORKSHOP)
        self.assertEqual(
            set(GroupStudent.objects.filter(group=group).values_list('organization_id', flat=True)),
            {self.org.pk},
        )

    def test_inline_roster_rolls_back_on_conflict(self):
        self.make_student(self.org, doc_id='123')
        res = self.client.post('/api/groups', {
            'academic_year_id': str(self.year.pk),
            'name': 'Historia 2B',
            'students': [{'first_name': 'Ana', 'last_name': 'López', 'doc_id': '123'}],
        }, format='json')
        self.assertEqual(res.status_code, 409)
        self.assertFalse(Group.objects.filter(name='Historia 2B').exists())

    def test_academic_year_of_other_organization_rejected(self):
        other = self.make_org()
        self.add_member(other, self.teacher)
        foreign_year = self.make_year(other)
        res = self.client.post('/api/groups', {
            'org_id': str(self.org.pk),
            'academic_year_id': str(foreign_year.pk),
            'name': 'Mixta',
        }, format='json')
        self.assertEqual(res.status_code, 400)

    def test_mine_filter(self):
        colleague = self.make_user()
        self.add_member(self.org, colleague)
        self.make_group(self.org, self.teacher, name='Mía')
        self.make_group(self.org, colleague, name='Ajena')
        res = self.client.get('/api/groups', {'mine': 'true'})
        self.assertEqual([g['name'] for g in res.data], ['Mía'])
        res = self.client.get('/api/groups')
        self.assertEqual([g['name'] for g in res.data], ['Ajena', 'Mía'])


class RosterTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.teacher = self.make_user('Teacher')
        self.colleague = self.make_user('Colleague')
        self.add_member(self.org, self.teacher)
        self.add_member(self.org, self.colleague)
        self.group = self.make_group(self.org, self.teacher)
        self.student = self.make_student(self.org, 'Sara', 'Vega')

    def _url(self, suffix=''):
        return f'/api/groups/{self.group.pk}/students{suffix}'

    def test_link_is_idempotent(self):
        client = self.api(self.teacher)
        first = client.post(self._url(), {'student_id': str(self.student.pk)}, format='json')
        second = client.post(self._url(), {'student_id': str(self.student.pk)}, format='json')
        self.assertEqual((first.status_code, second.status_code), (201, 200))
        self.assertEqual(GroupStudent.objects.filter(group=self.group).count(), 1)
        self.assertEqual([s['id'] for s in client.get(self._url()).data], [str(self.student.pk)])

    def test_colleague_cannot_link(self):
        res = self.api(self.colleague).post(self._url(), {'student_id': str(self.student.pk)}, format='json')
        self.assertEqual(res.status_code, 403)

    def test_student_of_other_organization_not_found(self):
        foreign = self.make_student(self.make_org())
        res = self.api(self.teacher).post(self._url(), {'student_id': str(foreign.pk)}, format='json')
        self.assertEqual(res.status_code, 404)

    def test_unlink_keeps_student_and_history(self):
        self.link(self.group, self.student)
        self.record(self.make_session(self.group), self.student)
        res = self.api(self.teacher).delete(self._url(f'/{self.student.pk}'))
        self.assertEqual(res.status_code, 204)
        self.assertTrue(Student.objects.filter(pk=self.student.pk).exists())
        self.assertEqual(AttendanceRecord.objects.filter(student=self.student).count(), 1)
        res = self.api(self.teacher).delete(self._url(f'/{self.student.pk}'))
        self.assertEqual(res.status_code, 404)

    def test_import_matches_doc_id_then_name(self):
        by_doc = self.make_student(self.org, 'Pedro', 'Alonso', doc_id='999')
        self.link(self.group, self.student)
        summary = import_roster(self.teacher, self.group, [
            {'first_name': 'P.', 'last_name': 'Alonso', 'doc_id': '999'},
            {'first_name': ' sara ', 'last_name': 'VEGA'},
            {'first_name': 'Nuevo', 'last_name': 'Alumno', 'doc_id': '777'},
            {'first_name': 'Nuevo', 'last_name': 'Alumno'},
            {'first_name': '', 'last_name': 'SinNombre'},
        ])
        self.assertEqual(summary, {'created': 1, 'matched': 3, 'linked': 2, 'skipped': 1})
        roster = set(GroupStudent.objects.filter(group=self.group).values_list('student_id', flat=True))
        created = Student.objects.get(doc_id='777')
        self.assertEqual(roster, {self.student.pk, by_doc.pk, created.pk})
        self.assertEqual(created.organization_id, self.org.pk)

    def test_import_endpoint(self):
        res = self.api(self.teacher).post(self._url('/import'), {
            'rows': [{'first_name': 'Sara', 'last_name': 'Vega'}],
        }, format='json')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data['matched'], 1)
        self.assertEqual(res.data['linked'], 1)

    def test_import_denied_for_colleague(self):
        res = self.api(self.colleague).post(self._url('/import'), {
            'rows': [{'first_name': 'Sara', 'last_name': 'Vega'}],
        }, format='json')
        self.assertEqual(res.status_code, 403)
        self.assertFalse(GroupStudent.objects.exists())


class ReassignGroupsTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.source = self.make_org('Origen')
        self.target = self.make_org('Destino')
        self.teacher = self.make_user()
        self.add_member(self.source, self.teacher, OrganizationMember.ROLE_OWNER)
        self.target_admin = self.make_user('Admin')
        self.add_member(self.target, self.target_admin, OrganizationMember.ROLE_ADMIN)
        self.group = self.make_group(self.source, self.teacher)
        self.staying_group = self.make_group(self.source, self.teacher, name='Queda')
        self.mover = self.make_student(self.source, 'Mía', 'Luna')
        self.shared = self.make_student(self.source, 'Teo', 'Paz', doc_id='DNI-77')
        self.link(self.group, self.mover)
        self.link(self.group, self.shared)
        self.session = self.make_session(self.group)
        self.record(self.session, self.mover)

    def _call(self, *extra):
        out = StringIO()
        call_command('reassign_groups', '--org', str(self.target.pk), '--groups', str(self.group.pk),
                     *extra, stdout=out)
        return out.getvalue()

    def test_dry_run_changes_nothing(self):
        output = self._call()
        self.assertIn('DRY RUN', output)
        self.assertIn('Students to move: 2', output)
        self.group.refresh_from_db()
        self.assertEqual(self.group.organization, self.source)

    def test_apply_moves_group_and_dependents(self):
        self._call('--year', '2027', '--apply')
        self.group.refresh_from_db()
        self.assertEqual(self.group.organization, self.target)
        self.assertEqual(self.group.academic_year, AcademicYear.objects.get(organization=self.target, year=2027))
        self.assertEqual(Session.objects.get(pk=self.session.pk).organization, self.target)
        self.assertEqual(
            set(AttendanceRecord.objects.filter(session=self.session).values_list('organization_id', flat=True)),
            {self.target.pk},
        )
        self.assertEqual(
            set(GroupStudent.objects.filter(group=self.group).values_list('organization_id', flat=True)),
            {self.target.pk},
        )
        self.assertEqual(
            set(Student.objects.filter(pk__in=[self.mover.pk, self.shared.pk]).values_list(
                'organization_id', flat=True)),
            {self.target.pk},
        )

    def test_target_members_see_the_moved_roster(self):
        self._call('--apply')
        res = self.api(self.target_admin).get(f'/api/groups/{self.group.pk}/students')
        self.assertEqual(res.status_code, 200)
        self.assertEqual({s['id'] for s in res.json()}, {str(self.mover.pk), str(self.shared.pk)})
        self.assertEqual(self.api(self.teacher).get(f'/api/students/{self.shared.pk}').status_code, 404)

    def test_apply_refused_while_student_stays_behind(self):
        self.link(self.staying_group, self.shared)
        self.assertIn('also enrolled', self._call())
        with self.assertRaises(CommandError):
            self._call('--apply')
        self.group.refresh_from_db()
        self.shared.refresh_from_db()
        self.mover.refresh_from_db()
        self.assertEqual(self.group.organization, self.source)
        self.assertEqual(self.shared.organization, self.source)
        self.assertEqual(self.mover.organization, self.source)
        res = self.api(self.target_admin).get(f'/api/groups/{self.group.pk}/students')
        self.assertEqual(res.status_code, 404)


class GroupOrganizationChangeTests(OrgFixturesMixin, TestCase):
    """PATCH org_id by an admin of both organizations."""

    def setUp(self):
        self.source = self.make_org('Origen')
        self.target = self.make_org('Destino')
        self.target_year = self.make_year(self.target, 2027)
        self.admin = self.make_user('Admin')
        self.add_member(self.source, self.admin, OrganizationMember.ROLE_ADMIN)
        self.add_member(self.target, self.admin, OrganizationMember.ROLE_ADMIN)
        self.target_member = self.make_user('Member')
        self.add_member(self.target, self.target_member)
        self.group = self.make_group(self.source, self.admin)
        self.student = self.make_student(self.source, 'Teo', 'Paz', doc_id='DNI-77')
        self.link(self.group, self.student)

    def _move(self):
        return self.api(self.admin).patch(f'/api/groups/{self.group.pk}', {
            'org_id': str(self.target.pk),
            'academic_year_id': str(self.target_year.pk),
        }, format='json')

    def test_linked_students_follow_the_group(self):
        res = self._move()
        self.assertEqual(res.status_code, 200)
        self.student.refresh_from_db()
        self.assertEqual(self.student.organization, self.target)
        self.assertEqual(GroupStudent.objects.get(group=self.group).organization, self.target)
        roster = self.api(self.target_member).get(f'/api/groups/{self.group.pk}/students')
        self.assertEqual([s['id'] for s in roster.json()], [str(self.student.pk)])

    def test_move_refused_while_student_stays_behind(self):
        self.link(self.make_group(self.source, self.admin, name='Queda'), self.student)
        res = self._move()
        self.assertEqual(res.status_code, 400)
        self.assertIn('students', res.json()['errors'])
        self.group.refresh_from_db()
        self.student.refresh_from_db()
        self.assertEqual(self.group.organization, self.source)
        self.assertEqual(self.student.organization, self.source)

    def test_target_member_never_sees_student_of_another_organization(self):
        outsider = self.make_student(self.source, 'Eva', 'Ríos', doc_id='SECRET')
        moved = self.make_group(self.target, self.admin, name='Movido')
        # link written around the services, as left by older data
        self.link(moved, outsider)
        self.record(self.make_session(moved), outsider)
        member = self.api(self.target_member)
        self.assertEqual(member.get(f'/api/groups/{moved.pk}/students').json(), [])
        sessions = member.get('/api/attendance/sessions', {'group_id': str(moved.pk)}).json()
        self.assertEqual(len(sessions), 1)
        self.assertEqual(sessions[0]['records'], [])
