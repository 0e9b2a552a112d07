"""
Students: document-id conflicts, confirmed deletion, duplicate merge.
"""
from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from attendance.models import AttendanceRecord
from core.models import OrganizationMember
from core.testing import OrgFixturesMixin
from groups.models import GroupStudent
from students.models import Student, normalize_name_key
from students.services import find_duplicate_students, merge_students


class StudentApiTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.user = self.make_user()
        self.add_member(self.org, self.user)
        self.client = self.api(self.user)

    def _create(self, **payload):
        data = {'org_id': str(self.org.pk), 'first_name': 'Lucía', 'last_name': 'Gómez'}
        data.update(payload)
        return self.client.post('/api/students', data, format='json')

    def test_create_student(self):
        res = self._create(doc_id=' 40111222 ')
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data['doc_id'], '40111222')
        self.assertEqual(res.data['full_name'], 'Lucía Gómez')

    def test_duplicate_doc_id_is_conflict(self):
        self.make_student(self.org, doc_id='40111222')
        res = self._create(doc_id='40111222')
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data['code'], 'conflict')
        self.assertEqual(Student.objects.filter(doc_id='40111222').count(), 1)

    def test_same_doc_id_allowed_in_other_organization(self):
        self.make_student(self.make_org(), doc_id='40111222')
        self.assertEqual(self._create(doc_id='40111222').status_code, 201)

    def test_blank_doc_id_never_conflicts(self):
        self.assertEqual(self._create(doc_id='').status_code, 201)
        self.assertEqual(self._create(doc_id='').status_code, 201)

    def test_update_to_taken_doc_id_is_conflict(self):
        self.make_student(self.org, doc_id='1')
        other = self.make_student(self.org, doc_id='2')
        res = self.client.patch(f'/api/students/{other.pk}', {'doc_id': '1'}, format='json')
        self.assertEqual(res.status_code, 409)

    def test_create_in_foreign_organization_denied(self):
        res = self._create(org_id=str(self.make_org().pk))
        self.assertEqual(res.status_code, 403)

    def test_search_and_active_filters(self):
        self.make_student(self.org, first_name='Bruno', last_name='Díaz')
        inactive = self.make_student(self.org, first_name='Carla', last_name='Ruiz')
        inactive.is_active = False
        inactive.save()
        res = self.client.get('/api/students', {'search': 'brun'})
        self.assertEqual([s['first_name'] for s in res.data['results']], ['Bruno'])
        res = self.client.get('/api/students', {'active': 'false'})
        self.assertEqual([s['first_name'] for s in res.data['results']], ['Carla'])

    def test_delete_requires_confirmation(self):
        teacher = self.make_user()
        self.add_member(self.org, teacher, OrganizationMember.ROLE_ADMIN)
        group = self.make_group(self.org, teacher)
        student = self.make_student(self.org)
        self.link(group, student)
        self.record(self.make_session(group), student)

        res = self.client.delete(f'/api/students/{student.pk}')
        self.assertEqual(res.status_code, 400)
        self.assertTrue(Student.objects.filter(pk=student.pk).exists())

        res = self.client.delete(f'/api/students/{student.pk}?confirm=true')
        self.assertEqual(res.status_code, 204)
        self.assertFalse(GroupStudent.objects.filter(student_id=student.pk).exists())
        self.assertFalse(AttendanceRecord.objects.filter(student_id=student.pk).exists())


class DuplicateMergeTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.teacher = self.make_user()
        self.add_member(self.org, self.teacher)
        self.group = self.make_group(self.org, self.teacher)
        self.other_group = self.make_group(self.org, self.teacher, name='Taller')
        self.master = self.make_student(self.org, 'Juan', 'Sosa')
        self.dup = self.make_student(self.org, ' JUAN ', 'sosa ')
        # oldest record wins the merge
        Student.objects.filter(pk=self.dup.pk).update(created_at=self.master.created_at + timedelta(seconds=1))
        self.session = self.make_session(self.group)

    def test_name_key_normalization(self):
        self.assertEqual(normalize_name_key(' JUAN ', 'sosa '), 'juan|sosa')
        self.assertEqual(self.master.name_key, self.dup.name_key)

    def test_find_duplicates_scoped_by_organization(self):
        self.make_student(self.make_org(), 'Juan', 'Sosa')
        duplicates = find_duplicate_students()
        self.assertEqual(list(duplicates.values()), [[self.master, self.dup]])

    def test_merge_moves_links_and_drops_conflicts(self):
        self.link(self.group, self.master)
        self.link(self.group, self.dup)
        self.link(self.other_group, self.dup)
        self.record(self.session, self.master, AttendanceRecord.STATUS_PRESENT)
        self.record(self.session, self.dup, AttendanceRecord.STATUS_ABSENT)
        other_session = self.make_session(self.other_group)
        self.record(other_session, self.dup, AttendanceRecord.STATUS_LATE)

        links, records = merge_students(self.master, [self.dup])

        self.assertEqual((links, records), (1, 1))
        self.assertFalse(Student.objects.filter(pk=self.dup.pk).exists())
        self.assertEqual(
            set(GroupStudent.objects.filter(student=self.master).values_list('group_id', flat=True)),
            {self.group.pk, self.other_group.pk},
        )
        self.assertEqual(AttendanceRecord.objects.get(session=self.session).status, 'present')
        self.assertEqual(AttendanceRecord.objects.get(session=other_session).student, self.master)

    def test_command_dry_run_then_apply(self):
        out = StringIO()
        call_command('merge_duplicate_students', stdout=out)
        self.assertIn('DRY RUN', out.getvalue())
        self.assertEqual(Student.objects.count(), 2)

        call_command('merge_duplicate_students', '--org', str(self.org.pk), '--apply', stdout=StringIO())
        self.assertEqual(list(Student.objects.all()), [self.master])
