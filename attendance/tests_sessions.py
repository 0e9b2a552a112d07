"""
Taking attendance: idempotent upsert keyed by (group, date, class_index) and (session, student).
"""
from datetime import date

from django.test import TestCase

from attendance.models import AttendanceRecord, Session
from attendance.services.sessions import take_attendance
from core.models import OrganizationMember
from core.testing import OrgFixturesMixin


class TakeAttendanceTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.teacher = self.make_user('Teacher')
        self.add_member(self.org, self.teacher)
        self.group = self.make_group(self.org, self.teacher)
        self.ana = self.make_student(self.org, 'Ana')
        self.beto = self.make_student(self.org, 'Beto')
        self.link(self.group, self.ana)
        self.link(self.group, self.beto)
        self.day = date(2026, 3, 2)

    def _payload(self, ana='present', beto='absent', **extra):
        return {
            'group_id': str(self.group.pk),
            'date': self.day.isoformat(),
            'records': [
                {'student_id': str(self.ana.pk), 'status': ana},
                {'student_id': str(self.beto.pk), 'status': beto, **extra},
            ],
        }

    def test_second_submission_updates_instead_of_duplicating(self):
        client = self.api(self.teacher)
        first = client.post('/api/attendance/sessions', self._payload(), format='json')
        second = client.post('/api/attendance/sessions', self._payload(ana='late', beto='present'), format='json')
        self.assertEqual((first.status_code, second.status_code), (201, 200))
        self.assertEqual(Session.objects.filter(group=self.group).count(), 1)
        self.assertEqual(AttendanceRecord.objects.count(), 2)
        statuses = dict(AttendanceRecord.objects.values_list('student__first_name', 'status'))
        self.assertEqual(statuses, {'Ana': 'late', 'Beto': 'present'})

    def test_absent_defaults_to_unjustified(self):
        self.api(self.teacher).post('/api/attendance/sessions', self._payload(), format='json')
        absent = AttendanceRecord.objects.get(student=self.beto)
        present = AttendanceRecord.objects.get(student=self.ana)
        self.assertEqual(absent.justification, AttendanceRecord.JUSTIFICATION_UNJUSTIFIED)
        self.assertIsNone(present.justification)

    def test_justification_cleared_when_no_longer_absent(self):
        take_attendance(self.teacher, self.group, self.day, [
            {'student_id': self.beto.pk, 'status': 'absent', 'justification': 'justified'},
        ])
        record = AttendanceRecord.objects.get(student=self.beto)
        self.assertEqual(record.justification, 'justified')
        take_attendance(self.teacher, self.group, self.day, [{'student_id': self.beto.pk, 'status': 'present'}])
        record.refresh_from_db()
        self.assertIsNone(record.justification)
        self.assertEqual(record.updated_by, self.teacher)

    def test_class_index_allows_second_session_same_day(self):
        take_attendance(self.teacher, self.group, self.day, [{'student_id': self.ana.pk, 'status': 'present'}])
        take_attendance(self.teacher, self.group, self.day, [{'student_id': self.ana.pk, 'status': 'absent'}],
                        class_index=2)
        self.assertEqual(
            list(Session.objects.filter(group=self.group).values_list('class_index', flat=True).order_by('class_index')),
            [1, 2],
        )

    def test_session_created_by_and_organization(self):
        session, _ = take_attendance(self.teacher, self.group, self.day, [])
        self.assertEqual(session.created_by, self.teacher)
        self.assertEqual(session.organization_id, self.org.pk)

    def test_admin_may_take_attendance_for_any_group(self):
        admin = self.make_user('Admin')
        self.add_member(self.org, admin, OrganizationMember.ROLE_ADMIN)
        res = self.api(admin).post('/api/attendance/sessions', self._payload(), format='json')
        self.assertEqual(res.status_code, 201)

    def test_student_of_other_organization_rejected(self):
        foreign = self.make_student(self.make_org())
        res = self.api(self.teacher).post('/api/attendance/sessions', {
            'group_id': str(self.group.pk),
            'date': self.day.isoformat(),
            'records': [{'student_id': str(foreign.pk), 'status': 'present'}],
        }, format='json')
        self.assertEqual(res.status_code, 400)
        self.assertFalse(Session.objects.exists())

    def test_duplicate_student_in_payload_rejected(self):
        payload = self._payload()
        payload['records'].append({'student_id': str(self.ana.pk), 'status': 'late'})
        res = self.api(self.teacher).post('/api/attendance/sessions', payload, format='json')
        self.assertEqual(res.status_code, 400)

    def test_outsider_gets_404(self):
        outsider = self.make_user()
        self.add_member(self.make_org(), outsider, OrganizationMember.ROLE_OWNER)
        res = self.api(outsider).post('/api/attendance/sessions', self._payload(), format='json')
        self.assertEqual(res.status_code, 404)

    def test_list_sessions_for_group_and_date(self):
        self.api(self.teacher).post('/api/attendance/sessions', self._payload(), format='json')
        colleague = self.make_user()
        self.add_member(self.org, colleague)
        res = self.api(colleague).get('/api/attendance/sessions',
                                      {'group_id': str(self.group.pk), 'date': '2026-03-02'})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data), 1)
        self.assertEqual(len(res.data[0]['records']), 2)
