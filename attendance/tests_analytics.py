"""
Aggregation RPCs: membership check first, both percentage formulas, the non-admin
teacher override, zero totals.
"""
from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase

from attendance.models import AttendanceRecord
from attendance.services import analytics
from core.exceptions import AuthorizationDenied
from core.models import OrganizationMember
from core.testing import OrgFixturesMixin

START = date(2026, 3, 1)
END = date(2026, 3, 31)


class PercentageTests(TestCase):
    def test_weighted_percentage(self):
        self.assertEqual(analytics.weighted_percentage(3, 1, 5), 70)
        self.assertEqual(analytics.weighted_percentage(0, 1, 2), 25)
        self.assertEqual(analytics.weighted_percentage(1, 0, 8), 13)  # 12.5 rounds half up

    def test_present_percentage(self):
        self.assertEqual(analytics.present_percentage(3, 5), Decimal('60.00'))
        self.assertEqual(analytics.present_percentage(1, 3), Decimal('33.33'))
        self.assertEqual(analytics.present_percentage(2, 3), Decimal('66.67'))

    def test_zero_total_is_zero(self):
        self.assertEqual(analytics.weighted_percentage(0, 0, 0), 0)
        self.assertEqual(analytics.present_percentage(0, 0), 0)


class AnalyticsFixtures(OrgFixturesMixin):
    def build(self):
        self.org = self.make_org()
        self.teacher = self.make_user('Teacher')
        self.admin = self.make_user('Admin')
        self.owner = self.make_user('Owner')
        self.add_member(self.org, self.teacher)
        self.add_member(self.org, self.admin, OrganizationMember.ROLE_ADMIN)
        self.add_member(self.org, self.owner, OrganizationMember.ROLE_OWNER)
        self.group = self.make_group(self.org, self.teacher, name='A - Matemática')
        self.students = [self.make_student(self.org, f'S{i}') for i in range(5)]
        for student in self.students:
            self.link(self.group, student)

    def five_records(self, group=None, day=date(2026, 3, 2)):
        """3 present, 1 late, 1 absent."""
        session = self.make_session(group or self.group, day)
        statuses = ['present', 'present', 'present', 'late', 'absent']
        for student, status in zip(self.students, statuses):
            self.record(session, student, status)
        return session


class GroupStatsTests(AnalyticsFixtures, TestCase):
    def setUp(self):
        self.build()

    def test_end_to_end_scenario(self):
        a, b = self.students[:2]
        session = self.make_session(self.group, date(2026, 3, 2))
        self.record(session, a, AttendanceRecord.STATUS_PRESENT)
        self.record(session, b, AttendanceRecord.STATUS_ABSENT)
        stats = analytics.get_group_stats(self.teacher, self.group.pk, START, END)
        self.assertEqual(stats, {
            'total_sessions': 1,
            'avg_attendance': Decimal('50.00'),
            'total_present': 1,
            'total_absent': 1,
            'total_late': 0,
            'total_justified': 0,
        })
        self.assertEqual(AttendanceRecord.objects.get(student=b).justification, 'unjustified')

    def test_late_not_weighted(self):
        self.five_records()
        stats = analytics.get_group_stats(self.teacher, self.group.pk, START, END)
        self.assertEqual(stats['avg_attendance'], Decimal('60.00'))
        self.assertEqual(stats['total_late'], 1)

    def test_date_range_is_inclusive_and_empty_sessions_ignored(self):
        self.five_records(day=START)
        self.five_records(day=END)
        self.five_records(day=END + timedelta(days=1))
        self.make_session(self.group, date(2026, 3, 15))  # no records
        stats = analytics.get_group_stats(self.teacher, self.group.pk, START, END)
        self.assertEqual(stats['total_sessions'], 2)
        self.assertEqual(stats['total_present'], 6)

    def test_no_records_yields_zero(self):
        stats = analytics.get_group_stats(self.teacher, self.group.pk, START, END)
        self.assertEqual(stats['total_sessions'], 0)
        self.assertEqual(stats['avg_attendance'], 0)

    def test_any_member_may_read_group_stats(self):
        colleague = self.make_user()
        self.add_member(self.org, colleague)
        self.assertEqual(analytics.get_group_stats(colleague, self.group.pk, START, END)['total_sessions'], 0)

    def test_non_member_denied(self):
        outsider = self.make_user()
        self.add_member(self.make_org(), outsider, OrganizationMember.ROLE_ADMIN)
        with self.assertRaises(AuthorizationDenied):
            analytics.get_group_stats(outsider, self.group.pk, START, END)

    def test_unknown_group_denied_like_foreign_one(self):
        import uuid

        with self.assertRaises(AuthorizationDenied):
            analytics.get_group_stats(self.teacher, uuid.uuid4(), START, END)


class StudentStatsTests(AnalyticsFixtures, TestCase):
    def setUp(self):
        self.build()
        self.student = self.students[0]

    def test_stats_are_per_group(self):
        other_group = self.make_group(self.org, self.teacher, name='B - Taller')
        for offset, status in enumerate(['present', 'absent', 'present']):
            self.record(self.make_session(self.group, START + timedelta(days=offset)), self.student, status)
        self.record(self.make_session(other_group, START), self.student, 'absent')

        stats = analytics.get_student_stats(self.teacher, self.student.pk, self.group.pk)
        self.assertEqual(stats['total_sessions'], 3)
        self.assertEqual(stats['attendance_percentage'], Decimal('66.67'))
        other = analytics.get_student_stats(self.teacher, self.student.pk, other_group.pk)
        self.assertEqual(other['attendance_percentage'], 0)

    def test_history_newest_first_limited(self):
        for offset in range(12):
            self.record(self.make_session(self.group, START + timedelta(days=offset)), self.student, 'present')
        history = analytics.get_student_stats(self.teacher, self.student.pk, self.group.pk)['history']
        self.assertEqual(len(history), analytics.STUDENT_HISTORY_LIMIT)
        self.assertEqual(history[0], {'date': START + timedelta(days=11), 'status': 'present'})
        self.assertEqual([h['date'] for h in history], sorted((h['date'] for h in history), reverse=True))

    def test_no_records(self):
        stats = analytics.get_student_stats(self.teacher, self.student.pk, self.group.pk)
        self.assertEqual(stats, {'total_sessions': 0, 'attendance_percentage': 0, 'history': []})

    def test_non_member_denied(self):
        outsider = self.make_user()
        with self.assertRaises(AuthorizationDenied):
            analytics.get_student_stats(outsider, self.student.pk, self.group.pk)


class OrgAnalyticsTests(AnalyticsFixtures, TestCase):
    def setUp(self):
        self.build()
        self.other_teacher = self.make_user('Other')
        self.add_member(self.org, self.other_teacher)
        self.other_group = self.make_group(self.org, self.other_teacher, name='B - Historia')
        self.empty_group = self.make_group(self.org, self.other_teacher, name='C - Vacío')
        self.five_records()
        session = self.make_session(self.other_group)
        self.record(session, self.students[0], 'present')
        self.record(session, self.students[1], 'justified')

    def test_late_weighted_percentage(self):
        result = analytics.get_org_analytics(self.admin, self.org.pk, START, END, teacher_id=self.teacher.pk)
        [group] = result['groups']
        self.assertEqual(group['percentage'], 70)
        self.assertEqual((group['present'], group['late'], group['absent'], group['total']), (3, 1, 1, 5))

    def test_admin_sees_all_groups(self):
        result = analytics.get_org_analytics(self.admin, self.org.pk, START, END)
        self.assertEqual([g['name'] for g in result['groups']], ['A - Matemática', 'B - Historia', 'C - Vacío'])
        self.assertEqual(result['global']['total_groups'], 3)
        self.assertEqual(result['global']['total_students'], 5)
        # (70 + 50) / 2; the empty group is left out of the average
        self.assertEqual(result['global']['avg_percentage'], 60)
        self.assertEqual(result['global']['present'], 4)
        self.assertEqual(result['global']['justified'], 1)
        empty = result['groups'][2]
        self.assertEqual((empty['total'], empty['percentage']), (0, 0))

    def test_member_filter_forced_to_self(self):
        result = analytics.get_org_analytics(self.teacher, self.org.pk, START, END, teacher_id=self.other_teacher.pk)
        self.assertEqual([g['id'] for g in result['groups']], [self.group.pk])
        self.assertEqual(result['global']['total_groups'], 1)

    def test_member_without_filter_still_scoped(self):
        result = analytics.get_org_analytics(self.other_teacher, self.org.pk, START, END)
        self.assertEqual({g['id'] for g in result['groups']}, {self.other_group.pk, self.empty_group.pk})
        self.assertEqual(result['global']['present'], 1)

    def test_owner_is_overridden_too(self):
        result = analytics.get_org_analytics(self.owner, self.org.pk, START, END, teacher_id=self.teacher.pk)
        self.assertEqual(result['groups'], [])
        self.assertIsNone(result['global']['avg_percentage'])
        self.assertEqual(result['global']['present'], 0)

    def test_range_excludes_other_dates(self):
        result = analytics.get_org_analytics(self.admin, self.org.pk, date(2026, 4, 1), date(2026, 4, 30))
        self.assertTrue(all(g['total'] == 0 and g['percentage'] == 0 for g in result['groups']))

    def test_non_member_denied(self):
        outsider = self.make_user()
        self.add_member(self.make_org(), outsider, OrganizationMember.ROLE_ADMIN)
        with self.assertRaises(AuthorizationDenied):
            analytics.get_org_analytics(outsider, self.org.pk, START, END)


class RpcEndpointTests(AnalyticsFixtures, TestCase):
    def setUp(self):
        self.build()
        self.five_records()

    def test_group_stats_endpoint(self):
        res = self.api(self.teacher).post('/api/rpc/get_group_stats', {
            'group_id': str(self.group.pk), 'start_date': '2026-03-01', 'end_date': '2026-03-31',
        }, format='json')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['avg_attendance'], 60.0)

    def test_org_analytics_endpoint(self):
        res = self.api(self.admin).post('/api/rpc/get_org_analytics', {
            'org_id': str(self.org.pk), 'start_date': '2026-03-01', 'end_date': '2026-03-31',
        }, format='json')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['groups'][0]['percentage'], 70)

    def test_student_stats_endpoint(self):
        res = self.api(self.teacher).post('/api/rpc/get_student_stats', {
            'student_id': str(self.students[4].pk), 'group_id': str(self.group.pk),
        }, format='json')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['history'], [{'date': '2026-03-02', 'status': 'absent'}])

    def test_daily_summary_endpoint(self):
        res = self.api(self.teacher).post('/api/rpc/get_daily_attendance_summary', {
            'group_id': str(self.group.pk), 'date': '2026-03-02',
        }, format='json')
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual((data['total_sessions'], data['total_records']), (1, 5))
        self.assertEqual((data['present'], data['late'], data['absent']), (3, 1, 1))
        self.assertEqual(data['absent_unjustified'], 1)

    def test_outsider_gets_authorization_error(self):
        outsider = self.make_user()
        self.add_member(self.make_org(), outsider)
        res = self.api(outsider).post('/api/rpc/get_group_stats', {
            'group_id': str(self.group.pk), 'start_date': '2026-03-01', 'end_date': '2026-03-31',
        }, format='json')
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.json(), {'detail': 'Acceso no autorizado', 'code': 'authorization_denied'})

    def test_invalid_range_rejected(self):
        res = self.api(self.teacher).post('/api/rpc/get_group_stats', {
            'group_id': str(self.group.pk), 'start_date': '2026-03-31', 'end_date': '2026-03-01',
        }, format='json')
        self.assertEqual(res.status_code, 400)

    def test_requires_authentication(self):
        res = self.api().post('/api/rpc/get_group_stats', {}, format='json')
        self.assertEqual(res.status_code, 401)
