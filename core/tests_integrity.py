"""
Denormalized organization on roster links, sessions and attendance records.
"""
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from attendance.models import AttendanceRecord, Session
from core.integrity import find_org_mismatches
from core.testing import OrgFixturesMixin
from groups.models import GroupStudent


class DenormalizationTests(OrgFixturesMixin, TestCase):
    def setUp(self):
        self.org = self.make_org()
        self.teacher = self.make_user()
        self.add_member(self.org, self.teacher)
        self.group = self.make_group(self.org, self.teacher)
        self.student = self.make_student(self.org)
        self.link_row = self.link(self.group, self.student)
        self.session = self.make_session(self.group)
        self.record_row = self.record(self.session, self.student)

    def test_organization_derived_on_save(self):
        other = self.make_org()
        link = GroupStudent(group=self.group, student=self.make_student(self.org), organization=other)
        link.save()
        self.assertEqual(link.organization_id, self.org.pk)
        self.assertEqual(self.session.organization_id, self.org.pk)
        self.assertEqual(self.record_row.organization_id, self.org.pk)

    def test_sync_integrity_repairs_null_and_stale_rows(self):
        other = self.make_org()
        GroupStudent.objects.filter(pk=self.link_row.pk).update(organization=None)
        Session.objects.filter(pk=self.session.pk).update(organization=other)
        AttendanceRecord.objects.filter(pk=self.record_row.pk).update(organization=None)

        out = StringIO()
        call_command('sync_integrity', stdout=out)
        self.assertIn('DRY RUN', out.getvalue())
        self.link_row.refresh_from_db()
        self.assertIsNone(self.link_row.organization_id)

        call_command('sync_integrity', '--apply', stdout=StringIO())
        for row in (self.link_row, self.session, self.record_row):
            row.refresh_from_db()
            self.assertEqual(row.organization_id, self.org.pk)
        self.assertFalse(any(qs.exists() for qs in find_org_mismatches().values()))

    def test_clean_database_reports_nothing(self):
        out = StringIO()
        call_command('sync_integrity', '--apply', stdout=out)
        self.assertIn('No integrity issues found.', out.getvalue())

    def test_group_organization_change_propagates(self):
        new_org = self.make_org()
        new_year = self.make_year(new_org)
        self.group.organization = new_org
        self.group.academic_year = new_year
        self.group.save()
        for row in (self.link_row, self.session, self.record_row):
            row.refresh_from_db()
            self.assertEqual(row.organization_id, new_org.pk)

    def test_group_rejects_academic_year_of_other_organization(self):
        from django.core.exceptions import ValidationError

        self.group.academic_year = self.make_year(self.make_org())
        with self.assertRaises(ValidationError):
            self.group.save()
