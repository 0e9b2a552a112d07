"""
Shared fixtures for the app test modules (tests_*.py).
"""
import itertools
from datetime import date

from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from attendance.models import AttendanceRecord, Session
from core.models import AcademicYear, Organization, OrganizationMember
from groups.models import Group, GroupStudent
from students.models import Student

_seq = itertools.count(1)


class OrgFixturesMixin:
    """Factory helpers for TestCase classes."""

    def make_user(self, name='User'):
        n = next(_seq)
        return User.objects.create_user(
            email=f'user{n}@test.local',
            password='pass12345',
            full_name=f'{name} {n}',
        )

    def make_org(self, name='Escuela'):
        return Organization.objects.create(name=name, slug=f'org-{next(_seq)}')

    def add_member(self, org, user, role=OrganizationMember.ROLE_MEMBER):
        return OrganizationMember.objects.create(organization=org, user=user, role=role)

    def make_year(self, org, year=2026, is_active=True):
        return AcademicYear.objects.create(organization=org, year=year, is_active=is_active)

    def make_group(self, org, teacher, name='Matemática 1A', year=None, type=Group.TYPE_COURSE):
        year = year or AcademicYear.objects.filter(organization=org).first() or self.make_year(org)
        return Group.objects.create(
            organization=org, academic_year=year, teacher=teacher, name=name, type=type,
        )

    def make_student(self, org, first_name='Ana', last_name=None, doc_id=None):
        return Student.objects.create(
            organization=org,
            first_name=first_name,
            last_name=last_name or f'Pérez {next(_seq)}',
            doc_id=doc_id,
        )

    def link(self, group, student):
        return GroupStudent.objects.create(group=group, student=student)

    def make_session(self, group, day=date(2026, 3, 2), class_index=1):
        return Session.objects.create(group=group, date=day, class_index=class_index)

    def record(self, session, student, status=AttendanceRecord.STATUS_PRESENT, **extra):
        return AttendanceRecord.objects.create(session=session, student=student, status=status, **extra)

    def api(self, user=None):
        client = APIClient()
        if user is not None:
            client.credentials(HTTP_AUTHORIZATION=f'Bearer {AccessToken.for_user(user)}')
        return client
