"""
Move groups (with their sessions, roster links, attendance records and linked students)
into another organization.
Usage: python manage.py reassign_groups --org <org_id> --groups <group_id> [<group_id> ...] [--year 2026] [--apply]
Without --apply: dry-run only (report, no changes).
Refused while a linked student is also enrolled in a group that stays behind.
"""
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from rest_framework.exceptions import ValidationError as DRFValidationError

from core.models import Organization
from groups.models import Group
from groups.services import plan_reassignment, reassign_groups


class Command(BaseCommand):
    help = 'Reassign groups and their dependent rows to another organization'

    def add_arguments(self, parser):
        parser.add_argument('--org', required=True, help='Target organization id')
        parser.add_argument('--groups', nargs='+', required=True, help='Group ids to move')
        parser.add_argument('--year', type=int, default=None, help='Academic year in the target organization')
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Apply changes (default: dry-run only)',
        )

    def handle(self, *args, **options):
        try:
            organization = Organization.objects.get(pk=options["org"])
            groups = list(Group.objects.filter(pk__in=options["groups"]))
        except Organization.DoesNotExist:
            raise CommandError(f'Organization {options["org"]} not found')
        except ValidationError as e:
            raise CommandError(f'Invalid id: {"; ".join(e.messages)}')

        missing = set(map(str, options['groups'])) - {str(g.pk) for g in groups}
        if missing:
            raise CommandError(f'Groups not found: {", ".join(sorted(missing))}')

        movable, blocked = plan_reassignment(organization, groups)
        for group in groups:
            self.stdout.write(
                f'  {group.name} ({group.pk}): {group.sessions.count()} sessions, '
                f'{group.group_students.count()} students'
            )
        self.stdout.write(f'  Students to move: {len(movable) + len(blocked)}')
        for student in blocked:
            self.stdout.write(self.style.ERROR(
                f'  {student.first_name} {student.last_name} ({student.pk}) is also enrolled in a group '
                f'that stays in organization {student.organization_id}'
            ))

        if not options['apply']:
            self.stdout.write(self.style.WARNING('DRY RUN - no changes made. Use --apply to reassign.'))
            return

        try:
            result = reassign_groups(organization, groups, year=options['year'])
        except DRFValidationError as e:
            raise CommandError(f'Reassignment refused: {e.detail}')
        self.stdout.write(self.style.SUCCESS(
            f'Reassigned {result["groups"]} groups and {result["students"]} students '
            f'(academic year {result["academic_year"].year}).'
        ))
