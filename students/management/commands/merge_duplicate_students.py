"""
Merge students registered more than once under the same normalized name.
The oldest record is kept; roster links and attendance move to it.
Usage: python manage.py merge_duplicate_students [--org <org_id>] [--apply]
Without --apply: dry-run only (report, no changes).
"""
from django.core.management.base import BaseCommand

from students.services import find_duplicate_students, merge_students


class Command(BaseCommand):
    help = 'Merge duplicate students (same first and last name) within an organization'

    def add_arguments(self, parser):
        parser.add_argument('--org', default=None, help='Limit to one organization id')
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Apply merge (default: dry-run only)',
        )

    def handle(self, *args, **options):
        apply = options['apply']
        duplicates = find_duplicate_students(options['org'])
        if not duplicates:
            self.stdout.write('No duplicate students found.')
            return

        for (org_id, key), students in duplicates.items():
            master, rest = students[0], students[1:]
            self.stdout.write(f'  {master.full_name} (org {org_id}): keep {master.pk}, merge {len(rest)}')
            if apply:
                links, records = merge_students(master, rest)
                self.stdout.write(f'    moved {links} roster links, {records} attendance records')

        if apply:
            self.stdout.write(self.style.SUCCESS(f'Merged {len(duplicates)} duplicate sets.'))
        else:
            self.stdout.write(self.style.WARNING('DRY RUN - no changes made. Use --apply to merge.'))
