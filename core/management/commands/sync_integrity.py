"""
Denormalized organization consistency sync.
Fixes GroupStudent/Session/AttendanceRecord rows whose organization is null or
differs from their group's organization.
Usage: python manage.py sync_integrity [--apply]
Without --apply: dry-run only (report, no changes).
"""
import logging

from django.core.management.base import BaseCommand
from django.db import transaction

from core.integrity import find_org_mismatches, repair_org_mismatches

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Sync DB integrity: organization consistency on GroupStudent/Session/AttendanceRecord'

    def add_arguments(self, parser):
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Apply fixes (default: dry-run only)',
        )

    def handle(self, *args, **options):
        apply = options['apply']
        if not apply:
            self.stdout.write(self.style.WARNING('DRY RUN - no changes will be made. Use --apply to fix.'))

        mismatches = {label: qs.count() for label, qs in find_org_mismatches().items()}
        for label, count in mismatches.items():
            if count:
                self.stdout.write(f'  {label} with org mismatch or null: {count}')

        if not any(mismatches.values()):
            self.stdout.write('No integrity issues found.')
            return

        if not apply:
            self.stdout.write(self.style.WARNING('Run with --apply to apply fixes.'))
            return

        with transaction.atomic():
            fixed = repair_org_mismatches()
        logger.info('sync_integrity repaired rows: %s', fixed)
        self.stdout.write(self.style.SUCCESS(f'Sync complete. Updated: {fixed}'))
