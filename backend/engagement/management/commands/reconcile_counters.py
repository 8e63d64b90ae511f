"""
Recompute every denormalized counter from the relationship tables.

Usage: python manage.py reconcile_counters [--dry-run]
"""

from django.core.management.base import BaseCommand

from engagement.counters import reconcile_counters


class Command(BaseCommand):
    help = 'Repair follower/following/like/comment counters that drifted from their edges'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without fixing it'
        )

    def handle(self, *args, **options):
        report = reconcile_counters(dry_run=options['dry_run'])
        drifted = sum(report.values())

        for counter, rows in report.items():
            self.stdout.write(f'  {counter}: {rows} drifted')

        if not drifted:
            self.stdout.write(self.style.SUCCESS('All counters consistent'))
        elif options['dry_run']:
            self.stdout.write(self.style.WARNING(f'{drifted} counters drifted (dry run, nothing changed)'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Repaired {drifted} counters'))
