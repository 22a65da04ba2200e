"""
Management command to compare stored breakdowns with a fresh computation.

Usage:
    python manage.py audit_breakdowns
    python manage.py audit_breakdowns --legacy-season-lookup
    python manage.py audit_breakdowns --commit
"""

from django.core.management.base import BaseCommand

from retreat.management.base import BatchCommandMixin


class Command(BatchCommandMixin, BaseCommand):
    help = 'Flag bookings whose stored breakdown disagrees with a recomputation'

    def add_arguments(self, parser):
        self.add_commit_argument(parser)
        parser.add_argument(
            '--legacy-season-lookup',
            action='store_true',
            help='Recompute with the old check-in-date season lookup (auditing only)'
        )

    def handle(self, *args, **options):
        from retreat.services import BreakdownAudit, PER_NIGHT, CHECK_IN

        strategy = CHECK_IN if options['legacy_season_lookup'] else PER_NIGHT
        dry_run = not options['commit']
        self.write_mode(dry_run)
        self.stdout.write(f"Season strategy: {strategy}")

        result = self.run_batch(BreakdownAudit(strategy=strategy).run, dry_run=dry_run)

        if not result.warnings:
            self.stdout.write(self.style.SUCCESS('All stored breakdowns agree with the recomputation'))
        self.write_summary(result, verbose=options['verbose'])
