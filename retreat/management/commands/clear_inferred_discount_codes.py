"""
Management command to remove discount codes inferred by reconciliation.

Usage:
    python manage.py clear_inferred_discount_codes
    python manage.py clear_inferred_discount_codes --commit
"""

from django.core.management.base import BaseCommand

from retreat.management.base import BatchCommandMixin


class Command(BatchCommandMixin, BaseCommand):
    help = 'Clear UNKNOWN discount codes set by reconciliation so the bookings can be reconciled again'

    def add_arguments(self, parser):
        self.add_commit_argument(parser)

    def handle(self, *args, **options):
        from retreat.services import InferredCodeCleanup

        dry_run = not options['commit']
        self.write_mode(dry_run)

        result = self.run_batch(InferredCodeCleanup().run, dry_run=dry_run)
        self.write_summary(result, verbose=options['verbose'])
