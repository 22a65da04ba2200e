"""
Management command to rebuild price breakdowns of legacy bookings.

Usage:
    python manage.py reconcile_breakdowns
    python manage.py reconcile_breakdowns --commit
    python manage.py reconcile_breakdowns --commit --include-mismatches --limit 50
"""

import argparse

from django.core.management.base import BaseCommand

from retreat.management.base import BatchCommandMixin


def non_negative_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a whole number: {value}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"Must be 0 or more: {value}")
    return number


class Command(BatchCommandMixin, BaseCommand):
    help = 'Reconstruct breakdown fields for bookings that have none, from their charged total'

    def add_arguments(self, parser):
        self.add_commit_argument(parser)
        parser.add_argument(
            '--include-mismatches',
            action='store_true',
            help='Also save records whose recomputed total is outside tolerance'
        )
        parser.add_argument(
            '--limit',
            type=non_negative_int,
            default=None,
            help='Process at most this many bookings'
        )

    def handle(self, *args, **options):
        from retreat.services import BreakdownReconciler

        dry_run = not options['commit']
        self.write_mode(dry_run)

        result = self.run_batch(
            BreakdownReconciler().run,
            dry_run=dry_run,
            include_mismatches=options['include_mismatches'],
            limit=options['limit'],
        )

        if options['verbose']:
            for reconciliation in result.results:
                breakdown = reconciliation.breakdown
                code = breakdown['applied_discount_code'] or '-'
                flags = f" [{', '.join(reconciliation.flags)}]" if reconciliation.flags else ''
                self.stdout.write(
                    f"  Booking {reconciliation.booking_id}: "
                    f"accommodation {breakdown['accommodation_price']}, "
                    f"F&F {breakdown['food_contribution']}, "
                    f"seasonal -{breakdown['seasonal_adjustment']}, "
                    f"duration {breakdown['duration_discount_percent']}%, "
                    f"code {code} ({breakdown['discount_code_percent'] * 100:.1f}%)"
                    f"{flags}"
                )

        self.write_summary(result, verbose=options['verbose'])
