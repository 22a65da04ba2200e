"""
Management command to recompute discount_amount from stored breakdowns.

Usage:
    python manage.py fix_discount_amounts
    python manage.py fix_discount_amounts --commit
"""

from django.core.management.base import BaseCommand

from retreat.management.base import BatchCommandMixin


class Command(BatchCommandMixin, BaseCommand):
    help = 'Recompute discount_amount (seasonal + accommodation duration + code) for bookings with a breakdown'

    def add_arguments(self, parser):
        self.add_commit_argument(parser)

    def handle(self, *args, **options):
        from retreat.services import DiscountAmountRepair

        dry_run = not options['commit']
        self.write_mode(dry_run)

        result = self.run_batch(DiscountAmountRepair().run, dry_run=dry_run)

        for booking_id, current, correct in result.results:
            self.stdout.write(f"  Booking {booking_id}: {current} -> {correct} (diff {abs(correct - current)})")

        self.write_summary(result, verbose=options['verbose'])
