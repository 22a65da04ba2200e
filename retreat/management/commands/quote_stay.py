"""
Management command to print a forward quote for a stay.

Usage:
    python manage.py quote_stay 3 2025-07-01 2025-07-21
    python manage.py quote_stay 3 2025-07-01 2025-07-21 --food-per-week 300 --code SUMMER21 --credits 50
"""

import argparse
from decimal import Decimal, InvalidOperation

from django.core.management.base import BaseCommand, CommandError

from retreat.exceptions import PricingEngineError


def decimal_argument(value):
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f'Not a number: {value}')


class Command(BaseCommand):
    help = 'Price a stay the way a new booking would be priced'

    def add_arguments(self, parser):
        parser.add_argument('accommodation_id', type=int)
        parser.add_argument('check_in', type=str, help='YYYY-MM-DD')
        parser.add_argument('check_out', type=str, help='YYYY-MM-DD (inclusive)')
        parser.add_argument(
            '--food-per-week',
            type=decimal_argument,
            default=None,
            help='Chosen F&F contribution per week (default: band minimum)'
        )
        parser.add_argument('--code', type=str, default=None, help='Discount code')
        parser.add_argument(
            '--credits',
            type=decimal_argument,
            default=Decimal('0.00'),
            help='Wallet credits to spend'
        )

    def handle(self, *args, **options):
        from retreat.models import Accommodation
        from retreat.services import ForwardQuoteEngine, format_quote_breakdown

        try:
            accommodation = Accommodation.objects.get(pk=options['accommodation_id'])
        except Accommodation.DoesNotExist:
            raise CommandError(f"Accommodation not found: {options['accommodation_id']}")

        try:
            quote = ForwardQuoteEngine().quote(
                accommodation,
                check_in=options['check_in'],
                check_out=options['check_out'],
                food_per_week=options['food_per_week'],
                discount_code=options['code'],
                credits=options['credits'],
            )
        except PricingEngineError as e:
            raise CommandError(str(e))

        self.stdout.write(format_quote_breakdown(quote))
