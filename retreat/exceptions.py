"""
Pricing engine exceptions.

Configuration errors abort a batch before any record is touched. Every other
error is raised for a single booking and collected by the batch runner.
"""


class PricingEngineError(Exception):
    """Base exception for pricing engine errors"""
    pass


class ConfigurationError(PricingEngineError):
    """A required input source is missing or unreachable."""
    pass


class AccommodationNotFoundError(PricingEngineError):
    pass


class StayWindowError(PricingEngineError):
    """Missing or inverted check-in/check-out dates."""
    pass


class DiscountCodeError(PricingEngineError):
    """Unknown or inactive discount code."""
    pass


class QuoteError(PricingEngineError):
    pass


class ReconciliationMismatch(PricingEngineError):
    """
    Recomputed total differs from the charged total beyond tolerance.

    Never raised out of a batch: it is attached to the record's result
    as a warning for manual review.
    """

    def __init__(self, booking_id, expected, actual):
        self.booking_id = booking_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Booking {booking_id}: recomputed total {expected} "
            f"differs from charged total {actual}"
        )
