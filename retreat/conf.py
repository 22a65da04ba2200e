"""
Access to the RETREAT_PRICING settings dict with defaults.
"""

from decimal import Decimal

from django.conf import settings

DEFAULTS = {
    'RECONCILIATION_TOLERANCE': '1.00',
    'LOW_CONFIDENCE_CODE_THRESHOLD': '0.05',
    'AUDIT_TOLERANCE': '1.00',
}


def pricing_setting(name):
    """Return a pricing policy value as a Decimal."""
    overrides = getattr(settings, 'RETREAT_PRICING', {}) or {}
    if name not in DEFAULTS:
        raise KeyError(f"Unknown pricing setting: {name}")
    return Decimal(str(overrides.get(name, DEFAULTS[name])))
