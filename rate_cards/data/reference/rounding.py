"""
Money Rounding Configuration

Charge compositions are computed with exact Decimal arithmetic. Rounding is
applied only where amounts leave the engine (DataFrame output, display), so a
breakdown always sums exactly to its total.
"""

from decimal import ROUND_HALF_UP

MONEY_PLACES = 2            # Cents
ROUNDING = ROUND_HALF_UP    # 0.005 -> 0.01
