"""
accounting.py - Amount-due calculation

Pure functions with integer-only arithmetic. The interest rate is a percentage
scaled by 1000 (50 == 0.05%), so amounts are scaled by RATE_SCALE:

    amount_due = principal * (RATE_SCALE + rate) // RATE_SCALE

Early payback discount: a borrower who repaid the previous loan before its
end time pays 90% of the configured rate on the next one. The rate is divided
by 10 (truncating) before it is multiplied by 9:

    discounted_rate = rate // 10 * 9

That ordering is part of the contract. For rate 15 the discounted rate is 9,
not 13.5, so 1_000_000 borrowed costs 1_000_090 rather than 1_000_135.
"""

from __future__ import annotations

from .core import Money, validate_amount


# Denominator for interest_rate_x1000 (percent * 1000 -> fraction)
RATE_SCALE = 100_000

# Early payback pays DISCOUNT_NUMERATOR / DISCOUNT_DENOMINATOR of the rate
DISCOUNT_NUMERATOR = 9
DISCOUNT_DENOMINATOR = 10

# interest_rate_x1000 is stored as an unsigned 16-bit integer
MAX_INTEREST_RATE_X1000 = 2 ** 16 - 1


def discounted_rate(interest_rate_x1000: int) -> int:
    """Effective rate for an early-payback borrower, truncating before scaling."""
    return interest_rate_x1000 // DISCOUNT_DENOMINATOR * DISCOUNT_NUMERATOR


def calculate_amount_due(
    principal: Money,
    interest_rate_x1000: int,
    early_pay_discount: bool = False,
) -> Money:
    """
    Compute principal plus interest, truncating toward zero.

    Args:
        principal: Amount lent
        interest_rate_x1000: Configured rate, percent scaled by 1000
        early_pay_discount: Apply the early payback discount

    Returns:
        Amount the borrower must repay in full

    Raises:
        ValueError: If principal or rate is not a non-negative int

    Example:
        >>> calculate_amount_due(1_000_000, 15)
        1000150
        >>> calculate_amount_due(1_000_000, 15, early_pay_discount=True)
        1000090
    """
    validate_amount(principal, "principal")
    validate_amount(interest_rate_x1000, "interest_rate_x1000")
    rate = discounted_rate(interest_rate_x1000) if early_pay_discount else interest_rate_x1000
    return principal * (RATE_SCALE + rate) // RATE_SCALE
