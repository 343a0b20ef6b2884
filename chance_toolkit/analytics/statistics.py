"""Exact statistical helpers for prize-income projections."""

from decimal import Decimal, localcontext
from fractions import Fraction

# Working precision for the few steps that leave exact rationals (sqrt)
DECIMAL_PRECISION = 40


def to_decimal(value: Fraction) -> Decimal:
    """
    Convert an exact rational to Decimal at working precision.

    Args:
        value: Fraction to convert

    Returns:
        Decimal rounded to DECIMAL_PRECISION significant digits
    """
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(value.numerator) / Decimal(value.denominator)


def sqrt_fraction(value: Fraction) -> Decimal:
    """Square root of a non-negative rational, as Decimal."""
    if value < 0:
        raise ValueError(f"Cannot take square root of {value}")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return to_decimal(value).sqrt()


def bernoulli_sum_mean(trials: Fraction, p: Fraction, payoff: Fraction) -> Fraction:
    """Mean of `trials` independent Bernoulli(p) draws each paying `payoff`."""
    return trials * p * payoff


def bernoulli_sum_variance(
    trials: Fraction, p: Fraction, payoff: Fraction
) -> Fraction:
    """
    Variance of `trials` independent Bernoulli(p) draws each paying `payoff`.

    n * p * (1 - p) * payoff^2; zero when p is 0 or 1.
    """
    return trials * p * (1 - p) * payoff * payoff


def normal_quantile_value(mean: Decimal, std_dev: Decimal, z: Decimal) -> Decimal:
    """Value at z standard deviations from the mean (normal approximation)."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return mean + z * std_dev


def safe_divide(numerator: Fraction, denominator: Fraction, default=Fraction(0)):
    """
    Exact division with zero protection.

    Args:
        numerator: Numerator
        denominator: Denominator
        default: Value returned when denominator is zero

    Returns:
        numerator / denominator as Fraction, or default
    """
    if denominator == 0:
        return default
    return Fraction(numerator) / Fraction(denominator)
