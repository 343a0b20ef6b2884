"""
Prize-odds projection for a staker.

Each draw is modelled as an independent Bernoulli trial won with probability
p = stake_weight / pool_total_weight. Over a year:

    E[prize]  = draws_per_year * p * prize_per_draw
    Var       = draws_per_year * p * (1 - p) * prize_per_draw^2

Regular and big draws are summed as independent (p is treated as constant
over the horizon). Percentile scenarios use the normal approximation
payout(z) = base_yield + E[prize] + z * sd.

All arithmetic is exact (Fraction) until the square root; results are
Decimal.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import List, Optional, Union

from chance_toolkit.analytics.statistics import (
    bernoulli_sum_mean,
    bernoulli_sum_variance,
    normal_quantile_value,
    safe_divide,
    sqrt_fraction,
    to_decimal,
)
from chance_toolkit.shared.exceptions import InvalidOddsInput

Number = Union[int, str, Decimal, Fraction]

# Canonical z-scores for the percentile scenarios
UNLUCKY_Z = Decimal("-1.28")  # 10th percentile
TYPICAL_Z = Decimal("0")
LUCKY_Z = Decimal("1.28")  # 90th percentile
JACKPOT_Z = Decimal("2.33")  # 99th percentile

# Spread below this fraction of the expected prize is not worth showing
VARIANCE_THRESHOLD = Decimal("0.0005")
MIN_EXPECTED_PRIZE = Decimal("0.01")


def to_fraction(value: Number, field_name: str = "value") -> Fraction:
    """
    Convert an exact numeric input to Fraction.

    Raises:
        InvalidOddsInput: float/bool input, unparsable string, or negative value
    """
    if isinstance(value, (bool, float)):
        raise InvalidOddsInput(
            f"{field_name}: {type(value).__name__} is not an exact number"
        )
    try:
        if isinstance(value, Fraction):
            result = value
        elif isinstance(value, int):
            result = Fraction(value)
        elif isinstance(value, (str, Decimal)):
            decimal_value = Decimal(value)
            if not decimal_value.is_finite():
                raise InvalidOddsInput(f"{field_name}: {value!r} is not finite")
            result = Fraction(decimal_value)
        else:
            raise InvalidOddsInput(
                f"{field_name}: unsupported type {type(value).__name__}"
            )
    except ArithmeticError as e:
        raise InvalidOddsInput(f"{field_name}: {value!r} is not a number") from e

    if result < 0:
        raise InvalidOddsInput(f"{field_name}: {value} is negative")
    return result


@dataclass(frozen=True)
class OddsInput:
    """
    Inputs for one projection. Recomputed per interaction, owned by the caller.

    stake_amount is the denominator of the APR; it defaults to stake_weight
    when weight and amount share a unit.
    """

    stake_weight: Number
    pool_total_weight: Number
    regular_pool_annual_budget: Number
    big_pool_annual_budget: Number
    regular_draws_per_year: Number
    big_draws_per_year: Number
    base_yield: Number = 0
    stake_amount: Optional[Number] = None


@dataclass(frozen=True)
class Scenario:
    """One named outcome of a year of staking."""

    label: str
    apr: Decimal  # percent
    annual_payout: Decimal
    z_score: Optional[Decimal] = None  # None for the yield-only floor
    description: str = ""


@dataclass(frozen=True)
class DrawTypeOdds:
    """Annual expectation for a single draw type."""

    draws_per_year: Fraction
    prize_per_draw: Fraction
    expected_wins: Fraction
    expected_prize: Fraction
    variance: Fraction


@dataclass(frozen=True)
class OddsProjection:
    """Distribution summary of a staker's annual prize income."""

    win_probability: Fraction
    regular: DrawTypeOdds
    big: DrawTypeOdds
    base_yield: Fraction
    expected_prize: Fraction
    variance: Fraction
    std_dev: Decimal
    has_variance: bool
    scenarios: List[Scenario] = field(default_factory=list)

    @property
    def pool_share_pct(self) -> Decimal:
        return to_decimal(self.win_probability * 100)

    @property
    def expected_wins(self) -> Fraction:
        return self.regular.expected_wins + self.big.expected_wins

    def scenario(self, label: str) -> Optional[Scenario]:
        return next((s for s in self.scenarios if s.label == label), None)


def win_probability(stake_weight: Number, total_weight: Number) -> Fraction:
    """
    Per-draw win probability as an exact ratio.

    Zero for an empty pool or an empty stake.

    Raises:
        InvalidOddsInput: stake exceeds the pool
    """
    stake = to_fraction(stake_weight, "stake_weight")
    total = to_fraction(total_weight, "pool_total_weight")
    if total == 0 or stake == 0:
        return Fraction(0)
    if stake > total:
        raise InvalidOddsInput(
            f"stake_weight {stake} exceeds pool_total_weight {total}"
        )
    return stake / total


def project_draw_type(
    p: Fraction, annual_budget: Fraction, draws_per_year: Fraction
) -> DrawTypeOdds:
    """Expected wins, prize and variance for one draw type over a year."""
    prize_per_draw = safe_divide(annual_budget, draws_per_year)
    return DrawTypeOdds(
        draws_per_year=draws_per_year,
        prize_per_draw=prize_per_draw,
        expected_wins=draws_per_year * p,
        expected_prize=bernoulli_sum_mean(draws_per_year, p, prize_per_draw),
        variance=bernoulli_sum_variance(draws_per_year, p, prize_per_draw),
    )


def _apr(payout: Decimal, stake: Fraction) -> Decimal:
    if stake == 0:
        return Decimal(0)
    return payout / to_decimal(stake) * 100


def project_odds(odds_input: OddsInput) -> OddsProjection:
    """
    Project the distribution of a year's prize income.

    Args:
        odds_input: Stake, pool and cadence parameters

    Returns:
        OddsProjection; scenarios are floor and typical only when the
        spread is negligible, otherwise floor, unlucky, typical, lucky and
        jackpot, in non-decreasing payout order
    """
    p = win_probability(odds_input.stake_weight, odds_input.pool_total_weight)
    stake_amount = to_fraction(
        odds_input.stake_amount
        if odds_input.stake_amount is not None
        else odds_input.stake_weight,
        "stake_amount",
    )
    base_yield = to_fraction(odds_input.base_yield, "base_yield")

    regular = project_draw_type(
        p,
        to_fraction(
            odds_input.regular_pool_annual_budget, "regular_pool_annual_budget"
        ),
        to_fraction(odds_input.regular_draws_per_year, "regular_draws_per_year"),
    )
    big = project_draw_type(
        p,
        to_fraction(odds_input.big_pool_annual_budget, "big_pool_annual_budget"),
        to_fraction(odds_input.big_draws_per_year, "big_draws_per_year"),
    )

    expected_prize = regular.expected_prize + big.expected_prize
    variance = regular.variance + big.variance
    std_dev = sqrt_fraction(variance)

    base = to_decimal(base_yield)
    mean = to_decimal(base_yield + expected_prize)
    has_variance = std_dev > VARIANCE_THRESHOLD * max(
        to_decimal(expected_prize), MIN_EXPECTED_PRIZE
    )

    def scenario(label: str, payout: Decimal, z, description: str) -> Scenario:
        return Scenario(
            label=label,
            apr=_apr(payout, stake_amount),
            annual_payout=payout,
            z_score=z,
            description=description,
        )

    scenarios = [
        scenario("Guaranteed Floor", base, None, "Base yield only, no wins needed")
    ]
    if has_variance:
        unlucky = max(base, normal_quantile_value(mean, std_dev, UNLUCKY_Z))
        scenarios.append(
            scenario("Unlucky Year", unlucky, UNLUCKY_Z, "Bottom 10% of outcomes")
        )
    scenarios.append(
        scenario("Typical Year", mean, TYPICAL_Z, "Expected mathematical average")
    )
    if has_variance:
        scenarios.append(
            scenario(
                "Lucky Year",
                normal_quantile_value(mean, std_dev, LUCKY_Z),
                LUCKY_Z,
                "Top 10% of outcomes",
            )
        )
        scenarios.append(
            scenario(
                "Jackpot Year",
                normal_quantile_value(mean, std_dev, JACKPOT_Z),
                JACKPOT_Z,
                "Top 1% of outcomes",
            )
        )

    return OddsProjection(
        win_probability=p,
        regular=regular,
        big=big,
        base_yield=base_yield,
        expected_prize=expected_prize,
        variance=variance,
        std_dev=std_dev,
        has_variance=has_variance,
        scenarios=scenarios,
    )
