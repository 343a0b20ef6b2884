"""
Staking reward split and draw cadence.

Annual staking rewards are divided by basis points between base yield
(exchange-rate appreciation), the regular draw pool, the big draw pool and
the protocol fee. Draw cadence follows from the epoch length and the
minimum number of epochs between draws of each type.
"""

from dataclasses import dataclass
from fractions import Fraction

from chance_toolkit.analytics.odds import Number, OddsInput, to_fraction
from chance_toolkit.analytics.statistics import safe_divide
from chance_toolkit.shared.constants import GlobalConstants


@dataclass(frozen=True)
class RewardSplit:
    """Basis-point split of staking rewards, as configured on the staking hub."""

    base_yield_bps: int
    regular_pool_bps: int
    big_pool_bps: int
    protocol_fee_bps: int

    @property
    def total_bps(self) -> int:
        return (
            self.base_yield_bps
            + self.regular_pool_bps
            + self.big_pool_bps
            + self.protocol_fee_bps
        )

    def share(self, bps: int) -> Fraction:
        """Fraction of rewards a bps allocation receives (0 if nothing is split)."""
        return safe_divide(Fraction(bps), Fraction(self.total_bps))


@dataclass(frozen=True)
class RewardAllocation:
    base_yield: Fraction
    regular_pool: Fraction
    big_pool: Fraction
    protocol_fee: Fraction


def allocate(annual_rewards: Number, split: RewardSplit) -> RewardAllocation:
    """Divide an annual reward amount across the four allocations."""
    rewards = to_fraction(annual_rewards, "annual_rewards")
    return RewardAllocation(
        base_yield=rewards * split.share(split.base_yield_bps),
        regular_pool=rewards * split.share(split.regular_pool_bps),
        big_pool=rewards * split.share(split.big_pool_bps),
        protocol_fee=rewards * split.share(split.protocol_fee_bps),
    )


def epochs_per_year(epoch_duration_seconds: int) -> Fraction:
    """Epochs in a 365-day year; one per day when the duration is unset."""
    if epoch_duration_seconds <= 0:
        return Fraction(GlobalConstants.DAYS_PER_YEAR)
    return Fraction(GlobalConstants.SECONDS_PER_YEAR, epoch_duration_seconds)


def draws_per_year(epoch_duration_seconds: int, min_epochs: int) -> Fraction:
    return epochs_per_year(epoch_duration_seconds) / max(min_epochs, 1)


def build_odds_input(
    stake: Number,
    pool_total: Number,
    apr_pct: Number,
    split: RewardSplit,
    epoch_duration_seconds: int,
    min_epochs_regular: int,
    min_epochs_big: int,
    stake_in_pool: bool = False,
) -> OddsInput:
    """
    Derive projection inputs from staking parameters.

    Prize sizes are computed on the pool including the stake; pass
    stake_in_pool=True when the stake is already part of pool_total (a
    connected wallet's position) so it is not counted twice.

    Args:
        stake: Staker's position (human units)
        pool_total: Total backing of the pool (human units)
        apr_pct: Network staking APR in percent
        split: Reward split
        epoch_duration_seconds: Epoch length
        min_epochs_regular: Epochs between regular draws
        min_epochs_big: Epochs between big draws
        stake_in_pool: Whether pool_total already includes stake

    Returns:
        OddsInput ready for project_odds
    """
    stake_value = to_fraction(stake, "stake")
    pool = to_fraction(pool_total, "pool_total")
    if not stake_in_pool:
        pool += stake_value
    apr = to_fraction(apr_pct, "apr_pct") / 100

    pool_allocation = allocate(pool * apr, split)
    stake_allocation = allocate(stake_value * apr, split)

    return OddsInput(
        stake_weight=stake_value,
        pool_total_weight=pool,
        regular_pool_annual_budget=pool_allocation.regular_pool,
        big_pool_annual_budget=pool_allocation.big_pool,
        regular_draws_per_year=draws_per_year(
            epoch_duration_seconds, min_epochs_regular
        ),
        big_draws_per_year=draws_per_year(
            epoch_duration_seconds, min_epochs_big
        ),
        base_yield=stake_allocation.base_yield,
        stake_amount=stake_value,
    )
