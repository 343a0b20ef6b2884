"""Odds and reward projections for stakers."""

from .odds import OddsInput, OddsProjection, Scenario, project_odds, win_probability
from .rewards import RewardSplit, build_odds_input

__all__ = [
    "OddsInput",
    "OddsProjection",
    "Scenario",
    "project_odds",
    "win_probability",
    "RewardSplit",
    "build_odds_input",
]
