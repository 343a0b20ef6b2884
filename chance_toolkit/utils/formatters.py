"""Shared formatting and file utilities for commands."""

import json
import time
from decimal import ROUND_DOWN, ROUND_HALF_EVEN, Decimal
from fractions import Fraction
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from rich.console import Console
from rich.table import Table

from chance_toolkit.analytics.odds import OddsProjection, Scenario
from chance_toolkit.analytics.statistics import to_decimal
from chance_toolkit.shared.constants import GlobalConstants
from chance_toolkit.shared.types import DrawAudit
from chance_toolkit.utils.codec import bytes_to_hex

# Shared console instance
console = Console()

Numeric = Union[int, str, Decimal, Fraction]

_SUFFIXES = ["", "K", "M", "B", "T"]
_SUBSCRIPT_DIGITS = str.maketrans("0123456789", "₀₁₂₃₄₅₆₇₈₉")
_TINY = Decimal("0.01")


def _as_decimal(value: Numeric) -> Decimal:
    if isinstance(value, float):
        raise TypeError("float values are not formatted; pass Decimal or Fraction")
    if isinstance(value, Fraction):
        return to_decimal(value)
    return Decimal(value)


def round_display(value: Numeric, places: int = 2) -> Decimal:
    """Quantise for display with banker's rounding."""
    return _as_decimal(value).quantize(
        Decimal(1).scaleb(-places), rounding=ROUND_HALF_EVEN
    )


def _format_small(value: Decimal, digits: int) -> str:
    """Render 0 < |value| < 0.01 as 0.0₍n₎ddd, n being the zeros after the point."""
    sign = "-" if value < 0 else ""
    abs_value = abs(value)
    # Leading zeros after the decimal point
    zero_run = -abs_value.adjusted() - 1
    significant = (abs_value.scaleb(zero_run + digits)).to_integral_value(
        rounding=ROUND_DOWN
    )
    sig = str(int(significant)).rstrip("0") or "0"
    subscript = str(zero_run).translate(_SUBSCRIPT_DIGITS)
    return f"{sign}0.0{subscript}{sig}"


def format_number(value: Numeric, extra: int = 2) -> str:
    """
    Format a number with K/M/B/T suffixes and thousands separators.

    Tiny non-zero values render with a subscript zero count, e.g.
    Decimal("0.000012") -> "0.0₄12".

    Args:
        value: Number to format (int, str, Decimal or Fraction; never float)
        extra: Maximum fraction digits (significant digits for tiny values)

    Returns:
        Formatted string like "1.25M"
    """
    number = _as_decimal(value)
    if number != 0 and abs(number) < _TINY:
        return _format_small(number, extra)

    sign = "-" if number < 0 else ""
    abs_value = abs(number)
    i = 0
    while abs_value >= 1000 and i < len(_SUFFIXES) - 1:
        abs_value /= 1000
        i += 1

    rounded = round_display(abs_value, extra)
    text = f"{rounded:,.{extra}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{sign}{text}{_SUFFIXES[i]}"


def format_win_probability(p: Numeric) -> str:
    """Per-draw win probability as a percentage, precision by magnitude."""
    pct = _as_decimal(p) * 100
    if pct == 0:
        return "0%"
    if pct < Decimal("0.01"):
        return "<0.01%"
    if pct >= 10:
        places = 2
    elif pct >= 1:
        places = 1
    elif pct >= Decimal("0.1"):
        places = 2
    else:
        places = 3
    return f"{round_display(pct, places)}%"


def format_apr(apr: Numeric) -> str:
    return f"{round_display(apr, 2)}%"


def to_human_amount(raw: Numeric, decimals: int = GlobalConstants.INJ_DECIMALS) -> Decimal:
    """Raw on-chain integer amount to human units, exactly."""
    return Decimal(int(raw)).scaleb(-decimals)


def format_inj(
    raw: Numeric, extra: int = 2, decimals: int = GlobalConstants.INJ_DECIMALS
) -> str:
    """Format a raw 18-decimal amount, e.g. "1500000000000000000" -> "1.5 INJ"."""
    return f"{format_number(to_human_amount(raw, decimals), extra)} INJ"


def format_address(address: Optional[str], length: int = 14) -> str:
    """
    Shorten an address to its prefix and last characters.

    Args:
        address: Bech32 (inj1...) or hex address
        length: Addresses at or below this length are returned unchanged

    Returns:
        Formatted address like "inj1qy...x7k2"
    """
    if not address:
        return "N/A"
    if len(address) <= length:
        return address
    return f"{address[:6]}...{address[-4:]}"


def truncate_hex(value: Union[bytes, str, None], chars: int = 10) -> str:
    if value is None:
        return "N/A"
    text = bytes_to_hex(value) if isinstance(value, (bytes, bytearray)) else value
    if len(text) <= chars * 2:
        return text
    return f"{text[:chars]}...{text[-chars:]}"


def format_time_ago(timestamp_ns: int, now: Optional[float] = None) -> str:
    """Relative time for a chain timestamp given in nanoseconds."""
    now = time.time() if now is None else now
    seconds = int(now - timestamp_ns / 1_000_000_000)
    if seconds < 0:
        return "in the future"
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < GlobalConstants.DAY:
        return f"{seconds // 3600}h ago"
    return f"{seconds // GlobalConstants.DAY}d ago"


def load_json(file_path: str) -> Any:
    """Load and parse a JSON file"""
    with open(file_path, "r") as file:
        return json.load(file)


def save_json_output(
    data: Dict[str, Any],
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """
    Save data to a JSON file with automatic directory creation.

    Args:
        data: Data to save
        filename: Output filename (can include subdirectories)
        output_dir: Base output directory (default: 'output')
        print_path: Whether to print the saved file path

    Returns:
        Full path to saved file
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    filepath = output_path / filename
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)

    if print_path:
        console.print(f"[cyan]Data saved to:[/cyan] {filepath}")

    return str(filepath)


def scenarios_to_dict(scenarios: Sequence[Scenario]) -> List[Dict[str, Any]]:
    """Scenarios as JSON-safe dicts; Decimals become strings."""
    return [
        {
            "label": s.label,
            "apr": str(round_display(s.apr, 4)),
            "annual_payout": str(round_display(s.annual_payout, 6)),
            "z_score": None if s.z_score is None else str(s.z_score),
            "description": s.description,
        }
        for s in scenarios
    ]


def projection_to_dict(projection: OddsProjection) -> Dict[str, Any]:
    return {
        "win_probability": str(to_decimal(projection.win_probability)),
        "pool_share_pct": str(round_display(projection.pool_share_pct, 6)),
        "expected_wins_per_year": str(
            round_display(to_decimal(projection.expected_wins), 6)
        ),
        "regular_prize_per_draw": str(
            round_display(to_decimal(projection.regular.prize_per_draw), 6)
        ),
        "big_prize_per_draw": str(
            round_display(to_decimal(projection.big.prize_per_draw), 6)
        ),
        "expected_prize": str(
            round_display(to_decimal(projection.expected_prize), 6)
        ),
        "std_dev": str(round_display(projection.std_dev, 6)),
        "has_variance": projection.has_variance,
        "scenarios": scenarios_to_dict(projection.scenarios),
    }


def audit_to_dict(audit: DrawAudit) -> Dict[str, Any]:
    return {
        "draw_id": audit.draw_id,
        "verified": audit.verified,
        "winner": audit.winner,
        "reported_winner": audit.reported_winner,
        "ticket": str(audit.ticket),
        "total_weight": str(audit.total_weight),
        "final_randomness": bytes_to_hex(audit.final_randomness),
        "checks": {
            "winner_included": audit.winner_included,
            "randomness_matches": audit.randomness_matches,
            "weight_matches": audit.weight_matches,
            "beacon_matches": audit.beacon_matches,
            "holders_match": audit.holders_match,
        },
    }


def create_scenarios_table(scenarios: Sequence[Scenario], unit: str = "INJ") -> Table:
    """
    Create a Rich table of the scenario ladder.

    Returns:
        Configured Rich Table, one row per scenario
    """
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Scenario", width=16)
    table.add_column("APR", width=10, justify="right")
    table.add_column("Payout", width=14, justify="right")
    table.add_column("Notes", width=32)

    for s in scenarios:
        table.add_row(
            s.label,
            format_apr(s.apr),
            f"{format_number(s.annual_payout, 2)} {unit}",
            f"[dim]{s.description}[/dim]",
        )
    return table
