#!/usr/bin/env python3
"""
Unified CLI for the Chance draw toolkit.

Examples:
  - Audit a revealed draw
    chance audit-draw --draw draw_12.json --snapshot snapshot_40.json [--beacon beacon.json]
    chance audit-history --draws draws.json --snapshot-dir snapshots/

  - Check a holder's inclusion proof
    chance verify-proof --root 0x... --address inj1... --start 0 --end 100 --proof 0x.. 0x..

  - Project prize odds
    chance odds --stake 1000 --pool 250000 --apr 15

  - drand relays
    chance fetch-beacon --round 1234567
    chance endpoints --add https://my-relay.example.org
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from rich.panel import Panel
from rich.table import Table

from chance_toolkit.analytics.odds import project_odds
from chance_toolkit.analytics.rewards import RewardSplit, build_odds_input
from chance_toolkit.data.payloads import (
    parse_beacon,
    parse_draw,
    parse_draws,
    parse_holder_leaves,
    parse_snapshot,
)
from chance_toolkit.proofs.manager import DrawAuditService
from chance_toolkit.proofs.merkle import verify_inclusion
from chance_toolkit.proofs.winner import audit_draw
from chance_toolkit.shared.endpoints import (
    add_custom_endpoint,
    load_endpoint_config,
    remove_custom_endpoint,
    save_endpoint_config,
    select_endpoint,
)
from chance_toolkit.shared.exceptions import DrawEngineException
from chance_toolkit.shared.services.drand_service import DrandService
from chance_toolkit.shared.services.http_client import close_client
from chance_toolkit.shared.types import HolderLeaf, Snapshot
from chance_toolkit.utils.codec import bytes_to_hex, hex_to_bytes, parse_uint
from chance_toolkit.utils.formatters import (
    audit_to_dict,
    console,
    create_scenarios_table,
    format_address,
    format_inj,
    format_number,
    format_time_ago,
    format_win_probability,
    load_json,
    projection_to_dict,
    save_json_output,
    truncate_hex,
)

# Staking hub defaults (testnet deployment)
DEFAULT_BASE_YIELD_BPS = 500
DEFAULT_REGULAR_POOL_BPS = 7000
DEFAULT_BIG_POOL_BPS = 2000
DEFAULT_PROTOCOL_FEE_BPS = 500
DEFAULT_EPOCH_SECONDS = 86400
DEFAULT_MIN_EPOCHS_REGULAR = 1
DEFAULT_MIN_EPOCHS_BIG = 7


def load_snapshot_file(path: str) -> Tuple[Snapshot, List[HolderLeaf]]:
    """
    Load a snapshot and its holder list from one JSON file.

    The file holds the snapshot fields (top level or under "snapshot") and
    the holder list under "entries".
    """
    data = load_json(path)
    snapshot = parse_snapshot(data.get("snapshot", data))
    leaves = parse_holder_leaves(data)
    return snapshot, leaves


def _print_audit(audit) -> None:
    status = (
        "[bold green]VERIFIED[/bold green]"
        if audit.verified
        else "[bold red]MISMATCH[/bold red]"
    )
    console.print(Panel(f"Draw #{audit.draw_id}: {status}", style="bold magenta"))

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="cyan", width=20)
    table.add_column("Value")
    table.add_row("Winner", format_address(audit.winner))
    table.add_row("Reported winner", format_address(audit.reported_winner))
    table.add_row("Ticket", f"{audit.ticket} / {audit.total_weight}")
    table.add_row("Final randomness", truncate_hex(audit.final_randomness))
    for label, ok in (
        ("Winner in tree", audit.winner_included),
        ("Randomness", audit.randomness_matches),
        ("Total weight", audit.weight_matches),
        ("drand beacon", audit.beacon_matches),
        ("Holder count", audit.holders_match),
    ):
        table.add_row(label, "[green]ok[/green]" if ok else "[red]mismatch[/red]")
    console.print(table)


def cmd_audit_draw(args: argparse.Namespace) -> None:
    draw = parse_draw(load_json(args.draw))
    snapshot, leaves = load_snapshot_file(args.snapshot)

    if args.beacon:
        beacon = parse_beacon(load_json(args.beacon))
    else:
        service = DrandService(config=load_endpoint_config(args.endpoints))
        beacon = service.get_beacon(draw.target_round)

    audit = audit_draw(draw, beacon, leaves, snapshot=snapshot)
    _print_audit(audit)

    if args.output:
        save_json_output(audit_to_dict(audit), args.output)

    if not audit.verified:
        sys.exit(1)


def cmd_audit_history(args: argparse.Namespace) -> None:
    draws = parse_draws(load_json(args.draws))
    snapshot_dir = Path(args.snapshot_dir)

    def snapshot_source(epoch: int) -> Tuple[Snapshot, List[HolderLeaf]]:
        return load_snapshot_file(str(snapshot_dir / f"snapshot_{epoch}.json"))

    service = DrawAuditService(
        beacon_source=DrandService(config=load_endpoint_config(args.endpoints)),
        snapshot_source=snapshot_source,
    )
    results, summary = service.audit_history(draws)

    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Draw", width=6, justify="right")
    table.add_column("Type", width=8)
    table.add_column("Prize", width=14, justify="right")
    table.add_column("Winner", width=16)
    table.add_column("Revealed", width=10)
    table.add_column("Result", width=40)
    for draw, result in zip(draws, results):
        if result.success and result.data.verified:
            outcome = "[green]verified[/green]"
        elif result.success:
            outcome = "[red]mismatch[/red]"
        else:
            outcome = f"[yellow]{'; '.join(result.get_error_messages())}[/yellow]"
        table.add_row(
            str(draw.id),
            draw.draw_type.value,
            format_inj(draw.reward_amount),
            format_address(draw.winner),
            format_time_ago(draw.revealed_at) if draw.revealed_at else "-",
            outcome,
        )
    console.print(table)

    summary_dict = summary.to_dict()
    console.print(
        f"Verified {summary_dict['success_rate']} audited draws "
        f"({summary.draws_pending} pending, {summary.draws_expired} expired)"
    )

    if args.output:
        save_json_output(
            {
                "summary": summary_dict,
                "audits": [
                    audit_to_dict(r.data) for r in results if r.success
                ],
            },
            args.output,
        )

    if summary.has_critical_errors() or summary.draws_mismatched:
        sys.exit(1)


def cmd_verify_proof(args: argparse.Namespace) -> None:
    leaf = HolderLeaf(
        address=args.address,
        cumulative_start=parse_uint(args.start, "start"),
        cumulative_end=parse_uint(args.end, "end"),
    )
    root = hex_to_bytes(args.root)
    proof = [hex_to_bytes(h) for h in args.proof or []]

    if verify_inclusion(root, proof, leaf):
        console.print(
            f"[green]Valid:[/green] {leaf.address} holds "
            f"[{leaf.cumulative_start}, {leaf.cumulative_end}) under root "
            f"{truncate_hex(root)}"
        )
        return

    console.print(
        f"[red]Invalid:[/red] proof does not connect {leaf.address} to "
        f"{bytes_to_hex(root)}"
    )
    sys.exit(1)


def cmd_odds(args: argparse.Namespace) -> None:
    split = RewardSplit(
        base_yield_bps=args.base_bps,
        regular_pool_bps=args.regular_bps,
        big_pool_bps=args.big_bps,
        protocol_fee_bps=args.fee_bps,
    )
    odds_input = build_odds_input(
        stake=args.stake,
        pool_total=args.pool,
        apr_pct=args.apr,
        split=split,
        epoch_duration_seconds=args.epoch_seconds,
        min_epochs_regular=args.min_epochs_regular,
        min_epochs_big=args.min_epochs_big,
        stake_in_pool=args.stake_in_pool,
    )
    projection = project_odds(odds_input)

    console.print(Panel("Prize Odds", style="bold magenta"))
    console.print(
        f"Pool share: {format_number(projection.pool_share_pct, 3)}% | "
        f"Win chance per draw: {format_win_probability(projection.win_probability)}"
    )
    console.print(
        f"Regular prize ~{format_number(projection.regular.prize_per_draw, 1)} INJ, "
        f"big prize ~{format_number(projection.big.prize_per_draw, 1)} INJ, "
        f"expected wins/year {format_number(projection.expected_wins, 2)}"
    )
    console.print(create_scenarios_table(projection.scenarios))

    if args.output:
        save_json_output(projection_to_dict(projection), args.output)


def cmd_fetch_beacon(args: argparse.Namespace) -> None:
    service = DrandService(config=load_endpoint_config(args.endpoints))
    beacon = service.get_latest() if args.round is None else service.get_beacon(args.round)

    console.print(f"[cyan]Round:[/cyan] {beacon.round}")
    console.print(f"[cyan]Randomness:[/cyan] {bytes_to_hex(beacon.randomness)}")

    if args.output:
        save_json_output(
            {
                "round": beacon.round,
                "randomness": bytes_to_hex(beacon.randomness),
                "signature": (
                    bytes_to_hex(beacon.signature) if beacon.signature else None
                ),
            },
            args.output,
        )


def cmd_endpoints(args: argparse.Namespace) -> None:
    config = load_endpoint_config(args.endpoints)
    updated = config
    if args.add:
        updated = add_custom_endpoint(updated, args.add, label=args.label)
    if args.remove is not None:
        updated = remove_custom_endpoint(updated, args.remove)
    if args.select is not None:
        updated = select_endpoint(updated, args.select)

    if updated != config:
        path = save_endpoint_config(updated, args.endpoints)
        console.print(f"[cyan]Endpoint config saved to:[/cyan] {path}")

    for i, endpoint in enumerate(updated.endpoints):
        marker = "[green]*[/green]" if i == updated.active_index else " "
        kind = "custom" if endpoint.custom else "default"
        console.print(f"{marker} {i}: {endpoint.label} ({kind}) {endpoint.url}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chance", description="Chance draw toolkit CLI"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_ad = sub.add_parser("audit-draw", help="Replay and verify one draw")
    p_ad.add_argument("--draw", required=True, help="Draw JSON file")
    p_ad.add_argument(
        "--snapshot", required=True, help="Snapshot JSON with holder entries"
    )
    p_ad.add_argument(
        "--beacon", help="Beacon JSON file (fetched from drand if omitted)"
    )
    p_ad.add_argument("--endpoints", help="Endpoint config file")
    p_ad.add_argument("--output", help="Output filename under output/")
    p_ad.set_defaults(func=cmd_audit_draw)

    p_ah = sub.add_parser("audit-history", help="Audit a list of draws")
    p_ah.add_argument("--draws", required=True, help="Draw history JSON file")
    p_ah.add_argument(
        "--snapshot-dir",
        required=True,
        help="Directory of snapshot_<epoch>.json files",
    )
    p_ah.add_argument("--endpoints", help="Endpoint config file")
    p_ah.add_argument("--output", help="Output filename under output/")
    p_ah.set_defaults(func=cmd_audit_history)

    p_vp = sub.add_parser("verify-proof", help="Verify a holder inclusion proof")
    p_vp.add_argument("--root", required=True, help="Merkle root (hex)")
    p_vp.add_argument("--address", required=True, help="Holder address")
    p_vp.add_argument("--start", required=True, help="Cumulative start")
    p_vp.add_argument("--end", required=True, help="Cumulative end")
    p_vp.add_argument("--proof", nargs="*", help="Sibling hashes, leaf to root")
    p_vp.set_defaults(func=cmd_verify_proof)

    p_od = sub.add_parser("odds", help="Project annual prize odds")
    p_od.add_argument("--stake", required=True, help="Stake in INJ")
    p_od.add_argument("--pool", required=True, help="Total pool backing in INJ")
    p_od.add_argument("--apr", required=True, help="Staking APR in percent")
    p_od.add_argument("--base-bps", type=int, default=DEFAULT_BASE_YIELD_BPS)
    p_od.add_argument(
        "--regular-bps", type=int, default=DEFAULT_REGULAR_POOL_BPS
    )
    p_od.add_argument("--big-bps", type=int, default=DEFAULT_BIG_POOL_BPS)
    p_od.add_argument("--fee-bps", type=int, default=DEFAULT_PROTOCOL_FEE_BPS)
    p_od.add_argument(
        "--epoch-seconds", type=int, default=DEFAULT_EPOCH_SECONDS
    )
    p_od.add_argument(
        "--min-epochs-regular", type=int, default=DEFAULT_MIN_EPOCHS_REGULAR
    )
    p_od.add_argument(
        "--min-epochs-big", type=int, default=DEFAULT_MIN_EPOCHS_BIG
    )
    p_od.add_argument(
        "--stake-in-pool",
        action="store_true",
        help="The pool total already includes the stake",
    )
    p_od.add_argument("--output", help="Output filename under output/")
    p_od.set_defaults(func=cmd_odds)

    p_fb = sub.add_parser("fetch-beacon", help="Fetch a drand beacon")
    p_fb.add_argument("--round", type=int, help="Round (latest if omitted)")
    p_fb.add_argument("--endpoints", help="Endpoint config file")
    p_fb.add_argument("--output", help="Output filename under output/")
    p_fb.set_defaults(func=cmd_fetch_beacon)

    p_ep = sub.add_parser("endpoints", help="Show or edit drand relays")
    p_ep.add_argument("--endpoints", help="Endpoint config file")
    p_ep.add_argument("--add", help="Add a custom relay url")
    p_ep.add_argument("--label", default="Custom", help="Label for --add")
    p_ep.add_argument("--remove", type=int, help="Remove custom relay by index")
    p_ep.add_argument("--select", type=int, help="Make relay active by index")
    p_ep.set_defaults(func=cmd_endpoints)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except DrawEngineException as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        sys.exit(2)
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise
    finally:
        close_client()


if __name__ == "__main__":
    main()
