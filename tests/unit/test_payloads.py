"""
Unit tests for chain and relay payload parsing.
"""

import pytest

from chance_toolkit.data.payloads import (
    parse_beacon,
    parse_draw,
    parse_draws,
    parse_holder_leaves,
    parse_snapshot,
)
from chance_toolkit.shared.exceptions import (
    InputFormatError,
    LengthMismatch,
    PayloadError,
)
from chance_toolkit.shared.types import DrawStatus, DrawType

ROOT_HEX = "ab" * 32


def _draw_payload(**overrides):
    payload = {
        "id": 12,
        "draw_type": "Regular",
        "epoch": 40,
        "status": "Revealed",
        "operator_commit": "11" * 32,
        "target_drand_round": 1234567,
        "reward_amount": "2500000000000000000",
        "drand_randomness": [7] * 32,
        "operator_secret": list(b"secret"),
        "final_randomness": "22" * 32,
        "winner": "inj1winner",
        "total_weight": "1000",
        "merkle_root": ROOT_HEX,
        "created_at": "1700000000000000000",
        "revealed_at": None,
        "reveal_deadline": "1700003600000000000",
    }
    payload.update(overrides)
    return payload


class TestParseSnapshot:
    def test_distributor_form(self):
        snapshot = parse_snapshot(
            {
                "epoch": 40,
                "merkle_root": ROOT_HEX,
                "total_weight": "1000",
                "num_holders": 4,
                "submitted_at": 1700000000,
            }
        )
        assert snapshot.epoch == 40
        assert snapshot.merkle_root == bytes.fromhex(ROOT_HEX)
        assert snapshot.total_weight == 1000
        assert snapshot.submitted_at == 1700000000

    def test_hub_epoch_state_form(self):
        snapshot = parse_snapshot(
            {
                "current_epoch": 41,
                "snapshot_merkle_root": ROOT_HEX,
                "snapshot_total_weight": "5000",
                "snapshot_num_holders": 9,
            }
        )
        assert snapshot.epoch == 41
        assert snapshot.total_weight == 5000
        assert snapshot.num_holders == 9

    def test_missing_field(self):
        with pytest.raises(PayloadError, match="total_weight"):
            parse_snapshot({"epoch": 1, "merkle_root": ROOT_HEX, "num_holders": 1})

    def test_float_weight_refused(self):
        with pytest.raises(PayloadError):
            parse_snapshot(
                {
                    "epoch": 1,
                    "merkle_root": ROOT_HEX,
                    "total_weight": 1000.0,
                    "num_holders": 1,
                }
            )

    def test_short_root(self):
        with pytest.raises(LengthMismatch):
            parse_snapshot(
                {
                    "epoch": 1,
                    "merkle_root": "ab" * 31,
                    "total_weight": 1,
                    "num_holders": 1,
                }
            )


class TestParseHolderLeaves:
    ENTRIES = [
        {"address": "inj1a", "cumulative_start": "0", "cumulative_end": "100"},
        {
            "address": "inj1b",
            "cumulative_start": "100",
            "cumulative_end": "350",
            "balance": "250",
        },
    ]

    def test_bare_list(self):
        leaves = parse_holder_leaves(self.ENTRIES)
        assert [leaf.weight for leaf in leaves] == [100, 250]
        assert leaves[1].balance == 250
        assert leaves[0].balance is None

    def test_wrapped(self):
        assert parse_holder_leaves({"entries": self.ENTRIES}) == parse_holder_leaves(
            {"leaves": self.ENTRIES}
        )

    def test_not_a_list(self):
        with pytest.raises(PayloadError):
            parse_holder_leaves({"entries": "inj1a"})

    def test_empty_address(self):
        with pytest.raises(PayloadError):
            parse_holder_leaves(
                [{"address": "", "cumulative_start": 0, "cumulative_end": 1}]
            )


class TestParseDraw:
    """Tests for draw record parsing."""

    def test_revealed_draw(self):
        draw = parse_draw(_draw_payload())
        assert draw.id == 12
        assert draw.draw_type is DrawType.REGULAR
        assert draw.status is DrawStatus.REVEALED
        assert draw.target_round == 1234567
        assert draw.reward_amount == 2_500_000_000_000_000_000
        assert draw.drand_randomness == bytes([7] * 32)
        assert draw.operator_secret == b"secret"
        assert draw.merkle_root == bytes.fromhex(ROOT_HEX)
        assert draw.revealed_at is None

    def test_committed_draw(self):
        draw = parse_draw(
            _draw_payload(
                status="committed",
                drand_randomness=None,
                operator_secret=None,
                final_randomness=None,
                winner=None,
                total_weight=None,
                merkle_root=None,
            )
        )
        assert draw.status is DrawStatus.COMMITTED
        assert draw.operator_secret is None
        assert draw.merkle_root is None

    def test_target_round_alias(self):
        payload = _draw_payload()
        del payload["target_drand_round"]
        payload["target_round"] = 99
        assert parse_draw(payload).target_round == 99

    def test_missing_target_round(self):
        payload = _draw_payload()
        del payload["target_drand_round"]
        with pytest.raises(PayloadError):
            parse_draw(payload)

    def test_unknown_status(self):
        with pytest.raises(PayloadError):
            parse_draw(_draw_payload(status="cancelled"))

    def test_winner_must_be_string(self):
        with pytest.raises(PayloadError):
            parse_draw(_draw_payload(winner=42))

    def test_bad_byte_array(self):
        with pytest.raises(InputFormatError):
            parse_draw(_draw_payload(operator_secret=[1, 2, 300]))

    def test_not_an_object(self):
        with pytest.raises(PayloadError):
            parse_draw(["id", 12])

    def test_history(self):
        draws = parse_draws({"draws": [_draw_payload(id=1), _draw_payload(id=2)]})
        assert [d.id for d in draws] == [1, 2]
        assert parse_draws([]) == []


class TestParseBeacon:
    def test_relay_beacon(self):
        beacon = parse_beacon(
            {"round": 5, "randomness": "cd" * 32, "signature": "ef" * 48}
        )
        assert beacon.round == 5
        assert beacon.randomness == bytes.fromhex("cd" * 32)
        assert beacon.signature == bytes.fromhex("ef" * 48)

    def test_without_signature(self):
        assert parse_beacon({"round": 5, "randomness": "cd" * 32}).signature is None
