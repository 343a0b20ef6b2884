"""
Unit tests for the drand relay client.

Relays are simulated with httpx.MockTransport; no network access.
"""

import hashlib

import httpx
import pytest

from chance_toolkit.shared.constants import DrandConstants
from chance_toolkit.shared.endpoints import (
    Endpoint,
    EndpointConfig,
    default_endpoint_config,
)
from chance_toolkit.shared.exceptions import BeaconFetchException, PayloadError
from chance_toolkit.shared.retry import RetryConfig
from chance_toolkit.shared.services.drand_service import (
    DrandService,
    check_beacon_randomness,
)
from chance_toolkit.shared.services.http_client import build_client
from chance_toolkit.shared.types import Beacon

NO_WAIT = RetryConfig(max_attempts=2, base_delay=0.0, max_delay=0.0)
SIGNATURE = b"\x99" * 48
RANDOMNESS = hashlib.sha256(SIGNATURE).digest()

PRIMARY = Endpoint(url="https://primary.example.org", label="primary")
BACKUP = Endpoint(url="https://backup.example.org", label="backup")
CONFIG = EndpointConfig(endpoints=(PRIMARY, BACKUP), active_index=0)


def _beacon_json(round_number, randomness=RANDOMNESS):
    return {
        "round": round_number,
        "randomness": randomness.hex(),
        "signature": SIGNATURE.hex(),
    }


def _service(handler, config=CONFIG):
    client = build_client(transport=httpx.MockTransport(handler))
    return DrandService(config=config, client=client, retry_config=NO_WAIT)


def _round_from(request):
    return request.url.path.rsplit("/", 1)[-1]


class TestGetBeacon:
    """Tests for fetching a specific round."""

    def test_fetches_round(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=_beacon_json(int(_round_from(request))))

        beacon = _service(handler).get_beacon(1234)
        assert beacon == Beacon(round=1234, randomness=RANDOMNESS, signature=SIGNATURE)
        assert seen == [
            f"{PRIMARY.url}/{DrandConstants.CHAIN_HASH}/public/1234"
        ]

    def test_callable_as_beacon_source(self):
        service = _service(lambda request: httpx.Response(200, json=_beacon_json(7)))
        assert service(7).round == 7

    def test_latest(self):
        def handler(request):
            assert _round_from(request) == "latest"
            return httpx.Response(200, json=_beacon_json(999))

        assert _service(handler).get_latest().round == 999

    def test_invalid_round(self):
        with pytest.raises(PayloadError):
            _service(lambda request: httpx.Response(500)).get_beacon(0)


class TestFailover:
    """Tests for retry and relay failover."""

    def test_retries_then_fails_over(self):
        calls = {"primary": 0, "backup": 0}

        def handler(request):
            if request.url.host == "primary.example.org":
                calls["primary"] += 1
                return httpx.Response(503)
            calls["backup"] += 1
            return httpx.Response(200, json=_beacon_json(5))

        assert _service(handler).get_beacon(5).round == 5
        assert calls == {"primary": 2, "backup": 1}

    def test_transport_error_fails_over(self):
        def handler(request):
            if request.url.host == "primary.example.org":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json=_beacon_json(5))

        assert _service(handler).get_beacon(5).round == 5

    def test_wrong_round_fails_over(self):
        """A relay serving a different round is not trusted."""

        def handler(request):
            if request.url.host == "primary.example.org":
                return httpx.Response(200, json=_beacon_json(6))
            return httpx.Response(200, json=_beacon_json(5))

        assert _service(handler).get_beacon(5).round == 5

    def test_tampered_randomness_fails_over(self):
        def handler(request):
            if request.url.host == "primary.example.org":
                return httpx.Response(
                    200, json=_beacon_json(5, randomness=b"\x00" * 32)
                )
            return httpx.Response(200, json=_beacon_json(5))

        assert _service(handler).get_beacon(5).randomness == RANDOMNESS

    def test_active_relay_tried_first(self):
        hosts = []

        def handler(request):
            hosts.append(request.url.host)
            return httpx.Response(200, json=_beacon_json(5))

        config = EndpointConfig(endpoints=(PRIMARY, BACKUP), active_index=1)
        _service(handler, config=config).get_beacon(5)
        assert hosts == ["backup.example.org"]

    def test_all_relays_fail(self):
        service = _service(lambda request: httpx.Response(502))
        with pytest.raises(BeaconFetchException, match="All 2 drand relays"):
            service.get_beacon(5)

    def test_no_relays(self):
        service = _service(
            lambda request: httpx.Response(200),
            config=EndpointConfig(endpoints=()),
        )
        with pytest.raises(BeaconFetchException):
            service.get_beacon(5)

    def test_defaults_used_without_config(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json=_beacon_json(5))
        )
        service = DrandService(client=build_client(transport))
        assert service.config == default_endpoint_config()
        assert service.get_beacon(5).round == 5


class TestCheckBeaconRandomness:
    def test_matches(self):
        check_beacon_randomness(Beacon(1, RANDOMNESS, SIGNATURE))

    def test_mismatch(self):
        with pytest.raises(PayloadError):
            check_beacon_randomness(Beacon(1, b"\x00" * 32, SIGNATURE))

    def test_unsigned_skipped(self):
        check_beacon_randomness(Beacon(1, b"\x00" * 32))
