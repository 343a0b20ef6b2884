"""
drand relay client.

Fetches public beacons over HTTP from the configured relays, retrying each
relay on transient failures and falling over to the next one. Beacons are
checked against drand's published relation randomness = sha256(signature);
BLS signature verification stays with the on-chain oracle.
"""

import hashlib
import hmac
from typing import Optional, Union

import httpx

from chance_toolkit.data.payloads import parse_beacon
from chance_toolkit.shared.constants import DrandConstants
from chance_toolkit.shared.endpoints import (
    Endpoint,
    EndpointConfig,
    default_endpoint_config,
)
from chance_toolkit.shared.exceptions import (
    BeaconFetchException,
    BeaconRoundMismatch,
    DrawEngineException,
    PayloadError,
)
from chance_toolkit.shared.logging import get_logger
from chance_toolkit.shared.retry import HTTP_RETRY_CONFIG, RetryConfig
from chance_toolkit.shared.services.http_client import get_client
from chance_toolkit.shared.types import Beacon

_logger = get_logger(__name__)

RoundSpec = Union[int, str]


class DrandService:
    """
    Beacon source backed by public drand relays.

    Instances are callable with a round number, so they can be passed
    directly as the beacon source of DrawAuditService.
    """

    def __init__(
        self,
        config: Optional[EndpointConfig] = None,
        client: Optional[httpx.Client] = None,
        chain_hash: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.config = config or default_endpoint_config()
        self.client = client or get_client()
        self.chain_hash = chain_hash or DrandConstants.CHAIN_HASH
        self.retry_config = retry_config or HTTP_RETRY_CONFIG

    def __call__(self, round_number: int) -> Beacon:
        return self.get_beacon(round_number)

    def beacon_url(self, endpoint: Endpoint, round_spec: RoundSpec) -> str:
        return f"{endpoint.url}/{self.chain_hash}/public/{round_spec}"

    def get_beacon(self, round_number: int) -> Beacon:
        """
        Fetch the beacon for a specific round.

        Raises:
            BeaconFetchException: Every relay failed
        """
        if round_number <= 0:
            raise PayloadError(f"Invalid drand round: {round_number}")
        return self._fetch_with_failover(round_number)

    def get_latest(self) -> Beacon:
        """Fetch the most recent beacon."""
        return self._fetch_with_failover("latest")

    def _fetch_with_failover(self, round_spec: RoundSpec) -> Beacon:
        endpoints = self.config.failover_order()
        if not endpoints:
            raise BeaconFetchException("No drand relays configured")

        last_error: Optional[Exception] = None
        for endpoint in endpoints:
            try:
                return self.retry_config.run(
                    self._fetch_from,
                    endpoint,
                    round_spec,
                    operation_name=f"drand_{endpoint.label}_{round_spec}",
                )
            except (BeaconFetchException, httpx.HTTPError, DrawEngineException) as e:
                last_error = e
                _logger.warning(
                    f"drand relay {endpoint.url} failed for round "
                    f"{round_spec}: {e}"
                )

        raise BeaconFetchException(
            f"All {len(endpoints)} drand relays failed for round "
            f"{round_spec}: {last_error}"
        ) from last_error

    def _fetch_from(self, endpoint: Endpoint, round_spec: RoundSpec) -> Beacon:
        url = self.beacon_url(endpoint, round_spec)
        response = self.client.get(url)
        if response.status_code != 200:
            raise BeaconFetchException(
                f"{url} returned HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PayloadError(f"{url} returned invalid JSON") from e

        beacon = parse_beacon(data)
        if isinstance(round_spec, int) and beacon.round != round_spec:
            raise BeaconRoundMismatch(round_spec, beacon.round)
        check_beacon_randomness(beacon)

        _logger.debug(f"Fetched drand round {beacon.round} from {endpoint.url}")
        return beacon


def check_beacon_randomness(beacon: Beacon) -> None:
    """
    Check randomness = sha256(signature) when the signature is present.

    Raises:
        PayloadError: The relay served randomness that does not derive from
            the signature
    """
    if beacon.signature is None:
        return
    expected = hashlib.sha256(beacon.signature).digest()
    if not hmac.compare_digest(expected, beacon.randomness):
        raise PayloadError(
            f"Beacon {beacon.round}: randomness is not sha256(signature)"
        )
