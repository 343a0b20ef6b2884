"""
Versioned drand relay configuration with merge-on-load.

The built-in relays are always present. A persisted file can add custom
relays and remember which one is active; on load the persisted state is
merged onto the current defaults, so relays added in a later release appear
without discarding the user's own entries.
"""

import json
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from chance_toolkit.shared.constants import DrandConstants, GlobalConstants
from chance_toolkit.shared.exceptions import ConfigurationException
from chance_toolkit.shared.logging import get_logger

_logger = get_logger(__name__)

ENDPOINT_CONFIG_VERSION = 1

_URL_PATTERN = re.compile(r"^https?://.+", re.IGNORECASE)


@dataclass(frozen=True)
class Endpoint:
    url: str
    label: str = "Custom"
    custom: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "label": self.label, "custom": self.custom}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Endpoint":
        if not isinstance(data, dict):
            raise ConfigurationException(f"Endpoint entry must be an object: {data!r}")
        url = data.get("url")
        if not isinstance(url, str) or not url:
            raise ConfigurationException(f"Endpoint entry has no url: {data!r}")
        return cls(
            url=url,
            label=str(data.get("label") or "Custom"),
            custom=bool(data.get("custom", False)),
        )


@dataclass(frozen=True)
class EndpointConfig:
    version: int = ENDPOINT_CONFIG_VERSION
    endpoints: Tuple[Endpoint, ...] = field(default_factory=tuple)
    active_index: int = 0

    @property
    def active(self) -> Optional[Endpoint]:
        if 0 <= self.active_index < len(self.endpoints):
            return self.endpoints[self.active_index]
        return None

    def failover_order(self) -> List[Endpoint]:
        """Active endpoint first, then the rest in configured order."""
        active = self.active
        if active is None:
            return list(self.endpoints)
        return [active] + [e for e in self.endpoints if e is not active]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "endpoints": [e.to_dict() for e in self.endpoints],
            "active_index": self.active_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndpointConfig":
        if not isinstance(data, dict):
            raise ConfigurationException("Endpoint config must be an object")
        entries = data.get("endpoints") or []
        if not isinstance(entries, list):
            raise ConfigurationException("'endpoints' must be a list")
        try:
            active_index = int(data.get("active_index", 0))
            version = int(data.get("version", ENDPOINT_CONFIG_VERSION))
        except (TypeError, ValueError) as e:
            raise ConfigurationException(
                f"Invalid endpoint config field: {e}"
            ) from e
        return cls(
            version=version,
            endpoints=tuple(Endpoint.from_dict(e) for e in entries),
            active_index=active_index,
        )


def default_endpoints() -> Tuple[Endpoint, ...]:
    return tuple(
        Endpoint(url=url, label=label, custom=False)
        for url, label in DrandConstants.RELAYS
    )


def default_endpoint_config() -> EndpointConfig:
    return EndpointConfig(endpoints=default_endpoints(), active_index=0)


def normalize_url(url: str) -> str:
    return url.strip().rstrip("/")


def merge_endpoint_config(
    persisted: Optional[EndpointConfig],
    defaults: Optional[EndpointConfig] = None,
) -> EndpointConfig:
    """
    Merge persisted state onto the defaults.

    Defaults always come first. Persisted custom entries are appended unless
    they duplicate a default url. The active index is clamped to the merged
    list. A persisted config from an unknown (newer) version is ignored.
    """
    defaults = defaults or default_endpoint_config()
    if persisted is None or not persisted.endpoints:
        return defaults
    if persisted.version > ENDPOINT_CONFIG_VERSION:
        _logger.warning(
            f"Ignoring endpoint config version {persisted.version} "
            f"(supported: {ENDPOINT_CONFIG_VERSION})"
        )
        return defaults

    merged = list(defaults.endpoints)
    default_urls = {e.url for e in defaults.endpoints}
    for endpoint in persisted.endpoints:
        if endpoint.custom and endpoint.url not in default_urls:
            merged.append(endpoint)

    active_index = max(0, min(persisted.active_index, len(merged) - 1))
    return EndpointConfig(
        version=ENDPOINT_CONFIG_VERSION,
        endpoints=tuple(merged),
        active_index=active_index,
    )


def select_endpoint(config: EndpointConfig, index: int) -> EndpointConfig:
    """Make an endpoint active; out-of-range indices leave the config unchanged."""
    if 0 <= index < len(config.endpoints):
        return replace(config, active_index=index)
    return config


def add_custom_endpoint(
    config: EndpointConfig, url: str, label: str = "Custom"
) -> EndpointConfig:
    """
    Append a custom endpoint and make it active.

    Trailing slashes are trimmed. Non-http(s) urls and duplicates are
    ignored (the config is returned unchanged).
    """
    url = normalize_url(url)
    if not _URL_PATTERN.match(url):
        _logger.warning(f"Ignoring endpoint with unsupported scheme: {url}")
        return config
    if any(e.url == url for e in config.endpoints):
        return config

    endpoints = config.endpoints + (Endpoint(url=url, label=label, custom=True),)
    return replace(
        config, endpoints=endpoints, active_index=len(endpoints) - 1
    )


def remove_custom_endpoint(config: EndpointConfig, index: int) -> EndpointConfig:
    """
    Remove a custom endpoint. Built-in endpoints cannot be removed.

    The active index follows the endpoint it pointed at, or is clamped when
    the active endpoint itself was removed from the end.
    """
    if not (0 <= index < len(config.endpoints)):
        return config
    if not config.endpoints[index].custom:
        return config

    endpoints = config.endpoints[:index] + config.endpoints[index + 1 :]
    active_index = config.active_index
    if active_index >= len(endpoints):
        active_index = len(endpoints) - 1
    elif active_index > index:
        active_index -= 1
    return replace(config, endpoints=endpoints, active_index=active_index)


def load_endpoint_config(path: Optional[str] = None) -> EndpointConfig:
    """
    Load the persisted config and merge it onto the defaults.

    A missing file yields the defaults.

    Raises:
        ConfigurationException: The file exists but is not a valid config
    """
    file_path = Path(path or GlobalConstants.ENDPOINTS_FILE)
    if not file_path.exists():
        return default_endpoint_config()

    try:
        with open(file_path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationException(
            f"Cannot read endpoint config {file_path}: {e}"
        ) from e

    return merge_endpoint_config(EndpointConfig.from_dict(data))


def save_endpoint_config(config: EndpointConfig, path: Optional[str] = None) -> str:
    file_path = Path(path or GlobalConstants.ENDPOINTS_FILE)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
    return str(file_path)
