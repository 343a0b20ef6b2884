"""
Unit tests for the drand relay configuration.
"""

import json

import pytest

from chance_toolkit.shared.constants import DrandConstants
from chance_toolkit.shared.endpoints import (
    ENDPOINT_CONFIG_VERSION,
    Endpoint,
    EndpointConfig,
    add_custom_endpoint,
    default_endpoint_config,
    load_endpoint_config,
    merge_endpoint_config,
    remove_custom_endpoint,
    save_endpoint_config,
    select_endpoint,
)
from chance_toolkit.shared.exceptions import ConfigurationException

N_DEFAULTS = len(DrandConstants.RELAYS)
CUSTOM = Endpoint(url="https://relay.example.org", label="Mine", custom=True)


def _persisted(*endpoints, active_index=0, version=ENDPOINT_CONFIG_VERSION):
    return EndpointConfig(
        version=version, endpoints=tuple(endpoints), active_index=active_index
    )


class TestMerge:
    """Tests for merging persisted state onto defaults."""

    def test_nothing_persisted(self):
        assert merge_endpoint_config(None) == default_endpoint_config()

    def test_custom_appended_after_defaults(self):
        merged = merge_endpoint_config(
            _persisted(*default_endpoint_config().endpoints, CUSTOM)
        )
        assert len(merged.endpoints) == N_DEFAULTS + 1
        assert merged.endpoints[-1] == CUSTOM
        assert [e.url for e in merged.endpoints[:N_DEFAULTS]] == [
            url for url, _ in DrandConstants.RELAYS
        ]

    def test_custom_duplicating_default_dropped(self):
        duplicate = Endpoint(url=DrandConstants.RELAYS[0][0], custom=True)
        merged = merge_endpoint_config(_persisted(duplicate))
        assert len(merged.endpoints) == N_DEFAULTS

    def test_stale_defaults_replaced(self):
        """Built-in entries always come from the current release."""
        stale = Endpoint(url="https://old-relay.example.org", label="Old")
        merged = merge_endpoint_config(_persisted(stale, CUSTOM))
        assert stale not in merged.endpoints
        assert CUSTOM in merged.endpoints

    def test_active_index_clamped(self):
        merged = merge_endpoint_config(_persisted(CUSTOM, active_index=99))
        assert merged.active_index == len(merged.endpoints) - 1

    def test_newer_version_ignored(self):
        merged = merge_endpoint_config(
            _persisted(CUSTOM, version=ENDPOINT_CONFIG_VERSION + 1)
        )
        assert merged == default_endpoint_config()


class TestEditing:
    def test_add_makes_active(self):
        config = add_custom_endpoint(
            default_endpoint_config(), "https://relay.example.org/", "Mine"
        )
        assert config.active == CUSTOM
        assert config.active_index == N_DEFAULTS

    def test_add_rejects_bad_scheme(self):
        config = default_endpoint_config()
        assert add_custom_endpoint(config, "ftp://relay.example.org") is config

    def test_add_ignores_duplicate(self):
        config = add_custom_endpoint(default_endpoint_config(), CUSTOM.url)
        assert add_custom_endpoint(config, CUSTOM.url + "/") is config

    def test_remove_custom(self):
        config = add_custom_endpoint(default_endpoint_config(), CUSTOM.url)
        config = remove_custom_endpoint(config, N_DEFAULTS)
        assert len(config.endpoints) == N_DEFAULTS
        assert config.active_index == N_DEFAULTS - 1

    def test_builtin_not_removable(self):
        config = default_endpoint_config()
        assert remove_custom_endpoint(config, 0) is config

    def test_select(self):
        config = select_endpoint(default_endpoint_config(), 2)
        assert config.active_index == 2
        assert select_endpoint(config, 99) is config

    def test_failover_order_starts_with_active(self):
        config = select_endpoint(default_endpoint_config(), 2)
        order = config.failover_order()
        assert order[0] == config.endpoints[2]
        assert len(order) == N_DEFAULTS
        assert set(order) == set(config.endpoints)


class TestPersistence:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_endpoint_config(str(tmp_path / "missing.json"))
        assert config == default_endpoint_config()

    def test_save_then_load(self, tmp_path):
        path = str(tmp_path / "endpoints.json")
        config = add_custom_endpoint(default_endpoint_config(), CUSTOM.url, "Mine")
        save_endpoint_config(config, path)
        assert load_endpoint_config(path) == config

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "endpoints.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationException):
            load_endpoint_config(str(path))

    def test_entry_without_url(self, tmp_path):
        path = tmp_path / "endpoints.json"
        path.write_text(json.dumps({"endpoints": [{"label": "x"}]}))
        with pytest.raises(ConfigurationException):
            load_endpoint_config(str(path))
