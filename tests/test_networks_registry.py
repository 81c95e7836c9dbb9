from __future__ import annotations

import json

import pytest

from trixy_indexer.app.config import DEFAULT_NETWORKS_FILE, Settings
from trixy_indexer.app.domain.errors import ConfigurationError
from trixy_indexer.app.infrastructure.registry.networks_registry import NetworksRegistry
from trixy_indexer.app.interface.tasks.trixy.task_setup import resolve_sync_setup


@pytest.fixture
def networks_file(tmp_path):
    path = tmp_path / "networks.json"
    path.write_text(
        json.dumps(
            {
                "emulator": {
                    "access_api_url": "http://localhost:8888",
                    "contracts": [
                        {"name": "TrixyProtocol", "address": "0xF8D6E0586B0A20C7", "start_block": 10},
                        {"name": "TrixyV2", "address": "0x01", "start_block": 20, "events_contract": "TrixyEventsV2"},
                    ],
                },
                "testnet": {"access_api_url": "https://rest-testnet.onflow.org", "contracts": []},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_bundled_registry_resolves_emulator_contract():
    registry = NetworksRegistry.load(DEFAULT_NETWORKS_FILE)

    target = registry.resolve_target("emulator")

    assert target.address == "0xf8d6e0586b0a20c7"
    assert target.events_contract == "TrixyEvents"
    assert set(registry.network_names()) >= {"emulator", "testnet", "mainnet"}


def test_resolves_first_or_named_contract(networks_file):
    registry = NetworksRegistry.load(networks_file)

    first = registry.resolve_target("emulator")
    named = registry.resolve_target("emulator", "TrixyV2")

    assert (first.name, first.address, first.start_block) == ("TrixyProtocol", "0xf8d6e0586b0a20c7", 10)
    assert (named.address, named.events_contract) == ("0x0000000000000001", "TrixyEventsV2")
    assert named.network == "emulator"


@pytest.mark.parametrize(
    ("network", "contract"),
    [("mainnet", None), ("testnet", None), ("emulator", "Unknown")],
)
def test_unresolvable_targets_are_configuration_errors(networks_file, network, contract):
    registry = NetworksRegistry.load(networks_file)

    with pytest.raises(ConfigurationError):
        registry.resolve_target(network, contract)


def test_unreadable_or_invalid_files_are_configuration_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        NetworksRegistry.load(tmp_path / "missing.json")

    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        NetworksRegistry.load(bad_json)

    bad_address = tmp_path / "bad_address.json"
    bad_address.write_text(
        json.dumps({"emulator": {"access_api_url": "x", "contracts": [{"name": "T", "address": "0xzz"}]}}),
        encoding="utf-8",
    )
    with pytest.raises(ConfigurationError):
        NetworksRegistry.load(bad_address)


def test_resolve_sync_setup_builds_explicit_config(networks_file):
    settings = Settings(
        NETWORKS_FILE=str(networks_file),
        FLOW_NETWORK="emulator",
        SYNC_WINDOW_SIZE=50,
        SYNC_RETRY_DELAY_SECONDS=1,
        SYNC_MAX_RETRY_DELAY_SECONDS=8,
    )

    setup = resolve_sync_setup(settings, contract="TrixyV2")

    assert setup.access_api_url == "http://localhost:8888"
    assert setup.config.target.name == "TrixyV2"
    assert setup.config.window_size == 50
    assert (setup.config.retry_delay, setup.config.max_retry_delay) == (1.0, 8.0)


def test_access_api_url_override(networks_file):
    settings = Settings(
        NETWORKS_FILE=str(networks_file),
        FLOW_ACCESS_API_URL="http://access.internal:8070",
    )

    setup = resolve_sync_setup(settings, network="emulator")

    assert setup.access_api_url.startswith("http://access.internal:8070")
