from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from trixy_indexer.app.domain.errors import ConfigurationError
from trixy_indexer.app.domain.models import ContractTarget

logger = logging.getLogger(__name__)

_FLOW_ADDRESS_RE: Final = re.compile(r"^0x[0-9a-f]{16}$")


class ContractEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    address: str
    start_block: int = Field(0, ge=0)
    events_contract: str = Field("TrixyEvents", min_length=1)

    @field_validator("address")
    @classmethod
    def normalize_address(cls, value: str) -> str:
        normalized = "0x" + value.strip().lower().removeprefix("0x").rjust(16, "0")
        if not _FLOW_ADDRESS_RE.match(normalized):
            raise ValueError(f"Not a Flow address: {value!r}")
        return normalized


class NetworkEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    access_api_url: str = Field(min_length=1)
    contracts: list[ContractEntry] = Field(default_factory=list)


_REGISTRY_ADAPTER: Final = TypeAdapter(dict[str, NetworkEntry])


class NetworksRegistry:
    """
    Network -> (access API URL, contracts) mapping loaded from a JSON file:

        {"emulator": {"access_api_url": "http://localhost:8888",
                      "contracts": [{"name": "...", "address": "0x...", "start_block": 0}]}}
    """

    def __init__(self, networks: dict[str, NetworkEntry]) -> None:
        self._networks = networks

    @classmethod
    def load(cls, path: Path) -> NetworksRegistry:
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(f"Cannot read networks file {path}: {exc}") from exc
        except ValueError as exc:
            raise ConfigurationError(f"Networks file {path} is not valid JSON: {exc}") from exc

        try:
            networks = _REGISTRY_ADAPTER.validate_python(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid networks file {path}: {exc}") from exc

        logger.debug("Loaded networks registry: path=%s, networks=%s", path, sorted(networks))
        return cls(networks)

    def network_names(self) -> list[str]:
        return list(self._networks)

    def network(self, name: str) -> NetworkEntry:
        try:
            return self._networks[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown network {name!r}; configured: {', '.join(self._networks) or 'none'}"
            )

    def contract_names(self, network: str) -> list[str]:
        return [contract.name for contract in self.network(network).contracts]

    def access_api_url(self, network: str) -> str:
        return self.network(network).access_api_url

    def resolve_target(self, network: str, contract_name: str | None = None) -> ContractTarget:
        """
        Resolve the contract to index on `network`.

        Without a name the first configured contract is used.
        """
        contracts = self.network(network).contracts
        if not contracts:
            raise ConfigurationError(f"No contracts configured for network {network!r}")

        if contract_name is None:
            entry = contracts[0]
        else:
            matches = [contract for contract in contracts if contract.name == contract_name]
            if not matches:
                raise ConfigurationError(
                    f"Contract {contract_name!r} is not configured for network {network!r}"
                )
            entry = matches[0]

        return ContractTarget(
            name=entry.name,
            address=entry.address,
            network=network,
            start_block=entry.start_block,
            events_contract=entry.events_contract,
        )
