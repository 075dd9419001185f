"""
Client and monitor configuration.

``ClientConfig.from_dict`` validates plain mappings (e.g. loaded from a
JSON/TOML file by the caller) against CONFIG_SCHEMA before building the
frozen config object. Direct construction validates the same rules in
``__post_init__``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

import jsonschema  # type: ignore[import-untyped]

from mochimo_construction.models import DEFAULT_NETWORK, NetworkIdentifier

DEFAULT_TIMEOUT_S = 30.0

# Mempool monitor defaults (milliseconds).
DEFAULT_MONITOR_TIMEOUT_MS = 60_000
DEFAULT_MONITOR_INTERVAL_MS = 1_000

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["base_url"],
    "additionalProperties": False,
    "properties": {
        "base_url": {
            "type": "string",
            "minLength": 1,
            "description": "Base URL of the Rosetta node (e.g. http://host:8080)",
        },
        "timeout_s": {
            "type": "number",
            "exclusiveMinimum": 0,
            "default": DEFAULT_TIMEOUT_S,
            "description": "Per-request timeout in seconds",
        },
        "headers": {
            "type": "object",
            "additionalProperties": {"type": "string"},
            "description": "Additional HTTP headers to include in requests",
        },
        "network": {
            "type": "object",
            "required": ["blockchain", "network"],
            "additionalProperties": False,
            "properties": {
                "blockchain": {"type": "string", "minLength": 1},
                "network": {"type": "string", "minLength": 1},
            },
        },
        "monitor": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "timeout_ms": {"type": "integer", "exclusiveMinimum": 0},
                "interval_ms": {"type": "integer", "exclusiveMinimum": 0},
            },
        },
    },
}


@dataclass(frozen=True)
class MonitorPolicy:
    """Mempool polling policy. Both values in milliseconds, both positive."""

    timeout_ms: int = DEFAULT_MONITOR_TIMEOUT_MS
    interval_ms: int = DEFAULT_MONITOR_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got: {self.timeout_ms}")
        if self.interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got: {self.interval_ms}")


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for a Rosetta node.

    Attributes:
        base_url: Node base URL. A trailing slash is stripped.
        timeout_s: Per-request timeout in seconds.
        headers: Extra headers sent with every request.
        network: Network identifier included in every request body.
        monitor: Default mempool polling policy.
    """

    base_url: str
    timeout_s: float = DEFAULT_TIMEOUT_S
    headers: Dict[str, str] = field(default_factory=dict)
    network: NetworkIdentifier = DEFAULT_NETWORK
    monitor: MonitorPolicy = field(default_factory=MonitorPolicy)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must be non-empty")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got: {self.timeout_s}")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ClientConfig:
        """Build a config from a plain mapping.

        Raises:
            jsonschema.ValidationError: If the mapping doesn't match CONFIG_SCHEMA.
        """
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)

        network = DEFAULT_NETWORK
        if "network" in data:
            network = NetworkIdentifier(
                blockchain=data["network"]["blockchain"],
                network=data["network"]["network"],
            )
        return cls(
            base_url=data["base_url"],
            timeout_s=float(data.get("timeout_s", DEFAULT_TIMEOUT_S)),
            headers=dict(data.get("headers", {})),
            network=network,
            monitor=MonitorPolicy(**data.get("monitor", {})),
        )
