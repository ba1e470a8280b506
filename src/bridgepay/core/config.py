"""
Configuration management for BridgePay.

Handles loading configuration from environment variables and validation.
Configurations are immutable; updates produce a new instance so a payment
attempt that captured the old value keeps a consistent view.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields, replace
from typing import Any

from bridgepay.core.types import BridgeProtocol, Network

EVM_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_SUPPORTED_NETWORKS: tuple[Network, ...] = (
    Network.ETH,
    Network.BASE,
    Network.ARB,
    Network.OP,
    Network.ETH_SEPOLIA,
    Network.BASE_SEPOLIA,
)


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


def _parse_networks(value: str | tuple | list) -> tuple[Network, ...]:
    if isinstance(value, str):
        items = [item for item in value.split(",") if item.strip()]
    else:
        items = list(value)
    return tuple(
        item if isinstance(item, Network) else Network.from_string(str(item)) for item in items
    )


@dataclass(frozen=True)
class OrchestratorConfig:
    """Process-wide settings for cross-chain payment orchestration."""

    wallet_address: str = ZERO_ADDRESS
    supported_networks: tuple[Network, ...] = DEFAULT_SUPPORTED_NETWORKS
    max_bridge_wait_seconds: float = 180.0  # 3 minutes
    poll_interval_ms: int = 10_000  # 10 seconds
    bridge_protocol: BridgeProtocol = BridgeProtocol.LAYERZERO
    # Approve 0 when the bridge send fails after its approval went through
    revoke_approval_on_failure: bool = True
    # Attempts per balance/metadata read; fund-moving calls are never retried
    read_retry_attempts: int = 3
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not EVM_ADDRESS_PATTERN.match(self.wallet_address or ""):
            raise ValueError(f"wallet_address is not a valid EVM address: {self.wallet_address!r}")
        if not isinstance(self.supported_networks, tuple) or any(
            not isinstance(n, Network) for n in self.supported_networks
        ):
            object.__setattr__(
                self, "supported_networks", _parse_networks(self.supported_networks)
            )
        if not self.supported_networks:
            raise ValueError("supported_networks must not be empty")
        if not isinstance(self.bridge_protocol, BridgeProtocol):
            object.__setattr__(
                self, "bridge_protocol", BridgeProtocol(str(self.bridge_protocol).lower())
            )
        if self.max_bridge_wait_seconds <= 0:
            raise ValueError("max_bridge_wait_seconds must be positive")
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        if self.read_retry_attempts < 1:
            raise ValueError("read_retry_attempts must be at least 1")

    @classmethod
    def from_env(cls, **overrides: Any) -> OrchestratorConfig:
        """Load configuration from environment variables."""
        wallet_address = overrides.get("wallet_address") or _get_env_var(
            "BRIDGEPAY_WALLET_ADDRESS", required=True
        )

        networks = overrides.get("supported_networks") or _get_env_var("BRIDGEPAY_NETWORKS")
        supported_networks = (
            _parse_networks(networks) if networks else DEFAULT_SUPPORTED_NETWORKS
        )

        max_wait = overrides.get("max_bridge_wait_seconds") or _get_env_var(
            "BRIDGEPAY_MAX_BRIDGE_WAIT", default=str(cls.max_bridge_wait_seconds)
        )
        poll_interval = overrides.get("poll_interval_ms") or _get_env_var(
            "BRIDGEPAY_POLL_INTERVAL_MS", default=str(cls.poll_interval_ms)
        )
        protocol = overrides.get("bridge_protocol") or _get_env_var(
            "BRIDGEPAY_BRIDGE_PROTOCOL", default=BridgeProtocol.LAYERZERO.value
        )
        log_level = overrides.get("log_level") or _get_env_var(
            "BRIDGEPAY_LOG_LEVEL", default="INFO"
        )

        return cls(
            wallet_address=wallet_address,  # type: ignore
            supported_networks=supported_networks,
            max_bridge_wait_seconds=float(max_wait),  # type: ignore
            poll_interval_ms=int(poll_interval),  # type: ignore
            bridge_protocol=BridgeProtocol(str(protocol).lower()),
            revoke_approval_on_failure=overrides.get(
                "revoke_approval_on_failure", cls.revoke_approval_on_failure
            ),
            read_retry_attempts=overrides.get("read_retry_attempts", cls.read_retry_attempts),
            log_level=log_level,  # type: ignore
        )

    def with_updates(self, **updates: Any) -> OrchestratorConfig:
        """Create a new validated config with updated values."""
        known = {f.name for f in fields(self)}
        unknown = set(updates) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        return replace(self, **updates)


@dataclass(frozen=True)
class CircleGatewayConfig:
    """Credentials and polling settings for the Circle-backed Ledger Gateway."""

    circle_api_key: str
    entity_secret: str
    transaction_poll_interval: float = 2.0
    transaction_poll_timeout: float = 120.0

    def __post_init__(self) -> None:
        if not self.circle_api_key:
            raise ValueError("circle_api_key is required")
        if not self.entity_secret:
            raise ValueError("entity_secret is required")

    @classmethod
    def from_env(cls, **overrides: Any) -> CircleGatewayConfig:
        """Load Circle credentials from environment variables."""
        circle_api_key = overrides.get("circle_api_key") or _get_env_var(
            "CIRCLE_API_KEY", required=True
        )
        entity_secret = overrides.get("entity_secret") or _get_env_var(
            "ENTITY_SECRET", required=True
        )
        return cls(
            circle_api_key=circle_api_key,  # type: ignore
            entity_secret=entity_secret,  # type: ignore
            transaction_poll_interval=overrides.get(
                "transaction_poll_interval", cls.transaction_poll_interval
            ),
            transaction_poll_timeout=overrides.get(
                "transaction_poll_timeout", cls.transaction_poll_timeout
            ),
        )

    def masked_api_key(self) -> str:
        """Return API key with most characters masked for safe logging."""
        if len(self.circle_api_key) <= 8:
            return "****"
        return self.circle_api_key[:4] + "..." + self.circle_api_key[-4:]
