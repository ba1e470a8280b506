"""
Type definitions for BridgePay.

This module contains the enums, data classes, and type definitions
used throughout the package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from bridgepay.core.exceptions import ValidationError
from bridgepay.utils.units import format_units


class Network(str, Enum):
    """Supported EVM networks. Values match Circle blockchain identifiers."""

    # Ethereum
    ETH = "ETH"
    ETH_SEPOLIA = "ETH-SEPOLIA"

    # Base
    BASE = "BASE"
    BASE_SEPOLIA = "BASE-SEPOLIA"

    # Arbitrum
    ARB = "ARB"

    # Optimism
    OP = "OP"

    # Polygon
    MATIC = "MATIC"

    @classmethod
    def from_string(cls, value: str) -> Network:
        value_upper = value.strip().upper().replace("_", "-")
        for member in cls:
            if member.value == value_upper:
                return member
        alias = _NETWORK_ALIASES.get(value.strip().lower().replace("_", "-"))
        if alias is not None:
            return alias
        raise ValueError(f"Unknown network: {value}. Supported: {[n.value for n in cls]}")

    def is_testnet(self) -> bool:
        testnet_suffix = ("-SEPOLIA", "-TESTNET", "-FUJI", "-DEVNET", "-AMOY")
        return self.value.endswith(testnet_suffix)


_NETWORK_ALIASES: dict[str, Network] = {
    "ethereum": Network.ETH,
    "ethereum-sepolia": Network.ETH_SEPOLIA,
    "sepolia": Network.ETH_SEPOLIA,
    "base": Network.BASE,
    "base-sepolia": Network.BASE_SEPOLIA,
    "arbitrum": Network.ARB,
    "optimism": Network.OP,
    "polygon": Network.MATIC,
}


def normalize_network(network: Network | str | None) -> Network | None:
    """
    Normalize a network value to a Network enum.

    Args:
        network: Network enum, string, or None

    Returns:
        Network enum or None

    Raises:
        ValueError: If string cannot be converted to Network
    """
    if network is None:
        return None
    if isinstance(network, Network):
        return network
    return Network.from_string(str(network))


class BridgeProtocol(str, Enum):
    """Cross-network bridge protocols."""

    LAYERZERO = "layerzero"
    CCIP = "ccip"


class PaymentState(str, Enum):
    """States of a single payment attempt."""

    CHECKING_TARGET = "checking_target"
    PAYING = "paying"  # Terminal (direct payment path)
    SCANNING_CHAINS = "scanning_chains"
    FAILED = "failed"  # Terminal
    BRIDGING = "bridging"
    BRIDGE_FAILED = "bridge_failed"  # Terminal
    WAITING = "waiting"
    TIMEOUT = "timeout"  # Terminal
    RETRY_PAYING = "retry_paying"  # Terminal (post-bridge payment path)


@dataclass(frozen=True)
class PaymentRequirement:
    """A payment demanded by a gated resource."""

    required_amount: str
    destination_network: Network
    payee_address: str
    token_address: str
    description: str | None = None
    resource: str | None = None
    # x402 carries maxAmountRequired in smallest units
    amount_is_atomic: bool = False

    def __post_init__(self) -> None:
        if not self.payee_address:
            raise ValidationError("Payee address is required")
        if not self.token_address:
            raise ValidationError("Token address is required")
        if not isinstance(self.destination_network, Network):
            object.__setattr__(
                self, "destination_network", Network.from_string(str(self.destination_network))
            )
        try:
            amount = Decimal(str(self.required_amount).strip())
        except InvalidOperation as e:
            raise ValidationError(f"Invalid required amount: {self.required_amount!r}") from e
        if not amount.is_finite() or amount <= 0:
            raise ValidationError("Required amount must be positive")
        if self.amount_is_atomic and amount != amount.to_integral_value():
            raise ValidationError("Atomic amounts must be whole numbers")


@dataclass(frozen=True)
class TokenBalance:
    """Token balance of the configured wallet on one network."""

    network: Network
    amount: int
    token_address: str
    decimals: int

    @property
    def formatted(self) -> str:
        return format_units(self.amount, self.decimals)


@dataclass(frozen=True)
class TokenMetadata:
    """ERC-20 token metadata."""

    name: str
    symbol: str
    decimals: int
    total_supply: int | None = None


@dataclass(frozen=True)
class TransactionResult:
    """Result of a submitted transaction."""

    transaction_hash: str
    transaction_id: str | None = None


@dataclass(frozen=True)
class BridgeRoute:
    """A single-source cross-network move, computed once per payment attempt."""

    source_network: Network
    destination_network: Network
    amount: int  # Source-network smallest units
    bridge_protocol: BridgeProtocol = BridgeProtocol.LAYERZERO


@dataclass
class BridgeResult:
    """Result of a bridge attempt."""

    success: bool
    transaction_hash: str | None = None
    approval_hash: str | None = None
    error: str | None = None
    approval_revoked: bool | None = None


@dataclass
class PaymentOutcome:
    """Result of one call to the payment orchestrator."""

    success: bool
    transaction_hash: str | None = None
    error_message: str | None = None
    state: PaymentState = PaymentState.FAILED
    bridge_route: BridgeRoute | None = None
    bridge_transaction_hash: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
