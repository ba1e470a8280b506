"""
BridgePay - Cross-chain payments for autonomous agents.

Pays a requirement on its target network, first bridging funds from
whichever configured network holds enough when the target is short.

Usage:
    >>> from bridgepay import OrchestratorConfig, PaymentOrchestrator, PaymentRequirement
    >>> from bridgepay.gateway.circle import CircleLedgerGateway
    >>>
    >>> gateway = CircleLedgerGateway.from_config(CircleGatewayConfig.from_env())
    >>> orchestrator = PaymentOrchestrator(gateway, OrchestratorConfig.from_env())
    >>> outcome = await orchestrator.execute_payment(
    ...     PaymentRequirement(
    ...         required_amount="1.50",
    ...         destination_network=Network.BASE,
    ...         payee_address="0x...",
    ...         token_address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    ...     )
    ... )
"""

from bridgepay.bridge import BridgeExecutor, get_bridge_adapter
from bridgepay.core.config import CircleGatewayConfig, OrchestratorConfig
from bridgepay.core.exceptions import (
    BridgePayError,
    ConfigurationError,
    GatewayError,
    NetworkError,
    ProtocolError,
    UnsupportedNetworkError,
    ValidationError,
    X402Error,
)
from bridgepay.core.logging import configure_logging, get_logger
from bridgepay.core.types import (
    BridgeProtocol,
    BridgeResult,
    BridgeRoute,
    Network,
    PaymentOutcome,
    PaymentRequirement,
    PaymentState,
    TokenBalance,
    TokenMetadata,
    TransactionResult,
)
from bridgepay.gateway.base import LedgerGateway
from bridgepay.payment.orchestrator import PaymentOrchestrator
from bridgepay.payment.route import RouteSelector
from bridgepay.payment.scanner import BalanceScanner
from bridgepay.payment.watcher import CompletionWatcher
from bridgepay.protocols.x402 import X402Client, parse_payment_required
from bridgepay.resilience.retry import RetryPolicy

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "PaymentOrchestrator",
    "BalanceScanner",
    "RouteSelector",
    "BridgeExecutor",
    "CompletionWatcher",
    "get_bridge_adapter",
    # Gateway
    "LedgerGateway",
    # Config
    "OrchestratorConfig",
    "CircleGatewayConfig",
    "RetryPolicy",
    # Types
    "BridgeProtocol",
    "BridgeResult",
    "BridgeRoute",
    "Network",
    "PaymentOutcome",
    "PaymentRequirement",
    "PaymentState",
    "TokenBalance",
    "TokenMetadata",
    "TransactionResult",
    # x402
    "X402Client",
    "parse_payment_required",
    # Exceptions
    "BridgePayError",
    "ConfigurationError",
    "GatewayError",
    "NetworkError",
    "ProtocolError",
    "UnsupportedNetworkError",
    "ValidationError",
    "X402Error",
    # Logging
    "configure_logging",
    "get_logger",
]
