"""
PaymentOrchestrator - Pays a requirement, bridging funds in first when needed.

Each call to ``execute_payment`` is one attempt that walks this state machine:

    CHECKING_TARGET -> PAYING
                    -> SCANNING_CHAINS -> FAILED
                                       -> BRIDGING -> BRIDGE_FAILED
                                                   -> WAITING -> TIMEOUT
                                                              -> RETRY_PAYING
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from bridgepay.bridge import BridgeExecutor, get_bridge_adapter
from bridgepay.core.config import OrchestratorConfig
from bridgepay.core.logging import AttemptLogger, get_attempt_logger
from bridgepay.core.types import PaymentOutcome, PaymentRequirement, PaymentState
from bridgepay.payment.route import RouteSelector
from bridgepay.payment.scanner import BalanceScanner
from bridgepay.payment.watcher import CompletionWatcher
from bridgepay.resilience.retry import RetryPolicy
from bridgepay.utils.units import format_units, parse_units

if TYPE_CHECKING:
    from bridgepay.gateway.base import LedgerGateway


def _format_seconds(seconds: float) -> str:
    if seconds == int(seconds):
        return str(int(seconds))
    return str(seconds)


@dataclass
class _Components:
    scanner: BalanceScanner
    selector: RouteSelector
    executor: BridgeExecutor
    watcher: CompletionWatcher


class PaymentOrchestrator:
    """
    Entry point for cross-chain payments.

    Components not passed in are built per attempt from that attempt's
    configuration snapshot. ``execute_payment`` never raises; every result,
    including unexpected errors, comes back as a PaymentOutcome.

    Example:
        >>> orchestrator = PaymentOrchestrator(gateway, OrchestratorConfig.from_env())
        >>> outcome = await orchestrator.execute_payment(requirement)
        >>> if not outcome.success:
        ...     print(outcome.state, outcome.error_message)
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        config: OrchestratorConfig,
        scanner: BalanceScanner | None = None,
        selector: RouteSelector | None = None,
        executor: BridgeExecutor | None = None,
        watcher: CompletionWatcher | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._gateway = gateway
        self._config = config
        self._config_lock = threading.Lock()
        self._scanner = scanner
        self._selector = selector
        self._executor = executor
        self._watcher = watcher
        self._retry_policy = retry_policy

    # ==================== Configuration ====================

    def get_config(self) -> OrchestratorConfig:
        """Return the current configuration."""
        return self._config

    def update_config(self, **updates: Any) -> OrchestratorConfig:
        """
        Replace configuration fields.

        Attempts already running keep the configuration they started with.

        Raises:
            ValueError: On unknown fields or invalid values; the current
                configuration is left unchanged
        """
        with self._config_lock:
            self._config = self._config.with_updates(**updates)
            return self._config

    def _components(self, config: OrchestratorConfig) -> _Components:
        scanner = self._scanner or BalanceScanner(
            self._gateway,
            config.wallet_address,
            retry_policy=self._retry_policy or RetryPolicy(max_attempts=config.read_retry_attempts),
        )
        return _Components(
            scanner=scanner,
            selector=self._selector or RouteSelector(config.bridge_protocol),
            executor=self._executor
            or BridgeExecutor(
                self._gateway,
                config.wallet_address,
                get_bridge_adapter(config.bridge_protocol),
                revoke_approval_on_failure=config.revoke_approval_on_failure,
            ),
            watcher=self._watcher or CompletionWatcher(scanner),
        )

    # ==================== Payment ====================

    async def execute_payment(self, requirement: PaymentRequirement) -> PaymentOutcome:
        """
        Pay ``requirement``, bridging from another network if the target is short.

        Args:
            requirement: What to pay, to whom, and on which network

        Returns:
            PaymentOutcome with the payment hash on success, or the terminal
            state and error message
        """
        config = self._config
        attempt_id = uuid.uuid4().hex[:12]
        log = get_attempt_logger("orchestrator", attempt_id)
        try:
            return await self._run(requirement, config, attempt_id, log)
        except Exception as e:
            log.error(f"Payment attempt failed: {e}", exc_info=True)
            return PaymentOutcome(
                success=False,
                error_message=str(e),
                state=PaymentState.FAILED,
                metadata={"attempt_id": attempt_id},
            )

    async def _run(
        self,
        requirement: PaymentRequirement,
        config: OrchestratorConfig,
        attempt_id: str,
        log: AttemptLogger,
    ) -> PaymentOutcome:
        parts = self._components(config)
        token = requirement.token_address
        destination = requirement.destination_network
        meta: dict[str, Any] = {"attempt_id": attempt_id}

        # CHECKING_TARGET
        log.info(
            f"Checking balance on {destination.value} for {requirement.required_amount} "
            f"to {requirement.payee_address}"
        )
        target = await parts.scanner.check_balance(token, destination)
        if requirement.amount_is_atomic:
            required = int(Decimal(requirement.required_amount))
        else:
            required = parse_units(requirement.required_amount, target.decimals)
        required_text = format_units(required, target.decimals)

        if target.amount >= required:
            # PAYING
            log.info(f"Sufficient balance on {destination.value} ({target.formatted}); paying directly")
            tx = await self._gateway.transfer_token(
                destination,
                sender=config.wallet_address,
                recipient=requirement.payee_address,
                token=token,
                amount=required,
                idempotency_key=f"{attempt_id}-pay",
            )
            log.info(f"Payment sent: {tx.transaction_hash}")
            return PaymentOutcome(
                success=True,
                transaction_hash=tx.transaction_hash,
                state=PaymentState.PAYING,
                metadata=meta,
            )

        # SCANNING_CHAINS
        log.info(
            f"Insufficient balance on {destination.value} ({target.formatted} < {required_text}); "
            f"scanning {len(config.supported_networks)} networks"
        )
        balances = await parts.scanner.scan_all_chains(token, config.supported_networks)
        route = parts.selector.select(balances, destination, required, target.decimals)
        if route is None:
            message = f"Insufficient balance across all chains. Required: {required_text}"
            log.error(message)
            return PaymentOutcome(
                success=False,
                error_message=message,
                state=PaymentState.FAILED,
                metadata=meta,
            )

        # BRIDGING
        log.info(f"Bridging from {route.source_network.value} to {destination.value}")
        result = await parts.executor.bridge(
            route.source_network,
            destination,
            token,
            route.amount,
            idempotency_key=f"{attempt_id}-bridge",
        )
        if result.approval_revoked is not None:
            meta["approval_revoked"] = result.approval_revoked
        if not result.success:
            message = f"Bridge failed: {result.error}"
            log.error(message)
            return PaymentOutcome(
                success=False,
                error_message=message,
                state=PaymentState.BRIDGE_FAILED,
                bridge_route=route,
                metadata=meta,
            )

        # WAITING
        arrived = await parts.watcher.wait_for_completion(
            token,
            destination,
            required,
            config.max_bridge_wait_seconds,
            config.poll_interval_ms,
        )
        if not arrived:
            wait = _format_seconds(config.max_bridge_wait_seconds)
            message = f"Bridge verification timeout after {wait}s"
            log.error(message)
            return PaymentOutcome(
                success=False,
                error_message=message,
                state=PaymentState.TIMEOUT,
                bridge_route=route,
                bridge_transaction_hash=result.transaction_hash,
                metadata=meta,
            )

        # RETRY_PAYING
        log.info("Bridge complete; paying")
        tx = await self._gateway.transfer_token(
            destination,
            sender=config.wallet_address,
            recipient=requirement.payee_address,
            token=token,
            amount=required,
            idempotency_key=f"{attempt_id}-pay",
        )
        log.info(f"Payment sent after bridge: {tx.transaction_hash}")
        return PaymentOutcome(
            success=True,
            transaction_hash=tx.transaction_hash,
            state=PaymentState.RETRY_PAYING,
            bridge_route=route,
            bridge_transaction_hash=result.transaction_hash,
            metadata=meta,
        )
