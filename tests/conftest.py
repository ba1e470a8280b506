"""Shared fixtures for BridgePay tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from bridgepay.core.config import OrchestratorConfig
from bridgepay.core.types import Network, PaymentRequirement, TokenMetadata, TransactionResult
from bridgepay.gateway.base import LedgerGateway
from bridgepay.resilience.retry import RetryPolicy

WALLET = "0x1111111111111111111111111111111111111111"
PAYEE = "0x2222222222222222222222222222222222222222"
TOKEN = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


class FakeLedgerGateway(LedgerGateway):
    """
    In-memory Ledger Gateway.

    Holds one balance per network for the token under test. Failures are
    configured per operation (``approve``, ``submit``, ``transfer``) or per
    network for reads. Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        balances: dict[Network, int] | None = None,
        decimals: dict[Network, int] | None = None,
        default_decimals: int = 6,
    ) -> None:
        self.balances: dict[Network, int] = dict(balances or {})
        self.decimals: dict[Network, int] = dict(decimals or {})
        self.default_decimals = default_decimals
        self.balance_errors: dict[Network, Exception] = {}
        self.metadata_errors: dict[Network, Exception] = {}
        self.errors: dict[str, Exception] = {}
        self.on_submit: Callable[[Network, str, str], None] | None = None
        self.calls: list[tuple[str, Network, dict[str, Any]]] = []
        self._tx_count = 0

    def _next_hash(self, op: str) -> str:
        self._tx_count += 1
        return f"0x{op}{self._tx_count:04d}"

    def ops(self) -> list[str]:
        return [op for op, _, _ in self.calls]

    async def get_token_balance(self, network: Network, token: str, account: str) -> int:
        self.calls.append(("balance", network, {"token": token, "account": account}))
        if network in self.balance_errors:
            raise self.balance_errors[network]
        return self.balances.get(network, 0)

    async def get_token_metadata(self, network: Network, token: str) -> TokenMetadata:
        self.calls.append(("metadata", network, {"token": token}))
        if network in self.metadata_errors:
            raise self.metadata_errors[network]
        return TokenMetadata(
            name="USD Coin",
            symbol="USDC",
            decimals=self.decimals.get(network, self.default_decimals),
        )

    async def approve(
        self,
        network: Network,
        owner: str,
        spender: str,
        token: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        op = "revoke" if amount == 0 else "approve"
        self.calls.append(
            (op, network, {"owner": owner, "spender": spender, "token": token, "amount": amount})
        )
        if op in self.errors:
            raise self.errors[op]
        return TransactionResult(transaction_hash=self._next_hash(op))

    async def transfer_token(
        self,
        network: Network,
        sender: str,
        recipient: str,
        token: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        self.calls.append(
            (
                "transfer",
                network,
                {"sender": sender, "recipient": recipient, "token": token, "amount": amount},
            )
        )
        if "transfer" in self.errors:
            raise self.errors["transfer"]
        return TransactionResult(transaction_hash=self._next_hash("transfer"))

    async def submit_transaction(
        self,
        network: Network,
        sender: str,
        call_data: str,
        to_address: str,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        self.calls.append(
            ("submit", network, {"sender": sender, "call_data": call_data, "to": to_address})
        )
        if "submit" in self.errors:
            raise self.errors["submit"]
        if self.on_submit is not None:
            self.on_submit(network, call_data, to_address)
        return TransactionResult(transaction_hash=self._next_hash("submit"))


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def gateway() -> FakeLedgerGateway:
    return FakeLedgerGateway()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_retry() -> RetryPolicy:
    return RetryPolicy.none()


@pytest.fixture
def config() -> OrchestratorConfig:
    return OrchestratorConfig(
        wallet_address=WALLET,
        supported_networks=(Network.ETH, Network.BASE, Network.ARB, Network.OP),
        max_bridge_wait_seconds=30,
        poll_interval_ms=5_000,
        read_retry_attempts=1,
    )


@pytest.fixture
def requirement() -> PaymentRequirement:
    return PaymentRequirement(
        required_amount="10",
        destination_network=Network.BASE,
        payee_address=PAYEE,
        token_address=TOKEN,
        description="Premium API access",
    )
