"""
Ledger Gateway interface.

The gateway performs elementary token operations against one network per
call: balance and metadata reads, approvals, transfers, and raw transaction
submission. Signing and key custody live behind the gateway.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bridgepay.core.types import Network, TokenMetadata, TransactionResult


class LedgerGateway(ABC):
    """
    Abstract base class for Ledger Gateway implementations.

    Every method takes the network explicitly; implementations never infer
    it. Any call may raise a GatewayError (or any other exception); callers
    treat failures as opaque.
    """

    @abstractmethod
    async def get_token_balance(self, network: Network, token: str, account: str) -> int:
        """Return ``account``'s balance of ``token`` in smallest units."""
        ...

    @abstractmethod
    async def get_token_metadata(self, network: Network, token: str) -> TokenMetadata:
        """Return name, symbol, decimals and (if known) total supply."""
        ...

    @abstractmethod
    async def approve(
        self,
        network: Network,
        owner: str,
        spender: str,
        token: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        """Approve ``spender`` to move ``amount`` of ``token`` from ``owner``."""
        ...

    @abstractmethod
    async def transfer_token(
        self,
        network: Network,
        sender: str,
        recipient: str,
        token: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        """Transfer ``amount`` of ``token`` from ``sender`` to ``recipient``."""
        ...

    @abstractmethod
    async def submit_transaction(
        self,
        network: Network,
        sender: str,
        call_data: str,
        to_address: str,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        """Submit hex-encoded ``call_data`` from ``sender`` to ``to_address``."""
        ...
