"""CircleLedgerGateway - Ledger Gateway backed by Circle developer-controlled wallets."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from bridgepay.core.bridge_constants import TOKEN_ADDRESSES
from bridgepay.core.config import CircleGatewayConfig
from bridgepay.core.exceptions import GatewayError, NetworkError
from bridgepay.core.logging import get_logger
from bridgepay.core.types import Network, TokenMetadata, TransactionResult
from bridgepay.gateway.base import LedgerGateway
from bridgepay.utils.units import parse_units

if TYPE_CHECKING:
    from bridgepay.core.circle_client import CircleClient, CircleTokenBalance, CircleTransaction


# Metadata for the well-known tokens in TOKEN_ADDRESSES, used when no wallet
# on the network holds the token yet (Circle omits zero balances).
_KNOWN_TOKENS: dict[str, TokenMetadata] = {
    "USDC": TokenMetadata(name="USD Coin", symbol="USDC", decimals=6),
    "WETH": TokenMetadata(name="Wrapped Ether", symbol="WETH", decimals=18),
}


def _known_token_metadata(network: Network, token: str) -> TokenMetadata | None:
    for symbol, address in TOKEN_ADDRESSES.get(network, {}).items():
        if address.lower() == token.lower():
            return _KNOWN_TOKENS.get(symbol)
    return None


class CircleLedgerGateway(LedgerGateway):
    """
    Ledger Gateway over Circle's developer-controlled wallets API.

    Circle addresses wallets by id, so addresses are resolved to wallet ids
    per network (and cached). Approvals and transfers are sent as ERC-20
    contract executions; raw calldata is sent with ``callData``. Each write
    waits until Circle reports an on-chain hash.

    The Circle SDK is synchronous; calls run in a worker thread so that
    concurrent reads across networks do not serialize on the event loop.
    """

    def __init__(
        self,
        circle_client: CircleClient,
        config: CircleGatewayConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._circle = circle_client
        self._config = config
        self._sleep = sleep
        self._wallet_ids: dict[tuple[Network, str], str] = {}
        self._metadata_cache: dict[tuple[Network, str], TokenMetadata] = {}
        self._logger = get_logger("gateway.circle")

    @classmethod
    def from_config(cls, config: CircleGatewayConfig) -> CircleLedgerGateway:
        """Create a gateway with a Circle SDK client built from credentials."""
        from bridgepay.core.circle_client import CircleClient

        return cls(CircleClient(config), config)

    # ==================== Lookups ====================

    async def _resolve_wallet_id(self, network: Network, address: str) -> str:
        key = (network, address.lower())
        cached = self._wallet_ids.get(key)
        if cached:
            return cached

        wallets = await asyncio.to_thread(self._circle.list_wallets, network)
        for wallet in wallets:
            self._wallet_ids[(network, wallet.address.lower())] = wallet.id

        wallet_id = self._wallet_ids.get(key)
        if not wallet_id:
            raise GatewayError(
                f"No Circle wallet for {address} on {network.value}",
                network=network.value,
                details={"address": address},
            )
        return wallet_id

    async def _balances(self, network: Network, wallet_id: str) -> list[CircleTokenBalance]:
        balances = await asyncio.to_thread(self._circle.get_wallet_balances, wallet_id)
        for entry in balances:
            if entry.token_address:
                self._metadata_cache[(network, entry.token_address.lower())] = TokenMetadata(
                    name=entry.name,
                    symbol=entry.symbol,
                    decimals=entry.decimals,
                )
        return balances

    # ==================== Reads ====================

    async def get_token_balance(self, network: Network, token: str, account: str) -> int:
        wallet_id = await self._resolve_wallet_id(network, account)
        for entry in await self._balances(network, wallet_id):
            if entry.token_address and entry.token_address.lower() == token.lower():
                return parse_units(entry.amount, entry.decimals)
        # Circle lists only non-zero balances
        return 0

    async def get_token_metadata(self, network: Network, token: str) -> TokenMetadata:
        key = (network, token.lower())
        if key in self._metadata_cache:
            return self._metadata_cache[key]

        known = _known_token_metadata(network, token)
        if known is not None:
            self._metadata_cache[key] = known
            return known

        wallets = await asyncio.to_thread(self._circle.list_wallets, network)
        for wallet in wallets:
            await self._balances(network, wallet.id)
            if key in self._metadata_cache:
                return self._metadata_cache[key]

        raise GatewayError(
            f"Token {token} metadata unavailable on {network.value}",
            network=network.value,
            details={"token": token},
        )

    # ==================== Writes ====================

    async def _await_hash(self, network: Network, tx: CircleTransaction) -> TransactionResult:
        """Poll a Circle transaction until it carries an on-chain hash."""
        deadline = time.monotonic() + self._config.transaction_poll_timeout
        current = tx
        while True:
            if current.is_failed():
                raise GatewayError(
                    f"Transaction {current.id} {current.state.lower()}: "
                    f"{current.error_reason or 'no reason given'}",
                    network=network.value,
                    details={"transaction_id": current.id, "state": current.state},
                )
            if current.tx_hash:
                return TransactionResult(transaction_hash=current.tx_hash, transaction_id=current.id)
            if time.monotonic() >= deadline:
                raise NetworkError(
                    f"Transaction {current.id} has no hash after "
                    f"{self._config.transaction_poll_timeout}s (state={current.state})",
                    network=network.value,
                    details={"transaction_id": current.id},
                )
            await self._sleep(self._config.transaction_poll_interval)
            current = await asyncio.to_thread(self._circle.get_transaction, tx.id)
            self._logger.debug(f"Transaction {tx.id} state={current.state}")

    async def approve(
        self,
        network: Network,
        owner: str,
        spender: str,
        token: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        wallet_id = await self._resolve_wallet_id(network, owner)
        self._logger.info(f"Approving {spender} for {amount} of {token} on {network.value}")
        tx = await asyncio.to_thread(
            self._circle.create_contract_execution,
            wallet_id=wallet_id,
            contract_address=token,
            abi_function_signature="approve(address,uint256)",
            abi_parameters=[spender, str(amount)],
            idempotency_key=idempotency_key,
        )
        return await self._await_hash(network, tx)

    async def transfer_token(
        self,
        network: Network,
        sender: str,
        recipient: str,
        token: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        wallet_id = await self._resolve_wallet_id(network, sender)
        self._logger.info(f"Transferring {amount} of {token} to {recipient} on {network.value}")
        tx = await asyncio.to_thread(
            self._circle.create_contract_execution,
            wallet_id=wallet_id,
            contract_address=token,
            abi_function_signature="transfer(address,uint256)",
            abi_parameters=[recipient, str(amount)],
            idempotency_key=idempotency_key,
        )
        return await self._await_hash(network, tx)

    async def submit_transaction(
        self,
        network: Network,
        sender: str,
        call_data: str,
        to_address: str,
        idempotency_key: str | None = None,
    ) -> TransactionResult:
        wallet_id = await self._resolve_wallet_id(network, sender)
        self._logger.info(f"Submitting call to {to_address} on {network.value}")
        tx = await asyncio.to_thread(
            self._circle.create_contract_execution,
            wallet_id=wallet_id,
            contract_address=to_address,
            call_data=call_data,
            idempotency_key=idempotency_key,
        )
        return await self._await_hash(network, tx)
