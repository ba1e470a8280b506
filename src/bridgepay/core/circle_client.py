"""
Circle SDK client wrapper for developer-controlled wallets.

This module provides the small slice of Circle's Python SDK the Circle
Ledger Gateway needs: wallet lookup, token balances, contract executions,
and transaction status.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from circle.web3 import developer_controlled_wallets, utils

from bridgepay.core.config import CircleGatewayConfig
from bridgepay.core.exceptions import (
    ConfigurationError,
    GatewayError,
    NetworkError,
)
from bridgepay.core.types import Network

TERMINAL_FAILURE_STATES = frozenset({"FAILED", "CANCELLED", "DENIED"})


def _parse_dt(val: str | datetime | None) -> datetime | None:
    if val is None:
        return None
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(val.replace("Z", "+00:00"))


@dataclass
class CircleWallet:
    """Wallet information from Circle API."""

    id: str
    address: str
    blockchain: str
    state: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> CircleWallet:
        return cls(
            id=data["id"],
            address=data["address"],
            blockchain=data["blockchain"],
            state=str(data.get("state", "LIVE")),
        )


@dataclass
class CircleTokenBalance:
    """One token balance entry from Circle API."""

    amount: Decimal
    token_id: str
    symbol: str
    name: str
    decimals: int
    token_address: str | None = None
    is_native: bool = False

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> CircleTokenBalance:
        token = data["token"]
        return cls(
            amount=Decimal(str(data["amount"])),
            token_id=token["id"],
            symbol=token.get("symbol") or "",
            name=token.get("name") or "",
            decimals=int(token.get("decimals") or 0),
            token_address=token.get("tokenAddress"),
            is_native=bool(token.get("isNative", False)),
        )


@dataclass
class CircleTransaction:
    """Transaction information from Circle API."""

    id: str
    state: str
    tx_hash: str | None = None
    blockchain: str | None = None
    error_reason: str | None = None
    update_date: datetime | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> CircleTransaction:
        return cls(
            id=data["id"],
            state=str(data["state"]),
            tx_hash=data.get("txHash"),
            blockchain=data.get("blockchain"),
            error_reason=data.get("errorReason"),
            update_date=_parse_dt(data.get("updateDate")),
        )

    def is_failed(self) -> bool:
        return self.state in TERMINAL_FAILURE_STATES


class CircleClient:
    """Wrapper around Circle's Python SDK for wallet and transaction operations."""

    def __init__(self, config: CircleGatewayConfig) -> None:
        self._config = config

        try:
            self._client = utils.init_developer_controlled_wallets_client(
                api_key=config.circle_api_key,
                entity_secret=config.entity_secret,
            )
        except Exception as e:
            raise ConfigurationError(
                f"Failed to initialize Circle SDK client: {e}",
                details={"error": str(e), "api_key": config.masked_api_key()},
            ) from e

        self._wallets_api = developer_controlled_wallets.WalletsApi(self._client)
        self._transactions_api = developer_controlled_wallets.TransactionsApi(self._client)

    def _get_ciphertext(self) -> str:
        return utils.generate_entity_secret_ciphertext(
            api_key=self._config.circle_api_key,
            entity_secret_hex=self._config.entity_secret,
        )

    # ==================== Wallet Operations ====================

    def list_wallets(self, blockchain: Network | str | None = None) -> list[CircleWallet]:
        """List wallets, optionally filtered by blockchain."""
        kwargs: dict[str, Any] = {}
        if blockchain:
            kwargs["blockchain"] = blockchain.value if isinstance(blockchain, Network) else blockchain

        try:
            response = self._wallets_api.get_wallets(**kwargs)
        except developer_controlled_wallets.ApiException as e:
            raise NetworkError(
                f"Failed to list wallets: {e}",
                status_code=getattr(e, "status", None),
                network=kwargs.get("blockchain"),
                details={"api_error": str(e)},
            ) from e

        return [
            CircleWallet.from_api_response(wallet.actual_instance.to_dict())
            for wallet in response.data.wallets
        ]

    # ==================== Balance Operations ====================

    def get_wallet_balances(self, wallet_id: str) -> list[CircleTokenBalance]:
        """Get token balances for a wallet."""
        try:
            response = self._wallets_api.list_wallet_balance(wallet_id)
        except developer_controlled_wallets.ApiException as e:
            raise NetworkError(
                f"Failed to get wallet balances: {e}",
                status_code=getattr(e, "status", None),
                details={"api_error": str(e), "wallet_id": wallet_id},
            ) from e

        # Balance entries are plain models, not wrapped in actual_instance
        return [
            CircleTokenBalance.from_api_response(tb.to_dict())
            for tb in response.data.token_balances
        ]

    # ==================== Transaction Operations ====================

    def create_contract_execution(
        self,
        wallet_id: str,
        contract_address: str,
        abi_function_signature: str | None = None,
        abi_parameters: list[str] | None = None,
        call_data: str | None = None,
        fee_level: str = "MEDIUM",
        idempotency_key: str | None = None,
    ) -> CircleTransaction:
        """
        Execute a smart contract function.

        Either ``abi_function_signature`` (with ``abi_parameters``) or raw
        ``call_data`` must be given.

        Args:
            wallet_id: Source wallet ID
            contract_address: Contract to call
            abi_function_signature: e.g. "approve(address,uint256)"
            abi_parameters: Function parameters as strings
            call_data: Pre-encoded hex calldata
            fee_level: Gas fee level
            idempotency_key: Optional idempotency key

        Returns:
            CircleTransaction for the contract call
        """
        if bool(abi_function_signature) == bool(call_data):
            raise ValueError("Provide exactly one of abi_function_signature or call_data")

        payload: dict[str, Any] = {
            "idempotencyKey": idempotency_key or str(uuid.uuid4()),
            "entitySecretCiphertext": self._get_ciphertext(),
            "walletId": wallet_id,
            "contractAddress": contract_address,
            "feeLevel": fee_level,
        }
        if call_data:
            payload["callData"] = call_data
        else:
            payload["abiFunctionSignature"] = abi_function_signature
            payload["abiParameters"] = abi_parameters or []

        try:
            request = developer_controlled_wallets.CreateContractExecutionTransactionForDeveloperRequest.from_dict(
                payload
            )
            response = self._transactions_api.create_developer_transaction_contract_execution(
                request
            )
        except developer_controlled_wallets.ApiException as e:
            raise GatewayError(
                f"Failed to execute contract: {e}",
                details={
                    "api_error": str(e),
                    "wallet_id": wallet_id,
                    "contract": contract_address,
                    "function": abi_function_signature or "callData",
                },
            ) from e

        return CircleTransaction.from_api_response(response.data.to_dict())

    def get_transaction(self, transaction_id: str) -> CircleTransaction:
        """Get transaction status by ID."""
        try:
            response = self._transactions_api.get_transaction(transaction_id)
        except developer_controlled_wallets.ApiException as e:
            raise NetworkError(
                f"Failed to get transaction {transaction_id}: {e}",
                status_code=getattr(e, "status", None),
                details={"api_error": str(e), "transaction_id": transaction_id},
            ) from e

        return CircleTransaction.from_api_response(response.data.transaction.to_dict())
