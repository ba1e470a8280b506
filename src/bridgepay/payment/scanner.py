"""BalanceScanner - Reads the configured wallet's token balance across networks."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import TYPE_CHECKING

from bridgepay.core.logging import get_logger
from bridgepay.core.types import Network, TokenBalance
from bridgepay.resilience.retry import DEFAULT_READ_POLICY, RetryPolicy

if TYPE_CHECKING:
    from bridgepay.gateway.base import LedgerGateway

# Decimals reported for a network whose scan failed
PLACEHOLDER_DECIMALS = 18


class BalanceScanner:
    """
    Queries token balances of one wallet.

    Reads go through ``retry_policy``; a read that still fails propagates
    from ``check_balance`` and becomes a zero placeholder in
    ``scan_all_chains``.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        wallet_address: str,
        retry_policy: RetryPolicy = DEFAULT_READ_POLICY,
    ) -> None:
        self._gateway = gateway
        self._wallet_address = wallet_address
        self._retry = retry_policy
        self._logger = get_logger("scanner")

    @property
    def wallet_address(self) -> str:
        return self._wallet_address

    async def check_balance(
        self,
        token: str,
        network: Network,
        retry_policy: RetryPolicy | None = None,
    ) -> TokenBalance:
        """
        Read the wallet's balance of ``token`` on ``network``.

        Args:
            retry_policy: Overrides the scanner's policy for this read

        Raises:
            Exception: Whatever the gateway raised on the final attempt
        """
        retry = retry_policy or self._retry
        metadata = await retry.call(self._gateway.get_token_metadata, network, token)
        amount = await retry.call(
            self._gateway.get_token_balance, network, token, self._wallet_address
        )
        return TokenBalance(
            network=network,
            amount=amount,
            token_address=token,
            decimals=metadata.decimals,
        )

    async def _check_or_placeholder(self, token: str, network: Network) -> TokenBalance:
        try:
            return await self.check_balance(token, network)
        except Exception as e:
            self._logger.warning(f"Failed to check balance on {network.value}: {e}")
            return TokenBalance(
                network=network,
                amount=0,
                token_address=token,
                decimals=PLACEHOLDER_DECIMALS,
            )

    async def scan_all_chains(self, token: str, networks: Iterable[Network]) -> list[TokenBalance]:
        """
        Check every network concurrently.

        Returns:
            Balances that are strictly positive, in the order ``networks``
            was given. Failed networks are dropped.
        """
        networks = list(networks)
        self._logger.info(f"Scanning {len(networks)} networks for {token}")

        results = await asyncio.gather(
            *(self._check_or_placeholder(token, network) for network in networks)
        )

        for balance in results:
            self._logger.info(f"  {balance.network.value}: {balance.formatted}")

        funded = [balance for balance in results if balance.amount > 0]
        self._logger.info(f"Found balances on {len(funded)} of {len(networks)} networks")
        return funded
