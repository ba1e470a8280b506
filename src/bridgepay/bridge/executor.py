"""BridgeExecutor - Moves tokens between networks with approve-then-send."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bridgepay.bridge.base import BridgeAdapter
from bridgepay.core.logging import get_logger
from bridgepay.core.types import BridgeResult, Network

if TYPE_CHECKING:
    from bridgepay.gateway.base import LedgerGateway


class BridgeExecutor:
    """
    Executes a single cross-network transfer through one bridge protocol.

    The sequence is approve(endpoint, amount) then submit the protocol's send
    call. Neither step is retried; both move or authorize funds. If the send
    fails after the approval landed, the approval is revoked (approve 0)
    unless ``revoke_approval_on_failure`` is off.

    ``bridge`` never raises: every failure is returned as a BridgeResult.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        wallet_address: str,
        adapter: BridgeAdapter,
        revoke_approval_on_failure: bool = True,
    ) -> None:
        self._gateway = gateway
        self._wallet_address = wallet_address
        self._adapter = adapter
        self._revoke_on_failure = revoke_approval_on_failure
        self._logger = get_logger(f"bridge.{adapter.protocol.value}")

    @property
    def adapter(self) -> BridgeAdapter:
        return self._adapter

    def _unsupported(self, source: Network, destination: Network) -> str | None:
        name = _protocol_label(self._adapter)
        if self._adapter.endpoint(source) is None:
            return f"{name} not supported on {source.value}"
        if self._adapter.destination_id(destination) is None:
            return f"{name} not supported on {destination.value}"
        return None

    async def bridge(
        self,
        source: Network,
        destination: Network,
        token: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> BridgeResult:
        """
        Bridge ``amount`` (source smallest units) of ``token`` to ``destination``.

        Args:
            source: Network the funds leave from
            destination: Network the funds arrive on
            token: Token contract address
            amount: Amount in source-network smallest units
            idempotency_key: Base key; ``-approve``/``-send`` suffixes are
                appended per gateway call

        Returns:
            BridgeResult with the send hash on success, or the error
        """
        unsupported = self._unsupported(source, destination)
        if unsupported:
            self._logger.error(unsupported)
            return BridgeResult(success=False, error=unsupported)

        endpoint = self._adapter.endpoint(source)

        self._logger.info(
            f"Bridging {amount} of {token} from {source.value} to {destination.value} "
            f"via {endpoint}"
        )

        # Step 1: approve
        try:
            approval = await self._gateway.approve(
                source,
                owner=self._wallet_address,
                spender=endpoint,
                token=token,
                amount=amount,
                idempotency_key=_suffix(idempotency_key, "approve"),
            )
        except Exception as e:
            self._logger.error(f"Approval failed on {source.value}: {e}")
            return BridgeResult(success=False, error=str(e))

        self._logger.info(f"Approval transaction: {approval.transaction_hash}")

        # Step 2: send
        try:
            call = self._adapter.build_call(
                source, destination, self._wallet_address, token, amount
            )
            sent = await self._gateway.submit_transaction(
                source,
                sender=self._wallet_address,
                call_data=call.call_data,
                to_address=call.to_address,
                idempotency_key=_suffix(idempotency_key, "send"),
            )
        except Exception as e:
            self._logger.error(f"Bridge send failed on {source.value}: {e}")
            revoked = None
            if self._revoke_on_failure:
                revoked = await self._revoke(source, endpoint, token, idempotency_key)
            return BridgeResult(
                success=False,
                approval_hash=approval.transaction_hash,
                error=str(e),
                approval_revoked=revoked,
            )

        self._logger.info(f"Bridge transaction: {sent.transaction_hash}")
        return BridgeResult(
            success=True,
            transaction_hash=sent.transaction_hash,
            approval_hash=approval.transaction_hash,
        )

    async def _revoke(
        self,
        network: Network,
        spender: str,
        token: str,
        idempotency_key: str | None,
    ) -> bool:
        """Reset the endpoint's allowance to zero. Failures are logged, not raised."""
        try:
            result = await self._gateway.approve(
                network,
                owner=self._wallet_address,
                spender=spender,
                token=token,
                amount=0,
                idempotency_key=_suffix(idempotency_key, "revoke"),
            )
        except Exception as e:
            self._logger.error(
                f"Could not revoke approval for {spender} on {network.value}; "
                f"allowance remains: {e}"
            )
            return False
        self._logger.warning(f"Approval revoked: {result.transaction_hash}")
        return True


def _suffix(key: str | None, step: str) -> str | None:
    return f"{key}-{step}" if key else None


def _protocol_label(adapter: BridgeAdapter) -> str:
    return {"layerzero": "LayerZero", "ccip": "CCIP"}.get(
        adapter.protocol.value, adapter.protocol.value
    )
