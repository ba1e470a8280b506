"""Chainlink CCIP token-transfer adapter."""

from __future__ import annotations

from eth_abi import encode as abi_encode

from bridgepay.bridge.base import BridgeAdapter, BridgeCall, checksum, encode_function_call
from bridgepay.core.config import ZERO_ADDRESS
from bridgepay.core.exceptions import UnsupportedNetworkError
from bridgepay.core.types import BridgeProtocol, Network

# Router.ccipSend(uint64 destinationChainSelector, Client.EVM2AnyMessage message)
# EVM2AnyMessage = (bytes receiver, bytes data, EVMTokenAmount[] tokenAmounts,
#                   address feeToken, bytes extraArgs)
CCIP_SEND_SIGNATURE = "ccipSend(uint64,(bytes,bytes,(address,uint256)[],address,bytes))"
CCIP_SEND_TYPES = ["uint64", "(bytes,bytes,(address,uint256)[],address,bytes)"]


class CcipBridgeAdapter(BridgeAdapter):
    """
    Sends a token-only CCIP message through the source network's router.

    The fee token is native (zero address) and extra args are empty, so the
    router's default gas limit applies.
    """

    @property
    def protocol(self) -> BridgeProtocol:
        return BridgeProtocol.CCIP

    def build_call(
        self,
        source_network: Network,
        destination_network: Network,
        sender: str,
        token: str,
        amount: int,
    ) -> BridgeCall:
        router = self.endpoint(source_network)
        if router is None:
            raise UnsupportedNetworkError(
                f"CCIP not supported on {source_network.value}",
                network=source_network.value,
                protocol=self.protocol.value,
            )
        chain_selector = self.destination_id(destination_network)
        if chain_selector is None:
            raise UnsupportedNetworkError(
                f"CCIP has no chain selector for {destination_network.value}",
                network=destination_network.value,
                protocol=self.protocol.value,
            )

        receiver = abi_encode(["address"], [checksum(sender)])
        message = (
            receiver,
            b"",  # no payload, tokens only
            [(checksum(token), amount)],
            ZERO_ADDRESS,  # pay fees in native gas token
            b"",  # extra args
        )
        call_data = encode_function_call(CCIP_SEND_SIGNATURE, CCIP_SEND_TYPES, [chain_selector, message])
        return BridgeCall(
            to_address=checksum(router),
            call_data=call_data,
            function_signature=CCIP_SEND_SIGNATURE,
        )
