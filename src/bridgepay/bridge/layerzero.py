"""LayerZero OFT bridge adapter."""

from __future__ import annotations

from bridgepay.bridge.base import BridgeAdapter, BridgeCall, checksum, encode_function_call
from bridgepay.core.config import ZERO_ADDRESS
from bridgepay.core.exceptions import UnsupportedNetworkError
from bridgepay.core.types import BridgeProtocol, Network

# OFT v1 sendFrom(_from, _dstChainId, _toAddress, _amount, _refundAddress,
#                 _zroPaymentAddress, _adapterParams)
SEND_FROM_SIGNATURE = "sendFrom(address,uint16,bytes,uint256,address,address,bytes)"
SEND_FROM_TYPES = ["address", "uint16", "bytes", "uint256", "address", "address", "bytes"]


class LayerZeroBridgeAdapter(BridgeAdapter):
    """
    Sends tokens with LayerZero's OFT ``sendFrom``.

    No ZRO fee payment and no adapter parameters are passed; the default
    relayer settings of the endpoint apply.
    """

    @property
    def protocol(self) -> BridgeProtocol:
        return BridgeProtocol.LAYERZERO

    def build_call(
        self,
        source_network: Network,
        destination_network: Network,
        sender: str,
        token: str,
        amount: int,
    ) -> BridgeCall:
        endpoint = self.endpoint(source_network)
        if endpoint is None:
            raise UnsupportedNetworkError(
                f"LayerZero not supported on {source_network.value}",
                network=source_network.value,
                protocol=self.protocol.value,
            )
        dst_chain_id = self.destination_id(destination_network)
        if dst_chain_id is None:
            raise UnsupportedNetworkError(
                f"LayerZero has no chain id for {destination_network.value}",
                network=destination_network.value,
                protocol=self.protocol.value,
            )

        sender_address = checksum(sender)
        call_data = encode_function_call(
            SEND_FROM_SIGNATURE,
            SEND_FROM_TYPES,
            [
                sender_address,  # from
                dst_chain_id,  # destination chain
                bytes.fromhex(sender_address[2:]),  # to (same wallet on destination)
                amount,
                sender_address,  # refund address
                ZERO_ADDRESS,  # zro payment address
                b"",  # adapter params
            ],
        )
        return BridgeCall(
            to_address=checksum(endpoint),
            call_data=call_data,
            function_signature=SEND_FROM_SIGNATURE,
        )
