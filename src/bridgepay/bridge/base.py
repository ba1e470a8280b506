"""
Base bridge adapter interface.

Each adapter knows one bridge protocol's endpoint table, destination
identifiers, and send-call encoding. The BridgeExecutor drives the
approve-then-send sequence through whichever adapter is configured.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from eth_abi import encode as abi_encode
from eth_utils import keccak, to_checksum_address

from bridgepay.core.bridge_constants import get_bridge_endpoint, get_destination_id
from bridgepay.core.types import BridgeProtocol, Network


@dataclass(frozen=True)
class BridgeCall:
    """An encoded bridge send, ready for raw submission."""

    to_address: str
    call_data: str
    function_signature: str


def encode_function_call(signature: str, arg_types: list[str], args: list) -> str:
    """ABI-encode a call: 4-byte keccak selector followed by the arguments."""
    selector = keccak(text=signature)[:4]
    encoded_args = abi_encode(arg_types, args)
    return "0x" + (selector + encoded_args).hex()


def checksum(address: str) -> str:
    return to_checksum_address(address)


class BridgeAdapter(ABC):
    """Abstract base class for bridge protocol adapters."""

    @property
    @abstractmethod
    def protocol(self) -> BridgeProtocol:
        """Return the protocol this adapter speaks."""
        ...

    def endpoint(self, network: Network) -> str | None:
        """Bridge contract the wallet approves and calls on ``network``."""
        return get_bridge_endpoint(self.protocol, network)

    def destination_id(self, network: Network) -> int | None:
        """Protocol-specific identifier of ``network`` as a destination."""
        return get_destination_id(self.protocol, network)

    @abstractmethod
    def build_call(
        self,
        source_network: Network,
        destination_network: Network,
        sender: str,
        token: str,
        amount: int,
    ) -> BridgeCall:
        """
        Encode the cross-network send.

        The recipient and refund account on the destination are the sender
        itself.

        Raises:
            UnsupportedNetworkError: If either network is not in the tables
        """
        ...
