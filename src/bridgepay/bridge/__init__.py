"""
Cross-network bridging.

Adapters encode each protocol's send call; the executor runs the
approve-then-send sequence through the Ledger Gateway.
"""

from bridgepay.bridge.base import BridgeAdapter, BridgeCall
from bridgepay.bridge.ccip import CcipBridgeAdapter
from bridgepay.bridge.executor import BridgeExecutor
from bridgepay.bridge.layerzero import LayerZeroBridgeAdapter
from bridgepay.core.types import BridgeProtocol

_ADAPTERS: dict[BridgeProtocol, type[BridgeAdapter]] = {
    BridgeProtocol.LAYERZERO: LayerZeroBridgeAdapter,
    BridgeProtocol.CCIP: CcipBridgeAdapter,
}


def get_bridge_adapter(protocol: BridgeProtocol | str) -> BridgeAdapter:
    """Create the adapter for a bridge protocol."""
    if not isinstance(protocol, BridgeProtocol):
        protocol = BridgeProtocol(str(protocol).lower())
    return _ADAPTERS[protocol]()


__all__ = [
    "BridgeAdapter",
    "BridgeCall",
    "BridgeExecutor",
    "CcipBridgeAdapter",
    "LayerZeroBridgeAdapter",
    "get_bridge_adapter",
]
