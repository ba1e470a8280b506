"""
Bridge protocol endpoint tables.

LayerZero endpoints and chain ids:
https://docs.layerzero.network/v1/deployments/deployed-contracts

Chainlink CCIP routers and chain selectors:
https://docs.chain.link/ccip/directory

Every table is keyed by Network and must cover every member; a gap is
reported at import time instead of resolving to a zero identifier later.
"""

from __future__ import annotations

from collections.abc import Mapping

from bridgepay.core.exceptions import ConfigurationError
from bridgepay.core.types import BridgeProtocol, Network

# LayerZero V1 Endpoint Addresses
LAYERZERO_ENDPOINTS: dict[Network, str] = {
    Network.ETH: "0x66A71Dcef29A0fFBDBE3c6a460a3B5BC225Cd675",
    Network.ETH_SEPOLIA: "0xae92d5aD7583AD66E49A0c67BAd18F6ba52dDDc1",
    Network.BASE: "0xb6319cC6c8c27A8F5dAF0dD3DF91EA35C4720dd7",
    Network.BASE_SEPOLIA: "0x6EDCE65403992e310A62460808c4b910D972f10f",
    Network.ARB: "0x3c2269811836af69497E5F486A85D7316753cf62",
    Network.OP: "0x3c2269811836af69497E5F486A85D7316753cf62",
    Network.MATIC: "0x3c2269811836af69497E5F486A85D7316753cf62",
}

# LayerZero V1 chain ids (uint16)
LAYERZERO_CHAIN_IDS: dict[Network, int] = {
    Network.ETH: 101,
    Network.ETH_SEPOLIA: 10161,
    Network.BASE: 184,
    Network.BASE_SEPOLIA: 10160,
    Network.ARB: 110,
    Network.OP: 111,
    Network.MATIC: 109,
}

# Chainlink CCIP Router Addresses
CCIP_ROUTERS: dict[Network, str] = {
    Network.ETH: "0x80226fc0Ee2b096224EeAc085Bb9a8cba1146f7D",
    Network.ETH_SEPOLIA: "0x0BF3dE8c5D3e8A2B34D2BEeB17ABfCeBaf363A59",
    Network.BASE: "0x881e3A65B4d4a04dD529061dd0071cf975F58bCD",
    Network.BASE_SEPOLIA: "0xD3b06cEbF099CE7DA4AcCf578aaebFDBd6e88a93",
    Network.ARB: "0x141fa059441E0ca23ce184B6A78bafD2A517DdE8",
    Network.OP: "0x3206695CaE29952f4b0c22a169725a865bc8Ce0f",
    Network.MATIC: "0x849c5ED5a80F5B408Dd4969b78c2C8fdf0565Bfe",
}

# Chainlink CCIP chain selectors (uint64)
CCIP_CHAIN_SELECTORS: dict[Network, int] = {
    Network.ETH: 5009297550715157269,
    Network.ETH_SEPOLIA: 16015286601757825753,
    Network.BASE: 15971525489660198786,
    Network.BASE_SEPOLIA: 10344971235874465080,
    Network.ARB: 4949039107694359620,
    Network.OP: 3734403246176062136,
    Network.MATIC: 4051577828743386545,
}

# Common token addresses, by network
TOKEN_ADDRESSES: dict[Network, dict[str, str]] = {
    Network.BASE: {
        "USDC": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        "WETH": "0x4200000000000000000000000000000000000006",
    },
    Network.BASE_SEPOLIA: {
        "USDC": "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        "WETH": "0x4200000000000000000000000000000000000006",
    },
    Network.ETH: {
        "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    },
    Network.ETH_SEPOLIA: {
        "USDC": "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
        "WETH": "0x7b79995e5f793A07Bc00c21412e50Ecae098E7f9",
    },
    Network.ARB: {
        "USDC": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
    },
    Network.OP: {
        "USDC": "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
    },
    Network.MATIC: {
        "USDC": "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
    },
}

BRIDGE_ENDPOINTS: dict[BridgeProtocol, Mapping[Network, str]] = {
    BridgeProtocol.LAYERZERO: LAYERZERO_ENDPOINTS,
    BridgeProtocol.CCIP: CCIP_ROUTERS,
}

BRIDGE_DESTINATION_IDS: dict[BridgeProtocol, Mapping[Network, int]] = {
    BridgeProtocol.LAYERZERO: LAYERZERO_CHAIN_IDS,
    BridgeProtocol.CCIP: CCIP_CHAIN_SELECTORS,
}


def validate_tables(
    endpoints: Mapping[BridgeProtocol, Mapping[Network, str]] = BRIDGE_ENDPOINTS,
    destination_ids: Mapping[BridgeProtocol, Mapping[Network, int]] = BRIDGE_DESTINATION_IDS,
) -> None:
    """
    Check every protocol table covers every Network with a usable value.

    Raises:
        ConfigurationError: Listing each protocol/table/network gap
    """
    problems: list[str] = []
    for protocol in BridgeProtocol:
        endpoint_table = endpoints.get(protocol)
        id_table = destination_ids.get(protocol)
        if endpoint_table is None or id_table is None:
            problems.append(f"{protocol.value}: missing table")
            continue
        for network in Network:
            if not endpoint_table.get(network):
                problems.append(f"{protocol.value}: no endpoint for {network.value}")
            if not id_table.get(network):
                problems.append(f"{protocol.value}: no destination id for {network.value}")
    if problems:
        raise ConfigurationError(
            "Bridge endpoint tables are incomplete",
            details={"problems": problems},
        )


def get_bridge_endpoint(protocol: BridgeProtocol, network: Network) -> str | None:
    """Get the bridge endpoint contract for a network, or None if absent."""
    return BRIDGE_ENDPOINTS.get(protocol, {}).get(network)


def get_destination_id(protocol: BridgeProtocol, network: Network) -> int | None:
    """Get the protocol-specific destination identifier, or None if absent."""
    return BRIDGE_DESTINATION_IDS.get(protocol, {}).get(network)


def is_bridge_supported(protocol: BridgeProtocol, network: Network) -> bool:
    """Check if a protocol can both send from and deliver to a network."""
    return (
        get_bridge_endpoint(protocol, network) is not None
        and get_destination_id(protocol, network) is not None
    )


def get_token_address(network: Network, symbol: str) -> str | None:
    """Look up a well-known token contract by symbol."""
    return TOKEN_ADDRESSES.get(network, {}).get(symbol.upper())


validate_tables()
