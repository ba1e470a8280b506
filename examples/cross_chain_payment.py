"""
Example: Cross-Chain Payment

Pays 1 USDC on Base Sepolia. If the wallet is short on Base Sepolia, funds
are bridged from the best-funded other testnet first.

Requires CIRCLE_API_KEY, ENTITY_SECRET and BRIDGEPAY_WALLET_ADDRESS.
"""

import asyncio
import os

from dotenv import load_dotenv
load_dotenv()

from bridgepay import (
    CircleGatewayConfig,
    Network,
    OrchestratorConfig,
    PaymentOrchestrator,
    PaymentRequirement,
    configure_logging,
)
from bridgepay.core.bridge_constants import get_token_address
from bridgepay.gateway.circle import CircleLedgerGateway


async def main():
    print("=== BridgePay Cross-Chain Payment ===\n")

    config = OrchestratorConfig.from_env(
        supported_networks=(Network.ETH_SEPOLIA, Network.BASE_SEPOLIA),
    )
    configure_logging(config.log_level)

    circle_config = CircleGatewayConfig.from_env()
    print(f"✅ Circle API key: {circle_config.masked_api_key()}")
    gateway = CircleLedgerGateway.from_config(circle_config)

    orchestrator = PaymentOrchestrator(gateway, config)

    requirement = PaymentRequirement(
        required_amount="1.00",
        destination_network=Network.BASE_SEPOLIA,
        payee_address=os.environ.get(
            "PAYEE_ADDRESS", "0x742d35Cc6634C0532925a3b844Bc9e7595f5e4a0"
        ),
        token_address=get_token_address(Network.BASE_SEPOLIA, "USDC"),
        description="Example payment",
    )

    print(f"📤 Paying {requirement.required_amount} USDC on {requirement.destination_network.value}...")
    outcome = await orchestrator.execute_payment(requirement)

    if outcome.success:
        print(f"✅ Paid ({outcome.state.value}). Tx: {outcome.transaction_hash}")
        if outcome.bridge_route:
            route = outcome.bridge_route
            print(f"   Bridged from {route.source_network.value}: {outcome.bridge_transaction_hash}")
    else:
        print(f"❌ {outcome.state.value}: {outcome.error_message}")


if __name__ == "__main__":
    asyncio.run(main())
