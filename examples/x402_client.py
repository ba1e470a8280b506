"""
Example: x402 Client

Fetches a 402-gated resource, paying (and bridging if needed) on demand.

Usage:
    python examples/x402_client.py http://localhost:8000/premium
"""

import asyncio
import sys

from dotenv import load_dotenv
load_dotenv()

from bridgepay import (
    CircleGatewayConfig,
    OrchestratorConfig,
    PaymentOrchestrator,
    X402Client,
    configure_logging,
)
from bridgepay.gateway.circle import CircleLedgerGateway


async def main(url: str):
    config = OrchestratorConfig.from_env()
    configure_logging(config.log_level)

    gateway = CircleLedgerGateway.from_config(CircleGatewayConfig.from_env())
    orchestrator = PaymentOrchestrator(gateway, config)

    async with X402Client(orchestrator) as client:
        response, outcome = await client.get(url)

    if outcome is None:
        print(f"No payment needed ({response.status_code})")
    elif outcome.success:
        print(f"✅ Paid {outcome.transaction_hash}; server answered {response.status_code}")
    else:
        print(f"❌ Payment failed ({outcome.state.value}): {outcome.error_message}")

    print(response.text[:500])


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
