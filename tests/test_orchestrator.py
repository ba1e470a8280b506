"""Tests for PaymentOrchestrator."""

import pytest

from bridgepay.core.bridge_constants import CCIP_ROUTERS
from bridgepay.core.config import OrchestratorConfig
from bridgepay.core.exceptions import GatewayError
from bridgepay.core.types import Network, PaymentRequirement, PaymentState
from bridgepay.payment.orchestrator import PaymentOrchestrator
from bridgepay.payment.scanner import BalanceScanner
from bridgepay.payment.watcher import CompletionWatcher
from bridgepay.resilience.retry import RetryPolicy

from conftest import PAYEE, TOKEN, WALLET, FakeClock, FakeLedgerGateway

USDC = 10**6


def _orchestrator(
    gateway: FakeLedgerGateway,
    config: OrchestratorConfig,
    clock: FakeClock,
    scanner: BalanceScanner | None = None,
) -> PaymentOrchestrator:
    scanner = scanner or BalanceScanner(gateway, WALLET, RetryPolicy.none())
    watcher = CompletionWatcher(scanner, clock=clock, sleep=clock.sleep)
    return PaymentOrchestrator(gateway, config, scanner=scanner, watcher=watcher)


def _credit_on_submit(gateway: FakeLedgerGateway, network: Network, amount: int) -> None:
    def credit(*_):
        gateway.balances[network] = gateway.balances.get(network, 0) + amount

    gateway.on_submit = credit


class TestDirectPayment:
    """Target network already holds enough."""

    @pytest.mark.asyncio
    async def test_pays_without_scanning_or_bridging(
        self,
        config: OrchestratorConfig,
        requirement: PaymentRequirement,
        fake_clock: FakeClock,
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.BASE: 20 * USDC, Network.ARB: 100 * USDC})
        orchestrator = _orchestrator(gateway, config, fake_clock)

        outcome = await orchestrator.execute_payment(requirement)

        assert outcome.success is True
        assert outcome.state is PaymentState.PAYING
        assert outcome.transaction_hash == "0xtransfer0001"
        assert outcome.bridge_route is None
        assert gateway.ops() == ["metadata", "balance", "transfer"]

        _, network, transfer = gateway.calls[-1]
        assert network is Network.BASE
        assert transfer == {
            "sender": WALLET,
            "recipient": PAYEE,
            "token": TOKEN,
            "amount": 10 * USDC,
        }

    @pytest.mark.asyncio
    async def test_exact_balance_is_sufficient(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.BASE: 10 * USDC})
        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)
        assert outcome.state is PaymentState.PAYING

    @pytest.mark.asyncio
    async def test_atomic_amount_is_not_rescaled(
        self, config: OrchestratorConfig, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.BASE: 20 * USDC})
        requirement = PaymentRequirement(
            "2500000", Network.BASE, PAYEE, TOKEN, amount_is_atomic=True
        )

        await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert gateway.calls[-1][2]["amount"] == 2_500_000


class TestInsufficientEverywhere:

    @pytest.mark.asyncio
    async def test_fails_without_moving_funds(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(
            balances={Network.BASE: 1 * USDC, Network.ETH: 5 * USDC, Network.ARB: 6 * USDC}
        )

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.success is False
        assert outcome.state is PaymentState.FAILED
        assert outcome.error_message == "Insufficient balance across all chains. Required: 10"
        assert not {"approve", "submit", "transfer"} & set(gateway.ops())

    @pytest.mark.asyncio
    async def test_only_target_funded_elsewhere_counts(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        """The destination's own balance is never a bridge source."""
        gateway = FakeLedgerGateway(balances={Network.BASE: 9 * USDC})

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.state is PaymentState.FAILED
        assert "Required: 10" in outcome.error_message


class TestBridgedPayment:
    """Funds must be bridged in first."""

    @pytest.mark.asyncio
    async def test_happy_path(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(
            balances={Network.BASE: 0, Network.ETH: 15 * USDC, Network.ARB: 50 * USDC}
        )
        _credit_on_submit(gateway, Network.BASE, 10 * USDC)

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.success is True
        assert outcome.state is PaymentState.RETRY_PAYING
        assert outcome.bridge_route.source_network is Network.ARB
        assert outcome.bridge_route.destination_network is Network.BASE
        assert outcome.bridge_route.amount == 10 * USDC
        assert outcome.bridge_transaction_hash == "0xsubmit0002"
        assert outcome.transaction_hash == "0xtransfer0003"

        ops = gateway.ops()
        assert ops.index("approve") < ops.index("submit") < ops.index("transfer")
        approve = next(c for c in gateway.calls if c[0] == "approve")
        assert approve[1] is Network.ARB
        transfer = gateway.calls[-1]
        assert transfer[1] is Network.BASE
        assert transfer[2]["amount"] == 10 * USDC
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_waits_for_arrival(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.ETH: 15 * USDC})
        orchestrator = _orchestrator(gateway, config, fake_clock)

        async def sleep_then_land(seconds: float) -> None:
            await fake_clock.sleep(seconds)
            if len(fake_clock.sleeps) == 2:
                gateway.balances[Network.BASE] = 10 * USDC

        orchestrator._watcher._sleep = sleep_then_land

        outcome = await orchestrator.execute_payment(requirement)

        assert outcome.state is PaymentState.RETRY_PAYING
        assert fake_clock.sleeps == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_approval_failure_stops_flow(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.ETH: 15 * USDC})
        gateway.errors["approve"] = GatewayError("approval rejected")

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.success is False
        assert outcome.state is PaymentState.BRIDGE_FAILED
        assert outcome.error_message.startswith("Bridge failed: ")
        assert "approval rejected" in outcome.error_message
        assert "submit" not in gateway.ops()
        assert "transfer" not in gateway.ops()

    @pytest.mark.asyncio
    async def test_send_failure_records_revoke(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.ETH: 15 * USDC})
        gateway.errors["submit"] = GatewayError("reverted")

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.state is PaymentState.BRIDGE_FAILED
        assert outcome.metadata["approval_revoked"] is True
        assert outcome.bridge_route.source_network is Network.ETH

    @pytest.mark.asyncio
    async def test_timeout(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.ETH: 15 * USDC})

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.success is False
        assert outcome.state is PaymentState.TIMEOUT
        assert outcome.error_message == "Bridge verification timeout after 30s"
        assert outcome.bridge_transaction_hash == "0xsubmit0002"
        assert "transfer" not in gateway.ops()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("max_wait", "expected"),
        [(1_000_000, "1000000s"), (180.0, "180s"), (2.5, "2.5s")],
    )
    async def test_timeout_message_wait_formatting(
        self,
        config: OrchestratorConfig,
        requirement: PaymentRequirement,
        fake_clock: FakeClock,
        max_wait: float,
        expected: str,
    ) -> None:
        config = config.with_updates(
            max_bridge_wait_seconds=max_wait, poll_interval_ms=2_000_000_000
        )
        gateway = FakeLedgerGateway(balances={Network.ETH: 15 * USDC})

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.state is PaymentState.TIMEOUT
        assert outcome.error_message == f"Bridge verification timeout after {expected}"

    @pytest.mark.asyncio
    async def test_source_with_other_decimals(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(
            balances={Network.ETH: 50 * 10**18}, decimals={Network.ETH: 18}
        )
        _credit_on_submit(gateway, Network.BASE, 10 * USDC)

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.success is True
        assert outcome.bridge_route.amount == 10 * 10**18
        approve = next(c for c in gateway.calls if c[0] == "approve")
        assert approve[2]["amount"] == 10 * 10**18


class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_bridge_then_pay_on_second_poll(
        self, config: OrchestratorConfig, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.BASE: 0, Network.OP: 1000 * USDC})
        requirement = PaymentRequirement("500", Network.BASE, PAYEE, TOKEN)
        orchestrator = _orchestrator(gateway, config, fake_clock)

        async def land_after_first_poll(seconds: float) -> None:
            await fake_clock.sleep(seconds)
            gateway.balances[Network.BASE] = 500 * USDC

        orchestrator._watcher._sleep = land_after_first_poll

        outcome = await orchestrator.execute_payment(requirement)

        assert outcome.success is True
        assert outcome.transaction_hash is not None
        approve = next(c for c in gateway.calls if c[0] == "approve")
        assert approve[1] is Network.OP
        assert approve[2]["token"] == TOKEN
        assert approve[2]["amount"] == 500 * USDC
        assert outcome.bridge_route.destination_network is Network.BASE
        assert len(fake_clock.sleeps) == 1
        transfer = gateway.calls[-1]
        assert transfer[0] == "transfer"
        assert transfer[2]["amount"] == 500 * USDC


class TestNeverRaises:

    @pytest.mark.asyncio
    async def test_target_read_failure_becomes_outcome(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway()
        gateway.metadata_errors[Network.BASE] = GatewayError("rpc exploded")

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.success is False
        assert outcome.state is PaymentState.FAILED
        assert outcome.error_message == "rpc exploded"
        assert "attempt_id" in outcome.metadata

    @pytest.mark.asyncio
    async def test_payment_failure_after_bridge_becomes_outcome(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.ETH: 15 * USDC})
        _credit_on_submit(gateway, Network.BASE, 10 * USDC)
        gateway.errors["transfer"] = GatewayError("payee rejected")

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.success is False
        assert outcome.state is PaymentState.FAILED
        assert "payee rejected" in outcome.error_message

    @pytest.mark.asyncio
    async def test_excess_precision_becomes_outcome(
        self, config: OrchestratorConfig, fake_clock: FakeClock
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.BASE: 20 * USDC})
        requirement = PaymentRequirement("1.0000001", Network.BASE, PAYEE, TOKEN)

        outcome = await _orchestrator(gateway, config, fake_clock).execute_payment(requirement)

        assert outcome.state is PaymentState.FAILED
        assert "decimal places" in outcome.error_message


class TestConfiguration:
    """Tests for get_config() / update_config()."""

    def test_update_config_swaps_value(self, config: OrchestratorConfig) -> None:
        orchestrator = PaymentOrchestrator(FakeLedgerGateway(), config)

        updated = orchestrator.update_config(poll_interval_ms=1_000)

        assert orchestrator.get_config() is updated
        assert updated.poll_interval_ms == 1_000
        assert config.poll_interval_ms == 5_000

    def test_invalid_update_keeps_current(self, config: OrchestratorConfig) -> None:
        orchestrator = PaymentOrchestrator(FakeLedgerGateway(), config)

        with pytest.raises(ValueError):
            orchestrator.update_config(max_bridge_wait_seconds=-5)

        assert orchestrator.get_config() is config

    @pytest.mark.asyncio
    async def test_attempt_keeps_its_snapshot(
        self, config: OrchestratorConfig, requirement: PaymentRequirement, fake_clock: FakeClock
    ) -> None:
        """A mid-attempt update does not change that attempt's settings."""
        gateway = FakeLedgerGateway(balances={Network.ETH: 15 * USDC})
        _credit_on_submit(gateway, Network.BASE, 10 * USDC)
        other_wallet = "0x3333333333333333333333333333333333333333"

        class UpdatingScanner(BalanceScanner):
            async def scan_all_chains(self, token, networks):
                orchestrator.update_config(wallet_address=other_wallet, max_bridge_wait_seconds=1)
                return await super().scan_all_chains(token, networks)

        scanner = UpdatingScanner(gateway, WALLET, RetryPolicy.none())
        orchestrator = _orchestrator(gateway, config, fake_clock, scanner=scanner)

        outcome = await orchestrator.execute_payment(requirement)

        assert outcome.success is True
        assert gateway.calls[-1][2]["sender"] == WALLET
        assert orchestrator.get_config().wallet_address == other_wallet

    @pytest.mark.asyncio
    async def test_components_follow_config(
        self, config: OrchestratorConfig, requirement: PaymentRequirement
    ) -> None:
        gateway = FakeLedgerGateway(balances={Network.OP: 15 * USDC})
        _credit_on_submit(gateway, Network.BASE, 10 * USDC)
        orchestrator = PaymentOrchestrator(gateway, config)
        orchestrator.update_config(bridge_protocol="ccip")

        outcome = await orchestrator.execute_payment(requirement)

        assert outcome.success is True
        approve = next(c for c in gateway.calls if c[0] == "approve")
        assert approve[2]["spender"] == CCIP_ROUTERS[Network.OP]
