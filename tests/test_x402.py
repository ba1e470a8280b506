"""Tests for x402 parsing and the paying HTTP client."""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from bridgepay.core.config import OrchestratorConfig
from bridgepay.core.exceptions import X402Error
from bridgepay.core.types import Network, PaymentOutcome, PaymentState
from bridgepay.protocols.x402 import HEADER_PAYMENT, X402Client, parse_payment_required

from conftest import PAYEE, TOKEN, WALLET

URL = "https://api.example.com/premium"

ACCEPTS = {
    "x402Version": 1,
    "error": "X-PAYMENT header is required",
    "accepts": [
        {
            "scheme": "exact",
            "network": "base",
            "maxAmountRequired": "1500000",
            "resource": URL,
            "description": "Premium data",
            "payTo": PAYEE,
            "asset": TOKEN,
        }
    ],
}


def _response(status: int = 402, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", URL), **kwargs)


class TestParsePaymentRequired:
    """Tests for parse_payment_required()."""

    def test_accepts_body(self) -> None:
        requirement = parse_payment_required(_response(json=ACCEPTS))

        assert requirement.required_amount == "1500000"
        assert requirement.amount_is_atomic is True
        assert requirement.destination_network is Network.BASE
        assert requirement.payee_address == PAYEE
        assert requirement.token_address == TOKEN
        assert requirement.resource == URL
        assert requirement.description == "Premium data"

    def test_skips_unknown_networks(self) -> None:
        body = {
            "accepts": [
                {**ACCEPTS["accepts"][0], "network": "solana"},
                {**ACCEPTS["accepts"][0], "network": "arbitrum"},
            ]
        }
        assert parse_payment_required(_response(json=body)).destination_network is Network.ARB

    def test_header_fallback(self) -> None:
        header = base64.b64encode(json.dumps(ACCEPTS["accepts"][0]).encode()).decode()
        response = _response(headers={"X-Payment-Required": header})

        assert parse_payment_required(response).destination_network is Network.BASE

    def test_no_requirements(self) -> None:
        with pytest.raises(X402Error) as exc_info:
            parse_payment_required(_response(json={"error": "pay up"}))
        assert exc_info.value.stage == "requirements"
        assert exc_info.value.url == URL

    def test_no_usable_option(self) -> None:
        body = {"accepts": [{**ACCEPTS["accepts"][0], "payTo": ""}]}
        with pytest.raises(X402Error, match="No usable payment option"):
            parse_payment_required(_response(json=body))

    def test_malformed_header(self) -> None:
        with pytest.raises(X402Error, match="Malformed"):
            parse_payment_required(_response(headers={"X-Payment-Required": "%%%not-base64"}))

    def test_header_not_an_object(self) -> None:
        header = base64.b64encode(json.dumps([{"network": "base"}]).encode()).decode()
        with pytest.raises(X402Error, match="not a JSON object") as exc_info:
            parse_payment_required(_response(headers={"X-Payment-Required": header}))
        assert exc_info.value.stage == "requirements"


@pytest.fixture
def orchestrator() -> MagicMock:
    orchestrator = MagicMock()
    orchestrator.get_config.return_value = OrchestratorConfig(wallet_address=WALLET)
    orchestrator.execute_payment = AsyncMock(
        return_value=PaymentOutcome(
            success=True,
            transaction_hash="0xpaid",
            state=PaymentState.RETRY_PAYING,
        )
    )
    return orchestrator


def _server(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if HEADER_PAYMENT in request.headers:
            return httpx.Response(200, json={"data": "premium"})
        return httpx.Response(402, json=ACCEPTS)

    return httpx.MockTransport(handler)


class TestX402Client:
    """Tests for X402Client.request()."""

    @pytest.mark.asyncio
    async def test_pays_and_retries_with_proof(self, orchestrator: MagicMock) -> None:
        seen: list[httpx.Request] = []
        async with httpx.AsyncClient(transport=_server(seen)) as http:
            client = X402Client(orchestrator, http_client=http)
            response, outcome = await client.get(URL, headers={"Accept": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"data": "premium"}
        assert outcome.transaction_hash == "0xpaid"
        assert len(seen) == 2

        requirement = orchestrator.execute_payment.await_args.args[0]
        assert requirement.destination_network is Network.BASE
        assert requirement.required_amount == "1500000"

        proof = json.loads(base64.b64decode(seen[1].headers[HEADER_PAYMENT]))
        assert proof["x402Version"] == 1
        assert proof["scheme"] == "exact"
        assert proof["network"] == "base"
        assert proof["payload"] == {
            "transactionHash": "0xpaid",
            "from": WALLET,
            "to": PAYEE,
            "amount": "1500000",
        }
        assert seen[1].headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_no_payment_needed(self, orchestrator: MagicMock) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="free"))
        async with httpx.AsyncClient(transport=transport) as http:
            response, outcome = await X402Client(orchestrator, http_client=http).get(URL)

        assert response.text == "free"
        assert outcome is None
        orchestrator.execute_payment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_payment_returns_402(self, orchestrator: MagicMock) -> None:
        orchestrator.execute_payment.return_value = PaymentOutcome(
            success=False,
            error_message="Insufficient balance across all chains. Required: 1.5",
            state=PaymentState.FAILED,
        )
        seen: list[httpx.Request] = []
        async with httpx.AsyncClient(transport=_server(seen)) as http:
            response, outcome = await X402Client(orchestrator, http_client=http).get(URL)

        assert response.status_code == 402
        assert outcome.state is PaymentState.FAILED
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_header_list_raises_x402_error(self, orchestrator: MagicMock) -> None:
        header = base64.b64encode(json.dumps([{"network": "base"}]).encode()).decode()
        transport = httpx.MockTransport(
            lambda request: httpx.Response(402, headers={"X-Payment-Required": header})
        )
        async with httpx.AsyncClient(transport=transport) as http:
            with pytest.raises(X402Error):
                await X402Client(orchestrator, http_client=http).get(URL)

        orchestrator.execute_payment.assert_not_called()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self, orchestrator: MagicMock) -> None:
        client = X402Client(orchestrator)
        http = client._get_http_client()
        await client.aclose()
        assert http.is_closed
