"""x402 - Pays HTTP 402 Payment Required responses through the orchestrator."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from bridgepay.core.exceptions import X402Error
from bridgepay.core.logging import get_logger
from bridgepay.core.types import Network, PaymentOutcome, PaymentRequirement

if TYPE_CHECKING:
    from bridgepay.payment.orchestrator import PaymentOrchestrator


# Header names
HEADER_PAYMENT = "X-PAYMENT"
HEADER_PAYMENT_REQUIRED = "X-Payment-Required"

X402_VERSION = 1

# Body keys that mark a JSON 402 body as carrying requirements
_REQUIREMENT_KEYS = frozenset({"accepts", "requirements", "maxAmountRequired"})


@dataclass
class PaymentPayload:
    """Proof of payment sent back in the ``X-PAYMENT`` header."""

    network: str
    transaction_hash: str
    payer: str
    payee: str
    amount: str
    scheme: str = "exact"
    x402_version: int = X402_VERSION
    extra: dict[str, Any] = field(default_factory=dict)

    def to_header(self) -> str:
        data = {
            "x402Version": self.x402_version,
            "scheme": self.scheme,
            "network": self.network,
            "payload": {
                "transactionHash": self.transaction_hash,
                "from": self.payer,
                "to": self.payee,
                "amount": self.amount,
                **self.extra,
            },
        }
        return base64.b64encode(json.dumps(data).encode()).decode()


def _decode_header(value: str, url: str) -> dict[str, Any]:
    try:
        return json.loads(base64.b64decode(value))
    except (binascii.Error, ValueError) as e:
        raise X402Error(
            f"Malformed {HEADER_PAYMENT_REQUIRED} header: {e}", url=url, stage="requirements"
        ) from e


def _response_url(response: httpx.Response) -> str:
    try:
        return str(response.request.url)
    except RuntimeError:
        # Response built without a request
        return ""


def _accepted_options(response: httpx.Response) -> list[dict[str, Any]]:
    url = _response_url(response)
    data: Any = None
    try:
        data = response.json()
    except ValueError:
        data = None

    if not isinstance(data, dict) or not data.keys() & _REQUIREMENT_KEYS:
        header = response.headers.get(HEADER_PAYMENT_REQUIRED)
        if not header:
            raise X402Error(
                "No payment requirements in 402 response (body or header)",
                url=url,
                stage="requirements",
            )
        data = _decode_header(header, url)
        if not isinstance(data, dict):
            raise X402Error(
                f"{HEADER_PAYMENT_REQUIRED} header is not a JSON object",
                url=url,
                stage="requirements",
            )

    if isinstance(data.get("accepts"), list):
        return [option for option in data["accepts"] if isinstance(option, dict)]
    if isinstance(data.get("requirements"), dict):
        return [data["requirements"]]
    return [data]


def _to_requirement(option: dict[str, Any], default_resource: str) -> PaymentRequirement:
    return PaymentRequirement(
        required_amount=str(option.get("maxAmountRequired") or option.get("amount") or ""),
        destination_network=Network.from_string(str(option.get("network", ""))),
        payee_address=option.get("payTo") or option.get("paymentAddress") or "",
        token_address=option.get("asset") or "",
        description=option.get("description") or None,
        resource=option.get("resource") or default_resource,
        amount_is_atomic=True,
    )


def _select_option(response: httpx.Response) -> tuple[PaymentRequirement, dict[str, Any]]:
    url = _response_url(response)
    problems: list[str] = []
    for option in _accepted_options(response):
        try:
            return _to_requirement(option, url), option
        except ValueError as e:
            problems.append(f"{option.get('network', '?')}: {e}")
    raise X402Error(
        "No usable payment option in 402 response",
        url=url,
        stage="requirements",
        details={"rejected": problems},
    )


def parse_payment_required(response: httpx.Response) -> PaymentRequirement:
    """
    Read the payment requirement from a 402 response.

    The JSON body's ``accepts`` list is tried first, then the base64
    ``X-Payment-Required`` header. The first option on a known network
    with a valid amount, payee and asset wins. Amounts are in smallest
    units.

    Raises:
        X402Error: If no usable option is present
    """
    requirement, _ = _select_option(response)
    return requirement


class X402Client:
    """
    HTTP client that settles 402 responses with cross-chain payments.

    Flow:
    1. Request the URL
    2. On 402, parse the requirement and run the orchestrator
    3. On a successful payment, repeat the request with ``X-PAYMENT``
    """

    def __init__(
        self,
        orchestrator: PaymentOrchestrator,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._orchestrator = orchestrator
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._logger = get_logger("x402")

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> X402Client:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> tuple[httpx.Response, PaymentOutcome | None]:
        """
        Request ``url``, paying for it if the server answers 402.

        Returns:
            The final response and the payment outcome (None when no
            payment was needed). If the payment fails the 402 response is
            returned with the failed outcome.

        Raises:
            X402Error: If the 402 response carries no usable requirement
            httpx.HTTPError: On transport failures
        """
        client = self._get_http_client()
        response = await client.request(method, url, **kwargs)
        if response.status_code != 402:
            return response, None

        requirement, option = _select_option(response)
        self._logger.info(
            f"402 from {url}: {requirement.required_amount} of {requirement.token_address} "
            f"on {requirement.destination_network.value} to {requirement.payee_address}"
        )

        outcome = await self._orchestrator.execute_payment(requirement)
        if not outcome.success or not outcome.transaction_hash:
            self._logger.error(f"Payment for {url} failed: {outcome.error_message}")
            return response, outcome

        payload = PaymentPayload(
            network=str(option.get("network", requirement.destination_network.value)),
            transaction_hash=outcome.transaction_hash,
            payer=self._orchestrator.get_config().wallet_address,
            payee=requirement.payee_address,
            amount=requirement.required_amount,
            scheme=str(option.get("scheme", "exact")),
        )
        headers = dict(kwargs.pop("headers", None) or {})
        headers[HEADER_PAYMENT] = payload.to_header()

        paid = await client.request(method, url, headers=headers, **kwargs)
        if paid.status_code == 402:
            self._logger.warning(f"{url} still requires payment after {outcome.transaction_hash}")
        else:
            self._logger.info(f"Access granted to {url} ({paid.status_code})")
        return paid, outcome

    async def get(self, url: str, **kwargs: Any) -> tuple[httpx.Response, PaymentOutcome | None]:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> tuple[httpx.Response, PaymentOutcome | None]:
        return await self.request("POST", url, **kwargs)
