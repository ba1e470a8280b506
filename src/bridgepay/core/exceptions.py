"""
Exception hierarchy for BridgePay.

All package-specific exceptions inherit from BridgePayError for easy catching.
The payment orchestrator converts every exception into a failed outcome, so
these surface to callers only from lower-level components.
"""

from __future__ import annotations

from typing import Any


class BridgePayError(Exception):
    """
    Base exception for all BridgePay errors.

    Example:
        >>> try:
        ...     await scanner.check_balance(token, Network.BASE)
        ... except BridgePayError as e:
        ...     print(f"Balance read failed: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(BridgePayError):
    """
    Configuration is missing or invalid.

    Raised when:
    - Required configuration values are not provided
    - Configuration values fail validation
    - Bridge endpoint tables do not cover every supported network
    """

    pass


class ValidationError(BridgePayError, ValueError):
    """
    Input validation error.

    Also a ValueError, so callers validating plain values can catch either.

    Raised when:
    - Required parameters are missing
    - Parameter values are invalid
    """

    pass


class GatewayError(BridgePayError):
    """
    A Ledger Gateway call failed.

    Raised when:
    - A balance or metadata read fails
    - An approval, transfer or raw transaction is rejected
    - The wallet cannot be resolved on the requested network
    """

    def __init__(
        self,
        message: str,
        network: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.network = network


class NetworkError(GatewayError):
    """
    Network or API communication error.

    Raised when:
    - HTTP request fails (timeout, connection error)
    - API returns unexpected response
    - Rate limiting encountered
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        network: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, network=network, details=details)
        self.status_code = status_code

    def is_rate_limited(self) -> bool:
        """Check if this is a rate limit error."""
        return self.status_code == 429

    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code is not None and 500 <= self.status_code < 600


class UnsupportedNetworkError(BridgePayError):
    """
    A bridge protocol has no endpoint or identifier for a network.

    Raised before any on-chain action is attempted.
    """

    def __init__(
        self,
        message: str,
        network: str,
        protocol: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.network = network
        self.protocol = protocol


class ProtocolError(BridgePayError):
    """
    Payment protocol error.

    Raised when:
    - Protocol-specific parsing fails
    - Invalid protocol response
    """

    def __init__(
        self,
        message: str,
        protocol: str = "unknown",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.protocol = protocol

    def __str__(self) -> str:
        return f"[{self.protocol}] {self.message}"


class X402Error(ProtocolError):
    """
    x402 protocol error.

    Raised when:
    - Server returns 402 but payment requirements are invalid
    - No accepted payment option matches a supported network
    """

    def __init__(
        self,
        message: str,
        url: str,
        stage: str,  # "requirements", "payment", "access"
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, protocol="x402", details=details)
        self.url = url
        self.stage = stage

    def __str__(self) -> str:
        return f"[x402:{self.stage}] {self.message} (URL: {self.url})"
