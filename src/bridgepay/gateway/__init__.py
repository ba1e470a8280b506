"""
Ledger Gateway implementations.

The Circle-backed gateway needs the Circle SDK; import it from
``bridgepay.gateway.circle``.
"""

from bridgepay.gateway.base import LedgerGateway

__all__ = ["LedgerGateway"]
