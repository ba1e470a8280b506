"""
Payment protocol front ends.

- X402Client: Settles HTTP 402 Payment Required responses
"""

from bridgepay.protocols.x402 import PaymentPayload, X402Client, parse_payment_required

__all__ = [
    "PaymentPayload",
    "X402Client",
    "parse_payment_required",
]
