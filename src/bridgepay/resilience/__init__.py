"""
Resilience Layer for BridgePay.

Provides retry policies for idempotent remote reads.
"""

from .retry import DEFAULT_READ_POLICY, RetryPolicy, is_transient_error

__all__ = [
    "DEFAULT_READ_POLICY",
    "RetryPolicy",
    "is_transient_error",
]
