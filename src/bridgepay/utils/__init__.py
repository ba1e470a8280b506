"""Utility functions for BridgePay."""

from bridgepay.utils.units import (
    format_amount,
    format_units,
    parse_units,
    rescale,
)

__all__ = [
    # Unit conversion
    "format_amount",
    "format_units",
    "parse_units",
    "rescale",
]
