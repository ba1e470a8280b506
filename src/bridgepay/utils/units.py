"""Token amount conversion between human-readable strings and smallest units."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation


def parse_units(amount: str | int | Decimal, decimals: int) -> int:
    """
    Parse a human-readable amount into the token's smallest unit.

    Args:
        amount: Decimal amount, e.g. "10.5"
        decimals: Token decimal places

    Returns:
        Integer amount in smallest units

    Raises:
        ValueError: If the amount is not numeric or has more precision
            than the token supports
    """
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
    return int(scaled)


def format_units(amount: int, decimals: int) -> str:
    """Format a smallest-unit amount as a human-readable decimal string."""
    if decimals == 0:
        return str(amount)
    value = Decimal(amount).scaleb(-decimals)
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_amount(amount: int, decimals: int, symbol: str | None = None) -> str:
    """Format amount with proper decimals and an optional symbol."""
    formatted = format_units(amount, decimals)
    return f"{formatted} {symbol}" if symbol else formatted


def rescale(amount: int, from_decimals: int, to_decimals: int, round_up: bool = False) -> int:
    """
    Convert a smallest-unit amount between two decimal precisions.

    Scaling down truncates unless ``round_up`` is set, in which case any
    remainder rounds away from zero.
    """
    if from_decimals == to_decimals:
        return amount
    if to_decimals > from_decimals:
        return amount * 10 ** (to_decimals - from_decimals)

    factor = 10 ** (from_decimals - to_decimals)
    quotient, remainder = divmod(amount, factor)
    if round_up and remainder:
        quotient += 1
    return quotient
