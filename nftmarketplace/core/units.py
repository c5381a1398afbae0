"""Conversions between decimal ether strings and integer wei.

All amounts inside the marketplace are non-negative ``int`` wei.  Decimal
strings only appear at the edges (config, CLI flags, rendered tables).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

WEI_PER_ETHER = 10**18


def parse_ether(value: str | int | Decimal) -> int:
    """Convert an ether amount (e.g. ``"0.1"``) to integer wei.

    Raises ``ValueError`` for negative values, malformed strings, or
    amounts with more precision than one wei.
    """
    try:
        ether = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid ether amount: {value!r}") from exc

    if not ether.is_finite():
        raise ValueError(f"Invalid ether amount: {value!r}")
    if ether < 0:
        raise ValueError(f"Ether amount must not be negative: {value!r}")

    wei = ether * WEI_PER_ETHER
    if wei != wei.to_integral_value():
        raise ValueError(f"Ether amount is more precise than 1 wei: {value!r}")
    return int(wei)


def format_ether(wei: int) -> str:
    """Render integer wei as a decimal ether string.

    >>> format_ether(10**17)
    '0.1'
    >>> format_ether(150 * 10**18)
    '150.0'
    """
    if wei < 0:
        raise ValueError(f"Wei amount must not be negative: {wei}")
    text = format((Decimal(wei) / WEI_PER_ETHER).normalize(), "f")
    if "." not in text:
        text += ".0"
    return text
