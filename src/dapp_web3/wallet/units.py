"""Conversions between raw integer amounts and decimal strings.

Amounts are handled as digit strings end to end so that wei-scale values
never pass through floats.
"""

from __future__ import annotations


def _as_int(decimals: int | str) -> int:
    value = int(decimals)
    if value < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals!r}")
    return value


def to_decimal(number: str | int, decimals: int | str) -> str:
    """Render a raw integer amount as a decimal string.

    ``to_decimal("1", 2)`` -> ``"0.01"``, ``to_decimal("100", 2)`` -> ``"1"``.
    """
    number = str(number)
    decimals = _as_int(decimals)

    if len(number) < decimals:
        number = "0" * (decimals - len(number)) + number
    difference = len(number) - decimals

    integer = "0" if difference == 0 else number[:difference]
    fraction = number[difference:].rstrip("0")

    return integer + ("." if fraction else "") + fraction


def from_decimal(number: str, decimals: int | str) -> str:
    """Convert a decimal string to a raw integer string.

    Raises ``ValueError`` when *number* has more fractional digits than
    *decimals* can hold.
    """
    decimals = _as_int(decimals)
    integer, _, fraction = str(number).partition(".")
    if len(fraction) > decimals:
        raise ValueError("The fractional amount of the passed number was too high")
    return integer + fraction + "0" * (decimals - len(fraction))
