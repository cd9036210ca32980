"""
Currency unit conversion. The network currency has 6 decimal places.
"""

from typing import Union

DIVISIBILITY = 6
_SCALE = 10 ** DIVISIBILITY


def to_xym(micro_xym: Union[int, str]) -> str:
    """
    Whole-unit string without trailing zeros.

    >>> to_xym(1_500_000)
    '1.5'
    >>> to_xym("2000000")
    '2'
    """
    value = int(str(micro_xym))
    sign = "-" if value < 0 else ""
    integer, fraction = divmod(abs(value), _SCALE)
    decimal = f"{fraction:06d}".rstrip("0")
    return f"{sign}{integer}.{decimal}" if decimal else f"{sign}{integer}"


def to_micro_xym(xym: Union[str, int, float]) -> int:
    """
    Micro units of a whole-unit amount. Digits past the sixth decimal are dropped.

    >>> to_micro_xym("1.5")
    1500000
    """
    text = str(xym).strip()
    sign = -1 if text.startswith("-") else 1
    integer, _, decimal = text.lstrip("+-").partition(".")
    return sign * (int(integer or "0") * _SCALE + int((decimal + "000000")[:DIVISIBILITY]))
