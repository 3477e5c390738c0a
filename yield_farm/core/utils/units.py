from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_DECIMAL_RE = re.compile(r"^(?P<int>\d*)(?:\.(?P<frac>\d*))?$")
_INT_CHUNK_DIGITS = 1000


class ParseError(ValueError):
    """Raised when an amount string cannot be converted to fixed-point units."""


def _split_decimal(value: str) -> tuple[str, str]:
    text = str(value).strip()
    match = _DECIMAL_RE.match(text)
    if match is None:
        raise ParseError(f"Invalid decimal amount: {value!r}")
    int_part = match.group("int") or ""
    frac_part = match.group("frac") or ""
    if not int_part and not frac_part:
        raise ParseError(f"Invalid decimal amount: {value!r}")
    return int_part, frac_part


def is_decimal_string(value: str) -> bool:
    try:
        _split_decimal(value)
    except ParseError:
        return False
    return True


def fractional_digits(value: str) -> int:
    """Number of digits after the decimal point of a plain decimal string."""
    _, frac_part = _split_decimal(value)
    return len(frac_part)


def to_decimal(value: str) -> Decimal:
    int_part, frac_part = _split_decimal(value)
    try:
        return Decimal(f"{int_part or '0'}.{frac_part or '0'}")
    except InvalidOperation as exc:
        raise ParseError(f"Invalid decimal amount: {value!r}") from exc


def to_fixed_point(amount: str, decimals: int) -> int:
    """Convert a human decimal string to an integer scaled by ``10**decimals``.

    Only plain non-negative decimal notation is accepted ("1", "1.5", ".5",
    "2."). Input with more fractional digits than ``decimals`` is rejected
    rather than rounded.
    """
    decimals = int(decimals)
    if decimals < 0:
        raise ParseError("decimals must be non-negative")
    int_part, frac_part = _split_decimal(amount)
    if len(frac_part) > decimals:
        raise ParseError(
            f"Amount {amount!r} has more than {decimals} fractional digits"
        )
    return _digits_to_int(int_part + frac_part.ljust(decimals, "0"))


def _digits_to_int(digits: str) -> int:
    # int(str) is capped at sys.get_int_max_str_digits(), so convert in chunks
    value = 0
    for start in range(0, len(digits), _INT_CHUNK_DIGITS):
        chunk = digits[start : start + _INT_CHUNK_DIGITS]
        value = value * 10 ** len(chunk) + int(chunk)
    return value


def to_decimal_string(amount: int, decimals: int) -> str:
    """Inverse of `to_fixed_point`, trailing zeros trimmed."""
    decimals = int(decimals)
    if decimals < 0:
        raise ValueError("decimals must be non-negative")
    value = int(amount)
    sign = "-" if value < 0 else ""
    digits = str(abs(value)).rjust(decimals + 1, "0")
    if decimals == 0:
        return f"{sign}{digits}"
    int_part, frac_part = digits[:-decimals], digits[-decimals:].rstrip("0")
    if not frac_part:
        return f"{sign}{int_part}"
    return f"{sign}{int_part}.{frac_part}"
