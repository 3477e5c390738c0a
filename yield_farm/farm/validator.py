from __future__ import annotations

from yield_farm.core.utils.units import (
    fractional_digits,
    is_decimal_string,
    to_decimal,
    to_fixed_point,
)
from yield_farm.farm.types import (
    BalanceSnapshot,
    ValidationErrorKind,
    ValidationResult,
)

NOT_POSITIVE_MESSAGE = "Amount must be a positive number"
EXCEEDS_BALANCE_MESSAGE = "Amount exceeds available balance"


def validate_amount(raw_amount: str, snapshot: BalanceSnapshot) -> ValidationResult:
    """Check a withdrawal amount typed by the user against the snapshot.

    Rules run in order and stop at the first failure:

    1. plain decimal notation, strictly greater than zero;
    2. no more fractional digits than ``snapshot.decimals`` (if known);
    3. fixed-point value not above ``snapshot.staked_amount`` (if both known).

    Missing snapshot data disables the rule that needs it instead of failing.
    ``parsed_amount`` is ``None`` on a passing result while decimals are unknown.
    """
    text = (raw_amount or "").strip()

    if not is_decimal_string(text) or to_decimal(text) <= 0:
        return ValidationResult.invalid(
            ValidationErrorKind.NOT_POSITIVE, NOT_POSITIVE_MESSAGE
        )

    decimals = snapshot.decimals
    if decimals is None:
        return ValidationResult.valid(None)

    if fractional_digits(text) > decimals:
        return ValidationResult.invalid(
            ValidationErrorKind.TOO_MANY_DECIMALS,
            f"Amount cannot have more than {decimals} decimal places",
        )

    staked = snapshot.staked_amount
    if staked is not None and _integer_digits(text) > len(str(staked)):
        return ValidationResult.invalid(
            ValidationErrorKind.EXCEEDS_BALANCE, EXCEEDS_BALANCE_MESSAGE
        )

    parsed = to_fixed_point(text, decimals)
    if staked is not None and parsed > staked:
        return ValidationResult.invalid(
            ValidationErrorKind.EXCEEDS_BALANCE, EXCEEDS_BALANCE_MESSAGE
        )

    return ValidationResult.valid(parsed)


def _integer_digits(text: str) -> int:
    return len(text.split(".", 1)[0].lstrip("0"))
