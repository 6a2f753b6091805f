"""Exact conversion between human decimal amounts and integer base units.

Base units are plain ``int`` (arbitrary precision) and human amounts are
``decimal.Decimal``. Nothing in here touches binary floating point: a float
has no exact decimal expansion, so it is refused at the boundary.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple, Union

from core.constants import FULL_PERCENTAGE
from core.exceptions import PrecisionExceeded, ValidationError
from schemas.asset import AssetSpec

HumanInput = Union[Decimal, int, str]

# bounds on accepted amounts, checked before any arithmetic on the value
MAX_INTEGER_DIGITS = 30
MAX_FRACTIONAL_DIGITS = 30


def _as_decimal(value: HumanInput) -> Decimal:
    if isinstance(value, float):
        raise TypeError("float amounts are not accepted, pass a str or Decimal")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Not a finite amount: {value!r}")
    if amount.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValidationError(f"Amount is too large: {value!r}")
    if amount.as_tuple().exponent < -MAX_FRACTIONAL_DIGITS:
        raise ValidationError(f"Amount has too many decimal places: {value!r}")
    return amount


def fractional_digits(amount: Decimal) -> int:
    """Number of fractional digits as written, trailing zeros included."""
    return max(0, -amount.as_tuple().exponent)


def to_base_units(human_amount: HumanInput, asset: AssetSpec) -> int:
    """Render ``human_amount`` with exactly ``asset.decimals`` fractional
    digits and read the digit string as an integer.

    Extra fractional digits are truncated, not rounded. Callers are expected
    to reject over-precise input first (see ``parse_human_amount``).
    """
    amount = _as_decimal(human_amount)
    if amount < 0:
        raise ValidationError("Amount must not be negative")

    integer_part, _, fraction_part = format(amount, "f").partition(".")
    fraction_part = fraction_part.ljust(asset.decimals, "0")[: asset.decimals]
    return int(integer_part + fraction_part)


def to_human_amount(base_units: int, asset: AssetSpec) -> Decimal:
    if base_units < 0:
        raise ValidationError("Base units must not be negative")
    divisor = 10**asset.decimals
    integer_part, remainder = divmod(int(base_units), divisor)
    return Decimal(integer_part) + Decimal(remainder).scaleb(-asset.decimals)


def format_amount(
    amount: Decimal, asset: AssetSpec, places: Optional[int] = None
) -> str:
    places = asset.decimals if places is None else places
    return f"{amount:.{places}f}"


def parse_human_amount(text: HumanInput, asset: AssetSpec) -> Decimal:
    """Validate user input as a positive amount admissible for ``asset``."""
    amount = _as_decimal(text)
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    if fractional_digits(amount) > asset.decimals:
        raise PrecisionExceeded(text, asset.decimals)
    return amount


def check_percentage(percentage: int) -> int:
    if isinstance(percentage, bool) or not isinstance(percentage, int):
        raise ValidationError(f"Percentage must be an integer, got {percentage!r}")
    if not 0 < percentage <= FULL_PERCENTAGE:
        raise ValidationError(f"Percentage must be within 1..100, got {percentage}")
    return percentage


def percentage_of(raw_balance: int, percentage: int) -> Tuple[int, bool]:
    """Return ``(base_units, use_all)`` for a percentage of ``raw_balance``.

    Partial percentages are floored on the integer balance, so a remainder
    unit is never rounded up. 100% returns the balance untouched and flags the
    request as "use entire balance".
    """
    check_percentage(percentage)
    if percentage == FULL_PERCENTAGE:
        return raw_balance, True
    return raw_balance * percentage // FULL_PERCENTAGE, False
