"""Fixed-point money helpers.

Amounts are stored and computed as integers of minor currency units (cents).
``Decimal`` only appears at the boundary: parsing payloads and rendering
display strings.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fintrack.services.errors import ValidationError

CENT = Decimal("0.01")
MINOR_UNITS = 100


def to_minor(value: Decimal | int | float | str) -> int:
    """Convert a major-unit amount (``"12.34"``) to minor units (``1234``).

    Rounds half-up to the cent. Floats go through ``str()`` first so binary
    representation noise never reaches the ledger.

    Raises:
        ValidationError: If the value is not a finite number
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return int((amount * MINOR_UNITS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_decimal(minor: int) -> Decimal:
    """Convert minor units back to a two-place ``Decimal``."""
    return (Decimal(minor) / MINOR_UNITS).quantize(CENT)


def format_money(minor: int) -> str:
    """Render minor units as a display string, e.g. ``1234`` -> ``"12.34"``."""
    return str(to_decimal(minor))


def percent_of(part: int, whole: int) -> Decimal:
    """Percentage of ``part`` in ``whole`` with two decimals (0 when ``whole`` is 0)."""
    if whole == 0:
        return Decimal("0.00")
    return (Decimal(part) * 100 / Decimal(whole)).quantize(CENT, rounding=ROUND_HALF_UP)


def halve(minor: int) -> int:
    """Half of an amount, rounded half-up to the cent."""
    return int((Decimal(minor) / 2).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


__all__ = ["CENT", "MINOR_UNITS", "to_minor", "to_decimal", "format_money", "percent_of", "halve"]
