"""Shared schema types."""

from decimal import Decimal
from typing import Annotated

from pydantic import BeforeValidator, Field, PlainSerializer

from fintrack.services.money import format_money


def _render_money(value):
    # ORM/analytics values are minor-unit ints; anything else passes through
    if isinstance(value, int) and not isinstance(value, bool):
        return format_money(value)
    return value


MoneyStr = Annotated[str, BeforeValidator(_render_money)]
"""Money rendered for display, e.g. ``"12.34"``."""

PositiveAmount = Annotated[Decimal, Field(gt=0, max_digits=14, decimal_places=2)]
"""Strictly positive amount in major units."""

NonNegativeAmount = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]
"""Zero or positive amount in major units."""

Percentage = Annotated[
    Decimal, PlainSerializer(lambda value: f"{value:.2f}", return_type=str, when_used="json")
]
"""Percentage with two decimals, serialized to JSON as ``"12.50"``."""

__all__ = ["MoneyStr", "PositiveAmount", "NonNegativeAmount", "Percentage"]
