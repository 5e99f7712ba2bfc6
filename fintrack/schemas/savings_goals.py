"""Pydantic schemas for savings goals."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fintrack.models import SavingsGoalPriority, SavingsGoalStatus
from fintrack.schemas.common import MoneyStr, NonNegativeAmount, PositiveAmount


class CreateSavingsGoalPayload(BaseModel):
    """Payload for creating a savings goal."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    target_amount: PositiveAmount
    current_amount: NonNegativeAmount = Decimal("0")
    target_date: date | None = None
    priority: SavingsGoalPriority = SavingsGoalPriority.MEDIUM
    monthly_target: NonNegativeAmount | None = None
    category_id: int | None = None
    currency: str | None = Field(None, max_length=10)


class UpdateSavingsGoalPayload(BaseModel):
    """Payload for editing a goal. Money moves only through add/withdraw."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    target_amount: PositiveAmount | None = None
    target_date: date | None = None
    priority: SavingsGoalPriority | None = None
    monthly_target: NonNegativeAmount | None = None


class SavingsGoalAmountPayload(BaseModel):
    """Amount to add to or withdraw from a goal."""

    amount: PositiveAmount


class SavingsGoalRead(BaseModel):
    id: int
    name: str
    description: str | None = None
    target_amount: MoneyStr
    current_amount: MoneyStr
    target_date: date | None = None
    priority: SavingsGoalPriority
    monthly_target: MoneyStr | None = None
    status: SavingsGoalStatus
    currency: str
    user_id: int
    category_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "CreateSavingsGoalPayload",
    "UpdateSavingsGoalPayload",
    "SavingsGoalAmountPayload",
    "SavingsGoalRead",
]
