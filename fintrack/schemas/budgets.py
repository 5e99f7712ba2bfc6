"""Pydantic schemas for budgets."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fintrack.models import BudgetPeriod
from fintrack.schemas.common import MoneyStr, PositiveAmount


class CreateBudgetPayload(BaseModel):
    """Payload for creating a budget. ``spent_amount`` always starts at zero."""

    name: str = Field(..., min_length=1, max_length=255)
    total_amount: PositiveAmount
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: date | None = None
    end_date: date | None = None
    category_id: int | None = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class UpdateBudgetPayload(BaseModel):
    """Payload for editing a budget. ``spent_amount`` cannot be edited."""

    name: str | None = Field(None, min_length=1, max_length=255)
    total_amount: PositiveAmount | None = None
    period: BudgetPeriod | None = None
    start_date: date | None = None
    end_date: date | None = None
    category_id: int | None = None


class BudgetRead(BaseModel):
    id: int
    name: str
    total_amount: MoneyStr
    spent_amount: MoneyStr
    period: BudgetPeriod
    start_date: date | None = None
    end_date: date | None = None
    category_id: int | None = None
    created_by_id: int

    model_config = ConfigDict(from_attributes=True)


__all__ = ["CreateBudgetPayload", "UpdateBudgetPayload", "BudgetRead"]
