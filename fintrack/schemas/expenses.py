"""Pydantic schemas for expenses and their bucket links."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from fintrack.schemas.common import MoneyStr, NonNegativeAmount, PositiveAmount
from fintrack.services.split_policy import DistributionType


class LinkItem(BaseModel):
    """One budget or savings goal to link, with an optional manual amount."""

    id: int
    amount: NonNegativeAmount | None = None


class ExpenseLinksPayload(BaseModel):
    """Bucket targets shared by create and update payloads.

    ``*_links`` carry optional per-bucket amounts for MANUAL distribution;
    ``*_ids`` are plain id lists. Both may be given and are merged in order.
    A missing distribution defaults to EQUAL_SPLIT (every bucket gets the full
    amount).
    """

    budget_distribution: DistributionType | None = None
    budget_links: list[LinkItem] | None = None
    budget_ids: list[int] | None = None
    savings_goal_distribution: DistributionType | None = None
    savings_goal_links: list[LinkItem] | None = None
    savings_goal_ids: list[int] | None = None


class CreateExpensePayload(ExpenseLinksPayload):
    """Payload for recording an expense and allocating it to buckets."""

    description: str = Field(..., min_length=1)
    amount: PositiveAmount
    category_id: int | None = None
    date: datetime
    payment_method: str | None = Field(None, max_length=100)
    notes: str | None = None
    location: str | None = Field(None, max_length=255)
    currency: str | None = Field(None, max_length=10)


class UpdateExpensePayload(ExpenseLinksPayload):
    """Payload for patching an expense and linking it to additional buckets."""

    description: str | None = Field(None, min_length=1)
    amount: PositiveAmount | None = None
    category_id: int | None = None
    date: datetime | None = None
    payment_method: str | None = Field(None, max_length=100)
    notes: str | None = None
    location: str | None = Field(None, max_length=255)
    currency: str | None = Field(None, max_length=10)


class UnlinkExpensePayload(BaseModel):
    """Buckets to detach from an expense (their amounts are restored)."""

    budget_ids: list[int] | None = None
    savings_goal_ids: list[int] | None = None


class ExpenseBudgetLinkRead(BaseModel):
    budget_id: int
    amount: MoneyStr

    model_config = ConfigDict(from_attributes=True)


class ExpenseSavingsGoalLinkRead(BaseModel):
    savings_goal_id: int
    amount: MoneyStr

    model_config = ConfigDict(from_attributes=True)


class ExpenseRead(BaseModel):
    """Expense with its active bucket links."""

    id: int
    user_id: int
    amount: MoneyStr
    description: str
    category_id: int | None = None
    date: datetime
    payment_method: str | None = None
    notes: str | None = None
    location: str | None = None
    currency: str
    budget_links: list[ExpenseBudgetLinkRead] = []
    savings_goal_links: list[ExpenseSavingsGoalLinkRead] = []

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "LinkItem",
    "ExpenseLinksPayload",
    "CreateExpensePayload",
    "UpdateExpensePayload",
    "UnlinkExpensePayload",
    "ExpenseBudgetLinkRead",
    "ExpenseSavingsGoalLinkRead",
    "ExpenseRead",
]
