"""Display schemas for analytics results.

Built from the NamedTuples returned by ``AnalyticsService`` with
``Model.model_validate(result._asdict())``; money renders as ``"0.00"``
strings and percentages with two decimals.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from fintrack.models import SavingsGoalStatus
from fintrack.schemas.common import MoneyStr, Percentage
from fintrack.services.analytics_service import SummaryPeriod


class BillProgressRead(BaseModel):
    paid_count: int
    total_count: int
    progress: Percentage


class BillsSummaryRead(BaseModel):
    total_bills: MoneyStr
    you_owe: MoneyStr
    owed_to_you: MoneyStr
    active_bills: int
    bills_this_month: int


class ParticipantPaymentRead(BaseModel):
    user_id: int
    amount_owed: MoneyStr
    is_paid: bool
    paid_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class BillDetailsRead(BaseModel):
    bill_id: int
    split_type_display: str
    payments: list[ParticipantPaymentRead]
    paid_count: int
    pending_count: int
    paid_amount: MoneyStr
    progress: Percentage


class CategoryAmountRead(BaseModel):
    category_id: int | None = None
    amount: MoneyStr

    model_config = ConfigDict(from_attributes=True)


class ExpensesSummaryRead(BaseModel):
    period: SummaryPeriod
    start_date: date
    end_date: date
    total_spent: MoneyStr
    average_transaction: MoneyStr
    total_transactions: int
    categorized_count: int
    category_breakdown: list[CategoryAmountRead]
    top_category_id: int | None = None


class BudgetUsageRead(BaseModel):
    budget_id: int
    spent_amount: MoneyStr
    total_amount: MoneyStr
    remaining_amount: MoneyStr
    percentage: Percentage
    is_alert: bool
    is_exceeded: bool


class SavingsGoalProgressRead(BaseModel):
    goal_id: int
    progress_percentage: Percentage
    amount_remaining: MoneyStr
    days_left: int | None = None
    months_left: int | None = None
    time_left_display: str
    calculated_status: SavingsGoalStatus
    is_completed: bool
    is_overdue: bool


class SavingsGoalsSummaryRead(BaseModel):
    total_target: MoneyStr
    total_saved: MoneyStr
    progress_percentage: Percentage
    completed_goals: int
    active_goals: int
    total_goals: int
    monthly_target: MoneyStr


__all__ = [
    "BillProgressRead",
    "BillsSummaryRead",
    "ParticipantPaymentRead",
    "BillDetailsRead",
    "CategoryAmountRead",
    "ExpensesSummaryRead",
    "BudgetUsageRead",
    "SavingsGoalProgressRead",
    "SavingsGoalsSummaryRead",
]
