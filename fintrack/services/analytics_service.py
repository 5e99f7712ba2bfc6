"""Read-only analytics over bills, expenses, budgets and savings goals.

Results are plain NamedTuples holding minor-unit integers and ``Decimal``
percentages; ``fintrack.schemas.analytics`` renders them for display. Nothing
here writes to the database.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import NamedTuple

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session

from fintrack.models import (
    Bill,
    BillParticipant,
    BillSplitType,
    BillStatus,
    Budget,
    Expense,
    SavingsGoal,
    SavingsGoalStatus,
)
from fintrack.services.config import Settings, get_settings
from fintrack.services.money import percent_of

logger = logging.getLogger(__name__)

SPLIT_TYPE_LABELS = {
    BillSplitType.EQUAL: "Equal Split",
    BillSplitType.PERCENTAGE: "Percentage Split",
    BillSplitType.MANUAL: "Manual Split",
}

ON_TRACK_MARGIN = 10  # percentage points a goal may lag its schedule and still be on track


class SummaryPeriod(str, Enum):
    """Window for expense summaries."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class BillProgress(NamedTuple):
    paid_count: int
    total_count: int
    progress: Decimal


class BillsSummary(NamedTuple):
    """Dashboard totals over the bills a user created or takes part in."""

    total_bills: int
    you_owe: int
    owed_to_you: int
    active_bills: int
    bills_this_month: int


class ParticipantPayment(NamedTuple):
    user_id: int
    amount_owed: int
    is_paid: bool
    paid_at: datetime | None


class BillDetails(NamedTuple):
    bill_id: int
    split_type_display: str
    payments: list[ParticipantPayment]
    paid_count: int
    pending_count: int
    paid_amount: int
    progress: Decimal


class CategoryAmount(NamedTuple):
    category_id: int | None
    amount: int


class ExpensesSummary(NamedTuple):
    period: SummaryPeriod
    start_date: date
    end_date: date
    total_spent: int
    average_transaction: int
    total_transactions: int
    categorized_count: int
    category_breakdown: list[CategoryAmount]
    top_category_id: int | None


class BudgetUsage(NamedTuple):
    budget_id: int
    spent_amount: int
    total_amount: int
    remaining_amount: int
    percentage: Decimal
    is_alert: bool
    is_exceeded: bool


class SavingsGoalProgress(NamedTuple):
    goal_id: int
    progress_percentage: Decimal
    amount_remaining: int
    days_left: int | None
    months_left: int | None
    time_left_display: str
    calculated_status: SavingsGoalStatus
    is_completed: bool
    is_overdue: bool


class SavingsGoalsSummary(NamedTuple):
    total_target: int
    total_saved: int
    progress_percentage: Decimal
    completed_goals: int
    active_goals: int
    total_goals: int
    monthly_target: int


def period_window(period: SummaryPeriod, today: date) -> tuple[date, date]:
    """Return the inclusive ``(start, end)`` dates of a summary window ending today."""
    if period == SummaryPeriod.WEEK:
        return today - timedelta(days=7), today
    if period == SummaryPeriod.YEAR:
        return date(today.year, 1, 1), today
    return today.replace(day=1), today


def format_time_left(days_left: int) -> str:
    """Human-readable time until a deadline, e.g. ``"3 days"`` or ``"2 months"``."""
    if days_left < 0:
        return "Overdue"
    if days_left == 0:
        return "Today"
    if days_left == 1:
        return "1 day"
    if days_left < 30:
        return f"{days_left} days"
    months = -(-days_left // 30)
    return f"{months} month{'s' if months > 1 else ''}"


def _as_date(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value


class AnalyticsService:
    """Derive dashboard views from stored ledger state."""

    def __init__(self, db: Session, settings: Settings | None = None):
        """Initialize with database session.

        Args:
            db: SQLAlchemy database session
            settings: Application settings (budget thresholds)
        """
        self.db = db
        self.settings = settings or get_settings()

    def bill_progress(self, bill: Bill) -> BillProgress:
        """Share of participants who have paid, as a percentage (0 when there are none)."""
        total_count = len(bill.participants)
        paid_count = sum(1 for participant in bill.participants if participant.is_paid)
        return BillProgress(paid_count, total_count, percent_of(paid_count, total_count))

    def bills_summary(self, user_id: int, today: date | None = None) -> BillsSummary:
        """Summarize the bills a user created or takes part in.

        Args:
            user_id: User whose dashboard is built
            today: Reference date for ``bills_this_month`` (defaults to today)

        Returns:
            BillsSummary where ``you_owe`` is the user's own unpaid shares and
            ``owed_to_you`` the other participants' unpaid shares on bills the
            user created
        """
        today = today or date.today()
        participates = exists().where(
            BillParticipant.bill_id == Bill.id,
            BillParticipant.user_id == user_id,
        )
        bills = (
            self.db.execute(select(Bill).where(or_(Bill.created_by_id == user_id, participates)))
            .scalars()
            .all()
        )

        total_bills = you_owe = owed_to_you = active_bills = bills_this_month = 0
        for bill in bills:
            total_bills += bill.total_amount
            if bill.status != BillStatus.COMPLETED:
                active_bills += 1
            if bill.due_date.year == today.year and bill.due_date.month == today.month:
                bills_this_month += 1

            for participant in bill.participants:
                if participant.is_paid:
                    continue
                if participant.user_id == user_id:
                    you_owe += participant.amount_owed
                elif bill.created_by_id == user_id:
                    owed_to_you += participant.amount_owed

        logger.debug("Bills summary for user %d over %d bills", user_id, len(bills))
        return BillsSummary(total_bills, you_owe, owed_to_you, active_bills, bills_this_month)

    def bill_details(self, bill: Bill) -> BillDetails:
        payments = [
            ParticipantPayment(p.user_id, p.amount_owed, p.is_paid, p.paid_at)
            for p in bill.participants
        ]
        progress = self.bill_progress(bill)
        return BillDetails(
            bill_id=bill.id,
            split_type_display=SPLIT_TYPE_LABELS.get(bill.split_type, "Equal Split"),
            payments=payments,
            paid_count=progress.paid_count,
            pending_count=progress.total_count - progress.paid_count,
            paid_amount=sum(p.amount_owed for p in payments if p.is_paid),
            progress=progress.progress,
        )

    def expenses_summary(
        self,
        user_id: int,
        period: SummaryPeriod = SummaryPeriod.MONTH,
        today: date | None = None,
    ) -> ExpensesSummary:
        """Totals and category breakdown of a user's expenses in a week, month or year window.

        The top category is the one with the largest amount; uncategorized
        spending appears in the breakdown under ``None`` but is never the top
        category.
        """
        start, end = period_window(period, today or date.today())
        stmt = select(Expense).where(
            Expense.user_id == user_id,
            Expense.date >= datetime.combine(start, time.min),
            Expense.date <= datetime.combine(end, time.max),
        )
        expenses = self.db.execute(stmt).scalars().all()

        total = sum(expense.amount for expense in expenses)
        count = len(expenses)
        by_category: dict[int | None, int] = defaultdict(int)
        for expense in expenses:
            by_category[expense.category_id] += expense.amount

        breakdown = [
            CategoryAmount(category_id, amount) for category_id, amount in by_category.items()
        ]
        categorized = [item for item in breakdown if item.category_id is not None]
        top = max(categorized, key=lambda item: item.amount) if categorized else None

        return ExpensesSummary(
            period=period,
            start_date=start,
            end_date=end,
            total_spent=total,
            average_transaction=(
                int((Decimal(total) / count).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
                if count
                else 0
            ),
            total_transactions=count,
            categorized_count=sum(1 for expense in expenses if expense.category_id is not None),
            category_breakdown=breakdown,
            top_category_id=top.category_id if top else None,
        )

    def budget_usage(self, budget: Budget) -> BudgetUsage:
        percentage = percent_of(budget.spent_amount, budget.total_amount)
        return BudgetUsage(
            budget_id=budget.id,
            spent_amount=budget.spent_amount,
            total_amount=budget.total_amount,
            remaining_amount=max(0, budget.total_amount - budget.spent_amount),
            percentage=percentage,
            is_alert=percentage >= self.settings.budget_alert_threshold,
            is_exceeded=percentage >= self.settings.budget_exceeded_threshold,
        )

    def savings_goal_progress(
        self, goal: SavingsGoal, today: date | None = None
    ) -> SavingsGoalProgress:
        """Progress of a goal against its amount and its deadline.

        The calculated status is:
        - COMPLETED when stored as completed or the target is reached
        - OVERDUE when the target date has passed
        - ON_TRACK when progress is at most 10 points behind the time elapsed
          between creation and the target date
        - BEHIND otherwise
        Goals without a target date report ACTIVE unless completed.
        """
        today = today or date.today()
        progress = percent_of(goal.current_amount, goal.target_amount)
        is_completed = progress >= 100
        remaining = max(0, goal.target_amount - goal.current_amount)

        if goal.target_date is None:
            status = (
                SavingsGoalStatus.COMPLETED
                if is_completed or goal.status == SavingsGoalStatus.COMPLETED
                else SavingsGoalStatus.ACTIVE
            )
            return SavingsGoalProgress(
                goal.id, progress, remaining, None, None, "No deadline", status, is_completed, False
            )

        days_left = (goal.target_date - today).days
        months_left = -(-days_left // 30)
        status = self._goal_status(goal, progress, days_left, today)

        return SavingsGoalProgress(
            goal_id=goal.id,
            progress_percentage=progress,
            amount_remaining=remaining,
            days_left=days_left,
            months_left=months_left,
            time_left_display=format_time_left(days_left),
            calculated_status=status,
            is_completed=is_completed,
            is_overdue=days_left < 0 and not is_completed,
        )

    def savings_goals_summary(self, user_id: int) -> SavingsGoalsSummary:
        goals = (
            self.db.execute(select(SavingsGoal).where(SavingsGoal.user_id == user_id))
            .scalars()
            .all()
        )
        total_target = sum(goal.target_amount for goal in goals)
        total_saved = sum(goal.current_amount for goal in goals)
        active_statuses = {
            SavingsGoalStatus.ACTIVE,
            SavingsGoalStatus.ON_TRACK,
            SavingsGoalStatus.BEHIND,
        }
        return SavingsGoalsSummary(
            total_target=total_target,
            total_saved=total_saved,
            progress_percentage=percent_of(total_saved, total_target),
            completed_goals=sum(1 for g in goals if g.status == SavingsGoalStatus.COMPLETED),
            active_goals=sum(1 for g in goals if g.status in active_statuses),
            total_goals=len(goals),
            monthly_target=sum(goal.monthly_target or 0 for goal in goals),
        )

    def _goal_status(
        self, goal: SavingsGoal, progress: Decimal, days_left: int, today: date
    ) -> SavingsGoalStatus:
        if goal.status == SavingsGoalStatus.COMPLETED:
            return SavingsGoalStatus.COMPLETED
        if days_left < 0:
            return SavingsGoalStatus.OVERDUE
        if progress >= 100:
            return SavingsGoalStatus.COMPLETED

        created = _as_date(goal.created_at) if goal.created_at else today
        total_days = (goal.target_date - created).days
        days_passed = total_days - days_left
        expected = Decimal(days_passed * 100) / total_days if total_days > 0 else Decimal(0)
        if progress >= expected - ON_TRACK_MARGIN:
            return SavingsGoalStatus.ON_TRACK
        return SavingsGoalStatus.BEHIND


__all__ = [
    "AnalyticsService",
    "SummaryPeriod",
    "BillProgress",
    "BillsSummary",
    "BillDetails",
    "ParticipantPayment",
    "CategoryAmount",
    "ExpensesSummary",
    "BudgetUsage",
    "SavingsGoalProgress",
    "SavingsGoalsSummary",
    "period_window",
    "format_time_left",
]
