"""Expense allocation service.

An expense can be linked to budgets (its share is debited to ``spent_amount``)
and to savings goals (its share is withdrawn from ``current_amount``). How
much each bucket receives is decided by the distribution policy; the amount
applied is stored on the link row and reversed verbatim when the link goes
away.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from fintrack.models import Budget, Expense, ExpenseBudgetLink, ExpenseSavingsGoalLink, SavingsGoal
from fintrack.schemas.expenses import (
    CreateExpensePayload,
    ExpenseLinksPayload,
    LinkItem,
    UnlinkExpensePayload,
    UpdateExpensePayload,
)
from fintrack.services.bucket_ledger import BucketLedger
from fintrack.services.config import Settings, get_settings
from fintrack.services.lookups import (
    find_budget,
    find_category,
    find_expense,
    find_savings_goal,
    find_user,
)
from fintrack.services.money import format_money, percent_of, to_minor
from fintrack.services.notification_service import NotificationKind, NotificationService
from fintrack.services.split_policy import BucketSelection, DistributionType, compute_shares
from fintrack.services.transaction import atomic

logger = logging.getLogger(__name__)

SCALAR_FIELDS = {
    "description",
    "amount",
    "category_id",
    "date",
    "payment_method",
    "notes",
    "location",
    "currency",
}


def build_selection(
    links: Sequence[LinkItem] | None,
    ids: Sequence[int] | None,
    tolerance: int,
    skip: set[int] | frozenset[int] = frozenset(),
) -> BucketSelection:
    """Merge ``links`` and plain ``ids`` into one selection, in request order.

    Ids already present in ``links`` are not repeated; ids in ``skip`` (already
    linked) are left out.
    """
    bucket_ids: list[int] = []
    amounts: dict[int, int] = {}
    for item in links or []:
        if item.id in skip:
            continue
        bucket_ids.append(item.id)
        if item.amount is not None:
            amounts[item.id] = to_minor(item.amount)
    linked = set(bucket_ids)
    for bucket_id in ids or []:
        if bucket_id in skip or bucket_id in linked:
            continue
        bucket_ids.append(bucket_id)
    return BucketSelection(bucket_ids=bucket_ids, amounts=amounts, tolerance=tolerance)


class ExpenseService:
    """Service for expenses and their budget/savings goal allocations."""

    def __init__(
        self,
        db: Session,
        notifications: NotificationService | None = None,
        ledger: BucketLedger | None = None,
        settings: Settings | None = None,
    ):
        """Initialize expense service.

        Args:
            db: SQLAlchemy database session
            notifications: Post-commit notification queue
            ledger: Bucket ledger applying and reversing amounts
            settings: Application settings (thresholds, tolerance)
        """
        self.db = db
        self.notifications = notifications or NotificationService()
        self.ledger = ledger or BucketLedger()
        self.settings = settings or get_settings()

    @property
    def tolerance(self) -> int:
        return max(1, to_minor(self.settings.manual_distribution_tolerance))

    def create_expense(self, payload: CreateExpensePayload, user_id: int) -> Expense:
        """Record an expense and allocate it to the selected buckets.

        Every bucket is resolved and every share computed before anything is
        written, so a bad id or a manual mismatch leaves no trace.

        Args:
            payload: Expense fields plus bucket selections and distributions
            user_id: Owner of the expense

        Returns:
            The created expense with its link rows

        Raises:
            NotFoundError: User, category, budget or savings goal does not exist
            ValidationError: Bucket repeated or manual amounts do not add up
        """
        with atomic(self.db, self.notifications):
            find_user(self.db, user_id)
            if payload.category_id is not None:
                find_category(self.db, payload.category_id)

            amount = to_minor(payload.amount)
            budget_plan = self._plan_budgets(payload, amount)
            goal_plan = self._plan_savings_goals(payload, amount)

            expense = Expense(
                user_id=user_id,
                amount=amount,
                description=payload.description,
                category_id=payload.category_id,
                date=payload.date,
                payment_method=payload.payment_method,
                notes=payload.notes,
                location=payload.location,
                currency=payload.currency or self.settings.default_currency,
            )
            self.db.add(expense)
            self.db.flush()

            self._apply(expense, budget_plan, goal_plan)
            self.db.flush()
            expense_id = expense.id

        logger.info(
            "Created expense %d (%s) for user %d linked to %d budgets and %d savings goals",
            expense_id,
            format_money(amount),
            user_id,
            len(budget_plan),
            len(goal_plan),
        )
        return expense

    def update_expense(
        self, expense_id: int, payload: UpdateExpensePayload, user_id: int
    ) -> Expense:
        """Patch an expense and link it to any new buckets.

        Buckets the expense is already linked to are skipped, and existing link
        amounts are kept as they are even when the expense amount changes. New
        links use the payload's distribution and the updated amount.

        Raises:
            NotFoundError: Expense, category or bucket does not exist
            ValidationError: Bucket repeated or manual amounts do not add up
        """
        with atomic(self.db, self.notifications):
            expense = find_expense(self.db, expense_id, user_id)

            changes = payload.model_dump(exclude_unset=True, include=SCALAR_FIELDS)
            if changes.get("category_id") is not None:
                find_category(self.db, changes["category_id"])
            if changes.get("amount") is not None:
                changes["amount"] = to_minor(changes["amount"])

            amount = changes.get("amount") or expense.amount
            budget_plan = self._plan_budgets(
                payload, amount, skip={link.budget_id for link in expense.budget_links}
            )
            goal_plan = self._plan_savings_goals(
                payload, amount, skip={link.savings_goal_id for link in expense.savings_goal_links}
            )

            for field_name, value in changes.items():
                if value is not None or field_name in {"category_id", "notes", "location"}:
                    setattr(expense, field_name, value)

            self._apply(expense, budget_plan, goal_plan)
            self.db.flush()

        logger.info(
            "Expense %d updated by user %d (%d new budget links, %d new savings goal links)",
            expense_id,
            user_id,
            len(budget_plan),
            len(goal_plan),
        )
        return expense

    def delete_expense(self, expense_id: int, user_id: int) -> None:
        """Reverse every link of an expense, then delete it with its links."""
        with atomic(self.db, self.notifications):
            expense = find_expense(self.db, expense_id, user_id)

            for link in expense.budget_links:
                budget = find_budget(self.db, link.budget_id, lock=True)
                self.ledger.reverse_budget(budget, link.amount)
            for link in expense.savings_goal_links:
                goal = find_savings_goal(self.db, link.savings_goal_id, lock=True)
                self.ledger.reverse_savings_goal(goal, link.amount)

            self.db.delete(expense)

        logger.info("Expense %d deleted by user %d", expense_id, user_id)

    def unlink_expense(
        self, expense_id: int, payload: UnlinkExpensePayload, user_id: int
    ) -> Expense:
        """Detach an expense from the named buckets, restoring their amounts.

        Ids the expense is not linked to are ignored. Other links stay intact.
        """
        budget_ids = set(payload.budget_ids or [])
        savings_goal_ids = set(payload.savings_goal_ids or [])
        removed = 0

        with atomic(self.db, self.notifications):
            expense = find_expense(self.db, expense_id, user_id)

            for link in list(expense.budget_links):
                if link.budget_id not in budget_ids:
                    continue
                budget = find_budget(self.db, link.budget_id, lock=True)
                self.ledger.reverse_budget(budget, link.amount)
                expense.budget_links.remove(link)
                self.db.delete(link)
                removed += 1

            for link in list(expense.savings_goal_links):
                if link.savings_goal_id not in savings_goal_ids:
                    continue
                goal = find_savings_goal(self.db, link.savings_goal_id, lock=True)
                self.ledger.reverse_savings_goal(goal, link.amount)
                expense.savings_goal_links.remove(link)
                self.db.delete(link)
                removed += 1

        logger.info("Removed %d links from expense %d", removed, expense_id)
        return expense

    def get_expense(self, expense_id: int, user_id: int) -> Expense:
        return find_expense(self.db, expense_id, user_id)

    def list_expenses(
        self,
        user_id: int,
        category_id: int | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        query: str | None = None,
    ) -> list[Expense]:
        """List a user's expenses, newest first.

        Args:
            user_id: Owner
            category_id: Only expenses in this category
            start_date: Only expenses on or after this moment
            end_date: Only expenses on or before this moment
            query: Case-insensitive text searched in description, notes and location
        """
        stmt = select(Expense).where(Expense.user_id == user_id)
        if category_id is not None:
            stmt = stmt.where(Expense.category_id == category_id)
        if start_date is not None:
            stmt = stmt.where(Expense.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Expense.date <= end_date)
        if query:
            pattern = f"%{query}%"
            stmt = stmt.where(
                or_(
                    Expense.description.ilike(pattern),
                    Expense.notes.ilike(pattern),
                    Expense.location.ilike(pattern),
                )
            )
        stmt = stmt.order_by(Expense.date.desc(), Expense.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def _plan_budgets(
        self,
        payload: ExpenseLinksPayload,
        amount: int,
        skip: set[int] | frozenset[int] = frozenset(),
    ) -> list[tuple[Budget, int]]:
        selection = build_selection(
            payload.budget_links, payload.budget_ids, self.tolerance, skip
        )
        budgets = [find_budget(self.db, bucket_id, lock=True) for bucket_id in selection.bucket_ids]
        policy = payload.budget_distribution or DistributionType.EQUAL_SPLIT
        shares = compute_shares(policy, amount, selection)
        return [(budget, shares[budget.id]) for budget in budgets if budget.id in shares]

    def _plan_savings_goals(
        self,
        payload: ExpenseLinksPayload,
        amount: int,
        skip: set[int] | frozenset[int] = frozenset(),
    ) -> list[tuple[SavingsGoal, int]]:
        selection = build_selection(
            payload.savings_goal_links, payload.savings_goal_ids, self.tolerance, skip
        )
        goals = [
            find_savings_goal(self.db, bucket_id, lock=True) for bucket_id in selection.bucket_ids
        ]
        policy = payload.savings_goal_distribution or DistributionType.EQUAL_SPLIT
        shares = compute_shares(policy, amount, selection)
        return [(goal, shares[goal.id]) for goal in goals if goal.id in shares]

    def _apply(
        self,
        expense: Expense,
        budget_plan: list[tuple[Budget, int]],
        goal_plan: list[tuple[SavingsGoal, int]],
    ) -> None:
        for budget, share in budget_plan:
            expense.budget_links.append(ExpenseBudgetLink(budget_id=budget.id, amount=share))
            self.ledger.apply_budget(budget, share)
            self._check_budget_thresholds(budget)
        for goal, share in goal_plan:
            expense.savings_goal_links.append(
                ExpenseSavingsGoalLink(savings_goal_id=goal.id, amount=share)
            )
            self.ledger.apply_savings_goal(goal, share)

    def _check_budget_thresholds(self, budget: Budget) -> None:
        """Queue an alert for the budget owner when usage crosses a threshold.

        Evaluated on every apply, so an already-exceeded budget alerts again.
        """
        percentage = percent_of(budget.spent_amount, budget.total_amount)
        if percentage >= self.settings.budget_exceeded_threshold:
            kind = NotificationKind.BUDGET_EXCEEDED
        elif percentage >= self.settings.budget_alert_threshold:
            kind = NotificationKind.BUDGET_ALERT
        else:
            return

        logger.info("Budget %d at %s%% of its limit", budget.id, percentage)
        self.notifications.queue(
            budget.created_by_id,
            kind,
            budget_id=budget.id,
            budget_name=budget.name,
            spent_amount=format_money(budget.spent_amount),
            total_amount=format_money(budget.total_amount),
            percentage=str(percentage),
        )


__all__ = ["ExpenseService", "build_selection"]
