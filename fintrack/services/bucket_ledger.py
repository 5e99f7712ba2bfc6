"""Bucket ledger - running totals of budgets and savings goals.

Names follow the expense's point of view: an expense *applies* spending to a
budget (``spent_amount`` grows) or a withdrawal to a savings goal
(``current_amount`` shrinks), and *reverses* it when unlinked or deleted.

Each apply has an exact inverse except where a total was clamped at zero.
Callers hold the bucket row (loaded with a lock) inside an open transaction;
the ledger only mutates the in-memory entity.
"""

import logging

from fintrack.models import Budget, SavingsGoal, SavingsGoalStatus
from fintrack.services.errors import ValidationError

logger = logging.getLogger(__name__)


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise ValidationError("Ledger amounts must not be negative")


class BucketLedger:
    """Apply and reverse expense amounts against bucket accumulators."""

    def apply_budget(self, budget: Budget, amount: int) -> int:
        """Add spending to a budget. Returns the new ``spent_amount``."""
        _check_amount(amount)
        budget.spent_amount = (budget.spent_amount or 0) + amount
        logger.debug("Budget %s spent += %d -> %d", budget.id, amount, budget.spent_amount)
        return budget.spent_amount

    def reverse_budget(self, budget: Budget, amount: int) -> int:
        """Remove spending from a budget, never going below zero."""
        _check_amount(amount)
        budget.spent_amount = max(0, (budget.spent_amount or 0) - amount)
        logger.debug("Budget %s spent -= %d -> %d", budget.id, amount, budget.spent_amount)
        return budget.spent_amount

    def apply_savings_goal(self, goal: SavingsGoal, amount: int) -> int:
        """Withdraw from a goal, never going below zero.

        A completed goal that drops below its target becomes active again.
        """
        _check_amount(amount)
        goal.current_amount = max(0, (goal.current_amount or 0) - amount)
        if goal.status == SavingsGoalStatus.COMPLETED and goal.current_amount < goal.target_amount:
            goal.status = SavingsGoalStatus.ACTIVE
            logger.info("Savings goal %s reopened after withdrawal", goal.id)
        return goal.current_amount

    def reverse_savings_goal(self, goal: SavingsGoal, amount: int) -> int:
        """Add money back to a goal; reaching the target completes it."""
        _check_amount(amount)
        goal.current_amount = (goal.current_amount or 0) + amount
        if goal.current_amount >= goal.target_amount:
            if goal.status != SavingsGoalStatus.COMPLETED:
                logger.info("Savings goal %s reached its target", goal.id)
            goal.status = SavingsGoalStatus.COMPLETED
        return goal.current_amount


__all__ = ["BucketLedger"]
