"""Savings goal service: goal CRUD and direct deposits/withdrawals.

Money moves through the same bucket ledger expenses use. Adding money is the
reverse direction (``current_amount`` grows), withdrawing the apply direction
(``current_amount`` shrinks, clamped at zero).
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from fintrack.models import SavingsGoal, SavingsGoalStatus
from fintrack.schemas.savings_goals import CreateSavingsGoalPayload, UpdateSavingsGoalPayload
from fintrack.services.bucket_ledger import BucketLedger
from fintrack.services.config import get_settings
from fintrack.services.errors import NotFoundError, ValidationError
from fintrack.services.lookups import find_category, find_savings_goal, find_user
from fintrack.services.money import format_money, percent_of, to_minor
from fintrack.services.notification_service import NotificationKind, NotificationService
from fintrack.services.transaction import atomic

logger = logging.getLogger(__name__)

MILESTONES = (25, 50, 75)
NULLABLE_FIELDS = frozenset({"description", "target_date", "monthly_target"})


def crossed_milestone(old_percentage: Decimal, new_percentage: Decimal) -> int | None:
    """Return the first milestone passed when progress goes from old to new, if any."""
    for milestone in MILESTONES:
        if old_percentage < milestone <= new_percentage:
            return milestone
    return None


def _positive_minor(amount: Decimal | int | str) -> int:
    minor = to_minor(amount)
    if minor <= 0:
        raise ValidationError("Amount must be positive")
    return minor


class SavingsGoalService:
    """Service for savings goals owned by a single user."""

    def __init__(
        self,
        db: Session,
        notifications: NotificationService | None = None,
        ledger: BucketLedger | None = None,
    ):
        self.db = db
        self.notifications = notifications or NotificationService()
        self.ledger = ledger or BucketLedger()

    def create_savings_goal(self, payload: CreateSavingsGoalPayload, user_id: int) -> SavingsGoal:
        """Create a goal. It starts completed when the initial amount already meets the target.

        Raises:
            NotFoundError: User or category does not exist
        """
        with atomic(self.db, self.notifications):
            find_user(self.db, user_id)
            if payload.category_id is not None:
                find_category(self.db, payload.category_id)

            target = to_minor(payload.target_amount)
            current = to_minor(payload.current_amount)
            goal = SavingsGoal(
                name=payload.name,
                description=payload.description,
                target_amount=target,
                current_amount=current,
                target_date=payload.target_date,
                priority=payload.priority,
                monthly_target=(
                    to_minor(payload.monthly_target) if payload.monthly_target is not None else None
                ),
                status=(
                    SavingsGoalStatus.COMPLETED if current >= target else SavingsGoalStatus.ACTIVE
                ),
                currency=payload.currency or get_settings().default_currency,
                user_id=user_id,
                category_id=payload.category_id,
            )
            self.db.add(goal)
            self.db.flush()
            goal_id = goal.id

        logger.info(
            "Created savings goal %d (%s) for user %d", goal_id, format_money(target), user_id
        )
        return goal

    def get_savings_goal(self, goal_id: int, user_id: int) -> SavingsGoal:
        """Get a goal owned by ``user_id`` (other owners' goals are reported missing)."""
        return self._find_owned(goal_id, user_id)

    def update_savings_goal(
        self, goal_id: int, payload: UpdateSavingsGoalPayload, user_id: int
    ) -> SavingsGoal:
        """Edit goal details. ``current_amount`` only changes through add/withdraw."""
        with atomic(self.db, self.notifications):
            goal = self._find_owned(goal_id, user_id, lock=True)
            changes = payload.model_dump(exclude_unset=True)
            for field_name in ("target_amount", "monthly_target"):
                if changes.get(field_name) is not None:
                    changes[field_name] = to_minor(changes[field_name])
            for field_name, value in changes.items():
                if value is not None or field_name in NULLABLE_FIELDS:
                    setattr(goal, field_name, value)

            if goal.current_amount >= goal.target_amount:
                goal.status = SavingsGoalStatus.COMPLETED
            elif goal.status == SavingsGoalStatus.COMPLETED:
                goal.status = SavingsGoalStatus.ACTIVE

        logger.info("Savings goal %d updated by user %d", goal_id, user_id)
        return goal

    def delete_savings_goal(self, goal_id: int, user_id: int) -> None:
        """Delete a goal. Expense links to it are dropped; the expenses stay."""
        with atomic(self.db, self.notifications):
            goal = self._find_owned(goal_id, user_id)
            self.db.delete(goal)

        logger.info("Savings goal %d deleted by user %d", goal_id, user_id)

    def add_to_savings_goal(
        self, goal_id: int, amount: Decimal | int | str, user_id: int
    ) -> SavingsGoal:
        """Add money to a goal.

        Notifies the owner when the goal reaches its target, otherwise when the
        deposit carries progress past 25, 50 or 75 percent.

        Args:
            goal_id: Goal to deposit into
            amount: Positive amount in major units
            user_id: Goal owner

        Raises:
            NotFoundError: Goal missing or owned by someone else
            ValidationError: Amount is not positive
        """
        minor = _positive_minor(amount)
        with atomic(self.db, self.notifications):
            goal = self._find_owned(goal_id, user_id, lock=True)
            old_percentage = percent_of(goal.current_amount, goal.target_amount)
            self.ledger.reverse_savings_goal(goal, minor)
            new_percentage = percent_of(goal.current_amount, goal.target_amount)

            if goal.current_amount >= goal.target_amount:
                self.notifications.queue(
                    user_id,
                    NotificationKind.SAVINGS_GOAL_ACHIEVED,
                    goal_id=goal.id,
                    goal_name=goal.name,
                    target_amount=format_money(goal.target_amount),
                )
            else:
                milestone = crossed_milestone(old_percentage, new_percentage)
                if milestone is not None:
                    self.notifications.queue(
                        user_id,
                        NotificationKind.SAVINGS_GOAL_MILESTONE,
                        goal_id=goal.id,
                        goal_name=goal.name,
                        milestone=milestone,
                        percentage=int(new_percentage.to_integral_value()),
                        current_amount=format_money(goal.current_amount),
                        target_amount=format_money(goal.target_amount),
                    )
            current = goal.current_amount

        logger.info(
            "Added %s to savings goal %d (now %s)",
            format_money(minor),
            goal_id,
            format_money(current),
        )
        return goal

    def withdraw_from_savings_goal(
        self, goal_id: int, amount: Decimal | int | str, user_id: int
    ) -> SavingsGoal:
        """Withdraw money from a goal. The balance never goes below zero.

        Raises:
            NotFoundError: Goal missing or owned by someone else
            ValidationError: Amount is not positive
        """
        minor = _positive_minor(amount)
        with atomic(self.db, self.notifications):
            goal = self._find_owned(goal_id, user_id, lock=True)
            current = self.ledger.apply_savings_goal(goal, minor)

        logger.info(
            "Withdrew %s from savings goal %d (now %s)",
            format_money(minor),
            goal_id,
            format_money(current),
        )
        return goal

    def _find_owned(self, goal_id: int, user_id: int, lock: bool = False) -> SavingsGoal:
        goal = find_savings_goal(self.db, goal_id, lock=lock)
        if goal.user_id != user_id:
            logger.warning("User %d tried to access savings goal %d", user_id, goal_id)
            raise NotFoundError(f"Savings goal {goal_id} not found")
        return goal


__all__ = ["SavingsGoalService", "crossed_milestone", "MILESTONES"]
