"""Existence lookups for entities referenced by the engines.

Each finder returns the entity or raises ``NotFoundError``. Bucket finders can
lock the row (``SELECT ... FOR UPDATE`` where the database supports it) so
concurrent apply/reverse calls against one bucket serialize.
"""

from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from fintrack.models import Bill, Budget, Category, Expense, SavingsGoal, User
from fintrack.services.errors import NotFoundError, ValidationError

T = TypeVar("T")


def _get_or_raise(db: Session, model: type[T], entity_id: int, label: str, lock: bool = False) -> T:
    entity = db.get(model, entity_id, with_for_update=True if lock else None)
    if entity is None:
        raise NotFoundError(f"{label} {entity_id} not found")
    return entity


def find_category(db: Session, category_id: int) -> Category:
    return _get_or_raise(db, Category, category_id, "Category")


def find_user(db: Session, user_id: int) -> User:
    return _get_or_raise(db, User, user_id, "User")


def find_users(db: Session, user_ids: list[int]) -> list[User]:
    """Resolve every id in ``user_ids`` preserving order.

    Raises:
        ValidationError: If ids repeat or resolve to fewer users than requested
    """
    if len(set(user_ids)) != len(user_ids):
        raise ValidationError("Duplicate participant ids")
    if not user_ids:
        return []
    found = db.execute(select(User).where(User.id.in_(user_ids))).scalars().all()
    by_id = {user.id: user for user in found}
    missing = [user_id for user_id in user_ids if user_id not in by_id]
    if missing:
        raise ValidationError(f"Some participants not found: {missing}")
    return [by_id[user_id] for user_id in user_ids]


def find_bill(db: Session, bill_id: int) -> Bill:
    return _get_or_raise(db, Bill, bill_id, "Bill")


def find_expense(db: Session, expense_id: int, user_id: int) -> Expense:
    """Find an expense owned by ``user_id`` (other owners' expenses are reported missing)."""
    expense = db.get(Expense, expense_id)
    if expense is None or expense.user_id != user_id:
        raise NotFoundError(f"Expense {expense_id} not found")
    return expense


def find_budget(db: Session, budget_id: int, lock: bool = False) -> Budget:
    return _get_or_raise(db, Budget, budget_id, "Budget", lock=lock)


def find_savings_goal(db: Session, goal_id: int, lock: bool = False) -> SavingsGoal:
    return _get_or_raise(db, SavingsGoal, goal_id, "Savings goal", lock=lock)


__all__ = [
    "find_category",
    "find_user",
    "find_users",
    "find_bill",
    "find_expense",
    "find_budget",
    "find_savings_goal",
]
