"""Budget CRUD. Spending totals move only through linked expenses."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from fintrack.models import Budget
from fintrack.schemas.budgets import CreateBudgetPayload, UpdateBudgetPayload
from fintrack.services.errors import ForbiddenError, ValidationError
from fintrack.services.lookups import find_budget, find_category, find_user
from fintrack.services.money import format_money, to_minor
from fintrack.services.transaction import atomic

logger = logging.getLogger(__name__)


class BudgetService:
    """Service for budgets created by a user."""

    def __init__(self, db: Session):
        self.db = db

    def create_budget(self, payload: CreateBudgetPayload, user_id: int) -> Budget:
        with atomic(self.db):
            find_user(self.db, user_id)
            if payload.category_id is not None:
                find_category(self.db, payload.category_id)

            budget = Budget(
                name=payload.name,
                total_amount=to_minor(payload.total_amount),
                spent_amount=0,
                period=payload.period,
                start_date=payload.start_date,
                end_date=payload.end_date,
                category_id=payload.category_id,
                created_by_id=user_id,
            )
            self.db.add(budget)
            self.db.flush()
            budget_id = budget.id

        logger.info(
            "Created budget %d (%s) for user %d",
            budget_id,
            format_money(budget.total_amount),
            user_id,
        )
        return budget

    def get_budget(self, budget_id: int) -> Budget:
        return find_budget(self.db, budget_id)

    def list_budgets(self, user_id: int) -> list[Budget]:
        stmt = select(Budget).where(Budget.created_by_id == user_id).order_by(Budget.id)
        return list(self.db.execute(stmt).scalars().all())

    def update_budget(self, budget_id: int, payload: UpdateBudgetPayload, user_id: int) -> Budget:
        """Edit a budget (creator only). ``spent_amount`` is left untouched.

        Raises:
            NotFoundError: Budget or category does not exist
            ForbiddenError: Caller is not the creator
            ValidationError: Resulting start date is after the end date
        """
        with atomic(self.db):
            budget = find_budget(self.db, budget_id, lock=True)
            self._require_creator(budget, user_id, "update")

            changes = payload.model_dump(exclude_unset=True)
            if changes.get("category_id") is not None:
                find_category(self.db, changes["category_id"])
            if changes.get("total_amount") is not None:
                changes["total_amount"] = to_minor(changes["total_amount"])
            for field_name, value in changes.items():
                if value is not None or field_name in {"start_date", "end_date", "category_id"}:
                    setattr(budget, field_name, value)

            if budget.start_date and budget.end_date and budget.start_date > budget.end_date:
                raise ValidationError("start_date must not be after end_date")

        logger.info("Budget %d updated by user %d", budget_id, user_id)
        return budget

    def delete_budget(self, budget_id: int, user_id: int) -> None:
        """Delete a budget (creator only). Expense links to it are dropped; the expenses stay."""
        with atomic(self.db):
            budget = find_budget(self.db, budget_id)
            self._require_creator(budget, user_id, "delete")
            self.db.delete(budget)

        logger.info("Budget %d deleted by user %d", budget_id, user_id)

    def _require_creator(self, budget: Budget, user_id: int, action: str) -> None:
        if budget.created_by_id != user_id:
            logger.warning("User %d tried to %s budget %d", user_id, action, budget.id)
            raise ForbiddenError(f"Only the creator can {action} this budget")


__all__ = ["BudgetService"]
