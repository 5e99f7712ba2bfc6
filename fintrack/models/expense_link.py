"""Link rows recording how much of an expense was applied to each bucket.

A link row exists exactly while its amount is applied to the bucket: it is
inserted together with the apply and deleted together with the reverse. Rows
are never updated in place.
"""

from sqlalchemy import BigInteger, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models import Base, BaseModel


class ExpenseBudgetLink(Base, BaseModel):
    """Portion of an expense debited to a budget's ``spent_amount``."""

    __tablename__ = "expense_budgets"

    expense_id: Mapped[int] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    budget_id: Mapped[int] = mapped_column(
        ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Amount added to the budget (minor units)"
    )

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense", back_populates="budget_links"
    )
    budget: Mapped["Budget"] = relationship(  # noqa: F821
        "Budget", back_populates="expense_links"
    )

    __table_args__ = (UniqueConstraint("expense_id", "budget_id", name="uq_expense_budget"),)

    def __repr__(self) -> str:
        return (
            f"<ExpenseBudgetLink(expense_id={self.expense_id}, budget_id={self.budget_id}, "
            f"amount={self.amount})>"
        )


class ExpenseSavingsGoalLink(Base, BaseModel):
    """Portion of an expense withdrawn from a savings goal's ``current_amount``."""

    __tablename__ = "expense_savings_goals"

    expense_id: Mapped[int] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    savings_goal_id: Mapped[int] = mapped_column(
        ForeignKey("savings_goals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Amount withdrawn from the goal (minor units)"
    )

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense", back_populates="savings_goal_links"
    )
    savings_goal: Mapped["SavingsGoal"] = relationship(  # noqa: F821
        "SavingsGoal", back_populates="expense_links"
    )

    __table_args__ = (
        UniqueConstraint("expense_id", "savings_goal_id", name="uq_expense_savings_goal"),
    )

    def __repr__(self) -> str:
        return (
            f"<ExpenseSavingsGoalLink(expense_id={self.expense_id}, "
            f"savings_goal_id={self.savings_goal_id}, amount={self.amount})>"
        )


__all__ = ["ExpenseBudgetLink", "ExpenseSavingsGoalLink"]
