"""Expense ORM model - a single spending event owned by one user."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models import Base, BaseModel


class Expense(Base, BaseModel):
    """Spending event that may be linked to budgets and savings goals.

    Attributes:
        user_id: Owner of the expense
        amount: Amount spent in minor currency units
        description: What the money was spent on
        category_id: Optional category
        date: When the money was spent
        budget_links: Portions debited to budgets (deleted with the expense)
        savings_goal_links: Portions withdrawn from savings goals (deleted with the expense)
    """

    __tablename__ = "expenses"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")

    # Relationships
    user: Mapped["User"] = relationship("User")  # noqa: F821
    category: Mapped["Category | None"] = relationship("Category")  # noqa: F821
    budget_links: Mapped[list["ExpenseBudgetLink"]] = relationship(  # noqa: F821
        "ExpenseBudgetLink",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseBudgetLink.id",
    )
    savings_goal_links: Mapped[list["ExpenseSavingsGoalLink"]] = relationship(  # noqa: F821
        "ExpenseSavingsGoalLink",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseSavingsGoalLink.id",
    )

    __table_args__ = (Index("idx_expense_user_date", "user_id", "date"),)

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, amount={self.amount}, user_id={self.user_id})>"


__all__ = ["Expense"]
