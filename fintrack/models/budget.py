"""Budget ORM model - a spending bucket that expenses are debited against."""

from datetime import date
from enum import Enum

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models import Base, BaseModel, enum_values


class BudgetPeriod(str, Enum):
    """Budget renewal period."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Budget(Base, BaseModel):
    """Spending limit with a running ``spent_amount`` accumulator.

    ``spent_amount`` only moves through the bucket ledger (expense links being
    applied or reversed) and never drops below zero. ``version`` is an
    optimistic-lock counter: concurrent writers to one budget cannot silently
    overwrite each other's totals.
    """

    __tablename__ = "budgets"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_amount: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Budget limit in minor currency units"
    )
    spent_amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Running total debited by linked expenses (minor units, never negative)",
    )
    period: Mapped[BudgetPeriod] = mapped_column(
        SQLEnum(BudgetPeriod, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=BudgetPeriod.MONTHLY,
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Foreign keys
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    category: Mapped["Category | None"] = relationship("Category")  # noqa: F821
    created_by: Mapped["User"] = relationship("User")  # noqa: F821
    expense_links: Mapped[list["ExpenseBudgetLink"]] = relationship(  # noqa: F821
        "ExpenseBudgetLink",
        back_populates="budget",
        cascade="all, delete",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Budget(id={self.id}, name={self.name}, total={self.total_amount}, "
            f"spent={self.spent_amount})>"
        )


__all__ = ["Budget", "BudgetPeriod"]
