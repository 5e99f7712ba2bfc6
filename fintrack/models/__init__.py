"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


def enum_values(enum_cls) -> list[str]:
    """Persist enum members by value (``"equal"``) rather than by name (``"EQUAL"``)."""
    return [member.value for member in enum_cls]


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from fintrack.models.user import User  # noqa: E402
from fintrack.models.category import Category  # noqa: E402
from fintrack.models.bill import Bill, BillSplitType, BillStatus  # noqa: E402
from fintrack.models.bill_participant import BillParticipant  # noqa: E402
from fintrack.models.budget import Budget, BudgetPeriod  # noqa: E402
from fintrack.models.savings_goal import (  # noqa: E402
    SavingsGoal,
    SavingsGoalPriority,
    SavingsGoalStatus,
)
from fintrack.models.expense import Expense  # noqa: E402
from fintrack.models.expense_link import ExpenseBudgetLink, ExpenseSavingsGoalLink  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "enum_values",
    "User",
    "Category",
    "Bill",
    "BillSplitType",
    "BillStatus",
    "BillParticipant",
    "Budget",
    "BudgetPeriod",
    "SavingsGoal",
    "SavingsGoalPriority",
    "SavingsGoalStatus",
    "Expense",
    "ExpenseBudgetLink",
    "ExpenseSavingsGoalLink",
]
