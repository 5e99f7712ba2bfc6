"""Savings goal ORM model - a bucket that expenses withdraw from."""

from datetime import date
from enum import Enum

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models import Base, BaseModel, enum_values


class SavingsGoalPriority(str, Enum):
    """How important the goal is to its owner."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SavingsGoalStatus(str, Enum):
    """Goal status.

    Only ACTIVE and COMPLETED are persisted by the ledger; ON_TRACK, BEHIND and
    OVERDUE are derived by analytics from dates and progress.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    BEHIND = "behind"
    ON_TRACK = "on_track"
    OVERDUE = "overdue"


class SavingsGoal(Base, BaseModel):
    """Savings target with a running ``current_amount`` accumulator.

    Status flips to COMPLETED when money added brings ``current_amount`` up to
    the target, and back to ACTIVE when a withdrawal takes it below again.
    """

    __tablename__ = "savings_goals"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_amount: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Target in minor currency units"
    )
    current_amount: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0, comment="Saved so far (minor units)"
    )
    target_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    priority: Mapped[SavingsGoalPriority] = mapped_column(
        SQLEnum(SavingsGoalPriority, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=SavingsGoalPriority.MEDIUM,
    )
    monthly_target: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[SavingsGoalStatus] = mapped_column(
        SQLEnum(SavingsGoalStatus, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=SavingsGoalStatus.ACTIVE,
        index=True,
    )
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Foreign keys
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    user: Mapped["User"] = relationship("User")  # noqa: F821
    expense_links: Mapped[list["ExpenseSavingsGoalLink"]] = relationship(  # noqa: F821
        "ExpenseSavingsGoalLink",
        back_populates="savings_goal",
        cascade="all, delete",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<SavingsGoal(id={self.id}, name={self.name}, target={self.target_amount}, "
            f"current={self.current_amount}, status={self.status})>"
        )


__all__ = ["SavingsGoal", "SavingsGoalPriority", "SavingsGoalStatus"]
