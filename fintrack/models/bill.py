"""Bill ORM model for shared bills split among participants."""

from datetime import date
from enum import Enum

from sqlalchemy import BigInteger, Date, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models import Base, BaseModel, enum_values


class BillSplitType(str, Enum):
    """How a bill's total is divided among its participants."""

    EQUAL = "equal"
    """Same share for everyone (remainder cents go to the first participants)"""

    PERCENTAGE = "percentage"
    """Share proportional to a percentage per participant"""

    MANUAL = "manual"
    """Caller-supplied amount per participant"""


class BillStatus(str, Enum):
    """Settlement state derived from participants' payments."""

    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class Bill(Base, BaseModel):
    """
    Shared bill created by one user and split among participants.

    The creator is always a participant. Status is derived from the
    participants' ``is_paid`` flags by the settlement engine; participant rows
    are owned by the bill and removed with it.
    """

    __tablename__ = "bills"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    total_amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Bill total in minor currency units",
    )
    split_type: Mapped[BillSplitType] = mapped_column(
        SQLEnum(BillSplitType, native_enum=False, values_callable=enum_values),
        nullable=False,
        comment="Split policy: equal, percentage or manual",
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[BillStatus] = mapped_column(
        SQLEnum(BillStatus, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=BillStatus.PENDING,
        index=True,
        comment="Settlement status: pending, partial or completed",
    )
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")

    # Foreign keys
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User who created the bill (only they may edit or delete it)",
    )

    # Relationships
    category: Mapped["Category"] = relationship("Category")  # noqa: F821
    created_by: Mapped["User"] = relationship("User", foreign_keys=[created_by_id])  # noqa: F821
    participants: Mapped[list["BillParticipant"]] = relationship(  # noqa: F821
        "BillParticipant",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillParticipant.id",
    )

    __table_args__ = (Index("idx_bill_creator_status", "created_by_id", "status"),)

    def participant_for(self, user_id: int) -> "BillParticipant | None":  # noqa: F821
        """Return the participant row for ``user_id`` if the user takes part in this bill."""
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None

    def __repr__(self) -> str:
        return (
            f"<Bill(id={self.id}, name={self.name}, total_amount={self.total_amount}, "
            f"split_type={self.split_type}, status={self.status})>"
        )


__all__ = ["Bill", "BillSplitType", "BillStatus"]
