"""Bill participant ORM model - one user's share of a bill and its payment state."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models import Base, BaseModel


class BillParticipant(Base, BaseModel):
    """User's owed share of a bill.

    Attributes:
        bill_id: Owning bill (row is deleted with the bill)
        user_id: Participant
        amount_owed: Share of the bill total in minor currency units
        is_paid: Whether the participant settled their share
        paid_at: When the share was marked paid
    """

    __tablename__ = "bill_participants"

    bill_id: Mapped[int] = mapped_column(
        ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount_owed: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    bill: Mapped["Bill"] = relationship("Bill", back_populates="participants")  # noqa: F821
    user: Mapped["User"] = relationship("User")  # noqa: F821

    __table_args__ = (UniqueConstraint("bill_id", "user_id", name="uq_bill_participant"),)

    def __repr__(self) -> str:
        return (
            f"<BillParticipant(bill_id={self.bill_id}, user_id={self.user_id}, "
            f"amount_owed={self.amount_owed}, is_paid={self.is_paid})>"
        )


__all__ = ["BillParticipant"]
