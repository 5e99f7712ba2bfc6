"""User ORM model.

Account management lives outside this package; the table only gives bill
participants, creators and owners something to reference.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fintrack.models import Base, BaseModel


class User(Base, BaseModel):
    """Person who owns expenses, budgets and goals, or takes part in bills."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Display name - unique identifier",
    )
    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True, comment="Login handle"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name})>"


__all__ = ["User"]
