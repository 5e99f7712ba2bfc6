"""Category ORM model used to classify bills, budgets and expenses."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fintrack.models import Base, BaseModel


class Category(Base, BaseModel):
    """Spending category (groceries, rent, travel...)."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Category label")
    color: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="Display colour (hex)"
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"


__all__ = ["Category"]
