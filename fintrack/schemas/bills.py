"""Pydantic schemas for bills and settlement."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fintrack.models import BillSplitType, BillStatus
from fintrack.schemas.common import MoneyStr, NonNegativeAmount, PositiveAmount


class CreateBillPayload(BaseModel):
    """Payload for creating a bill.

    ``percentages`` (PERCENTAGE) and ``custom_amounts`` (MANUAL) are aligned
    with ``participant_ids``. The creator is added automatically when missing
    from ``participant_ids`` and receives the remainder.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    total_amount: PositiveAmount
    split_type: BillSplitType
    due_date: date
    category_id: int
    participant_ids: list[int] = Field(..., min_length=1)
    currency: str | None = Field(None, max_length=10)
    percentages: list[Decimal] | None = None
    custom_amounts: list[NonNegativeAmount] | None = None


class UpdateBillPayload(BaseModel):
    """Payload for editing a bill. Participant dues are not recomputed."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    total_amount: PositiveAmount | None = None
    split_type: BillSplitType | None = None
    due_date: date | None = None
    category_id: int | None = None
    participant_ids: list[int] | None = None
    currency: str | None = Field(None, max_length=10)


class UpdateBillStatusPayload(BaseModel):
    """Payload for setting a bill's status directly."""

    status: BillStatus


class RequestPaymentPayload(BaseModel):
    """Payload for asking participants to settle their share."""

    user_ids: list[int] = Field(..., min_length=1)
    message: str | None = Field(None, max_length=500)


class BillParticipantRead(BaseModel):
    """One participant's share and payment state."""

    user_id: int
    amount_owed: MoneyStr
    is_paid: bool
    paid_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class BillRead(BaseModel):
    """Bill with its participants."""

    id: int
    name: str
    description: str | None = None
    total_amount: MoneyStr
    split_type: BillSplitType
    due_date: date
    status: BillStatus
    currency: str
    category_id: int
    created_by_id: int
    participants: list[BillParticipantRead] = []

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "CreateBillPayload",
    "UpdateBillPayload",
    "UpdateBillStatusPayload",
    "RequestPaymentPayload",
    "BillParticipantRead",
    "BillRead",
]
