"""Bill settlement service: bill lifecycle, participant dues and payment state.

Status is derived from participants' payments:
- nobody paid -> PENDING
- some paid -> PARTIAL
- everyone paid -> COMPLETED

There is no "unpay" operation, so settling payments only ever moves a bill
forward through pending -> partial -> completed.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session

from fintrack.models import Bill, BillParticipant, BillSplitType, BillStatus
from fintrack.schemas.bills import (
    CreateBillPayload,
    RequestPaymentPayload,
    UpdateBillPayload,
    UpdateBillStatusPayload,
)
from fintrack.services.config import get_settings
from fintrack.services.errors import ForbiddenError, NotFoundError
from fintrack.services.lookups import find_bill, find_category, find_user, find_users
from fintrack.services.money import format_money, to_minor
from fintrack.services.notification_service import NotificationKind, NotificationService
from fintrack.services.split_policy import BillSplitInputs, compute_shares
from fintrack.services.transaction import atomic

logger = logging.getLogger(__name__)

STATUS_ORDER = {
    BillStatus.PENDING: 0,
    BillStatus.PARTIAL: 1,
    BillStatus.COMPLETED: 2,
}


def derive_bill_status(paid_flags: list[bool]) -> BillStatus:
    """Derive a bill status from its participants' ``is_paid`` flags."""
    if paid_flags and all(paid_flags):
        return BillStatus.COMPLETED
    if any(paid_flags):
        return BillStatus.PARTIAL
    return BillStatus.PENDING


class BillService:
    """Service for bill CRUD and settlement.

    Every mutating method runs as one transaction; notifications are sent
    after it commits.
    """

    def __init__(self, db: Session, notifications: NotificationService | None = None):
        """Initialize bill service.

        Args:
            db: SQLAlchemy database session
            notifications: Post-commit notification queue (logs only when omitted)
        """
        self.db = db
        self.notifications = notifications or NotificationService()

    def create_bill(self, payload: CreateBillPayload, creator_id: int) -> Bill:
        """Create a bill and one participant row per user with computed dues.

        The creator is appended when not among ``participant_ids``; for
        percentage and manual splits they absorb what the named shares leave.

        Raises:
            NotFoundError: Category or creator does not exist
            ValidationError: Participant ids missing or repeated, split inputs inconsistent
        """
        with atomic(self.db, self.notifications):
            category = find_category(self.db, payload.category_id)
            creator = find_user(self.db, creator_id)
            participants = find_users(self.db, payload.participant_ids)

            creator_auto_added = creator_id not in payload.participant_ids
            if creator_auto_added:
                participants.append(creator)

            total = to_minor(payload.total_amount)
            inputs = BillSplitInputs(
                participant_count=len(participants),
                percentages=(
                    payload.percentages if payload.split_type == BillSplitType.PERCENTAGE else None
                ),
                amounts=(
                    [to_minor(amount) for amount in payload.custom_amounts]
                    if payload.split_type == BillSplitType.MANUAL
                    and payload.custom_amounts is not None
                    else None
                ),
                creator_auto_added=creator_auto_added,
            )
            shares = compute_shares(payload.split_type, total, inputs)

            bill = Bill(
                name=payload.name,
                description=payload.description,
                total_amount=total,
                split_type=payload.split_type,
                due_date=payload.due_date,
                status=BillStatus.PENDING,
                currency=payload.currency or get_settings().default_currency,
                category_id=category.id,
                created_by_id=creator.id,
            )
            bill.participants = [
                BillParticipant(user_id=user.id, amount_owed=share, is_paid=False)
                for user, share in zip(participants, shares)
            ]
            self.db.add(bill)
            self.db.flush()
            bill_id = bill.id

        logger.info(
            "Created bill %d (%s, %s split) with %d participants for user %d",
            bill_id,
            format_money(total),
            payload.split_type.value,
            len(shares),
            creator_id,
        )
        return bill

    def get_bill(self, bill_id: int, user_id: int) -> Bill:
        """Get a bill visible to ``user_id`` (creator or participant).

        Raises:
            NotFoundError: Bill does not exist
            ForbiddenError: User neither created nor takes part in the bill
        """
        bill = find_bill(self.db, bill_id)
        self._require_access(bill, user_id)
        return bill

    def list_bills(
        self,
        user_id: int,
        status: BillStatus | None = None,
        category_id: int | None = None,
    ) -> list[Bill]:
        """List bills the user created or takes part in, soonest due first."""
        participates = exists().where(
            BillParticipant.bill_id == Bill.id,
            BillParticipant.user_id == user_id,
        )
        stmt = select(Bill).where(or_(Bill.created_by_id == user_id, participates))
        if status is not None:
            stmt = stmt.where(Bill.status == status)
        if category_id is not None:
            stmt = stmt.where(Bill.category_id == category_id)
        stmt = stmt.order_by(Bill.due_date.asc(), Bill.id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def update_bill(self, bill_id: int, payload: UpdateBillPayload, user_id: int) -> Bill:
        """Edit a bill's fields, category or participants (creator only).

        Existing dues are not recomputed. New participants start owing zero,
        dropped participants are removed, and the creator always stays.

        Raises:
            NotFoundError: Bill or category does not exist
            ForbiddenError: Caller is not the creator
            ValidationError: Participant ids missing or repeated
        """
        with atomic(self.db, self.notifications):
            bill = find_bill(self.db, bill_id)
            self._require_creator(bill, user_id, "update")

            if payload.category_id is not None:
                bill.category_id = find_category(self.db, payload.category_id).id

            if payload.participant_ids is not None:
                users = find_users(self.db, payload.participant_ids)
                wanted = {user.id for user in users} | {bill.created_by_id}
                for participant in list(bill.participants):
                    if participant.user_id not in wanted:
                        bill.participants.remove(participant)
                current = {participant.user_id for participant in bill.participants}
                for user in users:
                    if user.id not in current:
                        bill.participants.append(
                            BillParticipant(user_id=user.id, amount_owed=0, is_paid=False)
                        )

            changes = payload.model_dump(
                exclude_unset=True, exclude={"category_id", "participant_ids"}
            )
            if changes.get("total_amount") is not None:
                changes["total_amount"] = to_minor(changes["total_amount"])
            for field_name, value in changes.items():
                if value is not None:
                    setattr(bill, field_name, value)

        logger.info("Bill %d updated by user %d", bill_id, user_id)
        return bill

    def update_bill_status(
        self, bill_id: int, payload: UpdateBillStatusPayload, user_id: int
    ) -> Bill:
        """Set a bill's status directly (creator only)."""
        with atomic(self.db, self.notifications):
            bill = find_bill(self.db, bill_id)
            self._require_creator(bill, user_id, "change the status of")
            bill.status = payload.status

        logger.info("Bill %d status set to %s by user %d", bill_id, payload.status.value, user_id)
        return bill

    def delete_bill(self, bill_id: int, user_id: int) -> None:
        """Delete a bill and its participant rows (creator only)."""
        with atomic(self.db, self.notifications):
            bill = find_bill(self.db, bill_id)
            self._require_creator(bill, user_id, "delete")
            self.db.delete(bill)

        logger.info("Bill %d deleted by user %d", bill_id, user_id)

    def mark_payment_as_paid(self, bill_id: int, participant_id: int, user_id: int) -> Bill:
        """Mark one participant's share as paid and advance the bill status.

        Marking an already-paid share again changes nothing. The bill creator
        is notified when the bill becomes partially or fully paid.

        Args:
            bill_id: Bill to settle
            participant_id: User whose share is paid
            user_id: Caller (creator or participant of the bill)

        Raises:
            NotFoundError: Bill or participant row does not exist
            ForbiddenError: Caller has no access to the bill
        """
        with atomic(self.db, self.notifications):
            bill = find_bill(self.db, bill_id)
            self._require_access(bill, user_id)

            participant = bill.participant_for(participant_id)
            if participant is None:
                raise NotFoundError(
                    f"Payment record for user {participant_id} on bill {bill_id} not found"
                )
            if participant.is_paid:
                logger.info("Bill %d share of user %d already paid", bill_id, participant_id)
                return bill

            participant.is_paid = True
            participant.paid_at = datetime.now(timezone.utc)
            self.db.flush()

            new_status = self._recompute_status(bill)
            self._queue_settlement_notification(bill, new_status)
            bill_status = new_status

        logger.info(
            "User %d paid their share of bill %d; status is now %s",
            participant_id,
            bill_id,
            bill_status.value,
        )
        return bill

    def request_payment(
        self, bill_id: int, payload: RequestPaymentPayload, requester_id: int
    ) -> int:
        """Ask participants to pay their share. Queues one notification per target.

        The notifications go out when the request commits; a rejected request
        sends nothing.

        Returns:
            Number of payment requests queued

        Raises:
            NotFoundError: Bill does not exist
            ForbiddenError: Requester has no access, or a target is not a participant
        """
        with atomic(self.db, self.notifications):
            bill = find_bill(self.db, bill_id)
            self._require_access(bill, requester_id)

            targets = []
            for target_id in payload.user_ids:
                participant = bill.participant_for(target_id)
                if participant is None:
                    logger.warning(
                        "Payment request on bill %d rejected: user %d is not a participant",
                        bill_id,
                        target_id,
                    )
                    raise ForbiddenError(f"User {target_id} is not a participant of this bill")
                targets.append(participant)

            for participant in targets:
                self.notifications.queue(
                    participant.user_id,
                    NotificationKind.PAYMENT_REQUEST,
                    bill_id=bill.id,
                    bill_name=bill.name,
                    amount_owed=format_money(participant.amount_owed),
                    requester_id=requester_id,
                    message=payload.message,
                )

        logger.info(
            "User %d requested payment on bill %d from %d users",
            requester_id,
            bill_id,
            len(targets),
        )
        return len(targets)

    def _recompute_status(self, bill: Bill) -> BillStatus:
        """Derive the status from the stored participant rows.

        Reads the flags back from the database so the just-flushed payment is
        included. The status never moves backwards.
        """
        paid_flags = list(
            self.db.execute(
                select(BillParticipant.is_paid).where(BillParticipant.bill_id == bill.id)
            ).scalars()
        )
        derived = derive_bill_status(paid_flags)
        if STATUS_ORDER[derived] >= STATUS_ORDER[bill.status]:
            bill.status = derived
        return bill.status

    def _queue_settlement_notification(self, bill: Bill, status: BillStatus) -> None:
        if status == BillStatus.COMPLETED:
            self.notifications.queue(
                bill.created_by_id,
                NotificationKind.BILL_PAID,
                bill_id=bill.id,
                bill_name=bill.name,
                amount=format_money(bill.total_amount),
            )
        elif status == BillStatus.PARTIAL:
            paid = sum(p.amount_owed for p in bill.participants if p.is_paid)
            self.notifications.queue(
                bill.created_by_id,
                NotificationKind.BILL_PARTIALLY_PAID,
                bill_id=bill.id,
                bill_name=bill.name,
                paid_amount=format_money(paid),
                total_amount=format_money(bill.total_amount),
            )

    def _require_access(self, bill: Bill, user_id: int) -> None:
        if bill.created_by_id != user_id and bill.participant_for(user_id) is None:
            logger.warning("User %d denied access to bill %d", user_id, bill.id)
            raise ForbiddenError("You do not have access to this bill")

    def _require_creator(self, bill: Bill, user_id: int, action: str) -> None:
        if bill.created_by_id != user_id:
            logger.warning("User %d tried to %s bill %d", user_id, action, bill.id)
            raise ForbiddenError(f"Only the creator can {action} this bill")


__all__ = ["BillService", "derive_bill_status", "STATUS_ORDER"]
