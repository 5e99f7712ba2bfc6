"""Notification trigger contract and post-commit dispatch.

Delivery (push, e-mail, in-app inbox...) is owned by an external collaborator
implementing :class:`Notifier`. Engines never call it directly: they queue
notifications on a :class:`NotificationService` while a transaction is open,
and the queue is flushed only after the transaction commits. A failing
notifier is logged and ignored; it can neither block nor roll back a ledger
mutation.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    """Kinds of notifications the core triggers."""

    BILL_PAID = "bill_paid"
    BILL_PARTIALLY_PAID = "bill_partially_paid"
    BUDGET_ALERT = "budget_alert"
    BUDGET_EXCEEDED = "budget_exceeded"
    SAVINGS_GOAL_ACHIEVED = "savings_goal_achieved"
    SAVINGS_GOAL_MILESTONE = "savings_goal_milestone"
    PAYMENT_REQUEST = "payment_request"


class Notifier(Protocol):
    """External delivery collaborator."""

    def notify(self, user_id: int, kind: NotificationKind, payload: dict[str, Any]) -> None:
        """Deliver one notification (fire-and-forget)."""
        ...


class LoggingNotifier:
    """Notifier that writes notifications to the application log.

    Used when no delivery collaborator is wired in.
    """

    def notify(self, user_id: int, kind: NotificationKind, payload: dict[str, Any]) -> None:
        logger.info("Notification %s for user %d: %s", kind.value, user_id, payload)


@dataclass
class PendingNotification:
    """Notification waiting for its transaction to commit."""

    user_id: int
    kind: NotificationKind
    payload: dict[str, Any] = field(default_factory=dict)


class NotificationService:
    """Queue of notifications tied to the current unit of work."""

    def __init__(self, notifier: Notifier | None = None):
        self.notifier = notifier or LoggingNotifier()
        self._pending: list[PendingNotification] = []

    @property
    def pending(self) -> list[PendingNotification]:
        return list(self._pending)

    def queue(self, user_id: int, kind: NotificationKind, **payload: Any) -> None:
        """Queue a notification to be sent after the current transaction commits."""
        self._pending.append(PendingNotification(user_id=user_id, kind=kind, payload=payload))

    def discard(self) -> None:
        """Drop queued notifications (their transaction rolled back)."""
        if self._pending:
            logger.debug("Discarding %d notifications after rollback", len(self._pending))
        self._pending.clear()

    def flush(self) -> int:
        """Send every queued notification.

        Returns:
            Number of notifications the notifier accepted
        """
        pending, self._pending = self._pending, []
        sent = 0
        for item in pending:
            try:
                self.notifier.notify(item.user_id, item.kind, item.payload)
                sent += 1
            except Exception as e:
                logger.error(
                    "Failed to send %s notification to user %d: %s",
                    item.kind.value,
                    item.user_id,
                    e,
                    exc_info=True,
                )
        return sent


__all__ = [
    "NotificationKind",
    "Notifier",
    "LoggingNotifier",
    "PendingNotification",
    "NotificationService",
]
