"""Unit-of-work boundary for multi-step ledger operations."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fintrack.services.errors import ConcurrencyError
from fintrack.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, notifications: NotificationService | None = None) -> Iterator[Session]:
    """Run a block as one transaction.

    Commits when the block completes, rolls back and re-raises on any error so
    a partially applied allocation is never visible. Notifications queued on
    ``notifications`` during the block are sent after the commit, or dropped
    on rollback.

    Raises:
        ConcurrencyError: If a bucket row was modified by another transaction
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        if notifications is not None:
            notifications.discard()
        logger.warning("Rolled back on concurrent bucket update: %s", e)
        raise ConcurrencyError() from e
    except Exception:
        db.rollback()
        if notifications is not None:
            notifications.discard()
        raise

    if notifications is not None:
        notifications.flush()


__all__ = ["atomic"]
