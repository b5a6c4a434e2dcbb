"""
Append-only activity log per order.

Appending is the only way activity becomes visible; there is no update or
delete path.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from order_portal import models
from order_portal.session import SYSTEM_USER

logger = logging.getLogger(__name__)


def append(
    db: Session,
    order_number: str,
    action: str,
    user: str = SYSTEM_USER,
    commit: bool = True,
) -> models.ActivityLog:
    """Add one entry to the order's log.

    With ``commit=False`` the entry joins the caller's transaction, which is
    how order edits write their values and log lines atomically. Storage
    errors propagate to the caller.
    """
    entry = models.ActivityLog(
        order_number=order_number,
        action=action,
        user=user or SYSTEM_USER,
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    logger.debug("Activity for %s by %s: %s", order_number, entry.user, action)
    return entry


def list_entries(db: Session, order_number: str, limit: int = 50) -> List[models.ActivityLog]:
    """Return the most recent entries for an order, newest first."""
    return (
        db.query(models.ActivityLog)
        .filter(models.ActivityLog.order_number == order_number)
        .order_by(models.ActivityLog.timestamp.desc(), models.ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
