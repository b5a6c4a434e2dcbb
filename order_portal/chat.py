"""
Per-order chat messages.

Messages live in memory for the lifetime of the application; the durable
trace of a conversation is the activity log entry written for each message.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from order_portal import activity, models
from order_portal.stages import Stage

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50


def display_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a timestamp the way the order screens show it, e.g. ``01/15/2024 10:30 AM``.

    Times are shown in UTC. Aware datetimes are converted; naive ones are
    taken to be UTC already.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%m/%d/%Y %I:%M %p")


def message_preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


@dataclass
class ChatMessage:
    timestamp: str
    message: str
    user: str


@dataclass
class ChatBoard:
    """Chat histories keyed by order number."""

    threads: Dict[str, List[ChatMessage]] = field(default_factory=dict)

    def messages(self, order_number: str) -> List[ChatMessage]:
        return list(self.threads.get(order_number, []))

    def send(
        self,
        db: Session,
        order: models.Order,
        text: str,
        user: str,
        now: Optional[datetime] = None,
    ) -> ChatMessage:
        """Post a message on an order.

        Logs the message preview and, while the order is in the Contract
        stage, records the message time as the last contact date.
        """
        message = ChatMessage(timestamp=display_timestamp(now), message=text.strip(), user=user)
        if order.stage is Stage.CONTRACT:
            order.last_contact_date = message.timestamp
        activity.append(
            db,
            order.order_number,
            f'Sent chat message: "{message_preview(message.message)}"',
            user,
            commit=False,
        )
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        self.threads.setdefault(order.order_number, []).append(message)
        logger.debug("Chat message on %s from %s", order.order_number, user)
        return message
