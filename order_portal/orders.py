"""
Order service: creation, lookup and edits with activity logging.

Edits go through :func:`apply_edit`, which keeps the status legal for the
stage, describes what changed and commits the new values together with
their log entries.
"""

import logging
from typing import Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from order_portal import activity, models
from order_portal.errors import OrderNotFound
from order_portal.session import SYSTEM_USER
from order_portal.stages import (
    DEFAULT_STATUS,
    GENERIC_UPDATE,
    Stage,
    describe_changes,
    normalize_status,
    parse_stage,
)

logger = logging.getLogger(__name__)

# Plain columns an edit may set directly; stage is handled separately.
EDITABLE_FIELDS = (
    "status",
    "employee_name",
    "last_contact_date",
    "tracking_number",
    "estimated_delivery_date",
    "shipping_address",
    "deliver_to",
    "installation_appointment_time",
    "installation_employee_name",
    "site_location",
)


def format_order_number(row_id: int) -> str:
    return f"ORD-{row_id:03d}"


def create_order(
    db: Session,
    company_name: str,
    employee_name: Optional[str] = None,
    user: Optional[str] = None,
) -> models.Order:
    """Create an order in the Contract stage and log its creation."""
    order = models.Order(
        company_name=company_name.strip(),
        employee_name=employee_name or None,
        category=Stage.CONTRACT.category,
        status=DEFAULT_STATUS,
    )
    db.add(order)
    db.flush()
    order.order_number = format_order_number(order.id)
    activity.append(
        db,
        order.order_number,
        f"Order {order.order_number} created",
        user or employee_name or SYSTEM_USER,
        commit=False,
    )
    db.commit()
    db.refresh(order)
    logger.info("Created order %s for %s", order.order_number, order.company_name)
    return order


def get_order(db: Session, order_number: str) -> models.Order:
    order = (
        db.query(models.Order)
        .filter(models.Order.order_number == order_number)
        .first()
    )
    if order is None:
        raise OrderNotFound(f"Order {order_number} not found")
    return order


def list_orders(
    db: Session,
    stage: Optional[Stage] = None,
    employee_name: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Order]:
    query = db.query(models.Order)
    if stage is not None:
        query = query.filter(models.Order.category == stage.category)
    if employee_name:
        query = query.filter(models.Order.employee_name == employee_name)
    return query.order_by(models.Order.id).offset(skip).limit(limit).all()


def _snapshot(order: models.Order) -> Dict[str, object]:
    values = {field: getattr(order, field) for field in EDITABLE_FIELDS}
    values["stage"] = order.stage
    return values


def apply_edit(
    db: Session,
    order: models.Order,
    edits: Mapping[str, object],
    user: str = SYSTEM_USER,
) -> List[models.ActivityLog]:
    """Apply ``edits`` to ``order`` and log what changed.

    ``edits`` may hold any of :data:`EDITABLE_FIELDS` plus ``stage`` (a
    :class:`Stage` or a stage/category name). Fields absent from ``edits``
    keep their current value. The resulting status is normalized for the
    resulting stage before changes are compared, so a stage move that
    invalidates the status is reported as a status change too.

    Always appends at least one entry: one per changed tracked field, or a
    single generic entry when none changed. Values and entries are committed
    in one transaction.
    """
    current = _snapshot(order)
    proposed = dict(current)
    for field, value in edits.items():
        if field == "stage":
            if value is None:
                continue
            proposed["stage"] = value if isinstance(value, Stage) else parse_stage(str(value))
        elif field in EDITABLE_FIELDS:
            proposed[field] = value
    proposed["status"] = normalize_status(proposed["stage"], proposed["status"])

    messages = describe_changes(current, proposed) or [GENERIC_UPDATE]

    order.stage = proposed["stage"]
    for field in EDITABLE_FIELDS:
        value = proposed[field]
        setattr(order, field, value if value != "" else None)
    entries = [
        activity.append(db, order.order_number, message, user, commit=False)
        for message in messages
    ]
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    for entry in entries:
        db.refresh(entry)
    db.refresh(order)
    logger.info("Updated order %s (%d change(s))", order.order_number, len(messages))
    return entries
