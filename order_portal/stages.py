"""
Order stage/status state machine.

An order sits in one coarse stage at a time and carries a status drawn from
that stage's fixed set. Moving to another stage never fails: a status that
is not legal for the new stage is replaced by the stage's default.

This module is pure; :mod:`order_portal.orders` applies it to ORM rows and
writes the activity log.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


class Stage(str, Enum):
    """Lifecycle stages, in the order an order moves through them."""

    CONTRACT = "Contract"
    DELIVERY = "Delivery"
    INSTALLATION = "Installation"
    COMPLETED = "Completed"

    @property
    def category(self) -> str:
        """Name stored in the ``orders.category`` column."""
        return "Inventory" if self is Stage.DELIVERY else self.value


LEGAL_STATUSES: Dict[Stage, Tuple[str, ...]] = {
    Stage.CONTRACT: ("Pending", "In Progress", "Approved"),
    Stage.DELIVERY: ("Pending", "In Shipment", "Delivered"),
    Stage.INSTALLATION: ("Pending", "Scheduled", "In Progress", "Completed"),
    Stage.COMPLETED: ("Pending",),
}

DEFAULT_STATUS = "Pending"

# Tracked fields in the order their changes are reported.
TRACKED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("stage", "Stage"),
    ("status", "Status"),
    ("employee_name", "Employee"),
    ("last_contact_date", "Last contact date"),
    ("tracking_number", "Tracking number"),
    ("estimated_delivery_date", "Estimated delivery date"),
    ("installation_appointment_time", "Installation appointment"),
)

GENERIC_UPDATE = "Order information updated"


class UnknownStageError(ValueError):
    """Raised when a stage or category name is not recognised."""


def parse_stage(name: str) -> Stage:
    """Resolve a stage from either its display name or its stored category.

    ``Delivery`` and ``Inventory`` both resolve to :attr:`Stage.DELIVERY`.
    """
    cleaned = (name or "").strip()
    if cleaned.lower() == "inventory":
        return Stage.DELIVERY
    for stage in Stage:
        if stage.value.lower() == cleaned.lower():
            return stage
    raise UnknownStageError(f"Unknown stage: {name!r}")


def stage_from_category(category: Optional[str]) -> Stage:
    if not category:
        return Stage.CONTRACT
    return parse_stage(category)


def legal_statuses(stage: Stage) -> List[str]:
    return list(LEGAL_STATUSES[stage])


def normalize_status(stage: Stage, status: Optional[str]) -> str:
    """Return ``status`` if legal for ``stage``, else the stage default."""
    allowed = LEGAL_STATUSES[stage]
    if status in allowed:
        return status
    return allowed[0]


def set_stage(order, new_stage: Stage) -> None:
    """Move ``order`` to ``new_stage``, resetting an illegal status."""
    order.stage = new_stage
    order.status = normalize_status(new_stage, order.status)


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, Stage):
        return value.value
    return str(value)


def describe_changes(current: Mapping[str, object], proposed: Mapping[str, object]) -> List[str]:
    """Build the activity log lines for the tracked fields that differ.

    ``None`` and the empty string are the same value. Stage and status are
    reported as ``changed from A to B``, the employee with ``unassigned``
    standing in for an empty name, and the remaining fields as ``set to B``
    when previously empty or ``cleared`` when emptied.
    """
    changes = []
    for field, label in TRACKED_FIELDS:
        old = _text(current.get(field))
        new = _text(proposed.get(field))
        if old == new:
            continue
        if field in ("stage", "status"):
            changes.append(f"{label} changed from {old} to {new}")
        elif field == "employee_name":
            changes.append(
                f"{label} changed from {old or 'unassigned'} to {new or 'unassigned'}"
            )
        elif not new:
            changes.append(f"{label} cleared")
        elif not old:
            changes.append(f"{label} set to {new}")
        else:
            changes.append(f"{label} changed from {old} to {new}")
    return changes
