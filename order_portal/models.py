"""
SQLAlchemy models used by the portal.

This module defines the ORM models representing the tables in our database:

- **Order**: One sales order for a company. It carries the coarse lifecycle
  stage (stored as ``category``), the fine-grained status within that stage
  and the optional fields each stage cares about.
- **ActivityLog**: Append-only audit trail for an order. Every state change
  or notable event adds one row; rows are never edited or removed.
- **Contract**: A link-addressable signing workflow for an order. It is
  keyed by a random ``contract_id`` and moves from ``pending`` to ``signed``
  exactly once.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
)

from order_portal.database import Base
from order_portal.stages import DEFAULT_STATUS, Stage, legal_statuses, stage_from_category


def _utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    """A company's order moving through Contract, Delivery and Installation.

    ``category`` keeps the stored stage name (``Inventory`` for the delivery
    stage); ``stage`` exposes it as a :class:`Stage`.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, index=True, nullable=True)
    company_name = Column(String, nullable=False)
    category = Column(String, nullable=False, default=Stage.CONTRACT.category)
    status = Column(String, nullable=False, default=DEFAULT_STATUS)
    employee_name = Column(String, nullable=True)

    # Contract stage
    last_contact_date = Column(String, nullable=True)

    # Delivery stage
    tracking_number = Column(String, nullable=True)
    estimated_delivery_date = Column(String, nullable=True)
    shipping_address = Column(Text, nullable=True)
    deliver_to = Column(String, nullable=True)

    # Installation stage
    installation_appointment_time = Column(String, nullable=True)
    installation_employee_name = Column(String, nullable=True)
    site_location = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @property
    def stage(self) -> Stage:
        return stage_from_category(self.category)

    @stage.setter
    def stage(self, value: Stage) -> None:
        self.category = value.category

    @property
    def status_options(self):
        return legal_statuses(self.stage)


class ActivityLog(Base):
    """One entry in an order's activity trail.

    Entries are written once by :func:`order_portal.activity.append` and never
    touched again.
    """

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(
        String, ForeignKey("orders.order_number"), nullable=False, index=True
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    action = Column(Text, nullable=False)
    user = Column(String, nullable=False, default="System")


class Contract(Base):
    """A contract link minted for an order.

    ``form_data`` is the snapshot that was embedded in the shareable link.
    ``pdf_generated`` is the filled draft produced at generation time and
    ``pdf_signed`` the client's signed copy, written once on signing.
    """

    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(String(64), unique=True, index=True, nullable=False)
    order_number = Column(
        String, ForeignKey("orders.order_number"), nullable=False, index=True
    )
    contract_type = Column(String, nullable=False, default="service")
    status = Column(String, nullable=False, default="pending")
    form_data = Column(JSON, nullable=False, default=dict)
    pdf_generated = Column(LargeBinary, nullable=True)
    pdf_signed = Column(LargeBinary, nullable=True)
    supersedes_contract_id = Column(String(64), nullable=True)
    generated_at = Column(DateTime(timezone=True), default=_utcnow)
    signed_at = Column(DateTime(timezone=True), nullable=True)
