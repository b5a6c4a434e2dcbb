"""
Contract service: generation, status lookups and the one-time signing write.

Signing is a single conditional UPDATE on ``status = 'pending'``; whichever
request commits it first wins and every later attempt sees
:class:`ContractAlreadySigned`, leaving the stored PDF untouched.
"""

import logging
from datetime import datetime, timezone
from typing import List, Mapping, Optional

from sqlalchemy.orm import Session

from order_portal import activity, models
from order_portal.chat import display_timestamp
from order_portal.contract_links import build_link, mint_contract_id, normalize_contract_type
from order_portal.errors import (
    ContractAlreadySigned,
    ContractNotFound,
    InvalidContractData,
    StageError,
)
from order_portal.pdf_stamping import TemplateStore, fill_template
from order_portal.pricing import build_contract_payload
from order_portal.stages import Stage

logger = logging.getLogger(__name__)

PENDING = "pending"
SIGNED = "signed"
CLIENT_USER = "Client"
COUNTER_SIGNATURE_KEY = "tech_force_signature"


def get_contract(db: Session, contract_id: str) -> models.Contract:
    contract = (
        db.query(models.Contract)
        .filter(models.Contract.contract_id == contract_id)
        .first()
    )
    if contract is None:
        raise ContractNotFound(f"Contract {contract_id} not found")
    return contract


def list_contracts(db: Session, order_number: str) -> List[models.Contract]:
    return (
        db.query(models.Contract)
        .filter(models.Contract.order_number == order_number)
        .order_by(models.Contract.generated_at.desc(), models.Contract.id.desc())
        .all()
    )


def contract_link(contract: models.Contract, app_url: str) -> str:
    return build_link(app_url, contract.contract_id, contract.contract_type, contract.form_data or {})


def generate_contract(
    db: Session,
    order: models.Order,
    contract_type: str,
    form: Mapping[str, object],
    templates: TemplateStore,
    user: str,
    counter_signature: Optional[str] = None,
    supersedes: Optional[str] = None,
) -> models.Contract:
    """Mint a pending contract for an order in the Contract stage.

    The form is completed with derived costs, stamped onto the chosen
    template (with the company's counter-signature when given) and stored
    alongside the snapshot that the shareable link embeds. Generation errors
    propagate before anything is written.

    ``supersedes`` names an earlier contract of the same order that this one
    replaces; the earlier contract itself is left as it is.
    """
    if order.stage is not Stage.CONTRACT:
        raise StageError(
            f"Order {order.order_number} is in the {order.stage.value} stage; "
            "contracts can only be generated in the Contract stage"
        )
    previous = None
    if supersedes:
        previous = get_contract(db, supersedes)
        if previous.order_number != order.order_number:
            raise ContractNotFound(
                f"Contract {supersedes} does not belong to order {order.order_number}"
            )

    contract_type = normalize_contract_type(contract_type)
    payload = build_contract_payload(form)
    if counter_signature:
        payload[COUNTER_SIGNATURE_KEY] = counter_signature
    pdf = fill_template(
        contract_type,
        payload,
        counter_signature_image=payload.get(COUNTER_SIGNATURE_KEY) or None,
        loader=templates.load,
    )

    contract = models.Contract(
        contract_id=mint_contract_id(),
        order_number=order.order_number,
        contract_type=contract_type,
        status=PENDING,
        form_data=payload,
        pdf_generated=pdf,
        supersedes_contract_id=previous.contract_id if previous else None,
    )
    db.add(contract)
    activity.append(db, order.order_number, "Contract generated", user, commit=False)
    if previous is not None:
        activity.append(
            db,
            order.order_number,
            f"Contract {previous.contract_id} superseded by {contract.contract_id}",
            user,
            commit=False,
        )
    db.commit()
    db.refresh(contract)
    logger.info(
        "Generated %s contract %s for order %s",
        contract_type, contract.contract_id, order.order_number,
    )
    return contract


def submit_signed(
    db: Session,
    contract_id: str,
    pdf_signed: bytes,
    now: Optional[datetime] = None,
) -> models.Contract:
    """Store the client's signed PDF and mark the contract signed.

    Raises :class:`InvalidContractData` when the bytes are not a PDF,
    :class:`ContractNotFound` for an unknown id and
    :class:`ContractAlreadySigned` when another submission got there first.
    """
    if not pdf_signed or not pdf_signed.startswith(b"%PDF"):
        raise InvalidContractData("Signed contract is not a PDF document")

    signed_at = now or datetime.now(timezone.utc)
    updated = (
        db.query(models.Contract)
        .filter(
            models.Contract.contract_id == contract_id,
            models.Contract.status == PENDING,
        )
        .update(
            {
                models.Contract.status: SIGNED,
                models.Contract.pdf_signed: pdf_signed,
                models.Contract.signed_at: signed_at,
            },
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        get_contract(db, contract_id)
        raise ContractAlreadySigned(f"Contract {contract_id} has already been signed")

    contract = get_contract(db, contract_id)
    activity.append(
        db,
        contract.order_number,
        f"Client submitted signed contract on {display_timestamp(signed_at)}",
        CLIENT_USER,
        commit=False,
    )
    db.commit()
    db.refresh(contract)
    logger.info("Contract %s signed for order %s", contract_id, contract.order_number)
    return contract
