"""
Entry point for the FastAPI application.

This module defines the REST API routes for the order lifecycle: orders and
their stage/status edits, the per-order activity log and chat, and the
contract workflow (generation, shareable links, public status checks and
the one-time signed submission).

Staff requests identify the acting user with the ``X-Acting-User`` header;
the public contract routes need nothing but the contract id.
"""

import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_portal import activity, contracts, database, models, orders, schemas
from order_portal.chat import ChatBoard
from order_portal.config import settings
from order_portal.errors import (
    ContractAlreadySigned,
    ContractNotFound,
    ImageEmbedError,
    InvalidContractData,
    OrderNotFound,
    StageError,
    TemplateLoadError,
)
from order_portal.pdf_stamping import TemplateStore
from order_portal.session import SYSTEM_USER, UserSession, get_user_session
from order_portal.stages import UnknownStageError, parse_stage

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("order_portal")

# Ensure the database tables are created at application startup.
models.Base.metadata.create_all(bind=database.engine)

app = FastAPI(title="Order Portal API")
app.state.template_store = TemplateStore(settings.CONTRACT_TEMPLATE_DIR)
app.state.chat_board = ChatBoard()

# ---------------------------------------------------------------------------
# CORS configuration
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Middleware for request logging
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware that logs each incoming request.

    Health checks and template downloads are skipped to keep the log
    focused on user actions.
    """
    path = request.url.path
    if path == "/health" or path.startswith("/contract-templates/"):
        return await call_next(request)

    response = await call_next(request)
    logger.info(
        "%s %s -> %s (%s)",
        request.method,
        path,
        response.status_code,
        request.client.host if request.client else "-",
    )
    return response


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

get_db = database.get_db


def get_template_store(request: Request) -> TemplateStore:
    return request.app.state.template_store


def get_chat_board(request: Request) -> ChatBoard:
    return request.app.state.chat_board


def _load_order(db: Session, order_number: str) -> models.Order:
    try:
        return orders.get_order(db, order_number)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")


def _load_contract(db: Session, contract_id: str) -> models.Contract:
    try:
        return contracts.get_contract(db, contract_id.strip())
    except ContractNotFound:
        raise HTTPException(status_code=404, detail="Contract not found")


@app.get("/health")
def health(db: Session = Depends(get_db)):
    """Report whether the API can reach its database."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "database": "disconnected", "error": str(exc)},
        )
    return {
        "status": "ok",
        "database": "connected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Order endpoints
# ---------------------------------------------------------------------------

@app.post("/orders", response_model=schemas.Order)
def create_order(
    order: schemas.OrderCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_user_session),
):
    """
    Create a new order in the Contract stage.
    """
    user = session.user_name if session.user_name != SYSTEM_USER else None
    return orders.create_order(db, order.company_name, order.employee_name, user=user)


@app.get("/orders", response_model=List[schemas.Order])
def list_orders(
    stage: Optional[str] = None,
    employee: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """
    Retrieve orders, optionally filtered by stage or assigned employee.
    """
    stage_filter = None
    if stage:
        try:
            stage_filter = parse_stage(stage)
        except UnknownStageError:
            raise HTTPException(status_code=422, detail=f"Unknown stage: {stage}")
    return orders.list_orders(db, stage_filter, employee, skip=skip, limit=limit)


@app.get("/orders/{order_number}", response_model=schemas.Order)
def get_order(order_number: str, db: Session = Depends(get_db)):
    """
    Retrieve a single order by its order number.
    """
    return _load_order(db, order_number)


@app.patch("/orders/{order_number}", response_model=schemas.Order)
def update_order(
    order_number: str,
    updated: schemas.OrderUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_user_session),
):
    """
    Apply a partial update and record what changed in the activity log.

    A stage change resets a status that the new stage does not allow. An
    update that changes none of the tracked fields still logs one generic
    entry.
    """
    order = _load_order(db, order_number)
    edits = updated.model_dump(exclude_unset=True)
    acting_user = edits.pop("acting_user", None)
    category = edits.pop("category", None)
    if edits.get("stage") is None and category is not None:
        edits["stage"] = category
    orders.apply_edit(db, order, edits, session.actor(acting_user))
    return order


# ---------------------------------------------------------------------------
# Activity log and chat
# ---------------------------------------------------------------------------

@app.get("/orders/{order_number}/activity-log", response_model=List[schemas.ActivityLogEntry])
def list_activity_log(
    order_number: str,
    limit: int = settings.ACTIVITY_LOG_LIMIT,
    db: Session = Depends(get_db),
):
    """
    Return the order's activity log, newest entry first.
    """
    _load_order(db, order_number)
    return activity.list_entries(db, order_number, limit)


@app.post("/orders/{order_number}/activity-log", response_model=schemas.ActivityLogEntry)
def add_activity_log(
    order_number: str,
    entry: schemas.ActivityLogCreate,
    db: Session = Depends(get_db),
):
    """
    Append an entry to the order's activity log.
    """
    _load_order(db, order_number)
    return activity.append(db, order_number, entry.action, entry.user)


@app.get("/orders/{order_number}/chat", response_model=List[schemas.ChatMessage])
def list_chat_messages(
    order_number: str,
    db: Session = Depends(get_db),
    board: ChatBoard = Depends(get_chat_board),
):
    _load_order(db, order_number)
    return board.messages(order_number)


@app.post("/orders/{order_number}/chat", response_model=schemas.ChatMessage)
def send_chat_message(
    order_number: str,
    payload: schemas.ChatMessageCreate,
    db: Session = Depends(get_db),
    board: ChatBoard = Depends(get_chat_board),
    session: UserSession = Depends(get_user_session),
):
    """
    Post a chat message on an order.

    While the order is in the Contract stage the message also counts as the
    last contact with the client.
    """
    order = _load_order(db, order_number)
    user = session.actor(payload.user)
    if user == SYSTEM_USER and order.employee_name:
        user = order.employee_name
    return board.send(db, order, payload.message, user)


# ---------------------------------------------------------------------------
# Contract endpoints (staff)
# ---------------------------------------------------------------------------

@app.post("/orders/{order_number}/contracts", response_model=schemas.ContractGenerated)
def generate_contract(
    order_number: str,
    payload: schemas.ContractCreate,
    db: Session = Depends(get_db),
    templates: TemplateStore = Depends(get_template_store),
    session: UserSession = Depends(get_user_session),
):
    """
    Generate a contract for an order and return its shareable link.

    The form data is stored with the contract and embedded in the link so
    the client's page can render the same draft.
    """
    order = _load_order(db, order_number)
    try:
        contract = contracts.generate_contract(
            db,
            order,
            payload.contract_type,
            payload.form_data.model_dump(),
            templates,
            session.actor(payload.acting_user),
            counter_signature=payload.counter_signature,
            supersedes=payload.supersedes,
        )
    except StageError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ContractNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ImageEmbedError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except TemplateLoadError as exc:
        logger.error("Contract generation failed for %s: %s", order_number, exc)
        raise HTTPException(status_code=500, detail="Could not load or fill the contract PDF.")

    return {
        **schemas.Contract.model_validate(contract).model_dump(),
        "link": contracts.contract_link(contract, settings.APP_URL),
    }


@app.get("/contracts", response_model=List[schemas.Contract])
def list_contracts(order_number: str, db: Session = Depends(get_db)):
    """
    List an order's contracts, newest first.
    """
    return contracts.list_contracts(db, order_number.strip())


@app.get("/contracts/{contract_id}/link", response_model=schemas.ContractLink)
def get_contract_link(contract_id: str, db: Session = Depends(get_db)):
    """
    Rebuild the shareable link from the stored form data.
    """
    contract = _load_contract(db, contract_id)
    return {"link": contracts.contract_link(contract, settings.APP_URL)}


@app.get("/contracts/{contract_id}/pdf")
def get_contract_pdf(contract_id: str, db: Session = Depends(get_db)):
    """
    Return the signed PDF when there is one, otherwise the generated draft.
    """
    contract = _load_contract(db, contract_id)
    pdf_bytes = contract.pdf_signed or contract.pdf_generated
    if not pdf_bytes:
        raise HTTPException(status_code=404, detail="No PDF available for this contract")
    return Response(
        content=bytes(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": 'inline; filename="contract.pdf"'},
    )


# ---------------------------------------------------------------------------
# Contract endpoints (public, used by the client's signing page)
# ---------------------------------------------------------------------------

@app.get("/contracts/status/{contract_id}", response_model=schemas.ContractStatus)
def get_contract_status(contract_id: str, db: Session = Depends(get_db)):
    """
    Report whether a contract is still pending or already signed.
    """
    contract = _load_contract(db, contract_id)
    return {"status": contract.status or contracts.PENDING}


@app.patch("/contracts/{contract_id}/signed", response_model=schemas.Contract)
def submit_signed_contract(
    contract_id: str,
    payload: schemas.SignedContractSubmit,
    db: Session = Depends(get_db),
):
    """
    Store the client's signed PDF. Only the first submission succeeds.
    """
    try:
        pdf_bytes = base64.b64decode(payload.pdf_signed, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="pdf_signed must be base64 encoded")
    try:
        return contracts.submit_signed(db, contract_id.strip(), pdf_bytes)
    except InvalidContractData as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ContractNotFound:
        raise HTTPException(status_code=404, detail="Contract not found")
    except ContractAlreadySigned:
        logger.info("Rejected repeat submission for contract %s", contract_id)
        raise HTTPException(status_code=409, detail="Contract has already been signed")


@app.get("/contract-templates/{template_id}")
def get_contract_template(
    template_id: str,
    templates: TemplateStore = Depends(get_template_store),
):
    """
    Serve a blank agreement template to the signing page.
    """
    try:
        content = templates.load(template_id)
    except TemplateLoadError:
        raise HTTPException(status_code=404, detail="Template not found")
    return Response(content=content, media_type="application/pdf")
