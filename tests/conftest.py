"""
Shared fixtures.

The settings object is built when ``order_portal.config`` is first imported,
so the environment is prepared here before anything from the package loads:
an in-memory database and a temporary directory holding generated
stand-ins for the two agreement templates.
"""

import io
import os
import tempfile
from pathlib import Path

TEMPLATE_DIR = Path(tempfile.mkdtemp(prefix="order-portal-templates-"))
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CONTRACT_TEMPLATE_DIR"] = str(TEMPLATE_DIR)
os.environ["APP_URL"] = "http://testserver"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from order_portal import database, models
from order_portal.chat import ChatBoard
from order_portal.contract_layout import TEMPLATES
from order_portal.main import app
from order_portal.pdf_stamping import TemplateStore
from order_portal.signature import SignaturePad


def make_template_pdf(pages: int = 2, title: str = "Robotic Services Agreement") -> bytes:
    """Build a plain multi-page PDF standing in for an agreement template."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter, invariant=1)
    for number in range(1, pages + 1):
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawString(72, 740, f"{title} - page {number}")
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


for _layout in TEMPLATES.values():
    (TEMPLATE_DIR / _layout.filename).write_bytes(make_template_pdf())


@pytest.fixture(autouse=True)
def reset_state():
    models.Base.metadata.drop_all(bind=database.engine)
    models.Base.metadata.create_all(bind=database.engine)
    app.state.chat_board = ChatBoard()
    app.state.template_store = TemplateStore(TEMPLATE_DIR)
    yield


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def template_store():
    return TemplateStore(TEMPLATE_DIR)


@pytest.fixture
def signature_png() -> bytes:
    pad = SignaturePad()
    pad.press(20, 150)
    pad.move(120, 60)
    pad.move(220, 140)
    pad.move(320, 50)
    pad.release()
    return pad.export()
