"""
Contract generation by template stamping.

Text and signature images are drawn onto a transparent overlay with
reportlab at the positions registered in :mod:`order_portal.contract_layout`,
and the overlay is merged onto the template page with PyPDF2. The template is
read fresh on every call, so repeated calls never affect each other.
"""

import base64
import binascii
import io
import logging
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError
from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from order_portal.contract_layout import (
    TEMPLATES,
    ImagePlacement,
    TemplateLayout,
    TextPlacement,
)
from order_portal.errors import ImageEmbedError, TemplateLoadError

logger = logging.getLogger(__name__)

FONT_NAME = "Helvetica"

TemplateLoader = Callable[[str], bytes]
ImageInput = Union[bytes, str]


def get_layout(template_id: str) -> TemplateLayout:
    layout = TEMPLATES.get(template_id)
    if layout is None:
        raise TemplateLoadError(f"Unknown contract template: {template_id!r}")
    return layout


class TemplateStore:
    """Reads the agreement PDFs from a directory on disk."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, template_id: str) -> Path:
        return self.directory / get_layout(template_id).filename

    def load(self, template_id: str) -> bytes:
        path = self.path_for(template_id)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise TemplateLoadError(f"Could not read template {path}: {exc}") from exc


def decode_data_url(value: str) -> bytes:
    """Decode a ``data:image/png;base64,...`` URL or a bare base64 string."""
    payload = value.split(",", 1)[1] if value.startswith("data:") else value
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageEmbedError("Signature image is not valid base64 data") from exc


def decode_image(data: ImageInput) -> Image.Image:
    """Open raster image bytes (or a data URL) as a Pillow image."""
    if isinstance(data, str):
        data = decode_data_url(data)
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageEmbedError("Signature is not a decodable image") from exc
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA")
    return image


def _read_template(data: bytes) -> PdfReader:
    try:
        reader = PdfReader(io.BytesIO(data))
        page_count = len(reader.pages)
    # PyPDF2 raises a range of error types on malformed input.
    except Exception as exc:
        raise TemplateLoadError(f"Template is not a readable PDF: {exc}") from exc
    if page_count == 0:
        raise TemplateLoadError("Template has no pages")
    return reader


def _overlay(
    width: float,
    height: float,
    texts: List[Tuple[TextPlacement, str]],
    images: List[Tuple[ImagePlacement, Image.Image]],
):
    buffer = io.BytesIO()
    # invariant=1 keeps the overlay free of timestamps and random ids.
    pdf = canvas.Canvas(buffer, pagesize=(width, height), invariant=1)
    pdf.setFillColorRGB(0, 0, 0)
    for placement, text in texts:
        pdf.setFont(FONT_NAME, placement.font_size)
        pdf.drawString(placement.x, placement.y, text)
    for placement, image in images:
        pdf.drawImage(
            ImageReader(image),
            placement.x,
            placement.y,
            width=placement.width,
            height=placement.height,
            mask="auto",
        )
    pdf.showPage()
    pdf.save()
    return PdfReader(io.BytesIO(buffer.getvalue())).pages[0]


def fill_template(
    template_id: str,
    field_values: Mapping[str, object],
    signature_image: Optional[ImageInput] = None,
    counter_signature_image: Optional[ImageInput] = None,
    *,
    loader: TemplateLoader,
) -> bytes:
    """Stamp ``field_values`` onto a contract template and return the new PDF.

    Every registered field with a non-empty value is drawn at its position;
    other values are ignored. ``counter_signature_image`` (the company's
    signature) and ``signature_image`` (the client's) are embedded in their
    registered boxes, counter-signature first.

    Raises :class:`TemplateLoadError` when the template cannot be loaded or
    parsed and :class:`ImageEmbedError` when a signature is not an image.
    A placement that points past the template's last page is skipped.
    """
    layout = get_layout(template_id)
    counter = decode_image(counter_signature_image) if counter_signature_image else None
    client = decode_image(signature_image) if signature_image else None

    reader = _read_template(loader(template_id))
    page_count = len(reader.pages)

    texts: Dict[int, List[Tuple[TextPlacement, str]]] = defaultdict(list)
    images: Dict[int, List[Tuple[ImagePlacement, Image.Image]]] = defaultdict(list)

    for key, placement in layout.text.items():
        value = field_values.get(placement.source or key)
        text = "" if value is None else str(value).strip()
        if not text:
            continue
        if placement.page >= page_count:
            logger.warning(
                "Skipping field %s: page %d not in %s template (%d pages)",
                key, placement.page, template_id, page_count,
            )
            continue
        texts[placement.page].append((placement, text))

    for placement, image in ((layout.counter_signature, counter), (layout.client_signature, client)):
        if image is None or placement is None:
            continue
        page = page_count - 1 if placement.page is None else placement.page
        if page >= page_count:
            logger.warning("Skipping signature: page %d not in %s template", page, template_id)
            continue
        images[page].append((placement, image))

    writer = PdfWriter()
    for index, page in enumerate(reader.pages):
        if index in texts or index in images:
            box = page.mediabox
            page.merge_page(
                _overlay(float(box.right), float(box.top), texts[index], images[index])
            )
        writer.add_page(page)

    output = io.BytesIO()
    writer.write(output)
    logger.debug(
        "Filled %s template: %d field(s), %d image(s)",
        template_id,
        sum(len(items) for items in texts.values()),
        sum(len(items) for items in images.values()),
    )
    return output.getvalue()
