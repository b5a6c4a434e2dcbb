"""
Public contract signing page.

Drives what the client's browser does with a contract link: check whether
the contract is already signed, decode the form data from the link, fill
the template for review, regenerate the preview once a signature is saved,
and submit the signed PDF exactly once. All server calls go through an
``httpx.Client`` pointed at the portal API.
"""

import base64
import logging
from enum import Enum
from typing import Dict, Optional

import httpx

from order_portal.contract_links import ContractLink, parse_link
from order_portal.errors import ImageEmbedError, InvalidContractData, TemplateLoadError
from order_portal.pdf_stamping import fill_template
from order_portal.signature import SignaturePad

logger = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "Invalid contract data in link."
NOT_FOUND_MESSAGE = "This contract link is not valid."
TEMPLATE_ERROR_MESSAGE = "Could not load or fill the contract PDF."
SIGN_FIRST_MESSAGE = "Please sign the contract before submitting."
SIGNATURE_ERROR_MESSAGE = "Signature saved, but the signed PDF could not be generated. Please try again."
SUBMIT_ERROR_MESSAGE = "Could not submit the signed contract. Please try again."
STATUS_ERROR_MESSAGE = "Could not check the contract status. Please try again."
ALREADY_SUBMITTED_MESSAGE = "Thank you, this contract has already been submitted."
SUBMITTED_MESSAGE = "Contract has been submitted successfully!"


class PageView(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    REVIEW = "review"
    ALREADY_SUBMITTED = "already_submitted"
    SUBMITTED = "submitted"


class ContractSigningPage:
    """State of one client's visit to a contract link."""

    def __init__(self, client: httpx.Client, link: str):
        self.client = client
        self.link = link
        self.view = PageView.LOADING
        self.message: Optional[str] = None
        self.contract: Optional[ContractLink] = None
        self.form_data: Dict[str, str] = {}
        self.draft_pdf: Optional[bytes] = None
        self.signature: Optional[bytes] = None
        self.signed_pdf: Optional[bytes] = None

    # -- loading ---------------------------------------------------------

    def open(self) -> PageView:
        """Load the page: status check, link decoding, then the draft PDF."""
        try:
            self.contract = parse_link(self.link)
        except InvalidContractData:
            return self._show(PageView.ERROR, INVALID_LINK_MESSAGE)

        try:
            response = self.client.get(f"/contracts/status/{self.contract.contract_id}")
        except httpx.HTTPError as exc:
            logger.warning("Status check failed for %s: %s", self.contract.contract_id, exc)
            return self._show(PageView.ERROR, STATUS_ERROR_MESSAGE)
        if response.status_code == 404:
            return self._show(PageView.ERROR, NOT_FOUND_MESSAGE)
        if response.status_code != 200:
            return self._show(PageView.ERROR, STATUS_ERROR_MESSAGE)
        if response.json().get("status") == "signed":
            return self._show(PageView.ALREADY_SUBMITTED, ALREADY_SUBMITTED_MESSAGE)

        try:
            self.form_data = self.contract.form_data()
        except InvalidContractData:
            return self._show(PageView.ERROR, INVALID_LINK_MESSAGE)

        try:
            self.draft_pdf = self._render()
        except (TemplateLoadError, ImageEmbedError) as exc:
            logger.warning("Could not render contract %s: %s", self.contract.contract_id, exc)
            return self._show(PageView.ERROR, TEMPLATE_ERROR_MESSAGE)
        return self._show(PageView.REVIEW)

    def _fetch_template(self, template_id: str) -> bytes:
        try:
            response = self.client.get(f"/contract-templates/{template_id}")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TemplateLoadError(f"Could not fetch {template_id} template: {exc}") from exc
        return response.content

    def _render(self, signature: Optional[bytes] = None) -> bytes:
        return fill_template(
            self.contract.contract_type,
            self.form_data,
            signature_image=signature,
            counter_signature_image=self.form_data.get("tech_force_signature") or None,
            loader=self._fetch_template,
        )

    # -- signing ---------------------------------------------------------

    def save_signature(self, pad: SignaturePad) -> bool:
        """Keep the pad's drawing and rebuild the preview with it embedded."""
        if self.view is not PageView.REVIEW:
            return False
        if pad.is_empty:
            self.message = SIGN_FIRST_MESSAGE
            return False
        signature = pad.export()
        try:
            signed_pdf = self._render(signature)
        except (TemplateLoadError, ImageEmbedError) as exc:
            logger.warning("Could not embed signature: %s", exc)
            self.message = SIGNATURE_ERROR_MESSAGE
            return False
        self.signature = signature
        self.signed_pdf = signed_pdf
        self.message = None
        return True

    def clear_signature(self, pad: SignaturePad) -> None:
        pad.clear()
        self.signature = None
        self.signed_pdf = None

    def submit(self) -> PageView:
        """Send the signed PDF. Failures leave the contract pending and retryable."""
        if self.view is not PageView.REVIEW:
            return self.view
        if self.signed_pdf is None:
            self.message = SIGN_FIRST_MESSAGE
            return self.view
        body = {"pdf_signed": base64.b64encode(self.signed_pdf).decode("ascii")}
        try:
            response = self.client.patch(
                f"/contracts/{self.contract.contract_id}/signed", json=body
            )
        except httpx.HTTPError as exc:
            logger.warning("Submitting contract %s failed: %s", self.contract.contract_id, exc)
            self.message = SUBMIT_ERROR_MESSAGE
            return self.view
        if response.status_code == 409:
            return self._show(PageView.ALREADY_SUBMITTED, ALREADY_SUBMITTED_MESSAGE)
        if response.status_code != 200:
            self.message = SUBMIT_ERROR_MESSAGE
            return self.view
        return self._show(PageView.SUBMITTED, SUBMITTED_MESSAGE)

    def _show(self, view: PageView, message: Optional[str] = None) -> PageView:
        self.view = view
        self.message = message
        return view
