"""
Shareable contract links.

A link looks like::

    {APP_URL}/contract/{contract_id}?type=trial#{encoded form data}

The contract id is the only access control on the public signing page, so
it comes from 122 bits of OS randomness and has no relation to the order
number. The form data rides in the URL fragment as base64url-encoded JSON;
browsers never send the fragment to the server.
"""

import base64
import binascii
import json
import uuid
from dataclasses import dataclass
from typing import Dict, Mapping
from urllib.parse import parse_qs, urlsplit

from order_portal.errors import InvalidContractData

CONTRACT_PATH_PREFIX = "/contract/"


def mint_contract_id() -> str:
    """Return a fresh random contract id (a UUIDv4 without separators)."""
    return uuid.uuid4().hex


def normalize_contract_type(value) -> str:
    """Anything other than ``trial`` is a service agreement."""
    return "trial" if value == "trial" else "service"


def encode_form_data(form_data: Mapping[str, object]) -> str:
    raw = json.dumps(dict(form_data), separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_form_data(encoded: str) -> Dict[str, str]:
    """Decode a link fragment back into form data.

    Accepts standard and URL-safe base64, with or without padding. Raises
    :class:`InvalidContractData` for anything that does not decode to a JSON
    object.
    """
    text = (encoded or "").strip().lstrip("#")
    if not text:
        raise InvalidContractData("Contract link carries no form data")
    text = text.replace("+", "-").replace("/", "_")
    text += "=" * (-len(text) % 4)
    try:
        raw = base64.urlsafe_b64decode(text.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, UnicodeError) as exc:
        raise InvalidContractData("Contract link data could not be decoded") from exc
    if not isinstance(data, dict):
        raise InvalidContractData("Contract link data is not an object")
    return {str(key): "" if value is None else str(value) for key, value in data.items()}


def build_link(app_url: str, contract_id: str, contract_type: str, form_data: Mapping[str, object]) -> str:
    return (
        f"{app_url.rstrip('/')}{CONTRACT_PATH_PREFIX}{contract_id}"
        f"?type={normalize_contract_type(contract_type)}#{encode_form_data(form_data)}"
    )


@dataclass(frozen=True)
class ContractLink:
    contract_id: str
    contract_type: str
    fragment: str

    def form_data(self) -> Dict[str, str]:
        return decode_form_data(self.fragment)


def parse_link(link: str) -> ContractLink:
    """Split a contract link into id, template type and encoded fragment."""
    parts = urlsplit(link)
    if not parts.path.startswith(CONTRACT_PATH_PREFIX):
        raise InvalidContractData(f"Not a contract link: {link!r}")
    contract_id = parts.path[len(CONTRACT_PATH_PREFIX):].strip("/")
    if not contract_id:
        raise InvalidContractData("Contract link has no contract id")
    contract_type = parse_qs(parts.query).get("type", ["service"])[0]
    return ContractLink(
        contract_id=contract_id,
        contract_type=normalize_contract_type(contract_type),
        fragment=parts.fragment,
    )

