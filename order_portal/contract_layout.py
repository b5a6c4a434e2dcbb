"""
Coordinate tables for the contract templates.

The agreement PDFs have no form fields that fill reliably across viewers,
so every value is drawn at a measured position instead. Coordinates are PDF
points from the bottom-left corner of the page. Text is not wrapped; long
values run over neighbouring content.

Swapping a template means editing this module only.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class TextPlacement:
    x: float
    y: float
    font_size: float = 10
    page: int = 0
    # Form key to read when it differs from the placement key.
    source: Optional[str] = None


@dataclass(frozen=True)
class ImagePlacement:
    x: float
    y: float
    width: float = 180
    height: float = 54
    # None means the last page of the document.
    page: Optional[int] = None


@dataclass(frozen=True)
class TemplateLayout:
    filename: str
    text: Dict[str, TextPlacement] = field(default_factory=dict)
    client_signature: Optional[ImagePlacement] = None
    counter_signature: Optional[ImagePlacement] = None


def _monthly_row(y: float) -> TextPlacement:
    return TextPlacement(x=289, y=y)


def _page2_row(y: float, x: float = 289) -> TextPlacement:
    return TextPlacement(x=x, y=y, page=1)


AGREEMENT_TEXT: Dict[str, TextPlacement] = {
    # Page 1: parties and term
    "effective_date": TextPlacement(x=498, y=670),
    "business_name": TextPlacement(x=268, y=636),
    "service_address": TextPlacement(x=268, y=611),
    "city_state_zip": TextPlacement(x=268, y=585),
    "location_contact_name_phone": TextPlacement(x=268, y=560),
    "location_contact_email": TextPlacement(x=268, y=537),
    "authorized_person_name": TextPlacement(x=268, y=422),
    "authorized_person_title": TextPlacement(x=268, y=401),
    "authorized_person_email": TextPlacement(x=268, y=378),
    "authorized_person_phone": TextPlacement(x=268, y=354),
    "term_start_date": TextPlacement(x=268, y=276),
    "implementation_cost": TextPlacement(x=268, y=253),
    "shipping_fee": TextPlacement(x=268, y=232),
    # Page 1: monthly robotic service quantities
    "qty_tim_e_bot": _monthly_row(212),
    "qty_tim_e_charger": _monthly_row(193),
    "qty_base_metal_monthly": _monthly_row(176),
    "qty_insulated_food_transport_monthly": _monthly_row(159),
    "qty_wheeled_bin_monthly": _monthly_row(143),
    "qty_universal_platform_monthly": _monthly_row(125),
    "qty_door_openers_monthly": _monthly_row(107),
    "qty_neural_tech_brain_monthly": _monthly_row(89),
    "qty_elevator_hardware_monthly": _monthly_row(72),
    "qty_luggage_cart_monthly": _monthly_row(54),
    # Page 2: monthly accessories
    "qty_concession_bin_tall": _page2_row(745),
    "qty_stacking_chair_cart": _page2_row(727),
    "qty_cargo_cart": _page2_row(712),
    "qty_housekeeping_cart": _page2_row(697),
    "qty_bime": _page2_row(681),
    "qty_mobile_bime": _page2_row(652),
    "monthly_robotic_service_cost": _page2_row(627, x=281),
    # Page 2: one-time accessories
    "qty_base_metal_one_time": _page2_row(605),
    "qty_insulated_food_transport_one_time": _page2_row(587),
    "qty_wheeled_bin_one_time": _page2_row(570),
    "qty_universal_platform_one_time": _page2_row(553),
    "qty_plastic_bags": _page2_row(534),
    "qty_door_opener_hardware_one_time": _page2_row(517),
    "qty_handheld_tablet": _page2_row(499),
    # Page 2: totals
    "additional_accessories_cost": _page2_row(456, x=281),
    "implementation_cost_page2": TextPlacement(
        x=281, y=429, page=1, source="implementation_cost"
    ),
    "total_monthly_cost": _page2_row(391, x=281),
    "implementation_cost_due": _page2_row(314, x=281),
}

CLIENT_SIGNATURE = ImagePlacement(x=330, y=590, width=180, height=54)
COUNTER_SIGNATURE = ImagePlacement(x=100, y=105, width=180, height=54, page=1)

# Both agreements were calibrated against the same page layout.
TEMPLATES: Dict[str, TemplateLayout] = {
    "trial": TemplateLayout(
        filename="trialAgreementLocation.pdf",
        text=AGREEMENT_TEXT,
        client_signature=CLIENT_SIGNATURE,
        counter_signature=COUNTER_SIGNATURE,
    ),
    "service": TemplateLayout(
        filename="agreementLocation.pdf",
        text=AGREEMENT_TEXT,
        client_signature=CLIENT_SIGNATURE,
        counter_signature=COUNTER_SIGNATURE,
    ),
}
