"""
Contract cost calculation.

Turns the quantities and discount entered on the contract form into the
cost figures printed on the agreement, and fills the combined display
fields the template expects.
"""

import re
from typing import Dict, Mapping

# Monthly unit prices (USD) used for the Monthly Robotic Service Cost.
MONTHLY_UNIT_PRICES: Dict[str, int] = {
    "qty_tim_e_bot": 3000,
    "qty_tim_e_charger": 0,
    "qty_base_metal_monthly": 15,
    "qty_insulated_food_transport_monthly": 47,
    "qty_wheeled_bin_monthly": 35,
    "qty_universal_platform_monthly": 35,
    "qty_door_openers_monthly": 30,
    "qty_neural_tech_brain_monthly": 25,
    "qty_elevator_hardware_monthly": 45,
    "qty_luggage_cart_monthly": 35,
    "qty_concession_bin_tall": 45,
    "qty_stacking_chair_cart": 15,
    "qty_cargo_cart": 35,
    "qty_housekeeping_cart": 40,
    "qty_bime": 2000,
    "qty_mobile_bime": 1200,
}

# One-time unit prices (USD) used for the Additional Accessories Cost.
ONE_TIME_UNIT_PRICES: Dict[str, int] = {
    "qty_base_metal_one_time": 400,
    "qty_insulated_food_transport_one_time": 450,
    "qty_wheeled_bin_one_time": 475,
    "qty_universal_platform_one_time": 285,
    "qty_plastic_bags": 100,
    "qty_door_opener_hardware_one_time": 650,
    "qty_handheld_tablet": 350,
}

IMPLEMENTATION_DUE_RATE = 0.5

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+))")


def parse_quantity(value) -> int:
    """Leading integer of ``value``; anything unparsable counts as zero."""
    match = _LEADING_INT.match(str(value or ""))
    return int(match.group(1)) if match else 0


def parse_amount(value) -> float:
    """Parse a money string such as ``"$1,250.50"``; unparsable means zero."""
    cleaned = re.sub(r"[$,]", "", str(value or ""))
    match = _LEADING_FLOAT.match(cleaned)
    return float(match.group(1)) if match else 0.0


def format_amount(value: float) -> str:
    """Render an amount without a trailing ``.0`` for whole numbers."""
    value = round(value, 2)
    if value == int(value):
        return str(int(value))
    return f"{value:.2f}".rstrip("0")


def _priced_total(form: Mapping[str, object], prices: Mapping[str, int]) -> float:
    return float(sum(parse_quantity(form.get(key)) * price for key, price in prices.items()))


def monthly_robotic_service_cost(form: Mapping[str, object]) -> float:
    return _priced_total(form, MONTHLY_UNIT_PRICES)


def additional_accessories_cost(form: Mapping[str, object]) -> float:
    return _priced_total(form, ONE_TIME_UNIT_PRICES)


def implementation_cost_due(form: Mapping[str, object]) -> float:
    return round(parse_amount(form.get("implementation_cost")) * IMPLEMENTATION_DUE_RATE, 2)


def discount_amount(form: Mapping[str, object], base: float) -> float:
    """Amount to subtract from ``base`` for the form's discount.

    ``percent`` discounts take a share of the base; ``flat`` discounts never
    exceed it.
    """
    if not form.get("discount_target"):
        return 0.0
    value = parse_amount(form.get("discount_value"))
    if form.get("discount_type") == "percent":
        return round(base * value / 100, 2)
    return min(value, base)


def _discounted(form: Mapping[str, object], base: float, target: str) -> float:
    if form.get("discount_target") != target:
        return base
    return max(0.0, base - discount_amount(form, base))


def build_contract_payload(form: Mapping[str, object]) -> Dict[str, str]:
    """Complete a contract form with derived costs and combined fields.

    Returns a new mapping of strings ready to be stamped onto a template and
    embedded in a contract link.
    """
    payload = {key: "" if value is None else str(value) for key, value in form.items()}

    contact = f"{payload.get('location_contact_name', '')} {payload.get('location_contact_phone', '')}"
    payload["location_contact_name_phone"] = contact.strip()
    state_zip = " ".join(part for part in (payload.get("state"), payload.get("zip")) if part)
    payload["city_state_zip"] = ", ".join(part for part in (payload.get("city"), state_zip) if part)

    monthly = _discounted(form, monthly_robotic_service_cost(form), "robots")
    accessories = _discounted(form, additional_accessories_cost(form), "accessories")
    payload["monthly_robotic_service_cost"] = format_amount(monthly)
    payload["additional_accessories_cost"] = format_amount(accessories)
    payload["total_monthly_cost"] = format_amount(monthly + accessories)
    payload["implementation_cost_due"] = format_amount(implementation_cost_due(form))
    return payload
