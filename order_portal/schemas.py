"""
Pydantic models used for request validation and response formatting.

These schemas define the shapes of the data we accept from the client and
the data we return. Using separate schemas helps decouple the API layer
from the persistence layer and allows FastAPI to automatically generate
OpenAPI documentation.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, field_validator

from order_portal.stages import Stage, parse_stage


def _required_text(value: str) -> str:
    if value is None or not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


RequiredText = Annotated[str, AfterValidator(_required_text)]


class OrderCreate(BaseModel):
    """Schema for creating a new order."""

    company_name: RequiredText
    employee_name: Optional[str] = None


class OrderUpdate(BaseModel):
    """Schema for a partial order update.

    Only the fields present in the request are applied. ``stage`` accepts
    either the stage name or the stored category (``Inventory`` for
    Delivery); ``category`` is accepted as an alias of ``stage``.
    """

    stage: Optional[Stage] = None
    category: Optional[Stage] = None
    status: Optional[str] = None
    employee_name: Optional[str] = None
    last_contact_date: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[str] = None
    shipping_address: Optional[str] = None
    deliver_to: Optional[str] = None
    installation_appointment_time: Optional[str] = None
    installation_employee_name: Optional[str] = None
    site_location: Optional[str] = None
    # Used for the activity log (who performed the update)
    acting_user: Optional[str] = None

    @field_validator("stage", "category", mode="before")
    @classmethod
    def _parse_stage(cls, value):
        if value is None or isinstance(value, Stage):
            return value
        return parse_stage(str(value))


class Order(BaseModel):
    """Schema returned when reading an order from the API."""

    id: int
    order_number: str
    company_name: str
    category: str
    stage: Stage
    status: str
    status_options: List[str]
    employee_name: Optional[str] = None
    last_contact_date: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[str] = None
    shipping_address: Optional[str] = None
    deliver_to: Optional[str] = None
    installation_appointment_time: Optional[str] = None
    installation_employee_name: Optional[str] = None
    site_location: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityLogCreate(BaseModel):
    action: RequiredText
    user: str = "System"


class ActivityLogEntry(BaseModel):
    """Schema returned for an activity log entry."""

    id: int
    order_number: str
    timestamp: datetime
    action: str
    user: str

    class Config:
        from_attributes = True


class ChatMessageCreate(BaseModel):
    message: RequiredText
    user: Optional[str] = None


class ChatMessage(BaseModel):
    timestamp: str
    message: str
    user: str

    class Config:
        from_attributes = True


class ContractFormData(BaseModel):
    """Values staff enter for a contract; all optional, missing means blank."""

    # Client info & agreement basics
    business_name: str = ""
    service_address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    location_contact_name: str = ""
    location_contact_phone: str = ""
    location_contact_email: str = ""
    authorized_person_name: str = ""
    authorized_person_title: str = ""
    authorized_person_email: str = ""
    authorized_person_phone: str = ""
    effective_date: str = ""
    term_start_date: str = ""
    # Costs
    implementation_cost: str = ""
    shipping_fee: str = ""
    discount_target: str = ""
    discount_type: str = "flat"
    discount_value: str = ""
    # Robot / monthly service quantities
    qty_tim_e_bot: str = ""
    qty_tim_e_charger: str = ""
    qty_base_metal_monthly: str = ""
    qty_insulated_food_transport_monthly: str = ""
    qty_wheeled_bin_monthly: str = ""
    qty_universal_platform_monthly: str = ""
    qty_door_openers_monthly: str = ""
    qty_neural_tech_brain_monthly: str = ""
    qty_elevator_hardware_monthly: str = ""
    qty_luggage_cart_monthly: str = ""
    # Additional accessories (monthly)
    qty_concession_bin_tall: str = ""
    qty_stacking_chair_cart: str = ""
    qty_cargo_cart: str = ""
    qty_housekeeping_cart: str = ""
    qty_bime: str = ""
    qty_mobile_bime: str = ""
    # Additional accessories for sale (one-time)
    qty_base_metal_one_time: str = ""
    qty_insulated_food_transport_one_time: str = ""
    qty_wheeled_bin_one_time: str = ""
    qty_universal_platform_one_time: str = ""
    qty_plastic_bags: str = ""
    qty_door_opener_hardware_one_time: str = ""
    qty_handheld_tablet: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, value):
        return "" if value is None else str(value)


class ContractCreate(BaseModel):
    """Schema for generating a contract link for an order."""

    contract_type: Literal["trial", "service"] = "service"
    form_data: ContractFormData = ContractFormData()
    # Company counter-signature as a PNG data URL or base64 string
    counter_signature: Optional[str] = None
    supersedes: Optional[str] = None
    acting_user: Optional[str] = None


class Contract(BaseModel):
    """Schema returned when listing an order's contracts."""

    contract_id: str
    order_number: str
    contract_type: str
    status: str
    supersedes_contract_id: Optional[str] = None
    generated_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContractGenerated(Contract):
    link: str


class ContractStatus(BaseModel):
    status: Literal["pending", "signed"]


class ContractLink(BaseModel):
    link: str


class SignedContractSubmit(BaseModel):
    pdf_signed: str
