import pytest

from order_portal import models
from order_portal.stages import (
    GENERIC_UPDATE,
    Stage,
    UnknownStageError,
    describe_changes,
    legal_statuses,
    normalize_status,
    parse_stage,
    set_stage,
)


def make_order(category="Contract", status="Pending"):
    return models.Order(company_name="Acme Corp", category=category, status=status)


def test_legal_status_sets():
    assert legal_statuses(Stage.CONTRACT) == ["Pending", "In Progress", "Approved"]
    assert legal_statuses(Stage.DELIVERY) == ["Pending", "In Shipment", "Delivered"]
    assert legal_statuses(Stage.INSTALLATION) == ["Pending", "Scheduled", "In Progress", "Completed"]


@pytest.mark.parametrize("name, expected", [
    ("Contract", Stage.CONTRACT),
    ("Delivery", Stage.DELIVERY),
    ("Inventory", Stage.DELIVERY),
    ("installation", Stage.INSTALLATION),
    (" Completed ", Stage.COMPLETED),
])
def test_parse_stage_accepts_stage_and_category_names(name, expected):
    assert parse_stage(name) is expected


def test_parse_stage_rejects_unknown_names():
    with pytest.raises(UnknownStageError):
        parse_stage("Shipping")


def test_delivery_is_stored_as_inventory():
    order = make_order()
    order.stage = Stage.DELIVERY
    assert order.category == "Inventory"
    assert order.stage is Stage.DELIVERY


def test_set_stage_resets_status_not_allowed_in_new_stage():
    order = make_order(category="Inventory", status="In Shipment")

    set_stage(order, Stage.INSTALLATION)

    assert order.stage is Stage.INSTALLATION
    assert order.status == "Pending"


def test_set_stage_keeps_status_shared_by_both_stages():
    order = make_order(category="Contract", status="In Progress")

    set_stage(order, Stage.INSTALLATION)

    assert order.status == "In Progress"


@pytest.mark.parametrize("stage", list(Stage))
@pytest.mark.parametrize("status", ["Pending", "In Shipment", "Approved", "Scheduled", "Bogus", None])
def test_status_is_always_legal_after_set_stage(stage, status):
    order = make_order(status=status)
    set_stage(order, stage)
    assert order.status in legal_statuses(stage)


def test_normalize_status_defaults_to_first_legal_value():
    assert normalize_status(Stage.DELIVERY, "Approved") == "Pending"
    assert normalize_status(Stage.DELIVERY, "Delivered") == "Delivered"


def test_describe_changes_reports_fields_in_priority_order():
    current = {"stage": Stage.CONTRACT, "status": "Approved", "employee_name": None}
    proposed = {
        "stage": Stage.DELIVERY,
        "status": "Pending",
        "employee_name": "John Smith",
        "tracking_number": "TRK-123456789",
    }

    assert describe_changes(current, proposed) == [
        "Stage changed from Contract to Delivery",
        "Status changed from Approved to Pending",
        "Employee changed from unassigned to John Smith",
        "Tracking number set to TRK-123456789",
    ]


def test_describe_changes_set_changed_and_cleared_phrasing():
    current = {"last_contact_date": "", "estimated_delivery_date": "2024-01-25", "installation_appointment_time": "2024-01-20 09:00 AM"}
    proposed = {"last_contact_date": "01/15/2024 10:30 AM", "estimated_delivery_date": "2024-01-28", "installation_appointment_time": None}

    assert describe_changes(current, proposed) == [
        "Last contact date set to 01/15/2024 10:30 AM",
        "Estimated delivery date changed from 2024-01-25 to 2024-01-28",
        "Installation appointment cleared",
    ]


def test_describe_changes_treats_none_and_empty_as_equal():
    assert describe_changes({"tracking_number": None}, {"tracking_number": ""}) == []


def test_untracked_fields_are_not_described():
    assert describe_changes({"site_location": "A"}, {"site_location": "B"}) == []
    assert GENERIC_UPDATE == "Order information updated"
