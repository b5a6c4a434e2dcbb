import pytest

from order_portal import activity, orders
from order_portal.errors import OrderNotFound
from order_portal.stages import Stage


def actions(db, order_number):
    return [entry.action for entry in activity.list_entries(db, order_number)]


def test_create_order_assigns_number_and_logs_creation(db):
    first = orders.create_order(db, "Acme Corp")
    second = orders.create_order(db, "Globex", employee_name="Sarah Johnson")

    assert first.order_number == "ORD-001"
    assert second.order_number == "ORD-002"
    assert first.stage is Stage.CONTRACT
    assert first.status == "Pending"

    entries = activity.list_entries(db, "ORD-002")
    assert [(e.action, e.user) for e in entries] == [("Order ORD-002 created", "Sarah Johnson")]
    assert activity.list_entries(db, "ORD-001")[0].user == "System"


def test_get_order_raises_for_unknown_number(db):
    with pytest.raises(OrderNotFound):
        orders.get_order(db, "ORD-999")


def test_assigning_an_employee_is_logged(db):
    order = orders.create_order(db, "Acme Corp")

    entries = orders.apply_edit(db, order, {"employee_name": "John Smith"}, "Sarah Johnson")

    assert [e.action for e in entries] == ["Employee changed from unassigned to John Smith"]
    assert entries[0].user == "Sarah Johnson"
    assert order.employee_name == "John Smith"


def test_edit_without_tracked_changes_logs_generic_entry(db):
    order = orders.create_order(db, "Acme Corp")

    entries = orders.apply_edit(db, order, {"site_location": "Lobby", "status": "Pending"})

    assert [e.action for e in entries] == ["Order information updated"]
    assert order.site_location == "Lobby"


def test_stage_move_resets_illegal_status_and_logs_both(db):
    order = orders.create_order(db, "Acme Corp")
    orders.apply_edit(db, order, {"stage": Stage.DELIVERY, "status": "In Shipment"})
    assert order.category == "Inventory"
    assert order.status == "In Shipment"

    entries = orders.apply_edit(db, order, {"stage": "Installation"}, "John Smith")

    assert order.stage is Stage.INSTALLATION
    assert order.status == "Pending"
    assert [e.action for e in entries] == [
        "Stage changed from Delivery to Installation",
        "Status changed from In Shipment to Pending",
    ]


def test_illegal_status_for_current_stage_falls_back_to_default(db):
    order = orders.create_order(db, "Acme Corp")

    orders.apply_edit(db, order, {"status": "Delivered"})

    assert order.status == "Pending"


def test_field_set_change_and_clear_messages(db):
    order = orders.create_order(db, "Acme Corp")

    orders.apply_edit(db, order, {"tracking_number": "TRK-123456789"})
    orders.apply_edit(db, order, {"tracking_number": "TRK-987654321"})
    orders.apply_edit(db, order, {"tracking_number": ""})

    assert order.tracking_number is None
    assert actions(db, order.order_number)[:3] == [
        "Tracking number cleared",
        "Tracking number changed from TRK-123456789 to TRK-987654321",
        "Tracking number set to TRK-123456789",
    ]


def test_activity_log_only_grows(db):
    order = orders.create_order(db, "Acme Corp")
    before = [(e.id, e.action) for e in activity.list_entries(db, order.order_number)]

    orders.apply_edit(db, order, {"status": "In Progress"})
    orders.apply_edit(db, order, {"status": "Approved"})

    after = [(e.id, e.action) for e in activity.list_entries(db, order.order_number)]
    assert len(after) == len(before) + 2
    assert set(before) <= set(after)


def test_list_orders_filters_by_stage_and_employee(db):
    acme = orders.create_order(db, "Acme Corp", employee_name="John Smith")
    globex = orders.create_order(db, "Globex", employee_name="Sarah Johnson")
    orders.apply_edit(db, globex, {"stage": Stage.DELIVERY})

    assert [o.company_name for o in orders.list_orders(db, Stage.DELIVERY)] == ["Globex"]
    assert [o.company_name for o in orders.list_orders(db, Stage.CONTRACT)] == ["Acme Corp"]
    assert [o.order_number for o in orders.list_orders(db, employee_name="John Smith")] == [acme.order_number]
