from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from order_portal import activity, orders
from order_portal.chat import ChatBoard, display_timestamp, message_preview
from order_portal.stages import Stage


def test_display_timestamp_format():
    assert display_timestamp(datetime(2024, 1, 15, 14, 5)) == "01/15/2024 02:05 PM"


def test_display_timestamp_shows_aware_times_in_utc():
    eastern = timezone(timedelta(hours=-5))

    assert display_timestamp(datetime(2024, 1, 15, 9, 30, tzinfo=eastern)) == "01/15/2024 02:30 PM"


def test_message_preview_truncates_long_text():
    assert message_preview("short") == "short"
    assert message_preview("x" * 60) == "x" * 50 + "..."


def test_send_in_contract_stage_updates_last_contact(db):
    order = orders.create_order(db, "Acme Corp")
    board = ChatBoard()

    message = board.send(db, order, "  Following up on the quote  ", "John Smith",
                         now=datetime(2024, 1, 15, 10, 30))

    assert message.message == "Following up on the quote"
    assert message.timestamp == "01/15/2024 10:30 AM"
    assert order.last_contact_date == "01/15/2024 10:30 AM"
    assert board.messages(order.order_number) == [message]
    latest = activity.list_entries(db, order.order_number)[0]
    assert latest.action == 'Sent chat message: "Following up on the quote"'
    assert latest.user == "John Smith"


def test_send_outside_contract_stage_leaves_last_contact(db):
    order = orders.create_order(db, "Acme Corp")
    orders.apply_edit(db, order, {"stage": Stage.DELIVERY})
    board = ChatBoard()

    board.send(db, order, "Shipment left the warehouse", "John Smith")

    assert order.last_contact_date is None


def test_long_messages_are_previewed_in_the_log(db):
    order = orders.create_order(db, "Acme Corp")
    text = "Please confirm the installation window for the second floor kitchen area"

    ChatBoard().send(db, order, text, "John Smith")

    latest = activity.list_entries(db, order.order_number)[0]
    assert latest.action == f'Sent chat message: "{text[:50]}..."'


def test_threads_are_kept_per_order(db):
    acme = orders.create_order(db, "Acme Corp")
    globex = orders.create_order(db, "Globex")
    board = ChatBoard()

    board.send(db, acme, "Hello Acme", "John Smith")

    assert board.messages(globex.order_number) == []
    assert [m.message for m in board.messages(acme.order_number)] == ["Hello Acme"]


def test_failed_commit_rolls_back_and_keeps_thread_unchanged(db, monkeypatch):
    order = orders.create_order(db, "Acme Corp")
    order_number = order.order_number
    board = ChatBoard()

    def fail():
        raise SQLAlchemyError("database is unavailable")

    monkeypatch.setattr(db, "commit", fail)
    with pytest.raises(SQLAlchemyError):
        board.send(db, order, "Quote sent", "John Smith")
    monkeypatch.undo()

    assert not db.new
    assert board.messages(order_number) == []
    assert [e.action for e in activity.list_entries(db, order_number)] == [f"Order {order_number} created"]
    assert orders.get_order(db, order_number).last_contact_date is None
