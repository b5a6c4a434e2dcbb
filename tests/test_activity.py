from order_portal import activity, orders


def test_entries_are_returned_newest_first(db):
    order = orders.create_order(db, "Acme Corp")
    activity.append(db, order.order_number, "Called the client", "John Smith")
    activity.append(db, order.order_number, "Sent pricing sheet", "John Smith")

    entries = activity.list_entries(db, order.order_number)

    assert [e.action for e in entries] == [
        "Sent pricing sheet",
        "Called the client",
        "Order ORD-001 created",
    ]


def test_list_respects_limit(db):
    order = orders.create_order(db, "Acme Corp")
    for number in range(5):
        activity.append(db, order.order_number, f"Note {number}")

    entries = activity.list_entries(db, order.order_number, limit=3)

    assert [e.action for e in entries] == ["Note 4", "Note 3", "Note 2"]


def test_blank_user_is_recorded_as_system(db):
    order = orders.create_order(db, "Acme Corp")

    entry = activity.append(db, order.order_number, "Imported", user="")

    assert entry.user == "System"


def test_entries_are_scoped_to_their_order(db):
    acme = orders.create_order(db, "Acme Corp")
    globex = orders.create_order(db, "Globex")
    activity.append(db, acme.order_number, "Acme only")

    assert "Acme only" not in [e.action for e in activity.list_entries(db, globex.order_number)]
