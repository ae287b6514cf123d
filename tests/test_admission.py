import pytest

from queueme.core.constants import QueueStatus
from queueme.core.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    PrioritySlotsFullError,
    QueueFullError,
)
from queueme.core.locks import KeyedLockRegistry
from queueme.services import AdmissionEngine


# ========================================
# Admission
# ========================================

def test_join_creates_waiting_entry(admission, business):
    entry = admission.join(
        business.id,
        "Alice",
        customer_phone="555-0100",
        order_items=[
            {"item_id": "burger", "name": "Burger", "price": 12.5, "quantity": 2},
            {"item_id": "soda", "price": 2.0, "quantity": 1},
        ],
    )

    assert entry.business_id == business.id
    assert entry.status == QueueStatus.WAITING.value
    assert entry.payment_status == "pending"
    assert entry.is_priority is False
    assert entry.joined_at is not None
    assert entry.order_total == 27.0
    assert entry.customer_email == ""
    assert entry.ticket_number == 1


def test_queue_full_checked_before_priority(admission, make_business):
    business = make_business(max_queue_length=2, reserved_priority_slots=1)

    admission.join(business.id, "Alice")
    admission.join(business.id, "Bob")
    assert admission.ledger.count(business.id, QueueStatus.WAITING) == 2

    with pytest.raises(QueueFullError):
        admission.join(business.id, "Carol")
    with pytest.raises(QueueFullError):
        admission.join(business.id, "Dave", is_priority=True)

    assert admission.ledger.count(business.id) == 2


def test_priority_slots_full_rejects_without_demotion(admission, make_business):
    business = make_business(max_queue_length=5, reserved_priority_slots=1)

    eve = admission.join(business.id, "Eve", is_priority=True)
    assert eve.is_priority is True

    with pytest.raises(PrioritySlotsFullError):
        admission.join(business.id, "Frank", is_priority=True)

    names = [e.customer_name for e in admission.list_queue(business.id)]
    assert names == ["Eve"]


def test_priority_slot_frees_when_priority_entry_is_called(admission, make_business):
    business = make_business(max_queue_length=5, reserved_priority_slots=1)

    eve = admission.join(business.id, "Eve", is_priority=True)
    admission.call(eve.id, actor_id="user-staff")

    frank = admission.join(business.id, "Frank", is_priority=True)
    assert frank.is_priority is True


def test_capacity_frees_after_call(admission, make_business):
    business = make_business(max_queue_length=1, reserved_priority_slots=0)

    alice = admission.join(business.id, "Alice")
    with pytest.raises(QueueFullError):
        admission.join(business.id, "Bob")

    admission.call(alice.id, actor_id="user-staff")
    bob = admission.join(business.id, "Bob")
    assert bob.status == QueueStatus.WAITING.value


def test_join_unknown_business(admission):
    with pytest.raises(NotFoundError):
        admission.join("no-such-business", "Alice")


def test_join_unknown_business_leaves_no_lock_behind(admission):
    for i in range(50):
        with pytest.raises(NotFoundError):
            admission.join(f"unknown-{i}", "Mallory")

    assert len(admission.locks) == 0


def test_order_items_accept_id_as_item_reference(admission, business):
    entry = admission.join(business.id, "Alice", order_items=[
        {"id": "menu-1", "name": "Burger Deluxe", "price": 12.99, "quantity": 2},
    ])

    assert entry.order_items[0]["item_id"] == "menu-1"
    assert entry.order_total == pytest.approx(25.98)


@pytest.mark.parametrize("name", ["", "   ", None])
def test_join_requires_customer_name(admission, business, name):
    with pytest.raises(InvalidArgumentError):
        admission.join(business.id, name)


def test_join_rejects_bad_order_items(admission, business):
    with pytest.raises(InvalidArgumentError):
        admission.join(business.id, "Alice", order_items=[{"item_id": "x", "price": 3.0, "quantity": 0}])
    with pytest.raises(InvalidArgumentError):
        admission.join(business.id, "Alice", order_items=[{"item_id": "x", "price": -1, "quantity": 1}])

    assert admission.list_queue(business.id) == []


def test_auto_wait_times_estimates_from_waiting_count(db_session, make_business):
    business = make_business(auto_wait_times=True)
    admission = AdmissionEngine(db_session, locks=KeyedLockRegistry(), minutes_per_customer=5)

    first = admission.join(business.id, "Alice")
    second = admission.join(business.id, "Bob")
    third = admission.join(business.id, "Carol")

    assert [first.estimated_wait_time, second.estimated_wait_time, third.estimated_wait_time] == [0, 5, 10]


def test_without_auto_wait_times_estimate_is_zero(admission, business):
    admission.join(business.id, "Alice")
    bob = admission.join(business.id, "Bob")
    assert bob.estimated_wait_time == 0


# ========================================
# Listing & Position
# ========================================

def test_list_queue_filters_by_status(admission, business):
    alice = admission.join(business.id, "Alice")
    bob = admission.join(business.id, "Bob")
    admission.call(alice.id, actor_id="user-staff")

    assert [e.id for e in admission.list_queue(business.id)] == [alice.id, bob.id]
    assert [e.id for e in admission.list_queue(business.id, "waiting")] == [bob.id]
    assert [e.id for e in admission.list_queue(business.id, "called")] == [alice.id]

    with pytest.raises(InvalidArgumentError):
        admission.list_queue(business.id, "served")


def test_position_follows_join_order(admission, business):
    alice = admission.join(business.id, "Alice")
    bob = admission.join(business.id, "Bob")
    carol = admission.join(business.id, "Carol")

    assert admission.get_position(alice.id).position == 1
    status = admission.get_position(bob.id)
    assert status.position == 2
    assert status.queue_length == 3
    assert admission.get_position(carol.id).position == 3

    admission.call(alice.id, actor_id="user-staff")

    called = admission.get_position(alice.id)
    assert called.position is None
    assert called.queue_length == 2
    assert admission.get_position(bob.id).position == 1


def test_priority_does_not_reorder_positions(admission, business):
    regular = admission.join(business.id, "Alice")
    priority = admission.join(business.id, "Bob", is_priority=True)

    assert admission.get_position(regular.id).position == 1
    assert admission.get_position(priority.id).position == 2


def test_position_to_dict(admission, business):
    alice = admission.join(business.id, "Alice")
    data = admission.get_position(alice.id).to_dict()

    assert data["id"] == alice.id
    assert data["position"] == 1
    assert data["queue_length"] == 1


def test_position_unknown_entry(admission):
    with pytest.raises(NotFoundError):
        admission.get_position("missing")


# ========================================
# Transitions
# ========================================

def test_call_and_complete_stamp_actor(admission, business):
    entry = admission.join(business.id, "Alice")

    called = admission.call(entry.id, actor_id="user-1")
    assert called.status == QueueStatus.CALLED.value
    assert called.called_by == "user-1"
    assert called.called_at is not None

    completed = admission.complete(entry.id, actor_id="user-2")
    assert completed.status == QueueStatus.COMPLETED.value
    assert completed.completed_by == "user-2"
    assert completed.called_by == "user-1"


def test_irregular_transitions_are_accepted(admission, business):
    entry = admission.join(business.id, "Alice")

    # Complete without calling first
    completed = admission.complete(entry.id, actor_id="user-1")
    assert completed.status == QueueStatus.COMPLETED.value
    assert completed.called_at is None

    # Re-call a completed entry
    recalled = admission.call(entry.id, actor_id="user-2")
    assert recalled.status == QueueStatus.CALLED.value
    assert recalled.completed_by == "user-1"

    # Call twice overwrites the stamp
    again = admission.call(entry.id, actor_id="user-3")
    assert again.called_by == "user-3"


def test_stamps_from_different_actors_are_independent(admission, business):
    entry = admission.join(business.id, "Alice", order_items=[{"item_id": "a", "price": 5.0, "quantity": 2}])

    admission.call(entry.id, actor_id="staff-a")
    admission.complete(entry.id, actor_id="staff-b")
    admission.set_payment(entry.id, "paid", actor_id="staff-c", notes="cash")

    final = admission.get_entry(entry.id)
    assert final.called_by == "staff-a"
    assert final.completed_by == "staff-b"
    assert final.payment_updated_by == "staff-c"
    assert final.payment_status == "paid"
    assert final.payment_notes == "cash"
    assert final.status == QueueStatus.COMPLETED.value
    assert final.order_total == 10.0


@pytest.mark.parametrize("minutes", [0, 121, -5, "10", 2.5, True, None])
def test_extend_rejects_out_of_range(admission, business, minutes):
    entry = admission.join(business.id, "Alice")
    with pytest.raises(InvalidArgumentError):
        admission.extend(entry.id, minutes, actor_id="user-1")

    assert admission.get_entry(entry.id).estimated_wait_time == 0


def test_extend_adds_minutes(admission, business):
    entry = admission.join(business.id, "Alice")

    extended = admission.extend(entry.id, 120, actor_id="user-1")
    assert extended.estimated_wait_time == 120
    assert extended.extended_by == 120
    assert extended.extended_by_user == "user-1"
    assert extended.extended_at is not None

    extended = admission.extend(entry.id, 1, actor_id="user-2")
    assert extended.estimated_wait_time == 121
    assert extended.extended_by == 1
    assert extended.extended_by_user == "user-2"


def test_set_payment_validates_status(admission, business):
    entry = admission.join(business.id, "Alice")

    with pytest.raises(InvalidArgumentError):
        admission.set_payment(entry.id, "refunded", actor_id="user-1")

    updated = admission.set_payment(entry.id, "cancelled", actor_id="user-1")
    assert updated.payment_status == "cancelled"
    assert updated.payment_notes == ""


def test_update_entry_recomputes_order_total(admission, business):
    entry = admission.join(business.id, "Alice", order_items=[{"item_id": "a", "price": 2.0, "quantity": 1}])
    assert entry.order_total == 2.0

    updated = admission.update_entry(entry.id, {
        "order_items": [
            {"item_id": "a", "price": 2.0, "quantity": 3},
            {"item_id": "b", "price": 1.5, "quantity": 2},
        ],
    })
    assert updated.order_total == 9.0
    assert [item["item_id"] for item in updated.order_items] == ["a", "b"]


def test_update_entry_unrelated_fields_keep_order_total(admission, business):
    entry = admission.join(business.id, "Alice", order_items=[{"item_id": "a", "price": 4.0, "quantity": 2}])

    updated = admission.update_entry(entry.id, {"customer_phone": "555-0199", "estimated_wait_time": 20})
    assert updated.order_total == 8.0
    assert updated.customer_phone == "555-0199"
    assert updated.estimated_wait_time == 20
    assert updated.customer_name == "Alice"


@pytest.mark.parametrize("changes", [
    {"status": "completed"},
    {"is_priority": True},
    {"joined_at": "2020-01-01T00:00:00"},
    {"business_id": "other"},
    {"estimated_wait_time": -1},
])
def test_update_entry_rejects_fields_outside_allowlist(admission, business, changes):
    entry = admission.join(business.id, "Alice")
    with pytest.raises(InvalidArgumentError):
        admission.update_entry(entry.id, changes)

    fresh = admission.get_entry(entry.id)
    assert fresh.status == QueueStatus.WAITING.value
    assert fresh.is_priority is False


def test_remove_deletes_entry(admission, business):
    alice = admission.join(business.id, "Alice")
    bob = admission.join(business.id, "Bob")

    removed = admission.remove(alice.id)
    assert removed.id == alice.id

    with pytest.raises(NotFoundError):
        admission.get_entry(alice.id)
    assert admission.get_position(bob.id).position == 1


@pytest.mark.parametrize("operation", [
    lambda a: a.call("missing", "user-1"),
    lambda a: a.complete("missing", "user-1"),
    lambda a: a.extend("missing", 5, "user-1"),
    lambda a: a.set_payment("missing", "paid", "user-1"),
    lambda a: a.update_entry("missing", {"customer_name": "X"}),
    lambda a: a.remove("missing"),
])
def test_transitions_on_missing_entry(admission, operation):
    with pytest.raises(NotFoundError):
        operation(admission)


def test_failed_operation_keeps_committed_entries(admission, business):
    alice = admission.join(business.id, "Alice")

    with pytest.raises(NotFoundError):
        admission.call("missing", "user-1")

    assert admission.get_entry(alice.id).customer_name == "Alice"
    assert len(admission.list_queue(business.id)) == 1
