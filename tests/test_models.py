import pytest

from queueme.models import Business, QueueEntry, compute_order_total


def test_compute_order_total_sums_price_times_quantity():
    items = [
        {"item_id": "burger", "price": 12.5, "quantity": 2},
        {"item_id": "soda", "price": 2.0, "quantity": 3},
    ]
    assert compute_order_total(items) == 31.0
    # Same items, same total
    assert compute_order_total(items) == compute_order_total(list(items))


def test_compute_order_total_without_items_is_zero():
    assert compute_order_total(None) == 0.0
    assert compute_order_total([]) == 0.0


def test_queue_entry_defaults_and_order_items():
    entry = QueueEntry(
        business_id="b-1",
        customer_name="Alice",
        order_items=[{"item_id": "fries", "price": 3.5, "quantity": 2}],
    )

    assert entry.id
    assert entry.status == "waiting"
    assert entry.payment_status == "pending"
    assert entry.is_priority is False
    assert entry.order_total == 7.0
    assert entry.order_items == [{"item_id": "fries", "price": 3.5, "quantity": 2}]


def test_queue_entry_order_items_setter_recomputes_total():
    entry = QueueEntry(business_id="b-1", customer_name="Alice")
    assert entry.order_total == 0.0

    entry.order_items = [{"item_id": "cake", "price": 4.0, "quantity": 3}]
    assert entry.order_total == 12.0


def test_queue_entry_rejects_unknown_status():
    with pytest.raises(ValueError):
        QueueEntry(business_id="b-1", customer_name="Alice", status="gone")
    with pytest.raises(ValueError):
        QueueEntry(business_id="b-1", customer_name="Alice", payment_status="refunded")


def test_queue_entry_to_dict_deserializes_items():
    entry = QueueEntry(
        business_id="b-1",
        customer_name="Alice",
        order_items=[{"item_id": "tea", "price": 1.5, "quantity": 1}],
    )
    data = entry.to_dict()

    assert "order_items_json" not in data
    assert data["order_items"] == [{"item_id": "tea", "price": 1.5, "quantity": 1}]
    assert data["customer_name"] == "Alice"


def test_business_validates_name_and_quotas():
    with pytest.raises(ValueError):
        Business(name="  ")
    with pytest.raises(ValueError):
        Business(name="Diner", max_queue_length=-1)

    business = Business(name="Diner")
    assert business.id
    assert business.max_queue_length == 50
    assert business.reserved_priority_slots == 10
    assert business.priority_extension_time == 15
