"""
QueueEntry model: one customer's occupancy of a business's queue.

Entries are created on admission, mutated by staff transitions and
deleted by explicit removal. There is no automatic expiry.

``joined_at`` is set once on creation and never changes. ``status`` is a
plain enum column without transition guards; staff may re-call or complete
an entry from any status.
"""

import json
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from queueme.models.base import Base, BaseModel
from queueme.core.constants import PaymentStatus, QueueStatus


def compute_order_total(items: Optional[Iterable[Mapping[str, Any]]]) -> float:
    """
    Sum of ``price * quantity`` over order line items.

    Args:
        items: Line items as mappings with ``price`` and ``quantity`` keys

    Returns:
        Order total, 0 for no items

    Example:
        compute_order_total([{"price": 4.5, "quantity": 2}])  # 9.0
    """
    if not items:
        return 0.0
    return float(sum(item["price"] * item["quantity"] for item in items))


class QueueEntry(BaseModel, Base):
    """
    A customer waiting in (or served from) a business's queue.

    Attributes:
        id: UUID primary key (immutable)
        business_id: Owning business (immutable)
        ticket_number: Per-business sequence number assigned on admission
        customer_name / customer_phone / customer_email: Contact fields
        order_items_json: Pre-ordered line items (JSON array)
        order_total: Sum of price * quantity over order items
        is_priority: Set at join time, never changed
        status: waiting | called | completed
        payment_status: pending | paid | cancelled
        estimated_wait_time: Minutes, grows via extension
        joined_at: Admission time (immutable)
        called_at/called_by, completed_at/completed_by,
        extended_at/extended_by/extended_by_user,
        payment_updated_at/payment_updated_by/payment_notes: Audit stamps,
            overwritten by repeated transitions
    """

    __tablename__ = "queue_entries"

    # ========================================
    # Identity
    # ========================================

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    business_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("businesses.id"),
        nullable=False,
        index=True
    )

    ticket_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Per-business admission sequence, breaks joined_at ties"
    )

    # ========================================
    # Customer
    # ========================================

    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    customer_email: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # ========================================
    # Order
    # ========================================

    order_items_json: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
        comment="Order line items (JSON array of {item_id, name, price, quantity})"
    )

    order_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # ========================================
    # Queue State
    # ========================================

    is_priority: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=QueueStatus.WAITING.value,
        index=True
    )

    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value
    )

    estimated_wait_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # ========================================
    # Audit Stamps
    # ========================================

    called_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    called_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    extended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    extended_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Minutes added by the last extension"
    )
    extended_by_user: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    payment_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_updated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    payment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index('ix_queue_entries_business_status', 'business_id', 'status'),
        Index('ix_queue_entries_business_joined', 'business_id', 'joined_at', 'ticket_number'),
        {'comment': 'Customer queue entries'}
    )

    # ========================================
    # Order Items (JSON Deserialization)
    # ========================================

    @property
    def order_items(self) -> List[Dict[str, Any]]:
        """Order line items as a list of dicts."""
        try:
            return json.loads(self.order_items_json)
        except (json.JSONDecodeError, TypeError):
            return []

    @order_items.setter
    def order_items(self, value: List[Dict[str, Any]]) -> None:
        """Replace order items and recompute the order total."""
        self.order_items_json = json.dumps(value)
        self.order_total = compute_order_total(value)

    # ========================================
    # Business Logic Methods
    # ========================================

    def is_waiting(self) -> bool:
        return self.status == QueueStatus.WAITING.value

    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    # ========================================
    # Serialization
    # ========================================

    def to_dict(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """Convert to dictionary with order items deserialized."""
        exclude = exclude or set()
        result = super().to_dict(exclude=exclude | {'order_items_json'})
        if 'order_items' not in exclude:
            result['order_items'] = self.order_items
        return result

    # ========================================
    # Validation
    # ========================================

    def __init__(self, **kwargs):
        """
        Initialize a QueueEntry.

        Auto-generates a UUID, serializes ``order_items`` and derives
        ``order_total`` from them. Validates status values.
        """
        if 'id' not in kwargs:
            kwargs['id'] = str(uuid.uuid4())

        items = kwargs.pop('order_items', None)
        if items is not None and 'order_items_json' not in kwargs:
            kwargs['order_items_json'] = json.dumps(items)
            kwargs['order_total'] = compute_order_total(items)

        kwargs.setdefault('order_items_json', "[]")
        kwargs.setdefault('order_total', 0.0)
        kwargs.setdefault('customer_phone', "")
        kwargs.setdefault('customer_email', "")
        kwargs.setdefault('is_priority', False)
        kwargs.setdefault('status', QueueStatus.WAITING.value)
        kwargs.setdefault('payment_status', PaymentStatus.PENDING.value)
        kwargs.setdefault('estimated_wait_time', 0)
        kwargs.setdefault('ticket_number', 0)

        super().__init__(**kwargs)

        valid_statuses = [s.value for s in QueueStatus]
        if self.status not in valid_statuses:
            raise ValueError(f"Invalid status: {self.status}. Must be one of: {valid_statuses}")

        valid_payments = [p.value for p in PaymentStatus]
        if self.payment_status not in valid_payments:
            raise ValueError(
                f"Invalid payment status: {self.payment_status}. Must be one of: {valid_payments}"
            )

    def __repr__(self) -> str:
        return (
            f"<QueueEntry(id='{self.id[:8]}...', "
            f"customer='{self.customer_name}', "
            f"status='{self.status}', priority={self.is_priority})>"
        )

    def __str__(self) -> str:
        return f"#{self.ticket_number} {self.customer_name} ({self.status})"
