"""
Admission & Ordering Engine
===========================

Decides whether a customer may join a business's queue, computes queue
positions and applies staff transitions to entries.

Admission rules (checked in this order):
1. The business must exist.
2. Fewer than ``max_queue_length`` entries may be waiting.
3. A priority join needs fewer than ``reserved_priority_slots`` waiting
   priority entries. A priority join that does not fit is rejected; it is
   not demoted to a regular slot.

The count-then-insert sequence runs under a per-business lock and a
``SELECT ... FOR UPDATE`` on the business row, so two concurrent joins can
never both take the last slot.

Serving order is first-come first-served by join time. Priority only
affects admission capacity, never position.

Transitions (call, complete, extend, payment, update, remove) are
permissive: any status may move to any other status. Each one writes only
its own columns in a single UPDATE.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.orm import Session

from queueme.config import settings
from queueme.core.constants import (
    EXTEND_MAX_MINUTES,
    EXTEND_MIN_MINUTES,
    PaymentStatus,
    QueueStatus,
)
from queueme.core.exceptions import (
    InvalidArgumentError,
    PrioritySlotsFullError,
    QueueFullError,
)
from queueme.core.locks import KeyedLockRegistry, business_locks
from queueme.models.queue_entry import QueueEntry, compute_order_total
from queueme.repositories.business_policy import BusinessPolicyStore
from queueme.repositories.queue_ledger import QueueLedger, utcnow
from queueme.services.schemas import EntryPosition, EntryUpdate, JoinRequest, parse_command

logger = logging.getLogger(__name__)


def parse_status(value: Optional[str]) -> Optional[QueueStatus]:
    """Turn a status filter into a ``QueueStatus``; ``None``/empty means no filter."""
    if value is None or value == "":
        return None
    try:
        return QueueStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in QueueStatus)
        raise InvalidArgumentError(f"Invalid status filter. Must be one of: {valid}") from None


class AdmissionEngine:
    """
    Queue admission, ordering and transitions for all businesses.

    Each public write method is its own unit of work: it commits on success
    and rolls back on any error, so a failed call leaves no partial state.

    Example:
        with get_db_context() as db:
            engine = AdmissionEngine(db)
            entry = engine.join(business_id, "Alice", is_priority=True)
            engine.call(entry.id, actor_id="user-staff")
    """

    def __init__(
        self,
        db: Session,
        *,
        locks: Optional[KeyedLockRegistry] = None,
        lock_timeout: Optional[float] = None,
        minutes_per_customer: Optional[int] = None,
    ):
        """
        Initialize the engine.

        Args:
            db: SQLAlchemy database session
            locks: Per-business lock registry (default: process-wide registry)
            lock_timeout: Seconds to wait for a business lock (default from settings)
            minutes_per_customer: Wait estimate per waiting customer when a
                business has ``auto_wait_times`` enabled (default from settings)
        """
        self.db = db
        self.ledger = QueueLedger(db)
        self.policies = BusinessPolicyStore(db)
        self.locks = locks if locks is not None else business_locks
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.lock_timeout_seconds
        self.minutes_per_customer = (
            minutes_per_customer if minutes_per_customer is not None
            else settings.minutes_per_customer
        )

    @contextmanager
    def _unit_of_work(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ========================================
    # Admission
    # ========================================

    def join(
        self,
        business_id: str,
        customer_name: str,
        *,
        customer_phone: Optional[str] = None,
        customer_email: Optional[str] = None,
        order_items: Optional[List[Dict[str, Any]]] = None,
        is_priority: bool = False,
    ) -> QueueEntry:
        """
        Admit a customer into a business's queue.

        Args:
            business_id: Target business
            customer_name: Required display name
            customer_phone: Optional contact phone
            customer_email: Optional contact email
            order_items: Optional pre-order, each ``{item_id, name?, price, quantity}``
            is_priority: Request one of the reserved priority slots

        Returns:
            The new waiting entry

        Raises:
            InvalidArgumentError: Missing name/business id or malformed items
            NotFoundError: Business does not exist
            QueueFullError: ``max_queue_length`` entries already waiting
            PrioritySlotsFullError: All reserved priority slots taken
            LockTimeoutError: Business lock not acquired in time
        """
        request = parse_command(JoinRequest, {
            "business_id": business_id,
            "customer_name": customer_name,
            "customer_phone": customer_phone,
            "customer_email": customer_email,
            "order_items": order_items,
            "is_priority": is_priority,
        })

        # Unknown businesses never get a lock entry
        with self._unit_of_work():
            self.policies.get_business(request.business_id)

        with self.locks.hold(request.business_id, self.lock_timeout):
            with self._unit_of_work():
                business = self.policies.get_business(request.business_id, for_update=True)

                waiting = self.ledger.count(business.id, QueueStatus.WAITING)
                if waiting >= business.max_queue_length:
                    logger.warning(
                        "Rejected join for business %s: queue full (%d/%d)",
                        business.id, waiting, business.max_queue_length,
                    )
                    raise QueueFullError()

                if request.is_priority:
                    priority_waiting = self.ledger.count(
                        business.id, QueueStatus.WAITING, is_priority=True
                    )
                    if priority_waiting >= business.reserved_priority_slots:
                        logger.warning(
                            "Rejected priority join for business %s: priority slots full (%d/%d)",
                            business.id, priority_waiting, business.reserved_priority_slots,
                        )
                        raise PrioritySlotsFullError()

                estimated = waiting * self.minutes_per_customer if business.auto_wait_times else 0

                entry = QueueEntry(
                    business_id=business.id,
                    ticket_number=self.ledger.next_ticket_number(business.id),
                    customer_name=request.customer_name,
                    customer_phone=request.customer_phone,
                    customer_email=request.customer_email,
                    order_items=[item.model_dump() for item in request.order_items],
                    is_priority=request.is_priority,
                    status=QueueStatus.WAITING.value,
                    payment_status=PaymentStatus.PENDING.value,
                    estimated_wait_time=estimated,
                )
                self.ledger.append(entry)

        logger.info(
            "Admitted %s to business %s as ticket #%d%s",
            entry.id, entry.business_id, entry.ticket_number,
            " (priority)" if entry.is_priority else "",
        )
        return entry

    # ========================================
    # Reads
    # ========================================

    def get_entry(self, entry_id: str) -> QueueEntry:
        """Load an entry or raise ``NotFoundError``."""
        return self.ledger.find(entry_id)

    def list_queue(self, business_id: str, status: Optional[str] = None) -> List[QueueEntry]:
        """
        Entries of a business, oldest first.

        Args:
            business_id: Business UUID
            status: Optional status filter ("waiting", "called", "completed")

        Raises:
            InvalidArgumentError: Unknown status filter
        """
        return self.ledger.list_by_business(business_id, parse_status(status))

    def get_position(self, entry_id: str) -> EntryPosition:
        """
        Customer-facing status of an entry.

        Position is the 1-based rank of the entry among the business's
        waiting entries ordered by join time, or ``None`` when the entry is
        no longer waiting. ``queue_length`` is the number of waiting entries.

        Raises:
            NotFoundError: Entry does not exist
        """
        entry = self.ledger.find(entry_id)
        waiting = self.ledger.list_by_business(entry.business_id, QueueStatus.WAITING)

        position = None
        for index, candidate in enumerate(waiting, start=1):
            if candidate.id == entry.id:
                position = index
                break

        return EntryPosition(entry=entry, position=position, queue_length=len(waiting))

    # ========================================
    # Transitions
    # ========================================

    def call(self, entry_id: str, actor_id: str) -> QueueEntry:
        """Mark an entry as called by ``actor_id``."""
        with self._unit_of_work():
            entry = self.ledger.mutate(entry_id, {
                "status": QueueStatus.CALLED.value,
                "called_at": utcnow(),
                "called_by": actor_id,
            })
        logger.info("Entry %s called by %s", entry_id, actor_id)
        return entry

    def complete(self, entry_id: str, actor_id: str) -> QueueEntry:
        """Mark an entry as completed by ``actor_id``."""
        with self._unit_of_work():
            entry = self.ledger.mutate(entry_id, {
                "status": QueueStatus.COMPLETED.value,
                "completed_at": utcnow(),
                "completed_by": actor_id,
            })
        logger.info("Entry %s completed by %s", entry_id, actor_id)
        return entry

    def extend(self, entry_id: str, minutes: int, actor_id: str) -> QueueEntry:
        """
        Add ``minutes`` to an entry's estimated wait time.

        Raises:
            InvalidArgumentError: ``minutes`` is not an integer in [1, 120]
            NotFoundError: Entry does not exist
        """
        if (
            isinstance(minutes, bool)
            or not isinstance(minutes, int)
            or not EXTEND_MIN_MINUTES <= minutes <= EXTEND_MAX_MINUTES
        ):
            raise InvalidArgumentError(
                f"Minutes must be between {EXTEND_MIN_MINUTES} and {EXTEND_MAX_MINUTES}"
            )

        with self._unit_of_work():
            entry = self.ledger.mutate(entry_id, {
                "estimated_wait_time": QueueEntry.estimated_wait_time + minutes,
                "extended_at": utcnow(),
                "extended_by": minutes,
                "extended_by_user": actor_id,
            })
        logger.info("Entry %s extended by %d minutes by %s", entry_id, minutes, actor_id)
        return entry

    def set_payment(
        self,
        entry_id: str,
        payment_status: str,
        actor_id: str,
        notes: Optional[str] = None,
    ) -> QueueEntry:
        """
        Update an entry's payment status.

        Raises:
            InvalidArgumentError: ``payment_status`` not pending/paid/cancelled
            NotFoundError: Entry does not exist
        """
        try:
            status = PaymentStatus(payment_status)
        except ValueError:
            raise InvalidArgumentError(
                "Invalid payment status. Must be: pending, paid, or cancelled"
            ) from None

        with self._unit_of_work():
            entry = self.ledger.mutate(entry_id, {
                "payment_status": status.value,
                "payment_updated_at": utcnow(),
                "payment_updated_by": actor_id,
                "payment_notes": notes or "",
            })
        logger.info("Entry %s payment set to %s by %s", entry_id, status.value, actor_id)
        return entry

    def update_entry(self, entry_id: str, changes: Dict[str, Any]) -> QueueEntry:
        """
        Merge staff edits into an entry.

        Accepts only the fields of ``EntryUpdate``. Replacing order items
        recomputes the order total; other fields leave it untouched.

        Raises:
            InvalidArgumentError: Unknown or invalid fields
            NotFoundError: Entry does not exist
        """
        command = parse_command(EntryUpdate, changes)

        fields: Dict[str, Any] = {
            name: value
            for name, value in command.model_dump(exclude_unset=True).items()
            if value is not None and name != "order_items"
        }
        if command.order_items is not None:
            items = [item.model_dump() for item in command.order_items]
            fields["order_items_json"] = json.dumps(items)
            fields["order_total"] = compute_order_total(items)

        with self._unit_of_work():
            entry = self.ledger.mutate(entry_id, fields)
        logger.info("Entry %s updated: %s", entry_id, sorted(fields))
        return entry

    def remove(self, entry_id: str) -> QueueEntry:
        """
        Permanently delete an entry.

        Returns:
            The removed entry

        Raises:
            NotFoundError: Entry does not exist
        """
        with self._unit_of_work():
            entry = self.ledger.remove(entry_id)
        logger.info("Entry %s removed from business %s", entry_id, entry.business_id)
        return entry


def get_admission_engine(db: Session) -> AdmissionEngine:
    """
    Factory function for creating an AdmissionEngine.

    Usage:
        with get_db_context() as db:
            engine = get_admission_engine(db)
            engine.join(business_id, "Alice")
    """
    return AdmissionEngine(db)
