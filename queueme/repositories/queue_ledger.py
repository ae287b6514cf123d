"""
Queue Ledger.

The ordered collection of queue entries per business. Supports append,
lookup, filtered listing, partial mutation and removal.

Mutations are issued as a single ``UPDATE`` touching only the given
columns, so concurrent writers to different fields of the same entry never
overwrite each other with a stale snapshot.
"""

from datetime import datetime, UTC
from typing import Any, List, Mapping, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from queueme.core.constants import QueueStatus
from queueme.core.exceptions import InvalidArgumentError, NotFoundError
from queueme.models.queue_entry import QueueEntry

# Columns that are fixed once an entry exists
IMMUTABLE_COLUMNS = frozenset({
    "id",
    "business_id",
    "ticket_number",
    "is_priority",
    "joined_at",
    "created_at",
})


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


class QueueLedger:
    """
    Repository for queue entries.

    Example:
        ledger = QueueLedger(db)
        waiting = ledger.list_by_business(business_id, QueueStatus.WAITING)
    """

    def __init__(self, db: Session):
        self.db = db

    # ========================================
    # Reads
    # ========================================

    def list_by_business(
        self,
        business_id: str,
        status: Optional[QueueStatus] = None,
        *,
        ordered: bool = True,
    ) -> List[QueueEntry]:
        """
        List entries of a business.

        Args:
            business_id: Business UUID
            status: Only entries with this status
            ordered: Sort by join time (oldest first), ties by ticket number

        Returns:
            List of QueueEntry
        """
        stmt = select(QueueEntry).where(QueueEntry.business_id == business_id)
        if status is not None:
            stmt = stmt.where(QueueEntry.status == QueueStatus(status).value)
        if ordered:
            stmt = stmt.order_by(QueueEntry.joined_at.asc(), QueueEntry.ticket_number.asc())
        return list(self.db.execute(stmt).scalars().all())

    def count(
        self,
        business_id: str,
        status: Optional[QueueStatus] = None,
        *,
        is_priority: Optional[bool] = None,
    ) -> int:
        """Count entries of a business, optionally by status and priority flag."""
        stmt = select(func.count()).select_from(QueueEntry).where(QueueEntry.business_id == business_id)
        if status is not None:
            stmt = stmt.where(QueueEntry.status == QueueStatus(status).value)
        if is_priority is not None:
            stmt = stmt.where(QueueEntry.is_priority == is_priority)
        return self.db.execute(stmt).scalar_one()

    def next_ticket_number(self, business_id: str) -> int:
        """One more than the highest ticket number handed out for the business."""
        stmt = select(func.max(QueueEntry.ticket_number)).where(QueueEntry.business_id == business_id)
        current = self.db.execute(stmt).scalar_one_or_none()
        return (current or 0) + 1

    def find(self, entry_id: str) -> QueueEntry:
        """
        Load an entry by id.

        Raises:
            NotFoundError: If no such entry exists
        """
        entry = self.db.get(QueueEntry, entry_id)
        if entry is None:
            raise NotFoundError("Customer not found in queue")
        return entry

    # ========================================
    # Writes
    # ========================================

    def append(self, entry: QueueEntry) -> QueueEntry:
        """Persist a new entry, stamping ``joined_at`` with the current time."""
        entry.joined_at = utcnow()
        self.db.add(entry)
        self.db.flush()
        return entry

    def mutate(self, entry_id: str, fields: Mapping[str, Any]) -> QueueEntry:
        """
        Merge ``fields`` into an entry with one atomic UPDATE.

        Only the provided columns are written; unspecified columns keep
        their values. Values may be SQL expressions, e.g.
        ``QueueEntry.estimated_wait_time + 5``.

        Raises:
            InvalidArgumentError: If a field is unknown or immutable
            NotFoundError: If the entry does not exist
        """
        if not fields:
            return self.find(entry_id)

        columns = set(QueueEntry.__table__.columns.keys())
        bad = [name for name in fields if name not in columns or name in IMMUTABLE_COLUMNS]
        if bad:
            raise InvalidArgumentError(f"Fields cannot be updated: {sorted(bad)}")

        stmt = (
            update(QueueEntry)
            .where(QueueEntry.id == entry_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError("Customer not found in queue")

        return self.db.get(QueueEntry, entry_id, populate_existing=True)

    def remove(self, entry_id: str) -> QueueEntry:
        """
        Permanently delete an entry.

        Returns:
            The removed entry (detached once the transaction ends)

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry = self.find(entry_id)
        self.db.delete(entry)
        self.db.flush()
        return entry
