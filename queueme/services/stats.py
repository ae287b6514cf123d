"""Read-side queue statistics."""

from sqlalchemy.orm import Session

from queueme.core.constants import PaymentStatus, QueueStatus
from queueme.repositories.queue_ledger import QueueLedger
from queueme.services.schemas import QueueStats


class StatisticsAggregator:
    """
    Folds a business's queue entries into summary metrics.

    Example:
        stats = StatisticsAggregator(db).compute_stats(business_id)
        print(stats.waiting, stats.total_revenue)
    """

    def __init__(self, db: Session):
        self.db = db
        self.ledger = QueueLedger(db)

    def compute_stats(self, business_id: str) -> QueueStats:
        """
        Compute counts by status, priority count, average wait and revenue.

        ``average_wait_time`` is the mean estimated wait over all entries
        (0 when there are none). ``total_revenue`` sums order totals of paid
        entries only.
        """
        entries = self.ledger.list_by_business(business_id, ordered=False)

        counts = {status.value: 0 for status in QueueStatus}
        priority_count = 0
        wait_sum = 0.0
        revenue = 0.0
        for entry in entries:
            counts[entry.status] = counts.get(entry.status, 0) + 1
            if entry.is_priority:
                priority_count += 1
            wait_sum += entry.estimated_wait_time or 0
            if entry.payment_status == PaymentStatus.PAID.value:
                revenue += entry.order_total or 0.0

        return QueueStats(
            total=len(entries),
            waiting=counts[QueueStatus.WAITING.value],
            called=counts[QueueStatus.CALLED.value],
            completed=counts[QueueStatus.COMPLETED.value],
            priority_count=priority_count,
            average_wait_time=wait_sum / len(entries) if entries else 0.0,
            total_revenue=revenue,
        )
