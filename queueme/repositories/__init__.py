"""
Data access layer (Repository pattern).

Repositories handle all database queries,
isolating business logic from SQL.
"""

from queueme.repositories.business_policy import BusinessPolicyStore, QueuePolicy
from queueme.repositories.queue_ledger import QueueLedger, utcnow

__all__ = [
    "BusinessPolicyStore",
    "QueuePolicy",
    "QueueLedger",
    "utcnow",
]
