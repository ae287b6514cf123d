"""
Database models package.

Contains all SQLAlchemy ORM models.
"""

from queueme.models.base import Base, BaseModel, create_all_tables, drop_all_tables
from queueme.models.business import Business
from queueme.models.queue_entry import QueueEntry, compute_order_total

__all__ = [
    "Base",
    "BaseModel",
    "Business",
    "QueueEntry",
    "compute_order_total",
    "create_all_tables",
    "drop_all_tables",
]
