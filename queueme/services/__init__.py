"""
Services Package
================

Business logic layer for the queue.

Available services:
- AdmissionEngine: Admission control, positions and entry transitions
- StaffActionGateway: Authorization and actor attribution for staff actions
- StatisticsAggregator: Read-side queue metrics
"""

from queueme.services.admission import AdmissionEngine, get_admission_engine, parse_status
from queueme.services.gateway import Actor, StaffActionGateway
from queueme.services.schemas import (
    EntryPosition,
    EntryUpdate,
    JoinRequest,
    OrderItem,
    QueueStats,
)
from queueme.services.stats import StatisticsAggregator

__all__ = [
    "AdmissionEngine",
    "get_admission_engine",
    "parse_status",
    "Actor",
    "StaffActionGateway",
    "StatisticsAggregator",
    "EntryPosition",
    "EntryUpdate",
    "JoinRequest",
    "OrderItem",
    "QueueStats",
]
