"""
Application-wide constants.

Centralize magic strings and configuration values here.
"""

from enum import Enum


# ========================================
# Queue Entry Status
# ========================================

class QueueStatus(str, Enum):
    """
    Lifecycle status of a queue entry.

    Staff may move an entry to any status at any time (re-calling a completed
    entry, completing without calling first). Removal deletes the entry
    instead of transitioning it.

    Usage:
        status = QueueStatus.WAITING
        print(status == "waiting")  # True
    """

    WAITING = "waiting"
    """Customer has joined and occupies a queue slot."""

    CALLED = "called"
    """Staff has called the customer to be served."""

    COMPLETED = "completed"
    """Service finished."""


# ========================================
# Payment Status
# ========================================

class PaymentStatus(str, Enum):
    """Payment state of a queue entry's pre-order."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


# ========================================
# User Roles
# ========================================

class UserRole(str, Enum):
    """Roles carried by an authenticated caller."""

    ADMIN = "admin"
    """Platform administrator, may act on any business."""

    BUSINESS = "business"
    """Business owner account."""

    STAFF = "staff"
    """Staff member of a single business."""

    CUSTOMER = "customer"
    """End customer; cannot perform staff actions."""


STAFF_ROLES = frozenset({UserRole.ADMIN.value, UserRole.BUSINESS.value, UserRole.STAFF.value})

# ========================================
# Wait Time Extension Bounds (minutes)
# ========================================

EXTEND_MIN_MINUTES = 1
EXTEND_MAX_MINUTES = 120
