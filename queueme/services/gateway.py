"""
Staff Action Gateway
====================

Entry point for staff-initiated operations. Every call carries the
authenticated caller (``Actor``), already resolved from credentials by the
outer authentication layer.

Access rules:
- Transitions and entry lookups require a staff role (admin, business or
  staff), and non-admins may only touch entries of their own business.
- Statistics require admin or membership of the business.
- Policy updates require admin or the business owner.

The gateway is the only place that stamps the acting user's id onto engine
transitions. Access is checked before the engine changes anything.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from queueme.core.constants import STAFF_ROLES, UserRole
from queueme.core.exceptions import ForbiddenError
from queueme.models.queue_entry import QueueEntry
from queueme.repositories.business_policy import QueuePolicy
from queueme.services.admission import AdmissionEngine
from queueme.services.schemas import QueueStats
from queueme.services.stats import StatisticsAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller identity."""

    id: str
    role: str
    business_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class StaffActionGateway:
    """
    Authorizes and attributes staff actions before delegating to the engine.

    Example:
        gateway = StaffActionGateway(AdmissionEngine(db))
        actor = Actor(id="user-staff", role="staff", business_id=business_id)
        gateway.call(actor, entry_id)
    """

    def __init__(self, engine: AdmissionEngine, stats: Optional[StatisticsAggregator] = None):
        self.engine = engine
        self.stats = stats if stats is not None else StatisticsAggregator(engine.db)

    # ========================================
    # Access Checks
    # ========================================

    def _check_business_access(self, actor: Actor, business_id: str) -> None:
        if actor.is_admin or actor.business_id == business_id:
            return
        logger.warning("Actor %s denied access to business %s", actor.id, business_id)
        raise ForbiddenError("Access denied to this business")

    def _authorize_entry(self, actor: Actor, entry_id: str) -> QueueEntry:
        """Load the target entry and check the actor may act on it."""
        if actor.role not in STAFF_ROLES:
            logger.warning("Actor %s with role %s attempted a staff action", actor.id, actor.role)
            raise ForbiddenError("Insufficient permissions")

        entry = self.engine.get_entry(entry_id)
        if not actor.is_admin and actor.business_id != entry.business_id:
            logger.warning("Actor %s denied access to entry %s", actor.id, entry_id)
            raise ForbiddenError("Access denied to this customer")
        return entry

    # ========================================
    # Entry Operations
    # ========================================

    def get_entry(self, actor: Actor, entry_id: str) -> QueueEntry:
        return self._authorize_entry(actor, entry_id)

    def update_entry(self, actor: Actor, entry_id: str, changes: Dict[str, Any]) -> QueueEntry:
        self._authorize_entry(actor, entry_id)
        return self.engine.update_entry(entry_id, changes)

    def call(self, actor: Actor, entry_id: str) -> QueueEntry:
        self._authorize_entry(actor, entry_id)
        return self.engine.call(entry_id, actor.id)

    def complete(self, actor: Actor, entry_id: str) -> QueueEntry:
        self._authorize_entry(actor, entry_id)
        return self.engine.complete(entry_id, actor.id)

    def extend(self, actor: Actor, entry_id: str, minutes: int) -> QueueEntry:
        self._authorize_entry(actor, entry_id)
        return self.engine.extend(entry_id, minutes, actor.id)

    def set_payment(
        self,
        actor: Actor,
        entry_id: str,
        payment_status: str,
        notes: Optional[str] = None,
    ) -> QueueEntry:
        self._authorize_entry(actor, entry_id)
        return self.engine.set_payment(entry_id, payment_status, actor.id, notes)

    def remove(self, actor: Actor, entry_id: str) -> QueueEntry:
        self._authorize_entry(actor, entry_id)
        return self.engine.remove(entry_id)

    # ========================================
    # Business Operations
    # ========================================

    def get_stats(self, actor: Actor, business_id: str) -> QueueStats:
        """Queue statistics for a business the actor belongs to."""
        self._check_business_access(actor, business_id)
        return self.stats.compute_stats(business_id)

    def update_policy(self, actor: Actor, business_id: str, **changes: Any) -> QueuePolicy:
        """
        Change a business's queue policy. Admins or the business owner only.

        Raises:
            NotFoundError: Business does not exist
            ForbiddenError: Actor is neither admin nor owner
            InvalidArgumentError: Invalid policy values
        """
        policies = self.engine.policies
        business = policies.get_business(business_id)
        if not actor.is_admin and actor.id != business.owner_id:
            logger.warning("Actor %s denied policy update on business %s", actor.id, business_id)
            raise ForbiddenError("Only owner or admin can update settings")

        db = self.engine.db
        try:
            policy = policies.update_policy(business_id, **changes)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return policy
