"""
Business Policy Store.

Read-mostly access to the per-business queue quotas consulted by the
admission engine, plus the administrative path that creates businesses and
updates their policy.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from queueme.config import settings
from queueme.core.exceptions import InvalidArgumentError, NotFoundError
from queueme.models.business import Business

logger = logging.getLogger(__name__)

POLICY_FIELDS = ("max_queue_length", "reserved_priority_slots", "priority_extension_time")


def _check_priority_slots(reserved_priority_slots: int, max_queue_length: int) -> None:
    if reserved_priority_slots > max_queue_length:
        raise InvalidArgumentError("reserved_priority_slots cannot exceed max_queue_length")


@dataclass(frozen=True)
class QueuePolicy:
    """Snapshot of a business's queue configuration."""

    business_id: str
    max_queue_length: int
    reserved_priority_slots: int
    priority_extension_time: int
    auto_wait_times: bool

    @classmethod
    def from_business(cls, business: Business) -> "QueuePolicy":
        return cls(
            business_id=business.id,
            max_queue_length=business.max_queue_length,
            reserved_priority_slots=business.reserved_priority_slots,
            priority_extension_time=business.priority_extension_time,
            auto_wait_times=business.auto_wait_times,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "business_id": self.business_id,
            "max_queue_length": self.max_queue_length,
            "reserved_priority_slots": self.reserved_priority_slots,
            "priority_extension_time": self.priority_extension_time,
            "auto_wait_times": self.auto_wait_times,
        }


class BusinessPolicyStore:
    """
    Repository for businesses and their queue policy.

    Example:
        store = BusinessPolicyStore(db)
        policy = store.get_policy(business_id)
        print(policy.max_queue_length)
    """

    def __init__(self, db: Session):
        self.db = db

    def get_business(self, business_id: str, *, for_update: bool = False) -> Business:
        """
        Load a business by id.

        Args:
            business_id: Business UUID
            for_update: Lock the row until the current transaction ends
                (ignored by databases without row locks, e.g. SQLite)

        Raises:
            NotFoundError: If the business does not exist
        """
        stmt = select(Business).where(Business.id == business_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        business = self.db.execute(stmt).scalar_one_or_none()
        if business is None:
            raise NotFoundError("Business not found")
        return business

    def get_policy(self, business_id: str) -> QueuePolicy:
        """Return the queue policy of a business or raise ``NotFoundError``."""
        return QueuePolicy.from_business(self.get_business(business_id))

    def create_business(
        self,
        name: str,
        *,
        slug: Optional[str] = None,
        owner_id: Optional[str] = None,
        max_queue_length: Optional[int] = None,
        reserved_priority_slots: Optional[int] = None,
        priority_extension_time: Optional[int] = None,
        auto_wait_times: bool = False,
        business_id: Optional[str] = None,
    ) -> Business:
        """
        Create a business, filling unspecified quotas from settings.

        Raises:
            InvalidArgumentError: If the name is empty, a quota is negative or the
                priority slots exceed the queue length
        """
        kwargs: Dict[str, Any] = dict(
            name=name,
            slug=slug,
            owner_id=owner_id,
            max_queue_length=(
                max_queue_length if max_queue_length is not None
                else settings.default_max_queue_length
            ),
            reserved_priority_slots=(
                reserved_priority_slots if reserved_priority_slots is not None
                else settings.default_reserved_priority_slots
            ),
            priority_extension_time=(
                priority_extension_time if priority_extension_time is not None
                else settings.default_priority_extension_time
            ),
            auto_wait_times=auto_wait_times,
        )
        if business_id is not None:
            kwargs["id"] = business_id

        _check_priority_slots(kwargs["reserved_priority_slots"], kwargs["max_queue_length"])
        try:
            business = Business(**kwargs)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

        self.db.add(business)
        self.db.flush()
        logger.info("Created business %s (%s)", business.id, business.name)
        return business

    def update_policy(self, business_id: str, **changes: Any) -> QueuePolicy:
        """
        Partially update a business's queue policy.

        Only the keys passed are changed. Accepted keys are the quotas in
        ``POLICY_FIELDS`` (non-negative integers) and ``auto_wait_times``.

        Raises:
            NotFoundError: If the business does not exist
            InvalidArgumentError: On unknown keys, invalid values or priority
                slots exceeding the queue length
        """
        unknown = set(changes) - set(POLICY_FIELDS) - {"auto_wait_times"}
        if unknown:
            raise InvalidArgumentError(f"Unknown policy fields: {sorted(unknown)}")

        business = self.get_business(business_id)

        quotas = {field: getattr(business, field) for field in POLICY_FIELDS}
        for field in POLICY_FIELDS:
            if field not in changes or changes[field] is None:
                continue
            value = changes[field]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidArgumentError(f"{field} must be a non-negative integer")
            quotas[field] = value
        _check_priority_slots(quotas["reserved_priority_slots"], quotas["max_queue_length"])

        for field, value in quotas.items():
            setattr(business, field, value)

        if changes.get("auto_wait_times") is not None:
            business.auto_wait_times = bool(changes["auto_wait_times"])

        self.db.flush()
        logger.info("Updated queue policy for business %s: %s", business_id, sorted(changes))
        return QueuePolicy.from_business(business)
