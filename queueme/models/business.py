"""
Business model holding queue policy.

A Business is the aggregate root for queue entries. Only the fields the
admission engine consults live here; menus, staff and opening hours are
kept elsewhere.
"""

import uuid
from typing import Optional

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from queueme.models.base import Base, BaseModel


class Business(BaseModel, Base):
    """
    Business and its queue policy.

    Attributes:
        id: UUID primary key
        name: Display name
        slug: Unique URL-friendly identifier
        owner_id: User id of the owning account (may update policy)
        max_queue_length: Cap on concurrently waiting entries
        reserved_priority_slots: Cap on concurrently waiting priority entries
        priority_extension_time: Minutes of extra time granted to priority customers
        auto_wait_times: Whether new entries get an automatic wait estimate
        created_at / updated_at: From BaseModel

    Example:
        business = Business(name="Sample Restaurant", max_queue_length=50,
                            reserved_priority_slots=10)
        db.add(business)
        db.commit()
    """

    __tablename__ = "businesses"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="UUID primary key"
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    slug: Mapped[Optional[str]] = mapped_column(
        String(200),
        unique=True,
        nullable=True,
        index=True,
        comment="URL-friendly identifier used by public QR links"
    )

    owner_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="User id of the business owner"
    )

    # ========================================
    # Queue Policy
    # ========================================

    max_queue_length: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=50,
        comment="Maximum number of entries waiting at once"
    )

    reserved_priority_slots: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=10,
        comment="Maximum number of priority entries waiting at once"
    )

    priority_extension_time: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=15,
        comment="Extra minutes granted to priority customers"
    )

    auto_wait_times: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Estimate wait time automatically on join"
    )

    __table_args__ = (
        {'comment': 'Businesses and their queue policy'},
    )

    def __init__(self, **kwargs):
        """Initialize a Business, generating a UUID and validating quotas."""
        if 'id' not in kwargs:
            kwargs['id'] = str(uuid.uuid4())
        kwargs.setdefault('max_queue_length', 50)
        kwargs.setdefault('reserved_priority_slots', 10)
        kwargs.setdefault('priority_extension_time', 15)
        kwargs.setdefault('auto_wait_times', False)

        super().__init__(**kwargs)

        if not self.name or not self.name.strip():
            raise ValueError("Business name cannot be empty")
        for field in ('max_queue_length', 'reserved_priority_slots', 'priority_extension_time'):
            if getattr(self, field) < 0:
                raise ValueError(f"{field} must be >= 0, got {getattr(self, field)}")

    def __repr__(self) -> str:
        return (
            f"<Business(id='{self.id[:8]}...', name='{self.name}', "
            f"max_queue_length={self.max_queue_length}, "
            f"reserved_priority_slots={self.reserved_priority_slots})>"
        )

    def __str__(self) -> str:
        return f"{self.name} (queue {self.max_queue_length}, priority {self.reserved_priority_slots})"
