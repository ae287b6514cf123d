"""
Request and result types for the queue services.

Incoming payloads are parsed into Pydantic models with an explicit field
allowlist; anything outside it is rejected instead of being merged into the
stored entry.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from queueme.core.exceptions import InvalidArgumentError
from queueme.models.queue_entry import QueueEntry


class OrderItem(BaseModel):
    """One pre-ordered line item."""

    model_config = ConfigDict(extra="ignore")

    item_id: str = Field(min_length=1, validation_alias=AliasChoices("item_id", "id"))
    name: Optional[str] = None
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)


class JoinRequest(BaseModel):
    """Public request to join a business's queue."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    business_id: str = Field(min_length=1)
    customer_name: str = Field(min_length=1, max_length=200)
    customer_phone: str = ""
    customer_email: str = ""
    order_items: List[OrderItem] = Field(default_factory=list)
    is_priority: bool = False

    @field_validator("customer_phone", "customer_email", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("order_items", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("is_priority", mode="before")
    @classmethod
    def none_to_false(cls, v: Any) -> Any:
        return False if v is None else v


class EntryUpdate(BaseModel):
    """
    Staff edit of an existing entry.

    Only the fields below may be changed this way. Status, payment and
    audit stamps change through their own transitions; identity, priority
    and join time never change.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    order_items: Optional[List[OrderItem]] = None
    estimated_wait_time: Optional[int] = Field(default=None, ge=0)


def parse_command(model: type, payload: Dict[str, Any]) -> Any:
    """
    Validate ``payload`` into ``model``.

    Raises:
        InvalidArgumentError: With a field-specific message on validation failure
    """
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "request"
        raise InvalidArgumentError(f"{location}: {first.get('msg', 'invalid value')}") from exc


@dataclass(frozen=True)
class EntryPosition:
    """An entry together with its place in the waiting line."""

    entry: QueueEntry
    position: Optional[int]
    queue_length: int

    def to_dict(self) -> Dict[str, Any]:
        result = self.entry.to_dict()
        result["position"] = self.position
        result["queue_length"] = self.queue_length
        return result


@dataclass(frozen=True)
class QueueStats:
    """Aggregated metrics for one business's queue."""

    total: int
    waiting: int
    called: int
    completed: int
    priority_count: int
    average_wait_time: float
    total_revenue: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "waiting": self.waiting,
            "called": self.called,
            "completed": self.completed,
            "priority_count": self.priority_count,
            "average_wait_time": self.average_wait_time,
            "total_revenue": self.total_revenue,
        }
