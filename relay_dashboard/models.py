"""
Relay Dashboard Models

The relay backend owns every message and counter; the dashboard only holds
read-only snapshots of them plus its own view state.
- Message / Stats: pydantic models parsed from the relay API bodies
- FilterCriteria: operator-supplied DLQ filter fields
- ViewState: everything the dashboard renders, owned by one controller
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_NOTICES = 20


# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class DashboardStatus(str, enum.Enum):
    """Outcome of the last relay health check"""
    LOADING = "loading"  # No health check completed yet
    RUNNING = "running"  # Relay reported healthy
    DEGRADED = "degraded"  # Relay answered but not healthy
    CONNECTION_ERROR = "connection_error"  # Relay unreachable or HTTP failure


class MessageDirection(str, enum.Enum):
    """HL7 message direction through the relay"""
    ORDER = "order"
    REPORT = "report"


class MessageStatus(str, enum.Enum):
    """Delivery status of a relayed message"""
    FORWARDED = "forwarded"
    FAILED = "failed"
    PENDING = "pending"


class NoticeLevel(str, enum.Enum):
    SUCCESS = "success"
    DANGER = "danger"


# ============================================================================
# RELAY API PAYLOADS
# ============================================================================

class DirectionStats(BaseModel):
    model_config = ConfigDict(extra="allow")

    total: int = 0
    successful: int = 0
    failed: int = 0


class Stats(BaseModel):
    """Aggregate relay counters from /api/stats"""
    model_config = ConfigDict(extra="allow")

    total: int = 0
    successful: int = 0
    failed: int = 0
    pending: int = 0
    orders: DirectionStats | None = None
    reports: DirectionStats | None = None
    last_order_time: str | None = None
    last_report_time: str | None = None


class Message(BaseModel):
    """
    One relayed HL7 message as stored by the relay.

    Only the fields the filter and the table read are typed. Everything else
    (source_addr, raw_message, retry_count, ...) is kept exactly as sent.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    id: int | str
    direction: str | None = None
    status: str | None = None
    patient_id: str | None = None
    message_type: str | None = None
    timestamp: Any = None

    def extra_field(self, name: str, default: Any = None) -> Any:
        """Pass-through field sent by the relay (raw_message, created_at, ...)."""
        return (self.model_extra or {}).get(name, default)


class FilterCriteria(BaseModel):
    """DLQ filter fields; an empty field means no constraint"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    direction: str = ""
    status: str = ""
    patient_id: str = Field(default="", alias="patientId")
    message_type: str = Field(default="", alias="messageType")

    @field_validator("direction", "status", "patient_id", "message_type", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    def active_count(self) -> int:
        return sum(1 for value in (self.direction, self.status, self.patient_id, self.message_type) if value)


# ============================================================================
# VIEW STATE
# ============================================================================

@dataclass
class Notice:
    """Operator notification raised by an action"""
    level: NoticeLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ViewState:
    status: DashboardStatus = DashboardStatus.LOADING
    stats: Stats = field(default_factory=Stats)
    messages: List[Message] = field(default_factory=list)
    filtered_messages: List[Message] = field(default_factory=list)
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    selected_message: Optional[Message] = None
    health_components: Dict[str, Any] = field(default_factory=dict)
    notices: List[Notice] = field(default_factory=list)

    @property
    def modal_visible(self) -> bool:
        return self.selected_message is not None

    def add_notice(self, notice: Notice):
        self.notices.append(notice)
        del self.notices[:-MAX_NOTICES]
