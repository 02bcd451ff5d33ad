"""
Immutable event records describing trace and step state transitions.
"""

import copy
import json
import traceback
import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import LogLevel, TraceEventType


def new_id() -> str:
    """Generate a UUIDv4 string."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def sparse(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None. Absent on the wire means 'not provided'."""
    return {key: value for key, value in values.items() if value is not None}


def describe_error(error: Union[str, BaseException]) -> Tuple[str, Optional[str]]:
    """
    Split an error into a message and an optional rendered stack.

    Args:
        error: A plain message or an exception instance

    Returns:
        Tuple of (message, stack); stack is None for plain messages
    """
    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return message, stack
    return str(error), None


def level_value(level: Union[LogLevel, str]) -> str:
    if isinstance(level, LogLevel):
        return level.value
    return str(level).upper()


class TraceEvent(BaseModel):
    """A single state-transition fact sent to the collector."""
    event_type: TraceEventType = Field(..., description="Kind of transition")
    trace_id: str = Field(..., description="Identifier of the owning trace")
    source: str = Field(..., description="Logical name of the emitting service")
    payload: Mapping[str, Any] = Field(
        default_factory=dict, validate_default=True, description="Event-specific fields, read-only"
    )
    step_id: Optional[str] = Field(None, description="Step the event concerns, if any")
    parent_trace_id: Optional[str] = Field(None, description="Causally preceding trace")
    event_id: str = Field(default_factory=new_id, description="Unique identifier of the event")
    timestamp: str = Field(default_factory=utc_now_iso, description="Creation time, ISO-8601 UTC")

    model_config = ConfigDict(frozen=True)

    @field_validator("payload", mode="after")
    @classmethod
    def freeze_payload(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        """Detach the payload from caller-owned objects and make it read-only."""
        return MappingProxyType(copy.deepcopy(dict(value)))

    def to_wire_format(self) -> Dict[str, Any]:
        """
        Serialize the event, omitting unset optional fields and null payload values.

        Returns:
            JSON-ready dictionary
        """
        return sparse({
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "trace_id": self.trace_id,
            "step_id": self.step_id,
            "parent_trace_id": self.parent_trace_id,
            "timestamp": self.timestamp,
            "source": self.source,
            "payload": sparse(self.payload),
        })

    def to_json(self) -> str:
        return json.dumps(self.to_wire_format(), default=str)
