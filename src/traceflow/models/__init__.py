"""
Core data models for trace events.
"""

from .enums import TraceEventType, TraceStatus, StepStatus, LogLevel
from .events import TraceEvent, describe_error, new_id, sparse, utc_now_iso

__all__ = [
    "TraceEvent",
    "TraceEventType",
    "TraceStatus",
    "StepStatus",
    "LogLevel",
    "describe_error",
    "new_id",
    "sparse",
    "utc_now_iso",
]
