"""
TraceFlow - client SDK for emitting trace, step and log events to a TraceFlow collector.

This package provides:
- Immutable trace events and the trace/step lifecycle handles that produce them
- Blocking and non-blocking HTTP transports with retry/backoff and a flush barrier
- Per-execution-context trace propagation for background jobs and thread pools
- Cross-service propagation through the X-Trace-Id header
"""

__version__ = "0.1.0"

from .config import TraceFlowConfig
from .context import TraceFlowContext
from .exceptions import ConfigurationError, TraceFlowError, TransportError
from .handles import StepHandle, TraceHandle
from .models import (
    TraceEvent,
    TraceEventType,
    TraceStatus,
    StepStatus,
    LogLevel,
)
from .propagation import TRACE_ID_HEADER, extract_trace_id, inject_trace_header, trace_from_headers
from .queue import TracedJob, capture_trace_context, propagate_context, restore_trace_context
from .sdk import TraceFlowSDK
from .transport import AsyncHttpTransport, HttpTransport, RetryPolicy, Transport

__all__ = [
    "TraceFlowSDK",
    "TraceFlowConfig",
    "TraceFlowContext",
    "TraceHandle",
    "StepHandle",
    # Events
    "TraceEvent",
    "TraceEventType",
    "TraceStatus",
    "StepStatus",
    "LogLevel",
    # Transports
    "Transport",
    "HttpTransport",
    "AsyncHttpTransport",
    "RetryPolicy",
    # Propagation
    "TRACE_ID_HEADER",
    "extract_trace_id",
    "inject_trace_header",
    "trace_from_headers",
    "TracedJob",
    "capture_trace_context",
    "propagate_context",
    "restore_trace_context",
    # Errors
    "TraceFlowError",
    "ConfigurationError",
    "TransportError",
]
