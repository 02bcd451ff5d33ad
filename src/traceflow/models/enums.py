"""
Enumerations shared by events, handles and transports.
"""

from enum import Enum


class TraceEventType(str, Enum):
    """State transitions emitted by the client."""
    TRACE_STARTED = "trace_started"
    TRACE_FINISHED = "trace_finished"
    TRACE_FAILED = "trace_failed"
    TRACE_CANCELLED = "trace_cancelled"
    STEP_STARTED = "step_started"
    STEP_FINISHED = "step_finished"
    STEP_FAILED = "step_failed"
    LOG_EMITTED = "log_emitted"


class TraceStatus(str, Enum):
    """Trace status values understood by the collector."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class StepStatus(str, Enum):
    """Step status values understood by the collector."""
    STARTED = "STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class LogLevel(str, Enum):
    """Severity of a log entry attached to a trace or step."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"
