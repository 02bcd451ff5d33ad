"""
Trace handle: local control object for one trace.
"""

import logging
from typing import Any, Dict, Optional, Union

from ..models import LogLevel, TraceEvent, TraceEventType
from ..models.events import describe_error, level_value, new_id
from .step_handle import EventSink, StepHandle

logger = logging.getLogger(__name__)


class TraceHandle:
    """
    Drives the lifecycle of a trace.

    The handle is a proxy: terminal calls only emit events and say nothing
    about whether the collector applied them. At most one of ``finish``,
    ``fail`` or ``cancel`` emits; the rest are logged and ignored.
    """

    def __init__(
        self,
        trace_id: str,
        source: str,
        send_event: EventSink,
        parent_trace_id: Optional[str] = None,
    ):
        """
        Initialize the handle.

        Args:
            trace_id: Identifier of the trace
            source: Logical name of the emitting service
            send_event: Callable that hands events to the transport
            parent_trace_id: Upstream trace this one continues, if any
        """
        self.trace_id = trace_id
        self.source = source
        self.parent_trace_id = parent_trace_id
        self._send_event = send_event
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _close(self) -> bool:
        if self._closed:
            logger.warning(f"Trace {self.trace_id} already closed")
            return False
        self._closed = True
        return True

    def _emit(self, event_type: TraceEventType, payload: Dict[str, Any], step_id: Optional[str] = None) -> None:
        self._send_event(TraceEvent(
            event_type=event_type,
            trace_id=self.trace_id,
            step_id=step_id,
            parent_trace_id=self.parent_trace_id,
            source=self.source,
            payload=payload,
        ))

    def finish(self, result: Optional[Dict[str, Any]] = None, metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Mark the trace successful.

        Args:
            result: Optional result of the operation
            metadata: Optional metadata merged on the collector side
        """
        if not self._close():
            return
        self._emit(TraceEventType.TRACE_FINISHED, {"result": result, "metadata": metadata})

    def fail(self, error: Union[str, BaseException]) -> None:
        """
        Mark the trace failed.

        Args:
            error: A message or an exception; exceptions also record their traceback
        """
        if not self._close():
            return
        message, stack = describe_error(error)
        self._emit(TraceEventType.TRACE_FAILED, {"error": message, "stack": stack})

    def cancel(self) -> None:
        """Mark the trace cancelled."""
        if not self._close():
            return
        self._emit(TraceEventType.TRACE_CANCELLED, {})

    def start_step(
        self,
        name: Optional[str] = None,
        step_type: Optional[str] = None,
        input: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> StepHandle:
        """
        Start a new step in this trace.

        Args:
            name: Human readable step name
            step_type: Free-form step category
            input: Optional input of the step
            metadata: Optional metadata

        Returns:
            Handle for the new step
        """
        step_id = new_id()
        self._emit(
            TraceEventType.STEP_STARTED,
            {"name": name, "step_type": step_type, "input": input, "metadata": metadata},
            step_id=step_id,
        )
        return StepHandle(
            step_id=step_id,
            trace_id=self.trace_id,
            source=self.source,
            send_event=self._send_event,
            parent_trace_id=self.parent_trace_id,
        )

    def log(
        self,
        message: str,
        level: Union[LogLevel, str] = LogLevel.INFO,
        event_type: Optional[str] = None,
        details: Any = None,
    ) -> None:
        """
        Attach a log entry to the trace. Not gated by the closed flag, so
        trailing diagnostics after a terminal transition still go out.
        """
        self._emit(TraceEventType.LOG_EMITTED, {
            "message": message,
            "level": level_value(level),
            "event_type": event_type,
            "details": details,
        })

    def __repr__(self) -> str:
        return f"TraceHandle(trace_id={self.trace_id!r}, closed={self._closed})"
