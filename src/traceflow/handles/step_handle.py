"""
Step handle: local control object for one step of a trace.
"""

import logging
from typing import Any, Callable, Dict, Optional, Union

from ..models import LogLevel, TraceEvent, TraceEventType
from ..models.events import describe_error, level_value

logger = logging.getLogger(__name__)

EventSink = Callable[[TraceEvent], None]


class StepHandle:
    """
    Drives the lifecycle of a single step. The first of ``finish``/``fail``
    wins; later calls are logged and ignored.
    """

    def __init__(
        self,
        step_id: str,
        trace_id: str,
        source: str,
        send_event: EventSink,
        parent_trace_id: Optional[str] = None,
    ):
        self.step_id = step_id
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
            logger.warning(f"Step {self.step_id} already closed")
            return False
        self._closed = True
        return True

    def _emit(self, event_type: TraceEventType, payload: Dict[str, Any]) -> None:
        self._send_event(TraceEvent(
            event_type=event_type,
            trace_id=self.trace_id,
            step_id=self.step_id,
            parent_trace_id=self.parent_trace_id,
            source=self.source,
            payload=payload,
        ))

    def finish(self, output: Any = None, metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Mark the step completed.

        Args:
            output: Optional output of the step
            metadata: Optional metadata merged on the collector side
        """
        if not self._close():
            return
        self._emit(TraceEventType.STEP_FINISHED, {"output": output, "metadata": metadata})

    def fail(self, error: Union[str, BaseException]) -> None:
        """
        Mark the step failed.

        Args:
            error: A message or an exception; exceptions also record their traceback
        """
        if not self._close():
            return
        message, stack = describe_error(error)
        self._emit(TraceEventType.STEP_FAILED, {"error": message, "stack": stack})

    def log(
        self,
        message: str,
        level: Union[LogLevel, str] = LogLevel.INFO,
        event_type: Optional[str] = None,
        details: Any = None,
    ) -> None:
        """Attach a log entry to the step. Allowed after the step is closed."""
        self._emit(TraceEventType.LOG_EMITTED, {
            "message": message,
            "level": level_value(level),
            "event_type": event_type,
            "details": details,
        })

    def __repr__(self) -> str:
        return f"StepHandle(step_id={self.step_id!r}, trace_id={self.trace_id!r}, closed={self._closed})"
