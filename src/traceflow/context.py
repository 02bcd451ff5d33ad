"""
Ambient "current trace" context.

State is held in a ``contextvars.ContextVar``: every thread and every asyncio
task sees its own value, so one unit of work cannot observe another's trace.
Work handed to another execution context (a thread pool, a queue worker)
carries the state explicitly through ``to_dict``/``restore``.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextState:
    """The active (trace_id, step_id, metadata) triple."""
    trace_id: str
    step_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


_state: ContextVar[Optional[ContextState]] = ContextVar("traceflow_context", default=None)


class TraceFlowContext:
    """Accessors for the current execution context's trace identity."""

    @staticmethod
    def set(trace_id: str, step_id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Overwrite the current context. Last write wins; there is no stacking."""
        _state.set(ContextState(trace_id=trace_id, step_id=step_id, metadata=dict(metadata or {})))

    @staticmethod
    def current_trace_id() -> Optional[str]:
        state = _state.get()
        return state.trace_id if state else None

    @staticmethod
    def current_step_id() -> Optional[str]:
        state = _state.get()
        return state.step_id if state else None

    @staticmethod
    def metadata() -> Dict[str, Any]:
        state = _state.get()
        return dict(state.metadata) if state else {}

    @staticmethod
    def has_active_trace() -> bool:
        return _state.get() is not None

    @staticmethod
    def clear() -> None:
        _state.set(None)

    @staticmethod
    def to_dict() -> Dict[str, Any]:
        """
        Serialize the current context for hand-off across an execution boundary.

        Returns:
            Mapping with ``trace_id``, ``step_id`` and ``metadata`` keys
        """
        state = _state.get()
        if state is None:
            return {"trace_id": None, "step_id": None, "metadata": {}}
        return {
            "trace_id": state.trace_id,
            "step_id": state.step_id,
            "metadata": dict(state.metadata),
        }

    @staticmethod
    def restore(data: Optional[Mapping[str, Any]]) -> None:
        """
        Inverse of ``to_dict``. Missing ``step_id``/``metadata`` default to
        absent/empty; data without a ``trace_id`` leaves the context empty.

        Args:
            data: Serialized context, typically attached to a queued job
        """
        trace_id = (data or {}).get("trace_id")
        if not trace_id:
            _state.set(None)
            return
        _state.set(ContextState(
            trace_id=trace_id,
            step_id=data.get("step_id"),
            metadata=dict(data.get("metadata") or {}),
        ))

    @staticmethod
    @contextmanager
    def restored(data: Optional[Mapping[str, Any]]) -> Iterator[Optional[str]]:
        """
        Restore ``data`` for the duration of the block and clear it on every exit path.

        Yields:
            The restored trace ID, or None when ``data`` carried no trace
        """
        TraceFlowContext.restore(data)
        try:
            yield TraceFlowContext.current_trace_id()
        finally:
            TraceFlowContext.clear()
