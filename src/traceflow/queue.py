"""
Carrying trace context into deferred work (queue jobs, thread pools).

Each hop is a plain capture/restore pair: the producer captures with
``TraceFlowContext.to_dict()``, the worker restores inside a scope that
always clears on exit. A worker may capture again inside that scope to
hand work further on, to any depth.
"""

import functools
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Mapping, Optional, TypeVar

from .context import TraceFlowContext

if TYPE_CHECKING:
    from .sdk import TraceFlowSDK

logger = logging.getLogger(__name__)

T = TypeVar("T")


def capture_trace_context() -> Optional[Dict[str, Any]]:
    """Serialized current context, or None when no trace is active."""
    if not TraceFlowContext.has_active_trace():
        return None
    return TraceFlowContext.to_dict()


@contextmanager
def restore_trace_context(
    data: Optional[Mapping[str, Any]],
    sdk: Optional["TraceFlowSDK"] = None,
) -> Iterator[Optional[str]]:
    """
    Restore a captured context around a unit of work.

    When ``sdk`` is given it is pointed at the restored trace too, so
    ``sdk.get_current_trace()`` works inside the block; its previous
    current trace is put back afterwards.

    Args:
        data: Context captured by the producer, or None
        sdk: Optional SDK instance to keep in sync

    Yields:
        The restored trace ID, or None
    """
    previous = sdk.current_trace_id if sdk is not None else None
    with TraceFlowContext.restored(data) as trace_id:
        if sdk is not None and trace_id:
            sdk.set_current_trace_id(trace_id)
        try:
            yield trace_id
        finally:
            if sdk is not None and trace_id:
                sdk.set_current_trace_id(previous)


class TracedJob:
    """
    Mixin for job objects that should carry the enqueuing code's trace.

    Call ``capture_trace_context()`` when the job is created (the mixin's
    ``__init__`` does this for cooperative subclasses) and execute the work
    through ``run_traced``.
    """

    trace_context: Optional[Dict[str, Any]] = None

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.capture_trace_context()

    def capture_trace_context(self) -> None:
        self.trace_context = capture_trace_context()

    def run_traced(self, func: Callable[..., T], *args: Any, sdk: Optional["TraceFlowSDK"] = None, **kwargs: Any) -> T:
        """
        Run ``func`` with the captured context restored.

        Args:
            func: The job body
            sdk: Optional SDK instance to keep in sync
        """
        with restore_trace_context(self.trace_context, sdk=sdk):
            return func(*args, **kwargs)


def propagate_context(func: Callable[..., T], sdk: Optional["TraceFlowSDK"] = None) -> Callable[..., T]:
    """
    Bind the caller's current context to ``func``.

    The returned callable runs ``func`` with that context restored, wherever
    and whenever it is invoked, e.g. ``executor.submit(propagate_context(work))``.
    """
    captured = capture_trace_context()

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        with restore_trace_context(captured, sdk=sdk):
            return func(*args, **kwargs)

    return wrapper
