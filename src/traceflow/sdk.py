"""
SDK facade tying together configuration, transport, handles and context.
"""

import logging
import weakref
from contextvars import ContextVar
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar, Union

import httpx

from .config import TraceFlowConfig, resolve_config
from .context import TraceFlowContext
from .handles import StepHandle, TraceHandle
from .models import LogLevel, TraceEvent, TraceEventType
from .models.events import new_id, sparse
from .transport import AsyncHttpTransport, HttpTransport, Transport
from .transport.routing import HEALTH_PATH, heartbeat_path, trace_state_path
from .transport.utils import build_headers

logger = logging.getLogger(__name__)

T = TypeVar("T")

PYTHON_LOG_LEVELS = {
    LogLevel.DEBUG.value: logging.DEBUG,
    LogLevel.INFO.value: logging.INFO,
    LogLevel.WARN.value: logging.WARNING,
    LogLevel.ERROR.value: logging.ERROR,
    LogLevel.FATAL.value: logging.CRITICAL,
}


class TraceFlowSDK:
    """
    Entry point for emitting traces, steps and logs to a TraceFlow collector.

    Instrumentation never fails the host application at runtime: delivery
    errors are retried and then dropped unless ``silent_errors`` is turned
    off. Configuration errors are the exception and surface at construction.
    """

    def __init__(
        self,
        config: Union[TraceFlowConfig, Mapping[str, Any]],
        transport: Optional[Transport] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the SDK.

        Args:
            config: Configuration object or plain options mapping
            transport: Optional transport; chosen from ``async_http`` when omitted
            http_client: Optional httpx client for control calls (state, heartbeat, health)

        Raises:
            ConfigurationError: If the configuration is invalid or names an
                unimplemented transport
        """
        self.config = resolve_config(config)
        self.source = self.config.source
        self.silent_errors = self.config.silent_errors
        self.logger = logging.getLogger(self.__class__.__name__)

        self.transport = transport or self._create_transport()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        # Scoped to the execution context (thread or asyncio task).
        self._current_trace_id: ContextVar[Optional[str]] = ContextVar(
            f"traceflow_current_trace_{id(self)}", default=None
        )
        # Handles stay shared while callers hold them, so the closed flag is too.
        self._handles: "weakref.WeakValueDictionary[str, TraceHandle]" = weakref.WeakValueDictionary()
        self._is_shut_down = False

    def _create_transport(self) -> Transport:
        if self.config.async_http:
            return AsyncHttpTransport(self.config)
        return HttpTransport(self.config)

    @property
    def http_client(self) -> httpx.Client:
        """Client used for control calls that are not event deliveries."""
        if self._http_client is None:
            self._http_client = httpx.Client(
                base_url=self.config.endpoint,
                headers=build_headers(self.config),
                timeout=self.config.timeout,
            )
        return self._http_client

    @property
    def current_trace_id(self) -> Optional[str]:
        return self._current_trace_id.get()

    def set_current_trace_id(self, trace_id: Optional[str]) -> None:
        self._current_trace_id.set(trace_id)

    def _handle(self, trace_id: str, parent_trace_id: Optional[str] = None) -> TraceHandle:
        handle = self._handles.get(trace_id)
        if handle is None:
            handle = TraceHandle(
                trace_id=trace_id,
                source=self.source,
                send_event=self._send_event,
                parent_trace_id=parent_trace_id,
            )
            self._handles[trace_id] = handle
        return handle

    def _make_current(self, trace_id: str) -> None:
        self._current_trace_id.set(trace_id)
        if self.config.propagate_context:
            TraceFlowContext.set(trace_id)

    def start_trace(
        self,
        trace_id: Optional[str] = None,
        trace_type: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        owner: Optional[str] = None,
        tags: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        params: Any = None,
        trace_timeout_ms: Optional[int] = None,
        step_timeout_ms: Optional[int] = None,
        parent_trace_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> TraceHandle:
        """
        Start a new trace and make it the current one.

        Timeouts are hints for the collector; they are not enforced locally.

        Args:
            trace_id: Caller-supplied identifier; generated when omitted
            trace_type: Free-form trace category (e.g. 'http_request', 'job')
            title: Human readable title
            description: Longer description
            owner: Owning team or user
            tags: Tags for filtering
            metadata: Arbitrary metadata
            params: Input parameters of the operation
            trace_timeout_ms: Collector-side timeout for the whole trace
            step_timeout_ms: Collector-side timeout for each step
            parent_trace_id: Upstream trace this one continues
            idempotency_key: Deduplication key; defaults to the event ID

        Returns:
            Handle for the new trace
        """
        trace_id = trace_id or new_id()

        self._send_event(TraceEvent(
            event_type=TraceEventType.TRACE_STARTED,
            trace_id=trace_id,
            parent_trace_id=parent_trace_id,
            source=self.source,
            payload=sparse({
                "trace_type": trace_type,
                "title": title,
                "description": description,
                "owner": owner,
                "tags": tags,
                "metadata": metadata,
                "params": params,
                "trace_timeout_ms": trace_timeout_ms,
                "step_timeout_ms": step_timeout_ms,
                "idempotency_key": idempotency_key,
            }),
        ))

        self._make_current(trace_id)
        self._handles.pop(trace_id, None)
        return self._handle(trace_id, parent_trace_id)

    def get_trace(self, trace_id: str) -> TraceHandle:
        """
        Get a handle for a trace that already exists, e.g. one started upstream.

        The remote state lookup is best-effort and never raises.

        Args:
            trace_id: Identifier of the existing trace

        Returns:
            Handle for the trace
        """
        try:
            response = self.http_client.get(trace_state_path(trace_id))
            response.raise_for_status()
            self.logger.debug(f"Retrieved trace: {trace_id}")
        except httpx.HTTPError as e:
            self.logger.warning(f"Error getting trace {trace_id} (silenced): {e}")

        self._make_current(trace_id)
        return self._handle(trace_id)

    def _resolve_current_trace_id(self) -> Optional[str]:
        trace_id = self._current_trace_id.get()
        if trace_id is None and self.config.propagate_context:
            trace_id = TraceFlowContext.current_trace_id()
        return trace_id

    def get_current_trace(self) -> Optional[TraceHandle]:
        """
        Handle for the current trace: this SDK's last started or retrieved
        trace in the calling thread or task, falling back to
        ``TraceFlowContext`` when context propagation is enabled.

        Returns:
            Trace handle, or None when there is no current trace
        """
        trace_id = self._resolve_current_trace_id()
        if trace_id is None:
            return None
        return self._handle(trace_id)

    def run_with_trace(self, callback: Callable[[TraceHandle], T], **trace_options: Any) -> T:
        """
        Run ``callback`` inside a new trace.

        The trace finishes with ``{"result": value}`` or fails with the raised
        exception, which is re-raised.
        """
        trace = self.start_trace(**trace_options)
        try:
            result = callback(trace)
        except Exception as e:
            trace.fail(e)
            raise
        trace.finish({"result": result})
        return result

    def heartbeat(self, trace_id: Optional[str] = None) -> None:
        """
        Tell the collector a long-running trace is still alive. Always silent.

        Args:
            trace_id: Trace to ping; defaults to the current trace
        """
        target = trace_id or self._resolve_current_trace_id()
        if not target:
            return
        try:
            response = self.http_client.post(heartbeat_path(target))
            response.raise_for_status()
            self.logger.debug(f"Heartbeat sent for: {target}")
        except httpx.HTTPError as e:
            self.logger.debug(f"Heartbeat error for {target}: {e}")

    def start_step(
        self,
        name: Optional[str] = None,
        step_type: Optional[str] = None,
        input: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[StepHandle]:
        """Start a step in the current trace; None when there is no current trace."""
        trace = self.get_current_trace()
        if trace is None:
            self.logger.warning("No active trace context for step")
            return None
        return trace.start_step(name=name, step_type=step_type, input=input, metadata=metadata)

    def log(
        self,
        message: str,
        level: Union[LogLevel, str] = LogLevel.INFO,
        event_type: Optional[str] = None,
        details: Any = None,
    ) -> None:
        """Log against the current trace, or locally when there is none."""
        trace = self.get_current_trace()
        if trace is None:
            level_name = level.value if isinstance(level, LogLevel) else str(level).upper()
            self.logger.log(PYTHON_LOG_LEVELS.get(level_name, logging.INFO), f"[TraceFlow] {message}")
            return
        trace.log(message, level=level, event_type=event_type, details=details)

    def test_connection(self) -> bool:
        """
        Probe the collector's health endpoint.

        Returns:
            True if the collector is reachable, False otherwise
        """
        try:
            response = self.http_client.get(HEALTH_PATH)
        except httpx.HTTPError as e:
            self.logger.error(f"Connection test failed: {e}")
            return False
        # A missing health endpoint still proves the server is reachable.
        if response.is_success or response.status_code == 404:
            self.logger.info(f"Connection to {self.config.endpoint} successful (HTTP {response.status_code})")
            return True
        self.logger.error(f"Connection test failed with HTTP {response.status_code}")
        return False

    def _send_event(self, event: TraceEvent) -> None:
        try:
            self.transport.send(event)
        except Exception as e:
            if not self.silent_errors:
                raise
            self.logger.warning(f"Error sending event (silenced): {e}")

    def flush(self) -> None:
        self.transport.flush()

    def shutdown(self) -> None:
        """
        Flush pending events and release resources. Call before the process
        exits; later calls are no-ops.
        """
        if self._is_shut_down:
            return
        self._is_shut_down = True
        self.logger.info("Shutting down SDK...")
        try:
            self.transport.shutdown()
        finally:
            if self._owns_http_client and self._http_client is not None:
                self._http_client.close()

    def __enter__(self) -> "TraceFlowSDK":
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        self.shutdown()
