"""
Maps trace events onto collector REST operations.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from ..models import StepStatus, TraceEvent, TraceEventType, TraceStatus
from ..models.events import sparse

TRACES_PATH = "/api/v1/traces"
STEPS_PATH = "/api/v1/steps"
LOGS_PATH = "/api/v1/logs"
HEALTH_PATH = "/api/v1/health"


def trace_path(trace_id: str) -> str:
    return f"{TRACES_PATH}/{trace_id}"


def trace_state_path(trace_id: str) -> str:
    return f"{TRACES_PATH}/{trace_id}/state"


def heartbeat_path(trace_id: str) -> str:
    return f"{TRACES_PATH}/{trace_id}/heartbeat"


def step_path(trace_id: str, step_id: str) -> str:
    return f"{STEPS_PATH}/{trace_id}/{step_id}"


TRACE_STATUS_BY_EVENT = {
    TraceEventType.TRACE_FINISHED: TraceStatus.SUCCESS,
    TraceEventType.TRACE_FAILED: TraceStatus.FAILED,
    TraceEventType.TRACE_CANCELLED: TraceStatus.CANCELLED,
}

STEP_STATUS_BY_EVENT = {
    TraceEventType.STEP_FINISHED: StepStatus.COMPLETED,
    TraceEventType.STEP_FAILED: StepStatus.FAILED,
}


@dataclass(frozen=True)
class CollectorRequest:
    """A single HTTP call against the collector."""
    method: str
    path: str
    json: Dict[str, Any] = field(default_factory=dict)


def _create_trace(event: TraceEvent) -> CollectorRequest:
    payload = event.payload
    body = sparse({
        "trace_id": event.trace_id,
        "trace_type": payload.get("trace_type"),
        "status": TraceStatus.PENDING.value,
        "source": event.source,
        "title": payload.get("title"),
        "description": payload.get("description"),
        "owner": payload.get("owner"),
        "tags": payload.get("tags"),
        "metadata": payload.get("metadata"),
        "params": payload.get("params"),
        "created_at": event.timestamp,
        "updated_at": event.timestamp,
        "last_activity_at": event.timestamp,
        "idempotency_key": payload.get("idempotency_key") or event.event_id,
        "trace_timeout_ms": payload.get("trace_timeout_ms"),
        "step_timeout_ms": payload.get("step_timeout_ms"),
        "parent_trace_id": event.parent_trace_id,
    })
    return CollectorRequest("POST", TRACES_PATH, body)


def _update_trace(event: TraceEvent) -> CollectorRequest:
    payload = event.payload
    status = TRACE_STATUS_BY_EVENT.get(event.event_type, TraceStatus.RUNNING)
    body = sparse({
        "status": status.value,
        "updated_at": event.timestamp,
        "finished_at": event.timestamp,
        "last_activity_at": event.timestamp,
        "result": payload.get("result"),
        "error": payload.get("error"),
        "metadata": payload.get("metadata"),
    })
    return CollectorRequest("PATCH", trace_path(event.trace_id), body)


def _create_step(event: TraceEvent) -> CollectorRequest:
    payload = event.payload
    body = sparse({
        "trace_id": event.trace_id,
        "step_id": event.step_id,
        "step_type": payload.get("step_type"),
        "name": payload.get("name"),
        "status": StepStatus.STARTED.value,
        "started_at": event.timestamp,
        "updated_at": event.timestamp,
        "input": payload.get("input"),
        "metadata": payload.get("metadata"),
    })
    return CollectorRequest("POST", STEPS_PATH, body)


def _update_step(event: TraceEvent) -> CollectorRequest:
    payload = event.payload
    status = STEP_STATUS_BY_EVENT[event.event_type]
    body = sparse({
        "status": status.value,
        "updated_at": event.timestamp,
        "finished_at": event.timestamp,
        "output": payload.get("output"),
        "error": payload.get("error"),
        "metadata": payload.get("metadata"),
    })
    return CollectorRequest("PATCH", step_path(event.trace_id, event.step_id), body)


def _create_log(event: TraceEvent) -> CollectorRequest:
    payload = event.payload
    body = sparse({
        "trace_id": event.trace_id,
        "log_id": event.event_id,
        "log_time": event.timestamp,
        "level": payload.get("level") or "INFO",
        "message": payload.get("message", ""),
        "details": payload.get("details"),
        "source": event.source,
        "event_type": payload.get("event_type"),
    })
    return CollectorRequest("POST", LOGS_PATH, body)


ROUTES: Dict[TraceEventType, Callable[[TraceEvent], CollectorRequest]] = {
    TraceEventType.TRACE_STARTED: _create_trace,
    TraceEventType.TRACE_FINISHED: _update_trace,
    TraceEventType.TRACE_FAILED: _update_trace,
    TraceEventType.TRACE_CANCELLED: _update_trace,
    TraceEventType.STEP_STARTED: _create_step,
    TraceEventType.STEP_FINISHED: _update_step,
    TraceEventType.STEP_FAILED: _update_step,
    TraceEventType.LOG_EMITTED: _create_log,
}


def build_request(event: TraceEvent) -> CollectorRequest:
    """
    Translate an event into the collector call that applies it.

    Args:
        event: Event to route

    Returns:
        The HTTP method, path and JSON body for the collector
    """
    return ROUTES[event.event_type](event)
