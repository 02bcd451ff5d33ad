"""
Cross-service propagation through the ``X-Trace-Id`` header.
"""

import logging
from typing import TYPE_CHECKING, Any, MutableMapping, Mapping, Optional

if TYPE_CHECKING:
    from .handles import TraceHandle
    from .sdk import TraceFlowSDK

logger = logging.getLogger(__name__)

TRACE_ID_HEADER = "X-Trace-Id"


def extract_trace_id(headers: Mapping[str, str], header_name: str = TRACE_ID_HEADER) -> Optional[str]:
    """Case-insensitive header lookup; blank values count as absent."""
    wanted = header_name.lower()
    for key, value in headers.items():
        if key.lower() == wanted and value and value.strip():
            return value.strip()
    return None


def inject_trace_header(
    headers: MutableMapping[str, str],
    trace_id: str,
    header_name: str = TRACE_ID_HEADER,
) -> MutableMapping[str, str]:
    headers[header_name] = trace_id
    return headers


def trace_from_headers(
    sdk: "TraceFlowSDK",
    headers: Mapping[str, str],
    **trace_options: Any,
) -> "TraceHandle":
    """
    Continue the upstream trace named in the headers, or start a new one.

    Args:
        sdk: SDK instance
        headers: Incoming request headers
        **trace_options: Passed to ``start_trace`` when a new trace is started

    Returns:
        Handle for the continued or new trace
    """
    trace_id = extract_trace_id(headers, sdk.config.trace_header)
    if trace_id:
        logger.debug(f"Continuing upstream trace {trace_id}")
        return sdk.get_trace(trace_id)
    return sdk.start_trace(**trace_options)
