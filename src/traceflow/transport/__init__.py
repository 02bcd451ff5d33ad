# Transport module
from .interfaces import Transport
from .http import HttpTransport
from .async_http import AsyncHttpTransport
from .routing import CollectorRequest, build_request
from .utils import RetryPolicy, build_headers

__all__ = [
    "Transport",
    "HttpTransport",
    "AsyncHttpTransport",
    "CollectorRequest",
    "build_request",
    "RetryPolicy",
    "build_headers",
]
