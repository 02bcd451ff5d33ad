"""
Exception types raised by the TraceFlow client.
"""

from typing import Optional


class TraceFlowError(Exception):
    """Base class for all TraceFlow errors."""


class ConfigurationError(TraceFlowError, ValueError):
    """Raised when the SDK is constructed with an unusable configuration."""


class TransportError(TraceFlowError):
    """
    Raised when a collector request fails after every retry attempt.

    Network failures and non-2xx responses both end up here; ``status_code``
    is only set for the latter.
    """

    def __init__(
        self,
        message: str,
        method: str,
        path: str,
        attempts: int,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.method = method
        self.path = path
        self.attempts = attempts
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
        return f"{self.method} {self.path} failed after {self.attempts} attempt(s){status}: {base}"
