"""
Helpers shared by the HTTP transports.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import TraceFlowConfig
from ..exceptions import TransportError


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff: ``retry_delay_ms * 2**attempt``."""
    max_retries: int = 3
    retry_delay_ms: int = 1000

    @property
    def attempts(self) -> int:
        """Total number of attempts, the first one included."""
        return self.max_retries + 1

    def _options(self, logger: Optional[logging.Logger], overrides: Dict[str, Any]) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "stop": stop_after_attempt(self.attempts),
            "wait": wait_exponential(multiplier=self.retry_delay_ms / 1000.0, exp_base=2),
            "retry": retry_if_exception_type(httpx.HTTPError),
            "reraise": True,
        }
        if logger is not None:
            options["before_sleep"] = before_sleep_log(logger, logging.DEBUG)
        options.update(overrides)
        return options

    def retrying(self, logger: Optional[logging.Logger] = None, **overrides: Any) -> Retrying:
        """
        Build a blocking retry controller for one request.

        Args:
            logger: Logger that receives a debug line before every backoff sleep
            overrides: Extra ``tenacity.Retrying`` options (e.g. ``sleep``)

        Returns:
            Controller that re-raises the last httpx error once attempts run out
        """
        return Retrying(**self._options(logger, overrides))

    def async_retrying(self, logger: Optional[logging.Logger] = None, **overrides: Any) -> AsyncRetrying:
        """Same policy as ``retrying`` for use inside a coroutine."""
        return AsyncRetrying(**self._options(logger, overrides))

    @classmethod
    def from_config(cls, config: TraceFlowConfig) -> "RetryPolicy":
        return cls(max_retries=config.max_retries, retry_delay_ms=config.retry_delay)


def build_headers(config: TraceFlowConfig) -> Dict[str, str]:
    """
    Build request headers. An API key wins over basic auth; with neither the
    request goes out unauthenticated.

    Args:
        config: SDK configuration

    Returns:
        Header mapping
    """
    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["X-API-Key"] = config.api_key
    elif config.username and config.password:
        token = base64.b64encode(f"{config.username}:{config.password}".encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
    return headers


def status_code_of(error: httpx.HTTPError) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def as_transport_error(error: httpx.HTTPError, method: str, path: str, attempts: int) -> TransportError:
    """Wrap the last httpx error of an exhausted retry loop."""
    transport_error = TransportError(
        str(error) or type(error).__name__,
        method=method,
        path=path,
        attempts=attempts,
        status_code=status_code_of(error),
    )
    transport_error.__cause__ = error
    return transport_error
