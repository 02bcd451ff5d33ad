"""
Blocking HTTP transport: every send waits for the collector.
"""

import logging
from typing import Optional

import httpx

from ..config import TraceFlowConfig
from ..models import TraceEvent
from .interfaces import Transport
from .routing import CollectorRequest, build_request
from .utils import RetryPolicy, as_transport_error, build_headers

logger = logging.getLogger(__name__)


class HttpTransport(Transport):
    """
    Synchronous transport. Events reach the collector in the order they are
    sent, so there is never anything left to flush.
    """

    def __init__(self, config: TraceFlowConfig, client: Optional[httpx.Client] = None):
        """
        Initialize the blocking transport.

        Args:
            config: SDK configuration
            client: Optional injected httpx client for testing / transport control
        """
        self.config = config
        self.retry_policy = RetryPolicy.from_config(config)
        self.logger = logging.getLogger(self.__class__.__name__)
        self._owns_client = client is None
        self.client = client or httpx.Client(
            base_url=config.endpoint,
            headers=build_headers(config),
            timeout=config.timeout,
        )
        self._closed = False

    def send(self, event: TraceEvent) -> None:
        """
        Deliver an event, retrying with backoff before giving up.

        Raises:
            TransportError: When retries are exhausted and silent_errors is off
        """
        if self._closed:
            self.logger.warning(f"Transport is shut down; dropping {event.event_type.value} event {event.event_id}")
            return

        request = build_request(event)
        try:
            self._execute_with_retry(request)
        except httpx.HTTPError as e:
            error = as_transport_error(e, request.method, request.path, self.retry_policy.attempts)
            if not self.config.silent_errors:
                raise error
            self.logger.warning(f"Error sending {event.event_type.value} event (silenced): {error}")

    def _execute_with_retry(self, request: CollectorRequest) -> httpx.Response:
        for attempt in self.retry_policy.retrying(logger=self.logger):
            with attempt:
                response = self.client.request(request.method, request.path, json=request.json)
                response.raise_for_status()
        return response

    def flush(self) -> None:
        # Nothing is ever in flight once send() returns.
        return None

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            self.client.close()
