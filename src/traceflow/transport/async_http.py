"""
Non-blocking HTTP transport.

Requests run on a private asyncio event loop owned by a background thread.
``send`` only schedules work and returns; ``flush`` is the barrier that waits
for everything scheduled so far, retries included.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import List, Optional, Set

import httpx

from ..config import TraceFlowConfig
from ..models import TraceEvent
from .interfaces import Transport
from .routing import CollectorRequest, build_request
from .utils import RetryPolicy, as_transport_error, build_headers

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 5.0


class AsyncHttpTransport(Transport):
    """
    Fire-and-forget transport. Completion order is not guaranteed to match
    send order; the collector reconciles state by timestamp.
    """

    def __init__(self, config: TraceFlowConfig, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the non-blocking transport and start its event loop thread.

        Args:
            config: SDK configuration
            client: Optional injected httpx async client for testing / transport control
        """
        self.config = config
        self.retry_policy = RetryPolicy.from_config(config)
        self.logger = logging.getLogger(self.__class__.__name__)

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=config.endpoint,
            headers=build_headers(config),
            timeout=config.timeout,
        )

        self._lock = threading.Lock()
        self._pending: Set[concurrent.futures.Future] = set()
        self._errors: List[BaseException] = []
        self._delivered = 0
        self._failed = 0
        self._closed = False

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="traceflow-async-http", daemon=True
        )
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def pending_count(self) -> int:
        """Number of sends that have not settled yet."""
        with self._lock:
            return len(self._pending)

    @property
    def delivered_count(self) -> int:
        """Events delivered since the last flush."""
        with self._lock:
            return self._delivered

    @property
    def failed_count(self) -> int:
        """Events dropped after exhausting retries since the last flush."""
        with self._lock:
            return self._failed

    def send(self, event: TraceEvent) -> None:
        """
        Schedule delivery of an event and return immediately.

        Args:
            event: The event to deliver
        """
        request = build_request(event)
        with self._lock:
            if self._closed:
                self.logger.warning(f"Transport is shut down; dropping {event.event_type.value} event {event.event_id}")
                return
            try:
                future = asyncio.run_coroutine_threadsafe(self._deliver(request), self._loop)
            except RuntimeError as e:
                if not self.config.silent_errors:
                    raise
                self.logger.warning(f"Error scheduling {event.event_type.value} event (silenced): {e}")
                return
            self._pending.add(future)

        future.add_done_callback(self._settle)

    async def _deliver(self, request: CollectorRequest) -> bool:
        """
        Run one request through the retry policy.

        Returns:
            True when delivered, False when dropped under silent errors

        Raises:
            TransportError: When retries are exhausted and silent_errors is off
        """
        try:
            async for attempt in self.retry_policy.async_retrying(logger=self.logger):
                with attempt:
                    response = await self.client.request(request.method, request.path, json=request.json)
                    response.raise_for_status()
        except httpx.HTTPError as e:
            error = as_transport_error(e, request.method, request.path, self.retry_policy.attempts)
            if not self.config.silent_errors:
                raise error
            self.logger.warning(f"Failed after {self.retry_policy.max_retries} retries (silenced): {error}")
            return False
        return True

    def _settle(self, future: concurrent.futures.Future) -> None:
        # Runs from the done callback and from flush; whichever comes first wins.
        with self._lock:
            if future not in self._pending:
                return
            self._pending.discard(future)
            if future.cancelled():
                self._failed += 1
                return
            error = future.exception()
            if error is not None:
                self._failed += 1
                if self.config.silent_errors:
                    self.logger.warning(f"Unexpected error delivering event (silenced): {error!r}")
                else:
                    self._errors.append(error)
            elif future.result():
                self._delivered += 1
            else:
                self._failed += 1

    def flush(self) -> None:
        """
        Wait for every send issued before this call to settle.

        Sends issued by other threads while the flush is waiting are not
        waited on; they belong to the next flush.

        Raises:
            TransportError: The first delivery failure, when silent_errors is off
        """
        with self._lock:
            snapshot = list(self._pending)

        if snapshot:
            concurrent.futures.wait(snapshot)
            for future in snapshot:
                self._settle(future)

        with self._lock:
            delivered, failed = self._delivered, self._failed
            errors, self._errors = self._errors, []
            self._delivered = 0
            self._failed = 0

        if snapshot:
            self.logger.info(f"Flushed {len(snapshot)} events ({delivered} delivered, {failed} failed)")

        if errors and not self.config.silent_errors:
            raise errors[0]

    def shutdown(self) -> None:
        """
        Flush, close the HTTP client and stop the event loop thread.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self.logger.info("Shutting down async transport...")
        try:
            self.flush()
        finally:
            self._stop_loop()

    def _stop_loop(self) -> None:
        if self._owns_client:
            closing = asyncio.run_coroutine_threadsafe(self.client.aclose(), self._loop)
            try:
                closing.result(timeout=SHUTDOWN_TIMEOUT_SECONDS)
            except (concurrent.futures.TimeoutError, httpx.HTTPError) as e:
                self.logger.warning(f"Error closing HTTP client: {e}")
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=SHUTDOWN_TIMEOUT_SECONDS)

        # Nothing runs these once the loop has stopped.
        with self._lock:
            stranded = list(self._pending)
        for future in stranded:
            future.cancel()
            self._settle(future)

        if not self._thread.is_alive():
            self._loop.close()
