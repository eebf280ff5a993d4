"""
Client-side event batching and delivery.

The batcher runs on one cooperative loop: taps, timers and delivery
callbacks interleave but never run in parallel, so the in-flight gate is a
plain boolean. Delivery is best effort; a lost batch is not retried.
"""
from __future__ import annotations

import asyncio
import json
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol, Set

import httpx

from ..core.logging import get_logger
from .config import SnippetConfig

logger = get_logger(__name__)

BeaconFn = Callable[[str, bytes], Any]


class Scheduler(Protocol):
    """Anything with asyncio's `call_later`."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Any: ...


class Transport(Protocol):
    # unload-safe transports hand the payload off and return at once
    unload_safe: bool

    def send(self, endpoint: str, body: bytes, on_complete: Callable[[], None]) -> None: ...


class BeaconTransport:
    """Fire-and-forget delivery through a host-provided beacon."""

    unload_safe = True

    def __init__(self, beacon: BeaconFn):
        self._beacon = beacon

    def send(self, endpoint: str, body: bytes, on_complete: Callable[[], None]) -> None:
        try:
            queued = self._beacon(endpoint, body)
        except Exception as e:  # host beacon errors must not reach the page
            logger.debug("beacon failed, batch dropped: %r", e)
            return
        if queued is False:
            logger.debug("beacon refused %d bytes", len(body))


class FetchTransport:
    """Keep-alive POST on the running event loop; failures are dropped."""

    unload_safe = False

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(timeout=5.0)
        self._pending: Set[asyncio.Task] = set()

    def send(self, endpoint: str, body: bytes, on_complete: Callable[[], None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            logger.debug("no running loop, batch dropped: %r", e)
            on_complete()
            return
        task = loop.create_task(self._post(endpoint, body, on_complete))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _post(self, endpoint: str, body: bytes, on_complete: Callable[[], None]) -> None:
        try:
            await self._client.post(endpoint, content=body, headers={"Content-Type": "application/json"})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("delivery failed, batch dropped: %r", e)
        finally:
            on_complete()

    async def aclose(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._client.aclose()


def select_transport(
    send_beacon: Optional[BeaconFn] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Transport:
    """Beacon when the host has one, keep-alive fetch otherwise."""
    if callable(send_beacon):
        return BeaconTransport(send_beacon)
    return FetchTransport(client)


class BatcherState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"


class EventBatcher:
    def __init__(
        self,
        config: SnippetConfig,
        transport: Transport,
        scheduler: Scheduler,
        unload_transport: Optional[Transport] = None,
    ):
        self.config = config
        self.transport = transport
        self.unload_transport = unload_transport if unload_transport is not None else transport
        self.scheduler = scheduler
        self.queue: Deque[Dict] = deque()
        self._sending = False
        self._timer: Any = None

    @property
    def state(self) -> BatcherState:
        if self._sending:
            return BatcherState.FLUSHING
        if self.queue:
            return BatcherState.ACCUMULATING
        return BatcherState.IDLE

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    def push(self, event: Dict) -> None:
        self.queue.append(event)
        if len(self.queue) >= self.config.flush_threshold:
            self.flush()
        else:
            self._schedule()

    def _schedule(self) -> None:
        if self._timer is None:
            self._timer = self.scheduler.call_later(self.config.throttle_ms / 1000.0, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self.flush()

    def _take(self) -> List[Dict]:
        n = min(self.config.max_batch, len(self.queue))
        return [self.queue.popleft() for _ in range(n)]

    def _encode(self, events: List[Dict]) -> bytes:
        return json.dumps({"project_id": self.config.project_id, "events": events}).encode("utf-8")

    def flush(self) -> bool:
        """Send the oldest slice of the queue. No-op while a send is in flight."""
        if self._sending or not self.queue:
            return False
        self._sending = True
        batch = self._take()
        try:
            self.transport.send(self.config.endpoint, self._encode(batch), self._on_delivered)
        except Exception as e:  # delivery errors must not reach the page
            logger.debug("send failed, %d events dropped: %r", len(batch), e)
            self._on_delivered()
            return True
        if self.transport.unload_safe:
            self._sending = False
        return True

    def _on_delivered(self) -> None:
        self._sending = False
        if self.queue:
            self._schedule()

    def unload(self) -> int:
        """Page teardown: push out whatever is left. Returns batches handed off."""
        if not self.unload_transport.unload_safe:
            return 1 if self.flush() else 0
        sent = 0
        while self.queue:
            batch = self._take()
            try:
                self.unload_transport.send(self.config.endpoint, self._encode(batch), lambda: None)
            except Exception as e:
                logger.debug("unload send failed, %d events dropped: %r", len(batch), e)
                continue
            sent += 1
        return sent
