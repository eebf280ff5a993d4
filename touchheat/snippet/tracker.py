"""Wires the classifier and batcher to a host page session."""
from __future__ import annotations

import time
from typing import Any, Dict, Optional

from ..core.logging import get_logger
from .batcher import EventBatcher, Scheduler, select_transport
from .classifier import ElementLike, TapMemory, build_event, detect_mis_tap, selector_for
from .config import SnippetConfig

logger = get_logger(__name__)


class TouchTracker:
    """One page session: classify each tap and queue it for delivery."""

    def __init__(self, config: SnippetConfig, batcher: EventBatcher):
        self.config = config
        self.batcher = batcher
        self.memory = TapMemory()

    def handle_tap(
        self,
        x: float,
        y: float,
        viewport_w: int,
        viewport_h: int,
        url: str,
        target: Optional[ElementLike] = None,
        pressure: Optional[float] = None,
        now_ms: Optional[float] = None,
    ) -> Dict:
        """Entry point for both touch-start and click interactions."""
        if now_ms is None:
            now_ms = time.monotonic() * 1000.0
        selector = selector_for(target)
        mis_tap = detect_mis_tap(self.memory, x, y, now_ms, window_ms=self.config.mis_tap_window_ms)
        event = build_event(x, y, viewport_w, viewport_h, url, mis_tap, pressure=pressure, selector=selector)
        self.batcher.push(event)
        return event

    def unload(self) -> int:
        return self.batcher.unload()

    async def aclose(self) -> None:
        """Wait for in-flight requests and release the HTTP client, if any."""
        for transport in {self.batcher.transport, self.batcher.unload_transport}:
            close = getattr(transport, "aclose", None)
            if close is not None:
                await close()


def init_tracker(
    project_id: Optional[str],
    script_src: Optional[str],
    scheduler: Scheduler,
    host: Any = None,
    client: Any = None,
) -> Optional[TouchTracker]:
    """
    Build a tracker for a page. `host` may expose `send_beacon(url, body)`;
    when it does, every flush goes through it, otherwise a keep-alive
    request is used. Returns None (tracking disabled) without a project id.
    """
    if not project_id:
        logger.warning("TouchHeat: missing data-project attribute, tracking disabled")
        return None
    config = SnippetConfig.from_script(project_id, script_src)
    transport = select_transport(getattr(host, "send_beacon", None), client)
    batcher = EventBatcher(config, transport, scheduler)
    return TouchTracker(config, batcher)
