"""
Tap classification for the capture snippet.

Everything here is a pure function of its inputs except `detect_mis_tap`,
which reads and updates the caller-owned `TapMemory`.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from ..utils import round2, round_half_up

MIS_TAP_WINDOW_MS = 150
MIS_TAP_RADIUS_PX = 50.0
SELECTOR_MAX_DEPTH = 5


class ElementLike(Protocol):
    """The slice of a DOM element the selector builder needs."""

    id: Optional[str]
    tag_name: str
    classes: Sequence[str]
    parent: Optional["ElementLike"]
    children: Sequence["ElementLike"]


@dataclass(eq=False)
class DomNode:
    """Minimal element tree, e.g. rebuilt from a serialized DOM on the host side."""

    tag_name: str
    id: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    parent: Optional["DomNode"] = None
    children: List["DomNode"] = field(default_factory=list)

    def append(self, child: "DomNode") -> "DomNode":
        child.parent = self
        self.children.append(child)
        return child


@dataclass
class TapMemory:
    """Single-slot memory of the previous tap in one page session."""

    last_time_ms: Optional[float] = None
    last_x: float = 0.0
    last_y: float = 0.0


def thumb_zone(x: float, viewport_w: float) -> str:
    if not viewport_w or viewport_w <= 0:
        return "unknown"
    percent = 100.0 * x / viewport_w
    if percent < 33:
        return "left"
    if percent > 66:
        return "right"
    return "center"


def _segment(el: ElementLike) -> str:
    seg = el.tag_name.lower()
    classes = [c for c in (el.classes or ()) if c][:2]
    if classes:
        seg += "." + ".".join(classes)
    parent = el.parent
    if parent is not None:
        siblings = list(parent.children)
        if len(siblings) > 1:
            # identity, not equality: two identical <li> are still distinct siblings
            index = next(i for i, s in enumerate(siblings) if s is el)
            seg += f":nth-child({index + 1})"
    return seg


def selector_for(element: Optional[ElementLike]) -> Optional[str]:
    """
    Short CSS-like path for `element`: `#id` when it has one, otherwise up to
    five `tag.class1.class2:nth-child(n)` segments joined outermost first.
    Returns None for a missing element or an ancestry that cannot be walked.
    """
    if element is None:
        return None
    try:
        if element.id:
            return f"#{element.id}"
        path: List[str] = []
        current: Optional[ElementLike] = element
        while current is not None and current.tag_name.lower() != "body" and len(path) < SELECTOR_MAX_DEPTH:
            path.insert(0, _segment(current))
            current = current.parent
        return " > ".join(path) or None
    except (AttributeError, TypeError, ValueError, StopIteration):
        return None


def detect_mis_tap(
    memory: TapMemory,
    x: float,
    y: float,
    now_ms: float,
    window_ms: float = MIS_TAP_WINDOW_MS,
    radius_px: float = MIS_TAP_RADIUS_PX,
) -> bool:
    """True when this tap lands within `radius_px` and `window_ms` of the previous one.

    The memory always moves to the new tap, mis-tap or not.
    """
    is_mis_tap = False
    if memory.last_time_ms is not None and (now_ms - memory.last_time_ms) < window_ms:
        distance = math.hypot(x - memory.last_x, y - memory.last_y)
        is_mis_tap = distance < radius_px
    memory.last_time_ms = now_ms
    memory.last_x = x
    memory.last_y = y
    return is_mis_tap


def build_event(
    x: float,
    y: float,
    viewport_w: int,
    viewport_h: int,
    url: str,
    mis_tap: bool,
    pressure: Optional[float] = None,
    selector: Optional[str] = None,
) -> Dict:
    """Unpersisted event draft, shaped like the ingest payload."""
    return {
        "x": round_half_up(x),
        "y": round_half_up(y),
        "viewport_w": viewport_w,
        "viewport_h": viewport_h,
        "thumb_zone": thumb_zone(x, viewport_w),
        "mis_tap": mis_tap,
        # 0 is what devices without force sensing report
        "pressure": round2(pressure) if pressure else None,
        "selector": selector,
        "url": url,
    }
