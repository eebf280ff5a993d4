"""
UX insights over a project's touch events.

Each insight is computed from the same frame independently; a failure in one
is logged and the rest still come back. All of them are single passes over
the events.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping

import numpy as np
import pandas as pd

from ..core.logging import get_logger, log_error
from ..events import THUMB_ZONES
from ..utils import round2, round_half_up

logger = get_logger(__name__)

UNREACHABLE_TAP_RATE = 0.01
UNREACHABLE_LIMIT = 10

COLUMNS = ["x", "y", "viewport_w", "viewport_h", "thumb_zone", "mis_tap", "selector", "url"]


def events_frame(events: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Events as a frame; absent or malformed fields become NaN/None."""
    df = pd.DataFrame(list(events))
    for c in COLUMNS:
        if c not in df.columns:
            df[c] = None
    for c in ["x", "y", "viewport_w", "viewport_h"]:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    df["mis_tap"] = df["mis_tap"].map(lambda v: isinstance(v, (bool, np.bool_)) and bool(v))
    df["thumb_zone"] = df["thumb_zone"].where(df["thumb_zone"].isin(THUMB_ZONES), None)
    df["selector"] = df["selector"].map(lambda s: s if isinstance(s, str) and s else None)
    return df


def mis_tap_rate(df: pd.DataFrame) -> Dict[str, Any]:
    total = len(df)
    count = int(df["mis_tap"].sum())
    rate = round_half_up(100.0 * count / total)
    return {
        "type": "mis_tap_rate",
        "data": {"rate": rate, "count": count, "total": total},
        "score": round_half_up(100.0 * (1 - rate / 100.0)),
    }


def thumb_zone_distribution(df: pd.DataFrame) -> Dict[str, Any]:
    total = len(df)
    counts = df["thumb_zone"].value_counts()
    # rounded independently; the four need not add up to 100
    data = {zone: round_half_up(100.0 * int(counts.get(zone, 0)) / total) for zone in THUMB_ZONES}
    return {"type": "thumb_zone_distribution", "data": data}


def unreachable_ctas(df: pd.DataFrame) -> Dict[str, Any]:
    total = len(df)
    counts = df["selector"].dropna().value_counts(sort=False)
    rates = counts / total
    low = rates[rates < UNREACHABLE_TAP_RATE]
    ctas = [{"selector": sel, "tapRate": round2(rate * 100)} for sel, rate in low.items()]
    ctas.sort(key=lambda c: c["tapRate"])
    return {"type": "unreachable_ctas", "data": {"ctas": ctas[:UNREACHABLE_LIMIT]}}


def reachability_scores(df: pd.DataFrame) -> Dict[str, Any]:
    d = df.dropna(subset=["x", "y", "viewport_w", "viewport_h", "url"])
    x, y = d["x"].to_numpy(float), d["y"].to_numpy(float)
    w, h = d["viewport_w"].to_numpy(float), d["viewport_h"].to_numpy(float)
    # distance from the bottom-right corner, where a right thumb rests
    dist = np.hypot(x - w, y - h)
    max_dist = np.hypot(w, h)
    norm = np.divide(dist, max_dist, out=np.zeros_like(dist), where=max_dist > 0)
    avg = pd.Series(norm, index=d.index).groupby(d["url"], sort=False).mean()
    pages = [{"url": url, "score": round_half_up(100.0 * (1 - a))} for url, a in avg.items()]
    return {"type": "reachability_scores", "data": {"pages": pages}}


def scroll_comfort_score(df: pd.DataFrame) -> Dict[str, Any]:
    total = len(df)
    center_rate = float((df["thumb_zone"] == "center").sum()) / total
    mis_rate = float(df["mis_tap"].sum()) / total
    score = round_half_up(100.0 * (center_rate * 0.7 + (1 - mis_rate) * 0.3))
    return {"type": "scroll_comfort_score", "data": {"score": score}, "score": score}


INSIGHTS: List[Callable[[pd.DataFrame], Dict[str, Any]]] = [
    mis_tap_rate,
    thumb_zone_distribution,
    unreachable_ctas,
    reachability_scores,
    scroll_comfort_score,
]


def compute_insights(events: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    df = events_frame(events)
    if df.empty:
        return []
    out = []
    for fn in INSIGHTS:
        try:
            out.append(fn(df))
        except Exception as e:
            log_error(logger, f"insight {fn.__name__} failed", error=e,
                      extra={"insight": fn.__name__, "events": len(df)})
    return out
