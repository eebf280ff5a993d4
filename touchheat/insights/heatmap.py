from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

import numpy as np
import pandas as pd

BUCKET_SIZE = 20


def cluster(events: Iterable[Mapping[str, Any]], bucket_size: int = BUCKET_SIZE) -> Dict[str, Any]:
    """
    Count taps per `bucket_size` square cell, keyed by the cell's corner
    (floor(x/size)*size, floor(y/size)*size). Intensity is count/maxCount.
    Points come out in order of first appearance.
    """
    df = pd.DataFrame(list(events), columns=["x", "y"])
    for c in ["x", "y"]:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    df = df.dropna(subset=["x", "y"])
    if df.empty:
        return {"points": [], "maxCount": 0}

    bx = (np.floor(df["x"].to_numpy(float) / bucket_size) * bucket_size).astype(int)
    by = (np.floor(df["y"].to_numpy(float) / bucket_size) * bucket_size).astype(int)
    counts = pd.DataFrame({"bx": bx, "by": by}).groupby(["bx", "by"], sort=False).size()

    max_count = int(counts.max())
    points: List[Dict[str, Any]] = [
        {
            "x": int(x),
            "y": int(y),
            "count": int(n),
            "intensity": n / max_count if max_count > 0 else 0.0,
        }
        for (x, y), n in counts.items()
    ]
    return {"points": points, "maxCount": max_count}
