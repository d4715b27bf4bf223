from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd

from .errors import ConfigurationError, DataShapeError

logger = logging.getLogger(__name__)

REGION_COLUMNS = [
    "chrom",
    "start",
    "end",
    "width",
    "value",
    "area",
    "index_start",
    "index_end",
    "cluster",
    "cluster_length",
]

_REGION_DTYPES = {
    "chrom": object,
    "start": np.int64,
    "end": np.int64,
    "width": np.int64,
    "value": np.float64,
    "area": np.float64,
    "index_start": np.int64,
    "index_end": np.int64,
    "cluster": np.int64,
    "cluster_length": np.int64,
}


def check_gap(name: str, value: int) -> int:
    try:
        valid = not isinstance(value, bool) and int(value) == value and value >= 0
    except (TypeError, ValueError):
        valid = False
    if not valid:
        raise ConfigurationError(f"{name} must be a non-negative integer; got {value!r}")
    return int(value)


def _cutoff_bounds(cutoff: float | Sequence[float]) -> tuple[float, float]:
    c = np.atleast_1d(np.asarray(cutoff, dtype=np.float64))
    if c.size == 1:
        lo, hi = sorted((-float(c[0]), float(c[0])))
    elif c.size == 2:
        lo, hi = sorted((float(c[0]), float(c[1])))
    else:
        raise ConfigurationError(f"cutoff must be a scalar or a (lower, upper) pair; got {cutoff!r}")
    return lo, hi


def _region_index(n: int) -> pd.RangeIndex:
    return pd.RangeIndex(1, n + 1, name="region")


def empty_regions() -> pd.DataFrame:
    df = pd.DataFrame({c: pd.Series(dtype=t) for c, t in _REGION_DTYPES.items()})
    df.index = _region_index(0)
    return df


def cluster_regions(starts: np.ndarray, ends: np.ndarray, max_cluster_gap: int) -> np.ndarray:
    """Cluster ids (1..K) for regions sorted by start.

    A region joins the previous cluster when its start is at most
    ``max_cluster_gap`` bp after the previous region's end.
    """
    max_cluster_gap = check_gap("max_cluster_gap", max_cluster_gap)
    starts = np.asarray(starts, dtype=np.int64)
    ends = np.asarray(ends, dtype=np.int64)
    if starts.size == 0:
        return np.zeros(0, dtype=np.int64)
    if (np.diff(starts) < 0).any():
        raise DataShapeError("Regions must be sorted by start before clustering")
    new_cluster = np.concatenate([[True], (starts[1:] - ends[:-1]) > max_cluster_gap])
    return np.cumsum(new_cluster).astype(np.int64)


def find_regions(
    positions: Sequence[int] | np.ndarray,
    fstats: Sequence[float] | np.ndarray,
    chrom: str,
    *,
    cutoff: float | Sequence[float] = 0.0,
    max_region_gap: int = 0,
    max_cluster_gap: int = 300,
) -> pd.DataFrame:
    """Segment a per-base statistic into candidate regions and cluster them.

    Positions whose statistic is above the upper cutoff form "up" regions and those
    below the lower cutoff form "down" regions; everything else is treated as missing.
    Consecutive kept positions stay in one region while fewer than
    ``max_region_gap + 1`` bp separate them and the direction does not change.

    Args:
        positions: strictly increasing 1-based coordinates
        fstats: statistic at each position (same length as positions)
        chrom: chromosome label copied into the result
        cutoff: scalar c (meaning -c / c) or a (lower, upper) pair
        max_region_gap: missing bases tolerated inside a region
        max_cluster_gap: maximum distance between regions of the same cluster

    Returns:
        DataFrame indexed 1..N (``region``) with columns REGION_COLUMNS, ordered by start.
    """

    max_region_gap = check_gap("max_region_gap", max_region_gap)
    max_cluster_gap = check_gap("max_cluster_gap", max_cluster_gap)
    lo, hi = _cutoff_bounds(cutoff)

    pos = np.asarray(positions, dtype=np.int64)
    stats = np.asarray(fstats, dtype=np.float64)
    if pos.ndim != 1 or pos.shape != stats.shape:
        raise DataShapeError(
            f"positions ({pos.shape}) and fstats ({stats.shape}) must be 1D with equal length"
        )
    if pos.size > 1 and (np.diff(pos) <= 0).any():
        raise DataShapeError("positions must be strictly increasing")

    direction = np.where(stats > hi, 1, np.where(stats < lo, -1, 0))
    kept = np.flatnonzero(direction != 0)
    if kept.size == 0:
        logger.info("find_regions: no positions pass the cutoff on %s", chrom)
        return empty_regions()

    p = pos[kept]
    d = direction[kept]
    s = stats[kept]

    breaks = np.flatnonzero((np.diff(p) > max_region_gap + 1) | (np.diff(d) != 0)) + 1
    first = np.concatenate([[0], breaks])
    last = np.concatenate([breaks - 1, [kept.size - 1]])

    sums = np.add.reduceat(s, first)
    starts = p[first]
    ends = p[last]

    df = pd.DataFrame(
        {
            "chrom": str(chrom),
            "start": starts,
            "end": ends,
            "width": ends - starts + 1,
            "value": sums / (last - first + 1),
            "area": np.abs(sums),
            "index_start": kept[first],
            "index_end": kept[last],
            "cluster": cluster_regions(starts, ends, max_cluster_gap),
        }
    )
    by_cluster = df.groupby("cluster")
    df["cluster_length"] = by_cluster["end"].transform("max") - by_cluster["start"].transform("min") + 1
    df.index = _region_index(len(df))

    logger.info(
        "find_regions: identified %d regions in %d clusters on %s",
        len(df),
        int(df["cluster"].iloc[-1]),
        chrom,
    )
    return df[REGION_COLUMNS]
