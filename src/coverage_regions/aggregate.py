from __future__ import annotations

import numpy as np
import pandas as pd

from .errors import DataShapeError


def _region_slices(
    regions: pd.DataFrame, positions: np.ndarray, n_rows: int
) -> tuple[np.ndarray, np.ndarray]:
    """Row ranges [lo, hi) of the coverage table covered by each region."""
    pos = np.asarray(positions, dtype=np.int64)
    if pos.ndim != 1 or pos.size != n_rows:
        raise DataShapeError(f"Got {pos.size} positions for a coverage table with {n_rows} rows")

    starts = regions["start"].to_numpy(dtype=np.int64)
    ends = regions["end"].to_numpy(dtype=np.int64)
    if starts.size == 0:
        return starts, ends

    if (starts > ends).any():
        bad = regions.index[starts > ends][0]
        raise DataShapeError(f"Region {bad} has start > end")
    if pos.size == 0:
        raise DataShapeError(f"Cannot aggregate {starts.size} regions over an empty coverage track")
    outside = (starts < pos[0]) | (ends > pos[-1])
    if outside.any():
        bad = regions.index[outside][0]
        raise DataShapeError(
            f"Region {bad} ({int(regions.loc[bad, 'start'])}-{int(regions.loc[bad, 'end'])}) "
            f"lies outside the track span {int(pos[0])}-{int(pos[-1])}"
        )

    lo = np.searchsorted(pos, starts, side="left")
    hi = np.searchsorted(pos, ends, side="right")
    return lo, hi


def get_region_coverage(
    regions: pd.DataFrame, coverage: pd.DataFrame, positions: np.ndarray
) -> dict[int, pd.DataFrame]:
    """Per-base coverage inside each region.

    Args:
        regions: table with ``start``/``end`` columns (1-based, inclusive)
        coverage: per-base coverage rows, one column per sample
        positions: 1-based coordinate of each coverage row, strictly increasing

    Returns:
        region id -> sub-table of ``coverage`` (indexed by position)
    """
    lo, hi = _region_slices(regions, positions, len(coverage))
    pos = np.asarray(positions, dtype=np.int64)
    out: dict[int, pd.DataFrame] = {}
    for rid, a, b in zip(regions.index, lo, hi):
        block = coverage.iloc[a:b].copy()
        block.index = pd.Index(pos[a:b], name="position")
        out[rid] = block
    return out


def region_coverage_sums(
    regions: pd.DataFrame, coverage: pd.DataFrame, positions: np.ndarray
) -> np.ndarray:
    """Sum of each sample's coverage over each region.

    Rows of ``coverage`` that fall inside a region's span are summed; bases that are
    absent from ``coverage`` (filtered out) contribute nothing.

    Returns:
        sums: shape (n_regions, n_samples)
    """
    lo, hi = _region_slices(regions, positions, len(coverage))
    values = coverage.to_numpy()
    n_samples = values.shape[1]
    if lo.size == 0:
        return np.zeros((0, n_samples), dtype=np.result_type(values.dtype, np.int64))
    return np.vstack([values[a:b].sum(axis=0) for a, b in zip(lo, hi)])
