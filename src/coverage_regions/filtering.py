from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .coverage import CoverageTrack
from .errors import ConfigurationError, DataShapeError

logger = logging.getLogger(__name__)

FILTER_RULES = ("one", "mean")
DEFAULT_TARGET_SIZE = 80e6


@dataclass(frozen=True)
class FilteredCoverage:
    """Coverage restricted to the bases that passed a cutoff.

    coverage: retained rows (one column per sample), indexed by 1-based position
    position: boolean mask over the whole chromosome, True at retained bases
    mean_coverage: mean across samples at each retained base
    """

    coverage: pd.DataFrame
    position: np.ndarray
    mean_coverage: np.ndarray

    def __post_init__(self) -> None:
        mask = np.asarray(self.position)
        if mask.dtype != np.bool_ or mask.ndim != 1:
            raise DataShapeError("position must be a 1D boolean mask")
        n = int(mask.sum())
        if not (n == len(self.coverage) == len(self.mean_coverage)):
            raise DataShapeError(
                f"Filtered coverage is inconsistent: position selects {n} bases, "
                f"coverage has {len(self.coverage)} rows and mean_coverage has "
                f"{len(self.mean_coverage)} values"
            )

    @property
    def samples(self) -> list[str]:
        return [str(c) for c in self.coverage.columns]

    def genomic_positions(self) -> np.ndarray:
        return np.flatnonzero(self.position).astype(np.int64) + 1

    def as_track(self) -> CoverageTrack:
        """View the retained bases as a (masked) coverage track."""
        return CoverageTrack(coverage=self.coverage.reset_index(drop=True), position=self.position)


def check_filter_rule(filter: str) -> str:
    if filter not in FILTER_RULES:
        raise ConfigurationError(f"Unknown filter={filter!r}; expected one of {FILTER_RULES}")
    return filter


def normalization_factors(
    samples: Sequence[str],
    total_mapped: Mapping[str, float],
    target_size: float = DEFAULT_TARGET_SIZE,
) -> np.ndarray:
    """Per-sample library size factors ``target_size / total_mapped[sample]``."""
    if target_size <= 0:
        raise ConfigurationError(f"target_size must be positive; got {target_size}")
    missing = [s for s in samples if s not in total_mapped]
    if missing:
        raise ConfigurationError(f"total_mapped has no entry for samples: {missing}")
    counts = np.asarray([float(total_mapped[s]) for s in samples], dtype=np.float64)
    if (counts <= 0).any():
        raise ConfigurationError("total_mapped counts must be positive")
    return float(target_size) / counts


def filter_data(
    track: CoverageTrack,
    cutoff: float | None,
    *,
    filter: str = "one",
    total_mapped: Mapping[str, float] | None = None,
    target_size: float = DEFAULT_TARGET_SIZE,
) -> FilteredCoverage:
    """Keep the bases whose coverage passes ``cutoff``.

    Args:
        track: per-base coverage, optionally already restricted by a position mask
        cutoff: bases must be strictly greater than this value
        filter: "one" (at least one sample passes) or "mean" (the mean across samples passes)
        total_mapped: if given, each sample is first rescaled by target_size / total_mapped[sample]
        target_size: library size the coverage is scaled to

    Returns:
        FilteredCoverage with the (scaled) retained coverage and its mean across samples.
    """

    if cutoff is None:
        raise ConfigurationError("cutoff must be specified")
    check_filter_rule(filter)

    values = track.coverage.to_numpy()
    if total_mapped is not None:
        values = values * normalization_factors(track.samples, total_mapped, target_size)

    mean = values.mean(axis=1)
    if filter == "one":
        keep = (values > cutoff).any(axis=1)
    else:
        keep = mean > cutoff

    positions = track.genomic_positions()
    if track.position is None:
        mask = keep.copy()
    else:
        mask = np.zeros(track.n_bases, dtype=bool)
        mask[positions[keep] - 1] = True

    coverage = pd.DataFrame(
        values[keep],
        columns=track.coverage.columns,
        index=pd.Index(positions[keep], name="position"),
    )

    n_before = len(values)
    n_after = int(keep.sum())
    removed = 100.0 * (n_before - n_after) / n_before if n_before else 0.0
    logger.info(
        "filter_data: originally there were %d rows, now there are %d rows (%.2f%% filtered)",
        n_before,
        n_after,
        removed,
    )

    return FilteredCoverage(coverage=coverage, position=mask, mean_coverage=mean[keep])
