from __future__ import annotations

import logging
import numbers
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .aggregate import region_coverage_sums
from .coverage import CoverageTrack
from .errors import ConfigurationError
from .filtering import DEFAULT_TARGET_SIZE, FilteredCoverage, check_filter_rule, filter_data
from .parallel import map_chromosomes
from .regions import check_gap, find_regions

logger = logging.getLogger(__name__)


def _check_positive(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not np.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive finite number; got {value!r}")
    return float(value)


@dataclass(frozen=True)
class RegionMatrixParams:
    read_length: float
    cutoff: float | None = 5.0
    filter: str = "mean"
    max_region_gap: int = 0
    max_cluster_gap: int = 300
    total_mapped: Mapping[str, float] | None = None
    target_size: float = DEFAULT_TARGET_SIZE

    def validate(self) -> "RegionMatrixParams":
        if self.cutoff is None:
            raise ConfigurationError("cutoff must be specified")
        check_filter_rule(self.filter)
        region_gap = check_gap("max_region_gap", self.max_region_gap)
        cluster_gap = check_gap("max_cluster_gap", self.max_cluster_gap)
        if cluster_gap < region_gap:
            raise ConfigurationError(
                f"max_cluster_gap ({cluster_gap}) must be >= max_region_gap ({region_gap})"
            )
        _check_positive("read_length", self.read_length)
        _check_positive("target_size", self.target_size)
        return self


@dataclass(frozen=True)
class ChromosomeResult:
    regions: pd.DataFrame
    coverage_matrix: pd.DataFrame


def region_matrix_by_chrom(
    chrom: str,
    cov_info: CoverageTrack | FilteredCoverage,
    params: RegionMatrixParams,
    *,
    run_filter: bool = True,
) -> ChromosomeResult:
    """Regions and their per-sample coverage matrix for one chromosome."""
    logger.info("region_matrix: processing %s", chrom)

    if run_filter:
        track = cov_info.as_track() if isinstance(cov_info, FilteredCoverage) else cov_info
        filt = filter_data(
            track,
            params.cutoff,
            filter=params.filter,
            total_mapped=params.total_mapped,
            target_size=params.target_size,
        )
    else:
        if not isinstance(cov_info, FilteredCoverage):
            raise ConfigurationError(f"{chrom}: expected filtered coverage when run_filter=False")
        filt = cov_info

    positions = filt.genomic_positions()
    regions = find_regions(
        positions,
        filt.mean_coverage,
        chrom,
        cutoff=0,
        max_region_gap=params.max_region_gap,
        max_cluster_gap=params.max_cluster_gap,
    )

    sums = region_coverage_sums(regions, filt.coverage, positions)
    coverage_matrix = pd.DataFrame(
        sums / float(params.read_length),
        index=regions.index,
        columns=filt.coverage.columns,
    )
    return ChromosomeResult(regions=regions, coverage_matrix=coverage_matrix)


def _preflight(
    full_cov: Mapping[str, CoverageTrack | FilteredCoverage],
    params: RegionMatrixParams,
    run_filter: bool,
) -> None:
    if not full_cov:
        raise ConfigurationError("full_cov must contain at least one chromosome")
    unnamed = [k for k in full_cov if not isinstance(k, str) or not k]
    if unnamed:
        raise ConfigurationError(f"All chromosomes must be named; got keys {unnamed!r}")

    if run_filter:
        bad = [
            k for k, v in full_cov.items() if not isinstance(v, (CoverageTrack, FilteredCoverage))
        ]
        if bad:
            raise ConfigurationError(f"Expected coverage tracks for chromosomes: {bad}")
    else:
        bad = [k for k, v in full_cov.items() if not isinstance(v, FilteredCoverage)]
        if bad:
            raise ConfigurationError(
                "When run_filter=False, every chromosome must already be filtered "
                f"(FilteredCoverage from filter_data); not filtered: {bad}"
            )

    if params.total_mapped is not None and not run_filter:
        logger.warning("total_mapped is ignored when run_filter=False; coverage is used as given")
    elif params.total_mapped is not None:
        samples = {s for v in full_cov.values() for s in v.samples}
        missing = sorted(samples - set(params.total_mapped))
        if missing:
            raise ConfigurationError(f"total_mapped has no entry for samples: {missing}")


def region_matrix(
    full_cov: Mapping[str, CoverageTrack | FilteredCoverage],
    *,
    read_length: float,
    cutoff: float | None = 5.0,
    filter: str = "mean",
    max_region_gap: int = 0,
    max_cluster_gap: int = 300,
    total_mapped: Mapping[str, float] | None = None,
    target_size: float = DEFAULT_TARGET_SIZE,
    run_filter: bool = True,
    n_jobs: int = 1,
    backend: str | None = None,
) -> dict[str, ChromosomeResult]:
    """Identify candidate regions by a coverage cutoff and build a coverage matrix.

    Each chromosome is filtered (unless ``run_filter`` is False, in which case the
    input must come from ``filter_data``), segmented into regions, and the filtered
    per-sample coverage is summed over every region and divided by ``read_length``.

    Args:
        full_cov: chromosome -> CoverageTrack (or FilteredCoverage)
        read_length: read width L used to turn base-pair sums into read counts
        cutoff: per-base cutoff passed to filter_data; must not be None
        filter: "one" or "mean"
        max_region_gap: missing bases tolerated inside a region
        max_cluster_gap: maximum distance between regions of one cluster (>= max_region_gap)
        total_mapped: sample -> mapped reads; scales coverage to ``target_size`` reads
        target_size: library size used with ``total_mapped``
        run_filter: whether to run filter_data on each chromosome
        n_jobs: number of workers (at most one per chromosome is used)
        backend: joblib backend; None uses joblib's default

    Returns:
        chromosome -> ChromosomeResult(regions, coverage_matrix)
    """

    params = RegionMatrixParams(
        read_length=read_length,
        cutoff=cutoff,
        filter=filter,
        max_region_gap=max_region_gap,
        max_cluster_gap=max_cluster_gap,
        total_mapped=dict(total_mapped) if total_mapped is not None else None,
        target_size=target_size,
    ).validate()
    _preflight(full_cov, params, run_filter)

    return map_chromosomes(
        region_matrix_by_chrom,
        full_cov,
        n_jobs=n_jobs,
        backend=backend,
        params=params,
        run_filter=bool(run_filter),
    )


def stack_coverage_matrices(results: Mapping[str, ChromosomeResult]) -> pd.DataFrame:
    """Concatenate per-chromosome matrices, indexed by (chrom, region)."""
    frames = {chrom: r.coverage_matrix for chrom, r in results.items()}
    if not frames:
        return pd.DataFrame()
    out = pd.concat(frames, names=["chrom", "region"])
    return out.astype(np.float64)
