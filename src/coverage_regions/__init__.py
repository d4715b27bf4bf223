"""Candidate regions and region coverage matrices from per-base coverage.

Per chromosome: filter bases by a coverage cutoff, segment the retained bases into
regions (tolerating small gaps), cluster nearby regions, and sum each sample's
coverage over every region.
"""

from .aggregate import get_region_coverage, region_coverage_sums
from .coverage import CoverageTrack, load_bedgraph_coverage
from .errors import ConfigurationError, DataShapeError, RegionMatrixError, WorkerFailure
from .filtering import FilteredCoverage, filter_data
from .pipeline import ChromosomeResult, RegionMatrixParams, region_matrix, region_matrix_by_chrom
from .regions import cluster_regions, find_regions

__all__ = [
    "ChromosomeResult",
    "ConfigurationError",
    "CoverageTrack",
    "DataShapeError",
    "FilteredCoverage",
    "RegionMatrixError",
    "RegionMatrixParams",
    "WorkerFailure",
    "cluster_regions",
    "filter_data",
    "find_regions",
    "get_region_coverage",
    "load_bedgraph_coverage",
    "region_coverage_sums",
    "region_matrix",
    "region_matrix_by_chrom",
]
