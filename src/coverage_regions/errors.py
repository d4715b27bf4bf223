from __future__ import annotations


class RegionMatrixError(Exception):
    """Base class for errors raised by coverage_regions."""


class ConfigurationError(RegionMatrixError, ValueError):
    """Invalid arguments, detected before any chromosome is processed."""


class DataShapeError(RegionMatrixError, ValueError):
    """Coverage data with an inconsistent shape for one chromosome."""


class WorkerFailure(RegionMatrixError, RuntimeError):
    """A per-chromosome task failed.

    Both fields are stored in ``args`` so the exception pickles cleanly when it
    is raised inside a process worker.
    """

    def __init__(self, chrom: str, reason: str):
        super().__init__(chrom, reason)
        self.chrom = chrom
        self.reason = reason

    def __str__(self) -> str:
        return f"Processing chromosome {self.chrom!r} failed: {self.reason}"
