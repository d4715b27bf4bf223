from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from .errors import DataShapeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoverageTrack:
    """Per-base coverage for one chromosome, one column per sample.

    If ``position`` is given it is a boolean mask over the whole chromosome and
    ``coverage`` only holds the rows where the mask is True.
    """

    coverage: pd.DataFrame
    position: np.ndarray | None = None

    def __post_init__(self) -> None:
        if self.coverage.shape[1] == 0:
            raise DataShapeError("Coverage track has no sample columns")
        if self.position is not None:
            mask = np.asarray(self.position)
            if mask.dtype != np.bool_ or mask.ndim != 1:
                raise DataShapeError("position must be a 1D boolean mask")
            if int(mask.sum()) != len(self.coverage):
                raise DataShapeError(
                    f"position mask selects {int(mask.sum())} bases but coverage has "
                    f"{len(self.coverage)} rows"
                )

    @classmethod
    def from_samples(
        cls,
        samples: Mapping[str, Sequence[float] | np.ndarray],
        *,
        position: np.ndarray | None = None,
    ) -> "CoverageTrack":
        """Build a track from per-sample sequences of equal length."""
        if not samples:
            raise DataShapeError("At least one sample is required")
        names = [str(name) for name in samples]
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise DataShapeError(f"Sample names are not unique: {dupes}")
        lengths = {name: len(values) for name, values in samples.items()}
        if len(set(lengths.values())) != 1:
            raise DataShapeError(f"Sample coverage lengths differ: {lengths}")
        df = pd.DataFrame({str(name): np.asarray(values) for name, values in samples.items()})
        return cls(coverage=df, position=position)

    @property
    def samples(self) -> list[str]:
        return [str(c) for c in self.coverage.columns]

    @property
    def n_bases(self) -> int:
        """Chromosome length covered by the track (unmasked)."""
        if self.position is None:
            return len(self.coverage)
        return int(len(self.position))

    def genomic_positions(self) -> np.ndarray:
        """1-based coordinates of the coverage rows, strictly increasing."""
        if self.position is None:
            return np.arange(1, len(self.coverage) + 1, dtype=np.int64)
        return np.flatnonzero(self.position).astype(np.int64) + 1


def read_bedgraph(path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(
        path,
        sep="\t",
        header=None,
        names=["chrom", "start", "end", "value"],
        dtype={"chrom": str, "start": np.int64, "end": np.int64, "value": np.float64},
        comment="#",
    )
    if df.empty:
        raise ValueError(f"Coverage file is empty: {path}")
    if (df["end"] <= df["start"]).any():
        bad = df.index[df["end"] <= df["start"]][0]
        raise ValueError(f"Invalid interval with end<=start at row {bad} of {path}")
    if (df["start"] < 0).any():
        raise ValueError(f"Negative start coordinate in {path}")
    return df


def load_bedgraph_coverage(samples: Mapping[str, str | Path]) -> dict[str, CoverageTrack]:
    """Expand per-sample bedGraph files into per-base coverage tracks.

    Args:
        samples: sample name -> bedGraph path (chrom, start, end, value; 0-based half-open)

    Returns:
        chromosome -> CoverageTrack with one column per sample, in the given sample order.
        Each chromosome spans up to the largest interval end seen in any sample;
        bases without an interval get coverage 0.
    """

    if not samples:
        raise ValueError("No coverage files given")

    frames = {str(name): read_bedgraph(path) for name, path in samples.items()}

    chroms: list[str] = []
    lengths: dict[str, int] = {}
    for df in frames.values():
        for chrom, end in df.groupby("chrom", sort=False)["end"].max().items():
            if chrom not in lengths:
                chroms.append(chrom)
            lengths[chrom] = max(lengths.get(chrom, 0), int(end))

    tracks: dict[str, CoverageTrack] = {}
    for chrom in chroms:
        n = lengths[chrom]
        columns = {}
        for name, df in frames.items():
            y = np.zeros(n, dtype=np.float64)
            rows = df[df["chrom"] == chrom]
            for s, e, v in zip(rows["start"].to_numpy(), rows["end"].to_numpy(), rows["value"].to_numpy()):
                y[int(s) : int(e)] = float(v)
            columns[name] = y
        tracks[chrom] = CoverageTrack.from_samples(columns)
        logger.info("Loaded %s: %d bases x %d samples", chrom, n, len(columns))

    return tracks
