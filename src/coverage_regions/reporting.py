from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pandas as pd

from .pipeline import ChromosomeResult, stack_coverage_matrices
from .regions import REGION_COLUMNS


def ensure_dir(p: str | Path) -> Path:
    path = Path(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(obj: Any, path: str | Path) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True))


def write_region_matrix(results: Mapping[str, ChromosomeResult], out_dir: str | Path) -> dict[str, Path]:
    """Write regions and coverage matrices of all chromosomes as TSV files.

    Both tables carry ``chrom`` and ``region`` columns so rows can be joined.
    """
    out_dir = ensure_dir(out_dir)

    frames = [r.regions.reset_index() for r in results.values()]
    if frames:
        regions = pd.concat(frames, ignore_index=True)
    else:
        regions = pd.DataFrame(columns=["region", *REGION_COLUMNS])
    regions = regions[["chrom", "region", *[c for c in REGION_COLUMNS if c != "chrom"]]]

    matrix = stack_coverage_matrices(results).reset_index()

    regions_path = out_dir / "regions.tsv"
    matrix_path = out_dir / "coverage_matrix.tsv"
    regions.to_csv(regions_path, sep="\t", index=False)
    matrix.to_csv(matrix_path, sep="\t", index=False)

    return {"regions": regions_path, "coverage_matrix": matrix_path}
