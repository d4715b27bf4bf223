from __future__ import annotations

from pathlib import Path

import numpy as np

from .reporting import ensure_dir, write_json


def make_synthetic_coverage(
    n_bases: int,
    *,
    n_samples: int = 3,
    seed: int = 0,
    n_peaks: int = 8,
    peak_width: int = 200,
    background: float = 1.0,
    peak_height: float = 20.0,
) -> dict[str, np.ndarray]:
    """Per-base Poisson coverage with a few shared enriched blocks."""
    rng = np.random.default_rng(int(seed))
    n = int(n_bases)
    w = int(min(peak_width, n))

    lam = np.full(n, float(background), dtype=np.float64)
    for s in rng.integers(0, max(n - w, 1), size=int(n_peaks)):
        lam[s : s + w] = float(peak_height)

    return {
        f"sample{i + 1}": rng.poisson(lam).astype(np.int64)
        for i in range(int(n_samples))
    }


def write_bedgraph_from_coverage(chrom: str, y: np.ndarray, out_path: str | Path) -> None:
    """Write per-base coverage as a run-length bedGraph (zero runs are skipped)."""
    out_path = Path(out_path)
    ensure_dir(out_path.parent)

    y = np.asarray(y)
    if y.size == 0:
        out_path.write_text("")
        return

    change = np.flatnonzero(np.diff(y) != 0) + 1
    starts = np.concatenate([[0], change])
    ends = np.concatenate([change, [y.size]])

    lines = []
    for s, e in zip(starts, ends):
        v = y[s]
        if v == 0:
            continue
        lines.append(f"{chrom}\t{int(s)}\t{int(e)}\t{float(v):g}\n")

    # keep the chromosome length when the track ends with zero coverage
    if y.size and y[-1] == 0:
        lines.append(f"{chrom}\t{y.size - 1}\t{y.size}\t0\n")

    out_path.write_text("".join(lines))


def synth_dataset(
    out_dir: str | Path,
    *,
    n_bases: int = 10_000,
    n_samples: int = 3,
    chrom: str = "chr21",
    seed: int = 0,
) -> dict[str, Path]:
    if n_bases < 1:
        raise ValueError(f"n_bases must be positive; got {n_bases}")
    out_dir = ensure_dir(out_dir)

    coverage = make_synthetic_coverage(n_bases, n_samples=n_samples, seed=seed)

    paths: dict[str, Path] = {}
    for name, y in coverage.items():
        path = out_dir / f"{name}.bedgraph.tsv"
        write_bedgraph_from_coverage(chrom, y, path)
        paths[name] = path

    meta = {
        "chrom": chrom,
        "n_bases": int(n_bases),
        "samples": list(coverage),
        "seed": int(seed),
        "coverage_format": "bedGraph-like TSV (chrom,start,end,value)",
    }
    write_json(meta, out_dir / "meta.json")
    paths["meta"] = out_dir / "meta.json"

    return paths
