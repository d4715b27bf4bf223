from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pandas as pd

from .coverage import load_bedgraph_coverage
from .filtering import DEFAULT_TARGET_SIZE, FILTER_RULES
from .pipeline import region_matrix
from .reporting import write_json, write_region_matrix
from .synth import synth_dataset

logger = logging.getLogger(__name__)


def _sample_path(value: str) -> tuple[str, str]:
    name, sep, path = value.partition("=")
    if not sep or not name or not path:
        raise argparse.ArgumentTypeError(f"expected NAME=PATH, got {value!r}")
    return name, path


def _read_total_mapped(path: str | Path) -> dict[str, float]:
    df = pd.read_csv(path, sep="\t", header=None, names=["sample", "total_mapped"], comment="#")
    if df["sample"].duplicated().any():
        raise ValueError(f"Duplicate samples in {path}")
    return {str(s): float(n) for s, n in zip(df["sample"], df["total_mapped"])}


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="coverage-regions")
    p.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    ps = sub.add_parser("synth", help="Generate small synthetic per-sample coverage bedGraphs")
    ps.add_argument("--out_dir", type=str, default="data/synthetic")
    ps.add_argument("--n_bases", type=int, default=10_000)
    ps.add_argument("--n_samples", type=int, default=3)
    ps.add_argument("--chrom", type=str, default="chr21")
    ps.add_argument("--seed", type=int, default=0)

    pr = sub.add_parser("run", help="Find candidate regions and build the region coverage matrix")
    pr.add_argument(
        "--coverage",
        type=_sample_path,
        action="append",
        required=True,
        metavar="NAME=PATH",
        help="Per-base coverage bedGraph of one sample (repeat for each sample)",
    )
    pr.add_argument("--out_dir", type=str, required=True)
    pr.add_argument("--read_length", type=float, required=True, help="Read width L")
    pr.add_argument("--cutoff", type=float, default=5.0)
    pr.add_argument("--filter", type=str, default="mean", choices=list(FILTER_RULES))
    pr.add_argument("--max_region_gap", type=int, default=0)
    pr.add_argument("--max_cluster_gap", type=int, default=300)
    pr.add_argument(
        "--total_mapped",
        type=str,
        default=None,
        help="TSV of sample<TAB>mapped reads; scales coverage to --target_size reads",
    )
    pr.add_argument("--target_size", type=float, default=DEFAULT_TARGET_SIZE)
    pr.add_argument("--n_jobs", type=int, default=1)

    return p


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.cmd == "synth":
        paths = synth_dataset(
            out_dir=args.out_dir,
            n_bases=int(args.n_bases),
            n_samples=int(args.n_samples),
            chrom=str(args.chrom),
            seed=int(args.seed),
        )
        print("Wrote:")
        for k, v in paths.items():
            print(f"  {k}: {Path(v).as_posix()}")
        return

    if args.cmd == "run":
        samples = dict(args.coverage)
        if len(samples) != len(args.coverage):
            raise SystemExit("Each --coverage sample name must be unique")

        full_cov = load_bedgraph_coverage(samples)
        total_mapped = _read_total_mapped(args.total_mapped) if args.total_mapped else None

        results = region_matrix(
            full_cov,
            read_length=float(args.read_length),
            cutoff=float(args.cutoff),
            filter=str(args.filter),
            max_region_gap=int(args.max_region_gap),
            max_cluster_gap=int(args.max_cluster_gap),
            total_mapped=total_mapped,
            target_size=float(args.target_size),
            n_jobs=int(args.n_jobs),
        )

        out = write_region_matrix(results, args.out_dir)
        meta = {
            "coverage": {k: str(v) for k, v in samples.items()},
            "chromosomes": list(results),
            "n_regions": {chrom: int(len(r.regions)) for chrom, r in results.items()},
            "read_length": float(args.read_length),
            "cutoff": float(args.cutoff),
            "filter": str(args.filter),
            "max_region_gap": int(args.max_region_gap),
            "max_cluster_gap": int(args.max_cluster_gap),
            "total_mapped": total_mapped,
            "target_size": float(args.target_size),
        }
        meta_path = Path(args.out_dir) / "meta.json"
        write_json(meta, meta_path)

        logger.info("Found %d regions", sum(meta["n_regions"].values()))
        print("Wrote outputs to:", Path(args.out_dir).as_posix())
        for k, v in {**out, "meta": meta_path}.items():
            print(f"  {k}: {v.as_posix()}")
        return

    raise SystemExit(f"Unknown command: {args.cmd}")
