from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from joblib import Parallel, delayed

from .errors import ConfigurationError, WorkerFailure

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_R = TypeVar("_R")


def _run_one(
    func: Callable[..., _R], chrom: str, item: Any, shared: dict[str, Any]
) -> tuple[str, _R]:
    launched_at = time.time()
    try:
        result = func(chrom, item, **shared)
    except Exception as e:
        raise WorkerFailure(chrom, f"{type(e).__name__}: {e}") from e
    logger.info("Finished %s in %.2fs", chrom, time.time() - launched_at)
    return chrom, result


def map_chromosomes(
    func: Callable[..., _R],
    items: Mapping[str, _T],
    *,
    n_jobs: int = 1,
    backend: str | None = None,
    **shared: Any,
) -> dict[str, _R]:
    """Apply ``func(chrom, item, **shared)`` to every chromosome.

    Work is dispatched with joblib using at most one worker per chromosome. The
    result is keyed by chromosome in the order of ``items``; the first failing
    chromosome is raised as WorkerFailure and no partial result is returned.
    """

    if isinstance(n_jobs, bool) or int(n_jobs) != n_jobs or n_jobs < 1:
        raise ConfigurationError(f"n_jobs must be a positive integer; got {n_jobs!r}")
    if not items:
        return {}

    workers = min(int(n_jobs), len(items))
    logger.info("Processing %d chromosomes with %d worker(s)", len(items), workers)

    pool = Parallel(n_jobs=workers, backend=backend)
    results = pool(delayed(_run_one)(func, chrom, item, shared) for chrom, item in items.items())

    collected = dict(results)
    return {chrom: collected[chrom] for chrom in items}
