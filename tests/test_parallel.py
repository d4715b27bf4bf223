import pytest

from coverage_regions.coverage import CoverageTrack
from coverage_regions.errors import ConfigurationError, DataShapeError, WorkerFailure
from coverage_regions.filtering import filter_data
from coverage_regions.parallel import map_chromosomes
from coverage_regions.pipeline import RegionMatrixParams, region_matrix_by_chrom


def _scale(chrom, item, *, factor):
    return [x * factor for x in item]


def _fail_on_chr2(chrom, item):
    if chrom == "chr2":
        raise DataShapeError("bad track")
    return len(item)


def test_results_keyed_by_chromosome():
    items = {"chrY": [1, 2], "chr1": [3]}
    out = map_chromosomes(_scale, items, n_jobs=2, backend="threading", factor=10)
    assert out == {"chrY": [10, 20], "chr1": [30]}
    assert list(out) == ["chrY", "chr1"]


def test_failure_names_the_chromosome():
    items = {"chr1": [1], "chr2": [2], "chr3": [3]}
    with pytest.raises(WorkerFailure) as exc:
        map_chromosomes(_fail_on_chr2, items)
    assert exc.value.chrom == "chr2"
    assert "bad track" in str(exc.value)
    assert isinstance(exc.value.__cause__, DataShapeError)


def test_failure_under_threads():
    items = {"chr1": [1], "chr2": [2]}
    with pytest.raises(WorkerFailure, match="chr2"):
        map_chromosomes(_fail_on_chr2, items, n_jobs=2, backend="threading")


def test_n_jobs_must_be_positive():
    with pytest.raises(ConfigurationError):
        map_chromosomes(_scale, {"chr1": [1]}, n_jobs=0, factor=1)


def test_empty_input():
    assert map_chromosomes(_scale, {}, factor=1) == {}


def test_failure_survives_process_workers():
    # region_matrix_by_chrom rejects unfiltered input inside the worker
    track = CoverageTrack.from_samples({"a": [1, 9, 9]})
    items = {"chr1": filter_data(track, 5), "chr2": track, "chr3": filter_data(track, 5)}
    params = RegionMatrixParams(read_length=36)

    with pytest.raises(WorkerFailure) as exc:
        map_chromosomes(region_matrix_by_chrom, items, n_jobs=2, params=params, run_filter=False)
    assert exc.value.chrom == "chr2"
    assert "ConfigurationError" in exc.value.reason
