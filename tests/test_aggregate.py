import numpy as np
import pandas as pd
import pytest

from coverage_regions.aggregate import get_region_coverage, region_coverage_sums
from coverage_regions.errors import DataShapeError


def _regions(spans):
    df = pd.DataFrame({"start": [s for s, _ in spans], "end": [e for _, e in spans]})
    df.index = pd.RangeIndex(1, len(df) + 1, name="region")
    return df


def test_sums_skip_bases_missing_from_coverage():
    positions = np.array([2, 3, 5, 6, 9])
    coverage = pd.DataFrame({"a": [1, 2, 3, 4, 5], "b": [10, 20, 30, 40, 50]})

    sums = region_coverage_sums(_regions([(2, 6), (9, 9)]), coverage, positions)

    assert sums.shape == (2, 2)
    assert np.array_equal(sums, [[10, 100], [5, 50]])


def test_no_regions_gives_empty_matrix():
    coverage = pd.DataFrame({"a": [1], "b": [2], "c": [3]})
    sums = region_coverage_sums(_regions([]), coverage, np.array([1]))
    assert sums.shape == (0, 3)


def test_region_outside_track_is_an_error():
    coverage = pd.DataFrame({"a": [1, 2, 3]})
    with pytest.raises(DataShapeError):
        region_coverage_sums(_regions([(2, 4)]), coverage, np.array([1, 2, 3]))
    with pytest.raises(DataShapeError):
        region_coverage_sums(_regions([(3, 2)]), coverage, np.array([1, 2, 3]))
    with pytest.raises(DataShapeError):
        region_coverage_sums(_regions([(1, 1)]), coverage.iloc[:0], np.array([], dtype=int))


def test_positions_must_match_coverage_rows():
    coverage = pd.DataFrame({"a": [1, 2, 3]})
    with pytest.raises(DataShapeError):
        region_coverage_sums(_regions([(1, 2)]), coverage, np.array([1, 2]))


def test_get_region_coverage_returns_per_base_tables():
    positions = np.array([2, 3, 5])
    coverage = pd.DataFrame({"a": [1, 2, 3]})

    out = get_region_coverage(_regions([(2, 3), (5, 5)]), coverage, positions)

    assert list(out) == [1, 2]
    assert list(out[1].index) == [2, 3]
    assert out[1]["a"].tolist() == [1, 2]
    assert out[2]["a"].tolist() == [3]
