import numpy as np
import pytest

from coverage_regions.errors import ConfigurationError, DataShapeError
from coverage_regions.regions import REGION_COLUMNS, cluster_regions, find_regions


def _spans(regions):
    return list(zip(regions["start"].tolist(), regions["end"].tolist()))


def test_no_positions_gives_no_regions():
    regions = find_regions([], [], "chr1")
    assert len(regions) == 0
    assert list(regions.columns) == REGION_COLUMNS


def test_single_position_is_single_base_region():
    regions = find_regions([7], [3.0], "chr1")
    assert _spans(regions) == [(7, 7)]
    assert regions.loc[1, "width"] == 1
    assert regions.loc[1, "chrom"] == "chr1"


def test_region_gap_controls_splitting():
    pos = [1, 2, 3, 5, 6, 10]
    stats = np.ones(len(pos))

    assert _spans(find_regions(pos, stats, "chr1", max_region_gap=0)) == [(1, 3), (5, 6), (10, 10)]
    assert _spans(find_regions(pos, stats, "chr1", max_region_gap=1)) == [(1, 6), (10, 10)]
    # 10 - 6 == 4 == max_region_gap + 1, so three missing bases are tolerated
    assert _spans(find_regions(pos, stats, "chr1", max_region_gap=3)) == [(1, 10)]


def test_region_summaries_and_ids():
    regions = find_regions([4, 5, 6, 20], [1.0, 2.0, 3.0, 5.0], "chrX")
    assert list(regions.index) == [1, 2]
    assert regions.index.name == "region"
    assert regions.loc[1, "value"] == pytest.approx(2.0)
    assert regions.loc[1, "area"] == pytest.approx(6.0)
    assert (regions.loc[1, "index_start"], regions.loc[1, "index_end"]) == (0, 2)
    assert (regions.loc[2, "index_start"], regions.loc[2, "index_end"]) == (3, 3)


def test_up_and_down_regions_are_separated():
    regions = find_regions([1, 2, 3, 4], [2.0, 1.0, -1.0, -3.0], "chr1", max_region_gap=5)
    assert _spans(regions) == [(1, 2), (3, 4)]
    assert regions["value"].tolist() == [1.5, -2.0]


def test_positions_at_cutoff_count_as_missing():
    pos = [1, 2, 3]
    stats = [1.0, 0.0, 1.0]
    assert _spans(find_regions(pos, stats, "chr1", max_region_gap=0)) == [(1, 1), (3, 3)]
    merged = find_regions(pos, stats, "chr1", max_region_gap=1)
    assert _spans(merged) == [(1, 3)]
    assert merged.loc[1, "value"] == pytest.approx(1.0)


def test_asymmetric_cutoff_pair():
    regions = find_regions([1, 2, 3], [0.5, 2.0, -0.5], "chr1", cutoff=(-1.0, 1.0))
    assert _spans(regions) == [(2, 2)]


def test_clusters_group_nearby_regions():
    pos = [1, 2, 3, 5, 6, 10]
    regions = find_regions(pos, np.ones(len(pos)), "chr1", max_region_gap=0, max_cluster_gap=3)
    assert regions["cluster"].tolist() == [1, 1, 2]
    assert regions["cluster_length"].tolist() == [6, 6, 1]


def test_invalid_input():
    with pytest.raises(DataShapeError):
        find_regions([1, 3, 3], [1, 1, 1], "chr1")
    with pytest.raises(DataShapeError):
        find_regions([1, 2], [1.0], "chr1")
    with pytest.raises(ConfigurationError):
        find_regions([1, 2], [1, 1], "chr1", max_region_gap=-1)


def test_larger_region_gap_never_adds_regions():
    rng = np.random.default_rng(1)
    pos = np.flatnonzero(rng.random(5_000) > 0.4) + 1
    stats = rng.random(pos.size) + 0.1

    counts = [
        len(find_regions(pos, stats, "chr1", max_region_gap=g, max_cluster_gap=1_000))
        for g in (0, 1, 2, 5, 20)
    ]
    assert counts == sorted(counts, reverse=True)
    assert counts[0] > counts[-1]


def test_regions_are_sorted_disjoint_and_inside_span():
    rng = np.random.default_rng(2)
    pos = np.flatnonzero(rng.random(2_000) > 0.5) + 1
    regions = find_regions(pos, np.ones(pos.size), "chr1", max_region_gap=2)

    starts = regions["start"].to_numpy()
    ends = regions["end"].to_numpy()
    assert (starts <= ends).all()
    assert (starts[1:] > ends[:-1]).all()
    assert starts.min() >= pos.min() and ends.max() <= pos.max()


def test_larger_cluster_gap_never_adds_clusters():
    starts = np.array([1, 50, 60, 400, 1_000])
    ends = np.array([10, 55, 100, 450, 1_200])
    n_clusters = [cluster_regions(starts, ends, g).max() for g in (0, 10, 300, 600)]
    assert n_clusters == [5, 4, 2, 1]
    assert cluster_regions(starts[:0], ends[:0], 10).size == 0
