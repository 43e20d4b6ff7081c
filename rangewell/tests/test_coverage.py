"""Tests for :py:mod:`~rangewell.coverage`"""

import random
from typing import List

import pytest

from rangewell.annotated import AnnotatedIntervalSet
from rangewell.coverage import coverage
from rangewell.coverage import coverage_by_seqname
from rangewell.coverage import grouped_coverage
from rangewell.coverage import slice_coverage
from rangewell.errors import ValidationError
from rangewell.grouped import GroupedIntervals
from rangewell.interval import Interval
from rangewell.interval_set import IntervalSet
from rangewell.rle import RunLengthVector


def dense_coverage(intervals: IntervalSet, space_length: int) -> List[int]:
    depth = [0] * space_length
    for interval in intervals:
        for position in range(interval.start, min(interval.end, space_length) + 1):
            depth[position - 1] += 1
    return depth


def test_coverage_of_two_overlapping_intervals() -> None:
    cov = coverage(IntervalSet.from_pairs([(1, 3), (2, 5)]), space_length=5)
    assert cov.values == (1, 2, 1)
    assert cov.lengths == (1, 2, 2)
    assert cov.expand() == [1, 2, 2, 1, 1]


def test_uncovered_positions_are_explicit_zero_runs() -> None:
    cov = coverage(IntervalSet.from_pairs([(3, 4), (8, 8)]), space_length=10)
    assert cov == RunLengthVector(values=[0, 1, 0, 1, 0], lengths=[2, 2, 3, 1, 2])


def test_space_length_defaults_to_largest_end() -> None:
    cov = coverage(IntervalSet.from_pairs([(3, 4), (2, 6)]))
    assert len(cov) == 6
    assert cov.expand() == [0, 1, 2, 2, 1, 1]


def test_adjacent_intervals_are_one_run() -> None:
    cov = coverage(IntervalSet.from_pairs([(1, 5), (6, 8)]))
    assert cov == RunLengthVector(values=[1], lengths=[8])


def test_intervals_past_the_space_are_truncated() -> None:
    cov = coverage(IntervalSet.from_pairs([(2, 10), (12, 15)]), space_length=5)
    assert cov.expand() == [0, 1, 1, 1, 1]


def test_empty_coverage() -> None:
    assert coverage(IntervalSet.empty()) == RunLengthVector.empty()
    assert coverage(IntervalSet.empty(), space_length=4) == \
        RunLengthVector(values=[0], lengths=[4])
    assert coverage(IntervalSet.from_pairs([(1, 5)]), space_length=0) == RunLengthVector.empty()
    with pytest.raises(ValidationError):
        coverage(IntervalSet.empty(), space_length=-1)


def test_coverage_matches_dense_computation() -> None:
    rng = random.Random(8)
    for _ in range(25):
        pairs = []
        for _ in range(rng.randint(0, 15)):
            start = rng.randint(1, 60)
            pairs.append((start, start + rng.randint(0, 20)))
        intervals = IntervalSet.from_pairs(pairs)
        space_length = rng.randint(0, 90)
        cov = coverage(intervals, space_length=space_length)
        assert cov.expand() == dense_coverage(intervals, space_length)
        assert all(a != b for a, b in zip(cov.values, cov.values[1:]))


def test_coverage_conserves_widths() -> None:
    rng = random.Random(21)
    for _ in range(25):
        pairs = []
        for _ in range(rng.randint(0, 20)):
            start = rng.randint(1, 200)
            pairs.append((start, start + rng.randint(0, 50)))
        intervals = IntervalSet.from_pairs(pairs)
        assert coverage(intervals).sum() == sum(intervals.widths)


def test_grouped_coverage_has_no_cross_group_leakage() -> None:
    first = IntervalSet.from_pairs([(1, 3), (2, 5)])
    second = IntervalSet.from_pairs([(2, 4), (10, 12), (11, 11)])
    grouped = GroupedIntervals(groups={"a": first, "b": second})

    for max_workers in [None, 4]:
        coverages = grouped_coverage(grouped, max_workers=max_workers)
        assert list(coverages) == ["a", "b"]
        assert coverages["a"] == coverage(first)
        assert coverages["b"] == coverage(second)


def test_grouped_coverage_space_lengths() -> None:
    grouped = GroupedIntervals.from_list([IntervalSet.from_pairs([(1, 2)]),
                                          IntervalSet.from_pairs([(3, 3)])])
    assert [len(cov) for cov in grouped_coverage(grouped, space_length=10).values()] == [10, 10]
    coverages = grouped_coverage(grouped, space_length={1: 7})
    assert len(coverages[0]) == 2
    assert coverages[1].expand() == [0, 0, 1, 0, 0, 0, 0]


def test_coverage_by_seqname() -> None:
    annotated = AnnotatedIntervalSet.build(
        intervals=IntervalSet.from_pairs([(1, 3), (5, 6), (2, 5), (2, 2)]),
        seqnames=["chr2", "chr1", "chr2", "chr1"],
        strands=["+", "-", "-", "+"])
    coverages = coverage_by_seqname(annotated, seqlengths={"chr1": 8, "chr2": 5, "chrM": 3})
    assert list(coverages) == ["chr2", "chr1", "chrM"]
    assert coverages["chr2"].expand() == [1, 2, 2, 1, 1]
    assert coverages["chr1"].expand() == [0, 1, 0, 0, 1, 1, 0, 0]
    assert coverages["chrM"] == RunLengthVector(values=[0], lengths=[3])

    coverages = coverage_by_seqname(annotated)
    assert list(coverages) == ["chr2", "chr1"]
    assert len(coverages["chr1"]) == 6


def test_slice_coverage() -> None:
    cov = RunLengthVector.compress([0, 1, 2, 2, 1, 0, 3, 1])
    assert slice_coverage(cov) == IntervalSet.from_pairs([(2, 5), (7, 8)])
    assert slice_coverage(cov, lower=2) == IntervalSet.from_pairs([(3, 4), (7, 7)])
    assert slice_coverage(cov, lower=1, upper=1) == \
        IntervalSet.from_pairs([(2, 2), (5, 5), (8, 8)])
    assert slice_coverage(RunLengthVector.empty()) == IntervalSet.empty()


def test_coverage_space_starts_at_position_one() -> None:
    with pytest.raises(ValidationError) as info:
        coverage(IntervalSet([Interval(1, 3).shift(-1)]), space_length=5)
    assert info.value.field == "start"
    assert coverage(IntervalSet([Interval(2, 4).shift(-1)]), space_length=5).expand() == \
        [1, 1, 1, 0, 0]
