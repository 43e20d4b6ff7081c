"""Tests for :py:mod:`~rangewell.annotated`"""

import pytest

from rangewell.annotated import AnnotatedInterval
from rangewell.annotated import AnnotatedIntervalSet
from rangewell.annotated import Strand
from rangewell.errors import ValidationError
from rangewell.interval import Interval
from rangewell.interval_set import IntervalSet


@pytest.fixture
def genes() -> AnnotatedIntervalSet:
    return AnnotatedIntervalSet.build(
        intervals=IntervalSet.from_pairs([(200, 300), (10, 50), (40, 90), (5, 8), (60, 70)]),
        seqnames=["chr2", "chr1", "chr1", "chr1", "chr1"],
        strands=["+", "-", "-", "+", "*"],
        metadata={"name": ["e", "b", "c", "a", "d"], "score": [5, 2, 3, 1, 4]})


def test_build_defaults() -> None:
    annotated = AnnotatedIntervalSet.build(IntervalSet.from_pairs([(1, 2), (3, 4)]), seqnames="1")
    assert annotated.seqnames == ("1", "1")
    assert annotated.strands == (Strand.Unstranded, Strand.Unstranded)
    assert annotated.metadata == {}
    assert annotated.columns == []

    annotated = AnnotatedIntervalSet.build([Interval(1, 2)], seqnames=["1"], strands="-")
    assert annotated.strands == (Strand.Negative,)


@pytest.mark.parametrize("kwargs,field", [
    ({"seqnames": ["1", "1"]}, "seqnames"),
    ({"seqnames": "1", "strands": ["+", "-"]}, "strands"),
    ({"seqnames": "1", "metadata": {"name": ["a"]}}, "name"),
])
def test_mismatched_parallel_arrays_are_rejected(kwargs: dict, field: str) -> None:
    with pytest.raises(ValidationError) as info:
        AnnotatedIntervalSet.build(IntervalSet.from_pairs([(1, 2), (3, 4), (5, 6)]), **kwargs)
    assert info.value.field == field


def test_unknown_strand_is_rejected() -> None:
    with pytest.raises(ValidationError) as info:
        AnnotatedIntervalSet.build(IntervalSet.from_pairs([(1, 2), (3, 4)]),
                                   seqnames="1", strands=["+", "x"])
    assert info.value.index == 1


def test_strand_compatibility() -> None:
    assert Strand.parse("+").is_compatible(Strand.Positive)
    assert Strand.parse("*").is_compatible(Strand.Negative)
    assert Strand.Negative.is_compatible(Strand.Unstranded)
    assert not Strand.Positive.is_compatible(Strand.Negative)


def test_row_access(genes: AnnotatedIntervalSet) -> None:
    row = genes[1]
    assert row == AnnotatedInterval(interval=Interval(10, 50), seqname="chr1",
                                    strand=Strand.Negative, metadata={"name": "b", "score": 2})
    assert (row.start, row.end, row.width) == (10, 50, 41)
    assert [row.metadata["name"] for row in genes] == ["e", "b", "c", "a", "d"]


def test_subsetting_keeps_rows_together(genes: AnnotatedIntervalSet) -> None:
    for subset in [genes[[3, 0]], genes[[False, False, False, True, True]][::-1][1:]]:
        assert len(subset) == len(subset.seqnames) == len(subset.strands)
        for row in subset:
            original = [r for r in genes if r.metadata["name"] == row.metadata["name"]][0]
            assert row == original


def test_filter(genes: AnnotatedIntervalSet) -> None:
    filtered = genes.filter(lambda row: row.seqname == "chr1" and row.metadata["score"] > 1)
    assert filtered.column("name") == ("b", "c", "d")
    assert filtered.starts == (10, 40, 60)
    assert filtered.strands == (Strand.Negative, Strand.Negative, Strand.Unstranded)


def test_sort(genes: AnnotatedIntervalSet) -> None:
    ordered = genes.sort()
    assert ordered.column("name") == ("a", "b", "c", "d", "e")
    assert ordered.seqnames == ("chr1", "chr1", "chr1", "chr1", "chr2")
    assert ordered.column("score") == (1, 2, 3, 4, 5)
    assert ordered.intervals == IntervalSet.from_pairs([(5, 8), (10, 50), (40, 90), (60, 70),
                                                        (200, 300)])


def test_columns(genes: AnnotatedIntervalSet) -> None:
    assert genes.columns == ["name", "score"]
    assert genes.seqlevels == ["chr2", "chr1"]

    with_gc = genes.with_column("gc", [0.1, 0.2, 0.3, 0.4, 0.5])
    assert with_gc.columns == ["name", "score", "gc"]
    assert genes.columns == ["name", "score"]
    assert with_gc.drop_column("name").columns == ["score", "gc"]

    with pytest.raises(ValidationError):
        genes.with_column("gc", [0.1])
    with pytest.raises(ValidationError):
        genes.drop_column("gc")


def test_concat_fills_missing_columns(genes: AnnotatedIntervalSet) -> None:
    other = AnnotatedIntervalSet.build(IntervalSet.from_pairs([(1, 1)]), seqnames="chrX",
                                       metadata={"score": [9], "source": ["manual"]})
    combined = genes.concat(other)
    assert len(combined) == 6
    assert combined.columns == ["name", "score", "source"]
    assert combined.column("name")[-1] is None
    assert combined.column("score") == (5, 2, 3, 1, 4, 9)
    assert combined.column("source") == (None,) * 5 + ("manual",)
    assert combined.seqnames[-1] == "chrX"


def test_to_rows(genes: AnnotatedIntervalSet) -> None:
    assert genes[:1].to_rows() == [
        {"seqname": "chr2", "start": 200, "end": 300, "strand": "+", "name": "e", "score": 5}
    ]


def test_reduce_by_seqname_and_strand(genes: AnnotatedIntervalSet) -> None:
    reduced = genes.reduce()
    assert reduced.columns == []
    assert reduced.to_rows() == [
        {"seqname": "chr1", "start": 5, "end": 8, "strand": "+"},
        {"seqname": "chr1", "start": 10, "end": 90, "strand": "-"},
        {"seqname": "chr1", "start": 60, "end": 70, "strand": "*"},
        {"seqname": "chr2", "start": 200, "end": 300, "strand": "+"},
    ]

    reduced = genes.reduce(ignore_strand=True)
    assert reduced.to_rows() == [
        {"seqname": "chr1", "start": 5, "end": 8, "strand": "*"},
        {"seqname": "chr1", "start": 10, "end": 90, "strand": "*"},
        {"seqname": "chr2", "start": 200, "end": 300, "strand": "*"},
    ]


def test_reduce_merges_adjacent_only_on_the_same_sequence() -> None:
    annotated = AnnotatedIntervalSet.build(IntervalSet.from_pairs([(1, 5), (6, 8), (6, 8)]),
                                           seqnames=["1", "1", "2"])
    assert annotated.reduce().to_rows() == [
        {"seqname": "1", "start": 1, "end": 8, "strand": "*"},
        {"seqname": "2", "start": 6, "end": 8, "strand": "*"},
    ]


def test_disjoin(genes: AnnotatedIntervalSet) -> None:
    disjoint = genes.disjoin(ignore_strand=True)
    assert disjoint.seqnames == ("chr1",) * 6 + ("chr2",)
    assert disjoint.intervals == IntervalSet.from_pairs(
        [(5, 8), (10, 39), (40, 50), (51, 59), (60, 70), (71, 90), (200, 300)])


def test_empty() -> None:
    empty = AnnotatedIntervalSet.empty(columns=["name"])
    assert len(empty) == 0
    assert empty.reduce() == AnnotatedIntervalSet.empty()
    assert empty.sort() == empty
    assert empty.to_rows() == []


def test_split_by_seqname(genes: AnnotatedIntervalSet) -> None:
    grouped = genes.split_by_seqname()
    assert grouped.keys() == ["chr2", "chr1"]
    assert grouped["chr1"].column("name") == ("b", "c", "a", "d")
    assert grouped.unlist().column("name") == ("e", "b", "c", "a", "d")


def test_metadata_is_read_only(genes: AnnotatedIntervalSet) -> None:
    with pytest.raises(TypeError):
        genes.metadata["gc"] = (0.1, 0.2, 0.3, 0.4, 0.5)
    with pytest.raises(TypeError):
        del genes.metadata["name"]
    with pytest.raises(TypeError):
        genes[0].metadata["name"] = "z"
    assert genes.columns == ["name", "score"]
    assert genes[0].metadata["name"] == "e"


def test_build_copies_the_given_columns() -> None:
    columns = {"name": ["a"]}
    annotated = AnnotatedIntervalSet.build(IntervalSet.from_pairs([(1, 2)]), seqnames="1",
                                           metadata=columns)
    columns["score"] = [1, 2, 3]
    columns["name"].append("b")
    assert annotated.columns == ["name"]
    assert annotated.column("name") == ("a",)
