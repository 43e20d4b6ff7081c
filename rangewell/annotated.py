"""
Intervals Annotated with a Sequence Name, Strand and Metadata
-------------------------------------------------------------

An :class:`~rangewell.annotated.AnnotatedIntervalSet` pairs an
:class:`~rangewell.interval_set.IntervalSet` with parallel arrays: the name of the sequence (e.g.
chromosome) each interval lies on, its :class:`~rangewell.annotated.Strand`, and any number of
named metadata columns.  All parallel arrays always have one element per interval, and every
operation that filters or reorders rows applies identically to all of them.

Examples
~~~~~~~~

.. code-block:: python

    >>> from rangewell.annotated import AnnotatedIntervalSet
    >>> from rangewell.interval_set import IntervalSet
    >>> genes = AnnotatedIntervalSet.build(
    ...     intervals=IntervalSet.from_pairs([(200, 300), (10, 50), (40, 90)]),
    ...     seqnames=["chr2", "chr1", "chr1"],
    ...     strands=["+", "-", "-"],
    ...     metadata={"name": ["c", "a", "b"]})
    >>> genes.sort().column("name")
    ('a', 'b', 'c')
    >>> genes[1]
    AnnotatedInterval(interval=Interval(10, 50), seqname='chr1', strand=<Strand.Negative: '-'>,
    metadata=mappingproxy({'name': 'a'}))
    >>> genes.reduce().to_rows()
    [{'seqname': 'chr1', 'start': 10, 'end': 90, 'strand': '-'},
     {'seqname': 'chr2', 'start': 200, 'end': 300, 'strand': '+'}]

Sets are immutable: the metadata mapping is read-only, and every operation returns a new set.

Parallel arrays of different lengths are rejected:

.. code-block:: python

    >>> AnnotatedIntervalSet.build(IntervalSet.from_pairs([(1, 2)]), seqnames=["chr1", "chr2"])
    ValidationError: Found 2 seqnames for 1 intervals (field=seqnames)

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.annotated.Strand` -- The strand of an annotated interval
    - :class:`~rangewell.annotated.AnnotatedInterval` -- A single row of an annotated set
    - :class:`~rangewell.annotated.AnnotatedIntervalSet` -- An interval set with parallel
        sequence names, strands and metadata columns
"""

import enum
from types import MappingProxyType
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import Dict
from typing import Hashable
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

import attr

from rangewell.errors import ValidationError
from rangewell.interval import Interval
from rangewell.interval_set import IntervalSet
from rangewell.interval_set import Selection
from rangewell.interval_set import select_indices

if TYPE_CHECKING:
    from rangewell.grouped import GroupedIntervals


@enum.unique
class Strand(enum.Enum):
    """The strand of an annotated interval."""

    Positive = "+"
    Negative = "-"
    Unstranded = "*"

    @classmethod
    def parse(cls, value: Union["Strand", str], index: Optional[int] = None) -> "Strand":
        """Returns the strand for the given strand or its string value ("+", "-" or "*")."""
        if isinstance(value, Strand):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown strand {value!r}", field="strands", index=index)

    def is_compatible(self, other: "Strand") -> bool:
        """True if the strands are equal, or either is unstranded."""
        return self is other or Strand.Unstranded in (self, other)


# The order of strands when sorting
_STRAND_RANK: Dict[Strand, int] = {Strand.Positive: 0, Strand.Negative: 1, Strand.Unstranded: 2}


def _freeze_row(values: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(values or {}))


@attr.s(frozen=True, auto_attribs=True)
class AnnotatedInterval:
    """A single row of an :class:`~rangewell.annotated.AnnotatedIntervalSet`.

    Attributes:
        interval: the interval
        seqname: the name of the sequence on which the interval lies
        strand: the strand of the interval
        metadata: the value of each metadata column for this row
    """

    interval: Interval
    seqname: str
    strand: Strand = Strand.Unstranded
    metadata: Mapping[str, Any] = attr.ib(factory=dict, converter=_freeze_row, hash=False)

    @property
    def start(self) -> int:
        return self.interval.start

    @property
    def end(self) -> int:
        return self.interval.end

    @property
    def width(self) -> int:
        return self.interval.width


def _freeze_columns(columns: Optional[Mapping[str, Iterable[Any]]]
                    ) -> Mapping[str, Tuple[Any, ...]]:
    if columns is None:
        return MappingProxyType({})
    return MappingProxyType({name: tuple(values) for name, values in columns.items()})


@attr.s(frozen=True, auto_attribs=True)
class AnnotatedIntervalSet:
    """An interval set where each interval carries a sequence name, strand and metadata.

    Use :func:`~rangewell.annotated.AnnotatedIntervalSet.build` to construct one from plain
    values.

    Attributes:
        intervals: the intervals
        seqnames: the sequence name of each interval
        strands: the strand of each interval
        metadata: a mapping from column name to the value of the column for each interval
    """

    intervals: IntervalSet
    seqnames: Tuple[str, ...] = attr.ib(converter=tuple)
    strands: Tuple[Strand, ...] = attr.ib(converter=tuple)
    metadata: Mapping[str, Tuple[Any, ...]] = attr.ib(factory=dict, converter=_freeze_columns,
                                                      hash=False)

    def __attrs_post_init__(self) -> None:
        length = len(self.intervals)
        if len(self.seqnames) != length:
            raise ValidationError(f"Found {len(self.seqnames)} seqnames for {length} intervals",
                                  field="seqnames")
        if len(self.strands) != length:
            raise ValidationError(f"Found {len(self.strands)} strands for {length} intervals",
                                  field="strands")
        for i, strand in enumerate(self.strands):
            if not isinstance(strand, Strand):
                raise ValidationError(f"Expected a Strand, found {strand!r}",
                                      field="strands", index=i)
        for name, values in self.metadata.items():
            if len(values) != length:
                raise ValidationError(
                    f"Metadata column '{name}' has {len(values)} values for {length} intervals",
                    field=name)

    @classmethod
    def build(cls,
              intervals: Union[IntervalSet, Iterable[Interval]],
              seqnames: Union[str, Iterable[str]],
              strands: Optional[Union[Strand, str, Iterable[Union[Strand, str]]]] = None,
              metadata: Optional[Mapping[str, Iterable[Any]]] = None
              ) -> "AnnotatedIntervalSet":
        """Builds an annotated set from plain values.

        Args:
            intervals: the intervals
            seqnames: the sequence name of each interval, or a single name for all intervals
            strands: the strand of each interval, or a single strand for all intervals; strands
                may be given as :class:`~rangewell.annotated.Strand` or as "+", "-" or "*".
                Defaults to unstranded.
            metadata: a mapping from column name to the value of the column for each interval
        """
        if not isinstance(intervals, IntervalSet):
            intervals = IntervalSet(intervals)
        length = len(intervals)
        if isinstance(seqnames, str):
            seqnames = [seqnames] * length
        if strands is None:
            strands = Strand.Unstranded
        if isinstance(strands, (Strand, str)):
            strands = [strands] * length
        parsed = [Strand.parse(strand, index=i) for i, strand in enumerate(strands)]
        return cls(intervals=intervals, seqnames=seqnames, strands=parsed, metadata=metadata)

    @classmethod
    def empty(cls, columns: Iterable[str] = ()) -> "AnnotatedIntervalSet":
        return cls(intervals=IntervalSet.empty(), seqnames=(), strands=(),
                   metadata={name: () for name in columns})

    def __len__(self) -> int:
        return len(self.intervals)

    def __iter__(self) -> Iterator[AnnotatedInterval]:
        return (self.row(i) for i in range(len(self)))

    def __getitem__(self, index: Union[int, Selection]) -> Any:
        if isinstance(index, int):
            return self.row(index)
        return self.subset(select_indices(index, len(self)))

    def row(self, index: int) -> AnnotatedInterval:
        """Returns the interval at the given index together with its annotations."""
        return AnnotatedInterval(
            interval=self.intervals[index],
            seqname=self.seqnames[index],
            strand=self.strands[index],
            metadata={name: values[index] for name, values in self.metadata.items()})

    @property
    def starts(self) -> Tuple[int, ...]:
        return self.intervals.starts

    @property
    def ends(self) -> Tuple[int, ...]:
        return self.intervals.ends

    @property
    def widths(self) -> Tuple[int, ...]:
        return self.intervals.widths

    @property
    def columns(self) -> List[str]:
        """The names of the metadata columns."""
        return list(self.metadata)

    @property
    def seqlevels(self) -> List[str]:
        """The distinct sequence names, in order of first appearance."""
        return list(dict.fromkeys(self.seqnames))

    def column(self, name: str) -> Tuple[Any, ...]:
        """Returns the values of the given metadata column."""
        return self.metadata[name]

    def subset(self, indices: Iterable[int]) -> "AnnotatedIntervalSet":
        """Returns the rows at the given indices, in the order given."""
        indices = list(indices)
        return AnnotatedIntervalSet(
            intervals=self.intervals.subset(indices),
            seqnames=[self.seqnames[i] for i in indices],
            strands=[self.strands[i] for i in indices],
            metadata={name: [values[i] for i in indices] for name, values in self.metadata.items()})

    def filter(self, predicate: Callable[[AnnotatedInterval], bool]) -> "AnnotatedIntervalSet":
        """Returns the rows for which the predicate is true."""
        return self.subset(i for i, row in enumerate(self) if predicate(row))

    def order(self) -> List[int]:
        """Returns the indices that sort the rows by sequence name, strand ("+", "-", then "*"),
        start and end.  Ties keep their original order."""
        def key(i: int) -> Tuple[str, int, int, int]:
            interval = self.intervals[i]
            return (self.seqnames[i], _STRAND_RANK[self.strands[i]], interval.start, interval.end)
        return sorted(range(len(self)), key=key)

    def sort(self) -> "AnnotatedIntervalSet":
        return self.subset(self.order())

    def with_column(self, name: str, values: Iterable[Any]) -> "AnnotatedIntervalSet":
        """Returns a copy with the given metadata column added or replaced."""
        metadata = dict(self.metadata)
        metadata[name] = tuple(values)
        return attr.evolve(self, metadata=metadata)

    def drop_column(self, name: str) -> "AnnotatedIntervalSet":
        """Returns a copy without the given metadata column."""
        if name not in self.metadata:
            raise ValidationError(f"No metadata column named '{name}'", field=name)
        return attr.evolve(self, metadata={key: values for key, values in self.metadata.items()
                                           if key != name})

    def concat(self, *others: "AnnotatedIntervalSet") -> "AnnotatedIntervalSet":
        """Returns the rows of this set followed by the rows of each other set.

        The result has every metadata column found in any of the sets, in order of first
        appearance; rows from a set without a given column hold ``None`` for it.
        """
        sets = [self, *others]
        names = list(dict.fromkeys(name for each in sets for name in each.metadata))
        metadata: Dict[str, List[Any]] = {name: [] for name in names}
        for each in sets:
            for name in names:
                metadata[name].extend(each.metadata.get(name, [None] * len(each)))
        return AnnotatedIntervalSet(
            intervals=self.intervals.concat(*(other.intervals for other in others)),
            seqnames=[seqname for each in sets for seqname in each.seqnames],
            strands=[strand for each in sets for strand in each.strands],
            metadata=metadata)

    def to_rows(self) -> List[Dict[str, Any]]:
        """Returns one dictionary per row, with the keys "seqname", "start", "end", "strand" and
        the metadata column names."""
        rows = []
        for row in self:
            record: Dict[str, Any] = {"seqname": row.seqname, "start": row.start, "end": row.end,
                                      "strand": row.strand.value}
            record.update(row.metadata)
            rows.append(record)
        return rows

    def split_by_seqname(self) -> "GroupedIntervals":
        """Groups the rows by sequence name, in order of first appearance."""
        from rangewell.grouped import GroupedIntervals
        groups = self._group_indices(key=lambda i: self.seqnames[i])
        return GroupedIntervals(groups={seqname: self.subset(indices)
                                        for seqname, indices in groups.items()})

    def _group_indices(self, key: Callable[[int], Hashable]) -> Dict[Any, List[int]]:
        groups: Dict[Any, List[int]] = {}
        for i in range(len(self)):
            groups.setdefault(key(i), []).append(i)
        return groups

    def _apply_by_strand(self,
                         fn: Callable[[IntervalSet], IntervalSet],
                         ignore_strand: bool) -> "AnnotatedIntervalSet":
        """Applies ``fn`` to the intervals on each sequence and strand, returning the sorted
        union of the results without metadata."""
        def key(i: int) -> Tuple[str, Strand]:
            strand = Strand.Unstranded if ignore_strand else self.strands[i]
            return self.seqnames[i], strand

        intervals: List[Interval] = []
        seqnames: List[str] = []
        strands: List[Strand] = []
        for (seqname, strand), indices in self._group_indices(key=key).items():
            result = fn(self.intervals.subset(indices))
            intervals.extend(result)
            seqnames.extend([seqname] * len(result))
            strands.extend([strand] * len(result))
        return AnnotatedIntervalSet(intervals=IntervalSet(intervals), seqnames=seqnames,
                                    strands=strands).sort()

    def reduce(self, min_gap_width: int = 1, ignore_strand: bool = False
               ) -> "AnnotatedIntervalSet":
        """Merges overlapping and adjacent intervals on the same sequence and strand.

        Metadata columns are dropped, since merged rows have no single value.

        Args:
            min_gap_width: see :func:`~rangewell.interval_set.IntervalSet.reduce`
            ignore_strand: merge intervals regardless of strand; the results are unstranded
        """
        return self._apply_by_strand(lambda intervals: intervals.reduce(min_gap_width),
                                     ignore_strand=ignore_strand)

    def disjoin(self, ignore_strand: bool = False) -> "AnnotatedIntervalSet":
        """Disjoins the intervals on each sequence and strand.  Metadata columns are dropped.

        Args:
            ignore_strand: disjoin intervals regardless of strand; the results are unstranded
        """
        return self._apply_by_strand(lambda intervals: intervals.disjoin(),
                                     ignore_strand=ignore_strand)
