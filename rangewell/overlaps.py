"""
Finding Overlaps between Interval Sets
--------------------------------------

Given a query and a subject set, :func:`~rangewell.overlaps.find_overlaps` reports every pair
``(query_index, subject_index)`` for which the query interval matches the subject interval.  The
pairs are ordered by query index, then by subject index.  A query interval with no match simply
does not appear in the result.

What counts as a match is chosen with the :class:`~rangewell.overlaps.OverlapType`:

    - ``any`` -- the intervals share at least one position
    - ``start`` -- the intervals overlap and start at the same position
    - ``end`` -- the intervals overlap and end at the same position
    - ``within`` -- the query interval lies entirely within the subject interval
    - ``equal`` -- the intervals are identical

In addition, every match must share at least ``min_overlap`` positions.  For annotated sets only
intervals on the same sequence match, and their strands must be compatible (unstranded matches
either strand) unless ``ignore_strand`` is set.

Examples
~~~~~~~~

.. code-block:: python

    >>> from rangewell.interval_set import IntervalSet
    >>> from rangewell.overlaps import count_overlaps, find_overlaps
    >>> query = IntervalSet.from_starts_widths([1, 5, 3, 4], [2, 2, 4, 6])
    >>> subject = IntervalSet.from_pairs([(1, 4), (3, 6), (5, 9), (6, 9)])
    >>> list(find_overlaps(query, subject, overlap_type="start"))
    [(0, 0), (1, 2), (2, 1)]
    >>> count_overlaps(query, subject)
    [1, 3, 4, 4]

Implementation
~~~~~~~~~~~~~~

Subject intervals are placed in an :class:`~rangewell.overlaps.IntervalIndex`, a thin wrapper over
:class:`pybedlite.overlap_detector.OverlapDetector`.  Its cgranges interval tree finds the subject
intervals overlapping a query interval in ``O(log m + k)`` for ``m`` subject intervals and ``k``
hits; candidates are then filtered by the overlap type, ``min_overlap`` and strand.  Counts are
always derived from the pairs returned by :func:`~rangewell.overlaps.find_overlaps`.

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.overlaps.OverlapType` -- The rule deciding whether two intervals match
    - :class:`~rangewell.overlaps.OverlapOptions` -- The options used when finding overlaps
    - :class:`~rangewell.overlaps.IntervalIndex` -- An index answering overlap queries
    - :class:`~rangewell.overlaps.Hits` -- The overlapping (query, subject) index pairs

The module contains the following methods:

    - :func:`~rangewell.overlaps.find_overlaps` -- Finds all matching (query, subject) pairs
    - :func:`~rangewell.overlaps.count_overlaps` -- Counts the matches of each query interval
    - :func:`~rangewell.overlaps.overlaps_any` -- Whether each query interval has any match
    - :func:`~rangewell.overlaps.subset_by_overlaps` -- Keeps the query intervals with a match
"""

import enum
import logging
from typing import Any
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import TypeVar
from typing import Union

import attr
from pybedlite.overlap_detector import Interval as BedInterval
from pybedlite.overlap_detector import OverlapDetector

from rangewell.annotated import AnnotatedIntervalSet
from rangewell.errors import ValidationError
from rangewell.interval import Interval
from rangewell.interval_set import IntervalSet

# Either kind of interval collection accepted by the overlap engine
IntervalsType = TypeVar('IntervalsType', IntervalSet, AnnotatedIntervalSet)

# The reference name used for intervals that carry no sequence name
_REFNAME: str = "."


@enum.unique
class OverlapType(enum.Enum):
    """The rule deciding whether a query interval matches a subject interval."""

    Any = "any"
    Start = "start"
    End = "end"
    Within = "within"
    Equal = "equal"

    @classmethod
    def parse(cls, value: Union["OverlapType", str]) -> "OverlapType":
        """Returns the overlap type for the given type or its name."""
        if isinstance(value, OverlapType):
            return value
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(t.value for t in cls)
            raise ValidationError(f"Unknown overlap type {value!r}, must be one of: {names}",
                                  field="overlap_type")


def _check_min_overlap(instance: Any, attribute: Any, value: int) -> None:
    if value < 1:
        raise ValidationError(f"min_overlap must be at least 1, found {value}",
                              field=attribute.name)


@attr.s(frozen=True, auto_attribs=True)
class OverlapOptions:
    """The options used when finding overlaps.

    Attributes:
        overlap_type: the rule deciding whether two intervals match
        min_overlap: the minimum number of positions a query and subject interval must share
        ignore_strand: for annotated sets, match intervals regardless of strand
    """

    overlap_type: OverlapType = attr.ib(default=OverlapType.Any, converter=OverlapType.parse)
    min_overlap: int = attr.ib(default=1, validator=_check_min_overlap)
    ignore_strand: bool = False

    def matches(self, query: Interval, subject: Interval) -> bool:
        """True if the query interval matches the subject interval under these options."""
        if self.overlap_type is OverlapType.Start and query.start != subject.start:
            return False
        elif self.overlap_type is OverlapType.End and query.end != subject.end:
            return False
        elif self.overlap_type is OverlapType.Within and not subject.contains(query):
            return False
        elif self.overlap_type is OverlapType.Equal and query != subject:
            return False
        return query.overlap_width(subject) >= self.min_overlap


def _to_bed_interval(interval: Interval, refname: str, name: Optional[str] = None) -> BedInterval:
    return BedInterval(refname=refname, start=interval.start - 1, end=interval.end, name=name)


class IntervalIndex:
    """An index answering which intervals overlap a query interval.

    The intervals are held in a :class:`~pybedlite.overlap_detector.OverlapDetector`, which
    works in 0-based, half-open coordinates: each interval is added as ``(start - 1, end)`` and
    named by its position, so that identical intervals remain distinct hits.

    Args:
        intervals: the intervals to index; results refer to their positions in this sequence
        seqnames: optionally the sequence name of each interval; only intervals on the query's
            sequence are reported
    """

    def __init__(self,
                 intervals: Iterable[Interval],
                 seqnames: Optional[Sequence[str]] = None) -> None:
        self._detector = OverlapDetector()
        self._length = 0
        for i, interval in enumerate(intervals):
            refname = _REFNAME if seqnames is None else seqnames[i]
            self._detector.add(_to_bed_interval(interval, refname=refname, name=str(i)))
            self._length += 1

    def __len__(self) -> int:
        return self._length

    def overlapping(self, interval: Interval, seqname: Optional[str] = None) -> List[int]:
        """Returns the ascending indices of the indexed intervals overlapping the given interval.
        """
        query = _to_bed_interval(interval, refname=_REFNAME if seqname is None else seqname)
        return sorted(int(hit.name) for hit in self._detector.get_overlaps(query))


@attr.s(frozen=True, auto_attribs=True)
class Hits:
    """The matching (query index, subject index) pairs found between two interval sets.

    Attributes:
        pairs: the pairs, ordered by query index then subject index
        query_length: the number of intervals in the query
        subject_length: the number of intervals in the subject
    """

    pairs: Tuple[Tuple[int, int], ...] = attr.ib(converter=tuple)
    query_length: int
    subject_length: int

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(self.pairs)

    def __getitem__(self, index: int) -> Tuple[int, int]:
        return self.pairs[index]

    @property
    def query_hits(self) -> Tuple[int, ...]:
        return tuple(query_index for query_index, _ in self.pairs)

    @property
    def subject_hits(self) -> Tuple[int, ...]:
        return tuple(subject_index for _, subject_index in self.pairs)

    def count_by_query(self) -> List[int]:
        """Returns the number of pairs for each query index, zero for query intervals without a
        match."""
        counts = [0] * self.query_length
        for query_index, _ in self.pairs:
            counts[query_index] += 1
        return counts


def _find_interval_overlaps(query: IntervalSet,
                            subject: IntervalSet,
                            options: OverlapOptions) -> List[Tuple[int, int]]:
    index = IntervalIndex(subject)
    logging.getLogger(__name__).debug("Indexed %d subject intervals", len(index))
    pairs = []
    for query_index, interval in enumerate(query):
        for subject_index in index.overlapping(interval):
            if options.matches(interval, subject[subject_index]):
                pairs.append((query_index, subject_index))
    return pairs


def _find_annotated_overlaps(query: AnnotatedIntervalSet,
                             subject: AnnotatedIntervalSet,
                             options: OverlapOptions) -> List[Tuple[int, int]]:
    index = IntervalIndex(subject.intervals, seqnames=subject.seqnames)
    logging.getLogger(__name__).debug("Indexed %d subject intervals on %d sequences",
                                      len(index), len(set(subject.seqnames)))

    pairs = []
    for query_index, row in enumerate(query):
        for subject_index in index.overlapping(row.interval, seqname=row.seqname):
            if not options.ignore_strand \
                    and not row.strand.is_compatible(subject.strands[subject_index]):
                continue
            if options.matches(row.interval, subject.intervals[subject_index]):
                pairs.append((query_index, subject_index))
    return pairs


def find_overlaps(query: IntervalsType,
                  subject: IntervalsType,
                  overlap_type: Union[OverlapType, str] = OverlapType.Any,
                  min_overlap: int = 1,
                  ignore_strand: bool = False) -> Hits:
    """Finds every pair of matching query and subject intervals.

    Args:
        query: the query intervals
        subject: the subject intervals; must be the same kind of collection as the query
        overlap_type: the rule deciding whether two intervals match
        min_overlap: the minimum number of positions a matching pair must share
        ignore_strand: for annotated sets, match intervals regardless of strand

    Returns:
        the matching pairs, ordered by query index then subject index
    """
    options = OverlapOptions(overlap_type=overlap_type,
                             min_overlap=min_overlap,
                             ignore_strand=ignore_strand)
    if isinstance(query, AnnotatedIntervalSet) and isinstance(subject, AnnotatedIntervalSet):
        pairs = _find_annotated_overlaps(query, subject, options)
    elif isinstance(query, IntervalSet) and isinstance(subject, IntervalSet):
        pairs = _find_interval_overlaps(query, subject, options)
    else:
        raise ValidationError(
            f"Query and subject must both be IntervalSets or both AnnotatedIntervalSets, found "
            f"{type(query).__name__} and {type(subject).__name__}", field="subject")
    return Hits(pairs=pairs, query_length=len(query), subject_length=len(subject))


def count_overlaps(query: IntervalsType,
                   subject: IntervalsType,
                   overlap_type: Union[OverlapType, str] = OverlapType.Any,
                   min_overlap: int = 1,
                   ignore_strand: bool = False) -> List[int]:
    """Counts the subject intervals matching each query interval.

    See :func:`~rangewell.overlaps.find_overlaps` for the arguments.

    Returns:
        one count per query interval, in query order
    """
    hits = find_overlaps(query, subject, overlap_type=overlap_type, min_overlap=min_overlap,
                         ignore_strand=ignore_strand)
    return hits.count_by_query()


def overlaps_any(query: IntervalsType,
                 subject: IntervalsType,
                 overlap_type: Union[OverlapType, str] = OverlapType.Any,
                 min_overlap: int = 1,
                 ignore_strand: bool = False) -> List[bool]:
    """Returns, for each query interval, whether any subject interval matches it."""
    counts = count_overlaps(query, subject, overlap_type=overlap_type, min_overlap=min_overlap,
                            ignore_strand=ignore_strand)
    return [count > 0 for count in counts]


def subset_by_overlaps(query: IntervalsType,
                       subject: IntervalsType,
                       overlap_type: Union[OverlapType, str] = OverlapType.Any,
                       min_overlap: int = 1,
                       ignore_strand: bool = False) -> IntervalsType:
    """Returns the query intervals matched by at least one subject interval, in query order."""
    matched = overlaps_any(query, subject, overlap_type=overlap_type, min_overlap=min_overlap,
                           ignore_strand=ignore_strand)
    return query.subset(i for i, hit in enumerate(matched) if hit)
