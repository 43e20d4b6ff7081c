"""
Collections of Intervals over One Coordinate Space
--------------------------------------------------

An :class:`~rangewell.interval_set.IntervalSet` is an ordered, index-addressable collection of
:class:`~rangewell.interval.Interval` objects.  Construction places no requirement on the order of
the intervals or on whether they overlap; the order is kept because results such as overlap
counts are reported per input index.  Every operation returns a new set and leaves its input
unchanged.

Normalizing and Decomposing Interval Sets
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

``reduce`` merges overlapping and adjacent intervals into the smallest number of intervals
covering the same positions.  Intervals are adjacent when the second starts right after the
first ends: ``1-5`` and ``6-8`` are merged, while ``1-5`` and ``7-8`` are not.

.. code-block:: python

    >>> from rangewell.interval_set import IntervalSet
    >>> intervals = IntervalSet.from_pairs([(10, 12), (1, 5), (4, 8)])
    >>> intervals.reduce()
    IntervalSet(intervals=(Interval(1, 8), Interval(10, 12)))
    >>> intervals.reduce(min_gap_width=2)
    IntervalSet(intervals=(Interval(1, 12),))

``disjoin`` cuts the union of the intervals at every start and end, so that each resulting
interval is either entirely inside or entirely outside each input interval:

.. code-block:: python

    >>> IntervalSet.from_pairs([(1, 5), (3, 8)]).disjoin()
    IntervalSet(intervals=(Interval(1, 2), Interval(3, 5), Interval(6, 8)))

Module Contents
~~~~~~~~~~~~~~~

The module contains the following public classes:

    - :class:`~rangewell.interval_set.IntervalSet` -- An ordered collection of intervals

The module contains the following methods:

    - :func:`~rangewell.interval_set.depth_changes` -- Sweeps over a collection of intervals,
        yielding the number of intervals covering each position at which that number may change
    - :func:`~rangewell.interval_set.select_indices` -- Resolves a subscript (slice, list of
        indices or boolean mask) into a list of indices
"""

from typing import Any
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

import attr

from rangewell.errors import ValidationError
from rangewell.interval import Interval
from rangewell.itertools import MergingIterator
from rangewell.itertools import peekable

# The subscripts accepted when selecting elements from a collection
Selection = Union[slice, Sequence[int], Sequence[bool]]


def select_indices(selection: Selection, length: int) -> List[int]:
    """Resolves a subscript into the list of indices it selects.

    Args:
        selection: a slice, a sequence of (possibly negative) indices, or a boolean mask with one
            element per item in the collection
        length: the number of items in the collection

    Raises:
        ValidationError: if a boolean mask does not have one element per item
        IndexError: if an index is out of range
    """
    if isinstance(selection, slice):
        return list(range(length))[selection]
    items = list(selection)
    if items and all(isinstance(item, bool) for item in items):
        if len(items) != length:
            raise ValidationError(f"Boolean mask has {len(items)} elements, expected {length}",
                                  field="mask")
        return [i for i, keep in enumerate(items) if keep]
    indices: List[int] = []
    for item in items:
        index = item + length if item < 0 else item
        if index < 0 or index >= length:
            raise IndexError(f"Index {item} out of range for collection of length {length}")
        indices.append(index)
    return indices


def depth_changes(intervals: Iterable[Interval]) -> Iterator[Tuple[int, int]]:
    """Sweeps over the intervals, yielding each position where an interval starts or ends.

    An event of +1 occurs at every start and an event of -1 one past every end.  For each distinct
    event position, in ascending order, the position and the number of intervals covering it (and
    every following position up to the next event) is yielded.  The last depth yielded is
    always zero.

    Args:
        intervals: the intervals to sweep over, in any order
    """
    intervals = list(intervals)
    starts = ((start, 1) for start in sorted(interval.start for interval in intervals))
    ends = ((end, -1) for end in sorted(interval.end + 1 for interval in intervals))
    events = peekable(MergingIterator(starts, ends, keyfunc=lambda event: event[0]))

    depth = 0
    while events.can_peek():
        position = events.peek()[0]
        for _, delta in events.takewhile(lambda event: event[0] == position):
            depth += delta
        yield position, depth


def _check_intervals(instance: Any, attribute: Any, value: Tuple[Any, ...]) -> None:
    for i, interval in enumerate(value):
        if not isinstance(interval, Interval):
            raise ValidationError(f"Expected an Interval, found {interval!r}",
                                  field=attribute.name, index=i)


def _build_interval(start: Any, end: Any, index: int) -> Interval:
    try:
        return Interval(start=start, end=end)
    except ValidationError as error:
        raise ValidationError(error.message, field=error.field or "end", index=index) from None


@attr.s(frozen=True, auto_attribs=True)
class IntervalSet:
    """An ordered collection of intervals over one coordinate space.

    Attributes:
        intervals: the intervals, in the order given
    """

    intervals: Tuple[Interval, ...] = attr.ib(converter=tuple, validator=_check_intervals)

    @classmethod
    def empty(cls) -> "IntervalSet":
        return cls(intervals=())

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[int, int]]) -> "IntervalSet":
        """Builds a set from (start, end) pairs."""
        return cls([_build_interval(start, end, i) for i, (start, end) in enumerate(pairs)])

    @classmethod
    def from_starts_ends(cls, starts: Sequence[int], ends: Sequence[int]) -> "IntervalSet":
        """Builds a set from parallel sequences of starts and (inclusive) ends."""
        if len(starts) != len(ends):
            raise ValidationError(f"Found {len(starts)} starts but {len(ends)} ends",
                                  field="ends")
        return cls.from_pairs(zip(starts, ends))

    @classmethod
    def from_starts_widths(cls, starts: Sequence[int], widths: Sequence[int]) -> "IntervalSet":
        """Builds a set from parallel sequences of starts and widths."""
        if len(starts) != len(widths):
            raise ValidationError(f"Found {len(starts)} starts but {len(widths)} widths",
                                  field="widths")
        intervals = []
        for i, (start, width) in enumerate(zip(starts, widths)):
            if width < 1:
                raise ValidationError(f"Interval width must be positive, found {width}",
                                      field="widths", index=i)
            intervals.append(_build_interval(start, start + width - 1, i))
        return cls(intervals)

    def __len__(self) -> int:
        return len(self.intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self.intervals)

    def __getitem__(self, index: Union[int, Selection]) -> Any:
        if isinstance(index, int):
            return self.intervals[index]
        return self.subset(select_indices(index, len(self)))

    def subset(self, indices: Iterable[int]) -> "IntervalSet":
        """Returns the intervals at the given indices, in the order given."""
        return IntervalSet([self.intervals[i] for i in indices])

    @property
    def starts(self) -> Tuple[int, ...]:
        return tuple(interval.start for interval in self.intervals)

    @property
    def ends(self) -> Tuple[int, ...]:
        return tuple(interval.end for interval in self.intervals)

    @property
    def widths(self) -> Tuple[int, ...]:
        return tuple(interval.width for interval in self.intervals)

    def order(self) -> List[int]:
        """Returns the indices that sort the intervals by start, then end.  Ties keep their
        original order."""
        return sorted(range(len(self)), key=lambda i: (self.intervals[i].start,
                                                       self.intervals[i].end))

    def sort(self) -> "IntervalSet":
        return self.subset(self.order())

    def concat(self, *others: "IntervalSet") -> "IntervalSet":
        """Returns the intervals of this set followed by those of each other set."""
        intervals = list(self.intervals)
        for other in others:
            intervals.extend(other.intervals)
        return IntervalSet(intervals)

    def is_disjoint(self) -> bool:
        """True if no two intervals share a position."""
        ordered = self.sort().intervals
        return all(prev.end < cur.start for prev, cur in zip(ordered, ordered[1:]))

    def span(self) -> "IntervalSet":
        """Returns a set holding the single interval from the smallest start to the largest end,
        or an empty set if this set is empty."""
        if not self.intervals:
            return IntervalSet.empty()
        return IntervalSet([Interval(min(self.starts), max(self.ends))])

    def reduce(self, min_gap_width: int = 1) -> "IntervalSet":
        """Merges overlapping and adjacent intervals.

        Args:
            min_gap_width: intervals separated by a gap of at least this many positions are not
                merged.  The default merges intervals that overlap or touch; zero merges only
                intervals that overlap.

        Returns:
            the merged intervals, sorted by start
        """
        reduced, _ = self.reduce_with_revmap(min_gap_width=min_gap_width)
        return reduced

    def reduce_with_revmap(self, min_gap_width: int = 1
                           ) -> Tuple["IntervalSet", List[Tuple[int, ...]]]:
        """Merges overlapping and adjacent intervals, tracking which inputs were merged.

        Args:
            min_gap_width: see :func:`~rangewell.interval_set.IntervalSet.reduce`

        Returns:
            the merged intervals, sorted by start, and for each merged interval the ascending
            indices of the input intervals it was built from
        """
        if min_gap_width < 0:
            raise ValidationError(f"min_gap_width may not be negative, found {min_gap_width}",
                                  field="min_gap_width")
        merged: List[Interval] = []
        revmap: List[List[int]] = []
        for i in self.order():
            interval = self.intervals[i]
            if merged and interval.start <= merged[-1].end + min_gap_width:
                last = merged[-1]
                if interval.end > last.end:
                    merged[-1] = Interval(start=last.start, end=interval.end)
                revmap[-1].append(i)
            else:
                merged.append(interval)
                revmap.append([i])
        return IntervalSet(merged), [tuple(sorted(indices)) for indices in revmap]

    def disjoin(self) -> "IntervalSet":
        """Cuts the covered positions at every interval start and end.

        Returns:
            the sorted, non-overlapping intervals such that each lies either entirely within or
            entirely outside every input interval, and together they cover exactly the positions
            covered by the input
        """
        events = list(depth_changes(self.intervals))
        return IntervalSet([
            Interval(start=position, end=next_position - 1)
            for (position, depth), (next_position, _) in zip(events, events[1:])
            if depth > 0
        ])

    def gaps(self, start: Optional[int] = None, end: Optional[int] = None) -> "IntervalSet":
        """Returns the positions, within the bounds, that are covered by no interval.

        Args:
            start: the first position to consider; defaults to the smallest start in the set
            end: the last position to consider; defaults to the largest end in the set
        """
        if start is None:
            start = min(self.starts) if self.intervals else None
        if end is None:
            end = max(self.ends) if self.intervals else None
        if start is None or end is None:
            return IntervalSet.empty()
        if start > end:
            raise ValidationError(f"Gap bounds start {start} is after end {end}", field="start")

        gaps: List[Interval] = []
        cursor = start
        for interval in self.reduce().intervals:
            if interval.start > end:
                break
            if interval.start > cursor:
                gaps.append(Interval(start=cursor, end=interval.start - 1))
            cursor = max(cursor, interval.end + 1)
        if cursor <= end:
            gaps.append(Interval(start=cursor, end=end))
        return IntervalSet(gaps)

    def union(self, other: "IntervalSet") -> "IntervalSet":
        """Returns the reduced set of positions covered by either set."""
        return self.concat(other).reduce()

    def intersect(self, other: "IntervalSet") -> "IntervalSet":
        """Returns the reduced set of positions covered by both sets."""
        events = list(depth_changes(self.reduce().concat(other.reduce()).intervals))
        return IntervalSet([
            Interval(start=position, end=next_position - 1)
            for (position, depth), (next_position, _) in zip(events, events[1:])
            if depth == 2
        ]).reduce()

    def setdiff(self, other: "IntervalSet") -> "IntervalSet":
        """Returns the reduced set of positions covered by this set but not by ``other``."""
        if not self.intervals:
            return IntervalSet.empty()
        bounds = self.span()[0]
        return self.intersect(other.gaps(start=bounds.start, end=bounds.end))
