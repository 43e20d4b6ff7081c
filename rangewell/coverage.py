"""
Per-Position Coverage of Interval Sets
--------------------------------------

The coverage of an interval set is, for every position of the coordinate space, the number of
intervals covering that position.  It is returned as a :class:`~rangewell.rle.RunLengthVector`
whose element ``i`` is the coverage of position ``i + 1``.  Positions covered by no interval are
explicit runs of zero.

.. code-block:: python

    >>> from rangewell.coverage import coverage, slice_coverage
    >>> from rangewell.interval_set import IntervalSet
    >>> cov = coverage(IntervalSet.from_pairs([(1, 3), (2, 5)]))
    >>> cov.values, cov.lengths
    ((1, 2, 1), (1, 2, 2))
    >>> coverage(IntervalSet.from_pairs([(3, 4)]), space_length=6).expand()
    [0, 0, 1, 1, 0, 0]
    >>> slice_coverage(cov, lower=2)
    IntervalSet(intervals=(Interval(2, 3),))

The coordinate space runs from position 1 to ``space_length``, or to the largest end in the set
when no length is given.  Intervals extending past an explicit ``space_length`` are truncated.

Coverage of grouped and annotated collections is computed independently for each group (or each
sequence); groups never contribute to each other's coverage.

Module Contents
~~~~~~~~~~~~~~~

The module contains the following methods:

    - :func:`~rangewell.coverage.coverage` -- Computes the coverage of an interval set
    - :func:`~rangewell.coverage.grouped_coverage` -- Computes the coverage of each group
    - :func:`~rangewell.coverage.coverage_by_seqname` -- Computes the coverage on each sequence
        of an annotated set
    - :func:`~rangewell.coverage.slice_coverage` -- Finds the positions whose coverage is within
        given bounds
"""

import logging
from typing import Dict
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from rangewell.annotated import AnnotatedIntervalSet
from rangewell.errors import ValidationError
from rangewell.grouped import GroupedIntervals
from rangewell.grouped import GroupKey
from rangewell.grouped import MemberType
from rangewell.interval import Interval
from rangewell.interval_set import IntervalSet
from rangewell.interval_set import depth_changes
from rangewell.rle import RunLengthVector

# The length of the coordinate space for every group, or for each group by key
SpaceLengthType = Optional[Union[int, Mapping[GroupKey, int]]]


def coverage(intervals: Union[IntervalSet, Iterable[Interval]],
             space_length: Optional[int] = None) -> RunLengthVector[int]:
    """Computes the number of intervals covering each position.

    Args:
        intervals: the intervals
        space_length: the number of positions in the coordinate space; defaults to the largest
            end of the intervals, or zero if there are none

    Returns:
        the maximally compressed coverage, with one logical element per position
    """
    intervals = list(intervals)
    if space_length is None:
        space_length = max((interval.end for interval in intervals), default=0)
    elif space_length < 0:
        raise ValidationError(f"space_length may not be negative, found {space_length}",
                              field="space_length")

    runs: List[Tuple[int, int]] = []
    position, depth = 1, 0
    for event_position, event_depth in depth_changes(intervals):
        if event_position > space_length:
            break
        runs.append((depth, event_position - position))
        position, depth = event_position, event_depth
    runs.append((depth, space_length + 1 - position))
    return RunLengthVector.from_runs(runs)


def _space_length_for(space_length: SpaceLengthType, key: GroupKey) -> Optional[int]:
    if isinstance(space_length, Mapping):
        return space_length.get(key)
    return space_length


def _member_intervals(member: MemberType) -> IntervalSet:
    if isinstance(member, AnnotatedIntervalSet):
        return member.intervals
    return member


def grouped_coverage(grouped: GroupedIntervals,
                     space_length: SpaceLengthType = None,
                     max_workers: Optional[int] = None
                     ) -> Dict[GroupKey, RunLengthVector[int]]:
    """Computes the coverage of each group independently.

    Args:
        grouped: the grouped intervals
        space_length: the length of the coordinate space, either for all groups or as a mapping
            from group key to length; groups without a length use their largest end
        max_workers: compute the groups' coverage on up to this many threads

    Returns:
        a mapping from group key to the coverage of that group, in group order
    """
    def group_coverage(key: GroupKey, member: MemberType) -> RunLengthVector[int]:
        return coverage(_member_intervals(member),
                        space_length=_space_length_for(space_length, key))

    return grouped.apply_with_keys(group_coverage, max_workers=max_workers)


def coverage_by_seqname(intervals: AnnotatedIntervalSet,
                        seqlengths: Optional[Mapping[str, int]] = None,
                        max_workers: Optional[int] = None
                        ) -> Dict[str, RunLengthVector[int]]:
    """Computes the coverage on each sequence of an annotated set, regardless of strand.

    Args:
        intervals: the annotated intervals
        seqlengths: optionally the length of each sequence; sequences listed here without any
            interval have a coverage of zero over their whole length
        max_workers: compute the sequences' coverage on up to this many threads

    Returns:
        a mapping from sequence name to coverage; sequences appear in order of first appearance
        in the set, followed by those only found in ``seqlengths``
    """
    results = grouped_coverage(intervals.split_by_seqname(), space_length=seqlengths,
                               max_workers=max_workers)
    coverages: Dict[str, RunLengthVector[int]] = {str(key): value for key, value in results.items()}
    if seqlengths is not None:
        for seqname, length in seqlengths.items():
            if seqname not in coverages:
                logging.getLogger(__name__).debug("No intervals on %s, coverage is zero", seqname)
                coverages[seqname] = coverage(IntervalSet.empty(), space_length=length)
    return coverages


def slice_coverage(vector: RunLengthVector[int],
                   lower: int = 1,
                   upper: Optional[int] = None) -> IntervalSet:
    """Returns the positions whose coverage lies within the given bounds.

    Args:
        vector: the coverage
        lower: the smallest coverage to keep (inclusive)
        upper: optionally the largest coverage to keep (inclusive)

    Returns:
        the reduced set of positions with ``lower <= coverage <= upper``
    """
    kept = [
        Interval(start=run_start, end=run_end)
        for value, run_start, run_end in zip(vector.values, vector.run_starts(), vector.run_ends())
        if value >= lower and (upper is None or value <= upper)
    ]
    return IntervalSet(kept).reduce()
