"""
Grouped Collections of Interval Sets
------------------------------------

A :class:`~rangewell.grouped.GroupedIntervals` maps group keys (strings, or positions when built
from a list) to interval sets.  All members are of the same kind: either all
:class:`~rangewell.interval_set.IntervalSet` or all
:class:`~rangewell.annotated.AnnotatedIntervalSet`.  A collection may name the ``universe`` its
coordinates refer to (e.g. a genome build); this is purely descriptive.

Operations are applied to each group independently.  Since members are immutable, groups may be
processed concurrently by passing ``max_workers``:

.. code-block:: python

    >>> from rangewell.grouped import GroupedIntervals
    >>> from rangewell.interval_set import IntervalSet
    >>> grouped = GroupedIntervals(groups={"tx1": IntervalSet.from_pairs([(1, 5), (4, 9)]),
    ...                                    "tx2": IntervalSet.from_pairs([(20, 30)])},
    ...                            universe="hg19")
    >>> grouped.reduce(max_workers=2)["tx1"]
    IntervalSet(intervals=(Interval(1, 9),))
    >>> grouped.apply(len)
    {'tx1': 2, 'tx2': 1}

Flattening a collection with :func:`~rangewell.grouped.GroupedIntervals.unlist` concatenates the
groups in key order.  The key each row came from may be kept in a metadata column:

.. code-block:: python

    >>> grouped.unlist(provenance_column="group").to_rows()
    [{'seqname': 'tx1', 'start': 1, 'end': 5, 'strand': '*', 'group': 'tx1'},
     {'seqname': 'tx1', 'start': 4, 'end': 9, 'strand': '*', 'group': 'tx1'},
     {'seqname': 'tx2', 'start': 20, 'end': 30, 'strand': '*', 'group': 'tx2'}]
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Any
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Mapping
from typing import Optional
from typing import TypeVar
from typing import Union

import attr

from rangewell.annotated import AnnotatedIntervalSet
from rangewell.errors import ValidationError
from rangewell.interval_set import IntervalSet

# The key of a group; positions are used for collections built from a list
GroupKey = Union[str, int]

# The kinds of interval collection that may be grouped
MemberType = Union[IntervalSet, AnnotatedIntervalSet]

ResultType = TypeVar('ResultType')


def _freeze_groups(groups: Mapping[GroupKey, MemberType]) -> Mapping[GroupKey, MemberType]:
    return MappingProxyType(dict(groups))


def _check_groups(instance: Any, attribute: Any, value: Mapping[GroupKey, MemberType]) -> None:
    kinds = set()
    for key, member in value.items():
        if not isinstance(key, (str, int)):
            raise ValidationError(f"Group keys must be strings or integers, found {key!r}",
                                  field=attribute.name)
        if not isinstance(member, (IntervalSet, AnnotatedIntervalSet)):
            raise ValidationError(
                f"Group '{key}' holds a {type(member).__name__}, expected an interval set",
                field=attribute.name)
        kinds.add(type(member))
    if len(kinds) > 1:
        raise ValidationError("Groups must all be IntervalSets or all AnnotatedIntervalSets",
                              field=attribute.name)


@attr.s(frozen=True, auto_attribs=True)
class GroupedIntervals:
    """A mapping from group key to interval set.

    Attributes:
        groups: the interval set for each group key, in key order
        universe: optionally the name of the coordinate system shared by all groups
    """

    groups: Mapping[GroupKey, MemberType] = attr.ib(converter=_freeze_groups,
                                                    validator=_check_groups, hash=False)
    universe: Optional[str] = None

    @classmethod
    def from_list(cls,
                  members: Iterable[MemberType],
                  universe: Optional[str] = None) -> "GroupedIntervals":
        """Builds a collection keyed by the position of each member."""
        return cls(groups=dict(enumerate(members)), universe=universe)

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self) -> Iterator[GroupKey]:
        return iter(self.groups)

    def __getitem__(self, key: GroupKey) -> MemberType:
        return self.groups[key]

    def keys(self) -> List[GroupKey]:
        return list(self.groups.keys())

    def items(self) -> List[Any]:
        return list(self.groups.items())

    @property
    def is_annotated(self) -> bool:
        """True if the members are annotated interval sets."""
        return any(isinstance(member, AnnotatedIntervalSet) for member in self.groups.values())

    def lengths(self) -> Dict[GroupKey, int]:
        """The number of intervals in each group."""
        return {key: len(member) for key, member in self.groups.items()}

    def apply_with_keys(self,
                        fn: Callable[[GroupKey, MemberType], ResultType],
                        max_workers: Optional[int] = None) -> Dict[GroupKey, ResultType]:
        """Calls ``fn`` with the key and member of each group.

        Args:
            fn: the function to call for each group
            max_workers: if greater than one, call ``fn`` on up to this many threads

        Returns:
            a mapping from group key to the result for that group, in key order
        """
        items = list(self.groups.items())
        if max_workers is None or max_workers <= 1 or len(items) <= 1:
            return {key: fn(key, member) for key, member in items}

        logging.getLogger(__name__).debug("Processing %d groups on up to %d threads",
                                          len(items), max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(fn, key, member) for key, member in items]
            return {key: future.result() for (key, _), future in zip(items, futures)}

    def apply(self,
              fn: Callable[[MemberType], ResultType],
              max_workers: Optional[int] = None) -> Dict[GroupKey, ResultType]:
        """Calls ``fn`` with each member; see
        :func:`~rangewell.grouped.GroupedIntervals.apply_with_keys`."""
        return self.apply_with_keys(lambda _, member: fn(member), max_workers=max_workers)

    def transform(self,
                  fn: Callable[[MemberType], MemberType],
                  max_workers: Optional[int] = None) -> "GroupedIntervals":
        """Returns a new collection holding the result of ``fn`` for each member."""
        return GroupedIntervals(groups=self.apply(fn, max_workers=max_workers),
                                universe=self.universe)

    def reduce(self, min_gap_width: int = 1, max_workers: Optional[int] = None
               ) -> "GroupedIntervals":
        """Reduces each group independently."""
        return self.transform(lambda member: member.reduce(min_gap_width=min_gap_width),
                              max_workers=max_workers)

    def disjoin(self, max_workers: Optional[int] = None) -> "GroupedIntervals":
        """Disjoins each group independently."""
        return self.transform(lambda member: member.disjoin(), max_workers=max_workers)

    def unlist(self, provenance_column: Optional[str] = None) -> MemberType:
        """Concatenates the groups, in key order, into a single collection.

        Args:
            provenance_column: optionally the name of a metadata column, placed first, recording
                the key of the group each row came from.  When the members are plain interval
                sets, requesting this column returns an annotated set whose sequence names are
                the group keys.

        Returns:
            an :class:`~rangewell.annotated.AnnotatedIntervalSet` if the members are annotated or
            a provenance column was requested, otherwise an
            :class:`~rangewell.interval_set.IntervalSet`
        """
        members = list(self.groups.values())
        provenance = [key for key, member in self.groups.items() for _ in range(len(member))]

        if not members:
            if provenance_column is None:
                return IntervalSet.empty()
            return AnnotatedIntervalSet.empty(columns=[provenance_column])

        if self.is_annotated:
            annotated = members[0].concat(*members[1:])
            if provenance_column is None:
                return annotated
            if provenance_column in annotated.metadata:
                raise ValidationError(f"Metadata column '{provenance_column}' already exists",
                                      field="provenance_column")
            metadata: Dict[str, Any] = {provenance_column: provenance}
            metadata.update(annotated.metadata)
            return attr.evolve(annotated, metadata=metadata)

        intervals = members[0].concat(*members[1:])
        if provenance_column is None:
            return intervals
        return AnnotatedIntervalSet.build(intervals=intervals,
                                          seqnames=[str(key) for key in provenance],
                                          metadata={provenance_column: provenance})
