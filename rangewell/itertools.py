"""
Event Streams for the Interval Sweeps
-------------------------------------

:func:`~rangewell.interval_set.depth_changes`, which underlies
:func:`~rangewell.interval_set.IntervalSet.disjoin` and :func:`~rangewell.coverage.coverage`,
walks two sorted streams of ``(position, delta)`` events at once: interval starts and the
positions one past interval ends.  At each position it consumes every event there and stops at
the first event of the next position.

.. code-block:: python

    >>> from rangewell.itertools import MergingIterator, peekable
    >>> starts = iter([(1, +1), (4, +1)])
    >>> ends = iter([(4, -1), (6, -1)])
    >>> events = peekable(MergingIterator(starts, ends, keyfunc=lambda event: event[0]))
    >>> events.takewhile(lambda event: event[0] == 1)
    [(1, 1)]
    >>> events.peek()
    (4, 1)
    >>> events.takewhile(lambda event: event[0] == 4)
    [(4, 1), (4, -1)]

Module Contents
~~~~~~~~~~~~~~~

    - :class:`~rangewell.itertools.PeekableIterator` -- Shows the next event without consuming it
    - :class:`~rangewell.itertools.MergingIterator` -- Interleaves two sorted streams in key order;
        on equal keys the first stream goes first
    - :func:`~rangewell.itertools.peekable` -- Wraps an iterable in a
        :class:`~rangewell.itertools.PeekableIterator`
"""

from typing import Any
from typing import Callable
from typing import Generic
from typing import Iterable
from typing import Iterator
from typing import List
from typing import TypeVar

ItemType = TypeVar('ItemType')

_EXHAUSTED: Any = object()


class PeekableIterator(Generic[ItemType], Iterator[ItemType]):
    """Wraps an iterator, buffering one item so it can be inspected before it is consumed.

    Args:
        source: the iterator to wrap
    """

    def __init__(self, source: Iterator[ItemType]) -> None:
        self._source = source
        self._head: Any = next(source, _EXHAUSTED)

    def __iter__(self) -> Iterator[ItemType]:
        return self

    def __next__(self) -> ItemType:
        head = self.peek()
        self._head = next(self._source, _EXHAUSTED)
        return head

    def can_peek(self) -> bool:
        """True while items remain."""
        return self._head is not _EXHAUSTED

    def peek(self) -> ItemType:
        """Returns the next item without consuming it; raises StopIteration once exhausted."""
        if self._head is _EXHAUSTED:
            raise StopIteration
        return self._head

    def takewhile(self, pred: Callable[[ItemType], bool]) -> List[ItemType]:
        """Consumes and returns the leading items for which ``pred`` holds.  The first item
        failing ``pred`` is left in place."""
        taken: List[ItemType] = []
        while self.can_peek() and pred(self._head):
            taken.append(next(self))
        return taken


def peekable(source: Iterable[ItemType]) -> PeekableIterator[ItemType]:
    return PeekableIterator(iter(source))


class MergingIterator(Generic[ItemType], Iterator[ItemType]):
    """Interleaves two iterators, each sorted by ``keyfunc``, into a single sorted iterator.

    Args:
        first: a sorted iterator; its items come first when keys are equal
        second: a sorted iterator
        keyfunc: extracts the sort key of an item
    """

    def __init__(self,
                 first: Iterator[ItemType],
                 second: Iterator[ItemType],
                 keyfunc: Callable[[ItemType], Any]) -> None:
        self._first = peekable(first)
        self._second = peekable(second)
        self._keyfunc = keyfunc

    def __iter__(self) -> Iterator[ItemType]:
        return self

    def __next__(self) -> ItemType:
        if not self._second.can_peek():
            return next(self._first)
        if not self._first.can_peek():
            return next(self._second)
        if self._keyfunc(self._first.peek()) <= self._keyfunc(self._second.peek()):
            return next(self._first)
        return next(self._second)
