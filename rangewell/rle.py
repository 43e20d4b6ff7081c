"""
Run-Length Encoded Vectors
--------------------------

A :class:`~rangewell.rle.RunLengthVector` stores a long sequence of repeated values as a list of
runs, each run being a value and the number of consecutive times it is repeated.  It is the
memory-efficient alternative to a dense list of per-position annotations such as per-base
coverage.  The vector is always maximally compressed: two adjacent runs never hold the same value.

Examples
~~~~~~~~

.. code-block:: python

    >>> from rangewell.rle import RunLengthVector
    >>> rle = RunLengthVector.compress([1, 2, 2, 1, 1])
    >>> rle.values, rle.lengths
    ((1, 2, 1), (1, 2, 2))
    >>> len(rle)
    5
    >>> rle[2]
    2
    >>> rle.expand()
    [1, 2, 2, 1, 1]

Runs may also be given directly; zero-length runs are dropped and equal neighbours merged:

.. code-block:: python

    >>> RunLengthVector.from_runs([(0, 2), (1, 0), (0, 3)])
    RunLengthVector(values=(0,), lengths=(5,))

Building the vector from its fields directly requires them to already be maximally compressed:

.. code-block:: python

    >>> RunLengthVector(values=[0, 0], lengths=[1, 1])
    ValidationError: Adjacent runs share the value 0 (field=values, index=1)
"""

import bisect
from itertools import accumulate
from typing import Any
from typing import Callable
from typing import Generic
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Tuple
from typing import TypeVar
from typing import Union

import attr

from rangewell.errors import ValidationError

ValueType = TypeVar('ValueType')
OtherType = TypeVar('OtherType')


@attr.s(frozen=True, auto_attribs=True)
class RunLengthVector(Generic[ValueType]):
    """A run-length encoded sequence of values.

    Attributes:
        values: the value of each run
        lengths: the number of times each value is repeated; always positive
    """

    values: Tuple[ValueType, ...] = attr.ib(converter=tuple)
    lengths: Tuple[int, ...] = attr.ib(converter=tuple)
    _ends: Tuple[int, ...] = attr.ib(init=False, repr=False, eq=False)

    def __attrs_post_init__(self) -> None:
        if len(self.values) != len(self.lengths):
            raise ValidationError(
                f"Found {len(self.values)} values but {len(self.lengths)} run lengths",
                field="lengths")
        for i, length in enumerate(self.lengths):
            if length <= 0:
                raise ValidationError(f"Run lengths must be positive, found {length}",
                                      field="lengths", index=i)
        for i in range(1, len(self.values)):
            if self.values[i] == self.values[i - 1]:
                raise ValidationError(f"Adjacent runs share the value {self.values[i]}",
                                      field="values", index=i)
        # the exclusive end (0-based) of each run in the expanded sequence
        object.__setattr__(self, "_ends", tuple(accumulate(self.lengths)))

    @classmethod
    def from_runs(cls, runs: Iterable[Tuple[ValueType, int]]) -> "RunLengthVector[ValueType]":
        """Builds a vector from (value, length) pairs, merging neighbours with equal values.

        Args:
            runs: the runs in order; runs with a length of zero are ignored.
        """
        values: List[ValueType] = []
        lengths: List[int] = []
        for value, length in runs:
            if length < 0:
                raise ValidationError(f"Run lengths may not be negative, found {length}",
                                      field="lengths", index=len(lengths))
            if length == 0:
                continue
            if values and values[-1] == value:
                lengths[-1] += length
            else:
                values.append(value)
                lengths.append(length)
        return cls(values=values, lengths=lengths)

    @classmethod
    def compress(cls, dense: Iterable[ValueType]) -> "RunLengthVector[ValueType]":
        """Compresses a dense sequence of values."""
        return cls.from_runs((value, 1) for value in dense)

    @classmethod
    def empty(cls) -> "RunLengthVector[Any]":
        """Returns a vector with no runs."""
        return cls(values=(), lengths=())

    def expand(self) -> List[ValueType]:
        """Returns the dense list of values, one element per logical position."""
        dense: List[ValueType] = []
        for value, length in self.runs():
            dense.extend([value] * length)
        return dense

    def runs(self) -> Iterator[Tuple[ValueType, int]]:
        """Iterates over the (value, length) runs."""
        return zip(self.values, self.lengths)

    @property
    def num_runs(self) -> int:
        return len(self.values)

    def run_starts(self) -> List[int]:
        """The 1-based position at which each run starts."""
        return [end - length + 1 for end, length in zip(self._ends, self.lengths)]

    def run_ends(self) -> List[int]:
        """The 1-based position at which each run ends (inclusive)."""
        return list(self._ends)

    def __len__(self) -> int:
        return self._ends[-1] if self._ends else 0

    def __iter__(self) -> Iterator[ValueType]:
        for value, length in self.runs():
            for _ in range(length):
                yield value

    def __getitem__(self, index: Union[int, slice]) -> Any:
        if isinstance(index, slice):
            return self._slice(index)
        length = len(self)
        if index < 0:
            index += length
        if index < 0 or index >= length:
            raise IndexError(f"Index {index} out of range for vector of length {length}")
        return self.values[self._run_index(index)]

    def _run_index(self, index: int) -> int:
        """Returns the index of the run containing the given 0-based logical index."""
        return bisect.bisect_right(self._ends, index)

    def _slice(self, index: slice) -> "RunLengthVector[ValueType]":
        start, stop, step = index.indices(len(self))
        if step != 1:
            return RunLengthVector.compress(self.expand()[index])
        if start >= stop:
            return RunLengthVector.empty()
        first = self._run_index(start)
        last = self._run_index(stop - 1)
        runs: List[Tuple[ValueType, int]] = []
        for i in range(first, last + 1):
            run_start = self._ends[i] - self.lengths[i]
            runs.append((self.values[i], min(self._ends[i], stop) - max(run_start, start)))
        return RunLengthVector.from_runs(runs)

    def sum(self) -> Any:
        """The sum of all values, computed without expanding the vector."""
        return sum(value * length for value, length in self.runs())  # type: ignore

    def max(self) -> ValueType:
        if not self.values:
            raise ValueError("max() of an empty vector")
        return max(self.values)  # type: ignore

    def min(self) -> ValueType:
        if not self.values:
            raise ValueError("min() of an empty vector")
        return min(self.values)  # type: ignore

    def map(self, fn: Callable[[ValueType], OtherType]) -> "RunLengthVector[OtherType]":
        """Applies ``fn`` to each run value, re-compressing the result."""
        return RunLengthVector.from_runs((fn(value), length) for value, length in self.runs())

    def __str__(self) -> str:
        runs = ", ".join(f"{value}x{length}" for value, length in self.runs())
        return f"[{runs}]"

