"""
A Single Closed Interval
------------------------

The :class:`~rangewell.interval.Interval` is the atomic unit of every collection in
:py:mod:`rangewell`.  Coordinates are 1-based and closed: ``Interval(3, 5)`` covers positions 3,
4 and 5, so its width is 3.  The start may not be after the end, so every interval covers at
least one position.

.. code-block:: python

    >>> from rangewell.interval import Interval
    >>> interval = Interval(3, 5)
    >>> interval.width
    3
    >>> Interval.from_width(start=3, width=3) == interval
    True
    >>> interval.overlaps(Interval(5, 9))
    True
    >>> interval.overlap_width(Interval(6, 9))
    0
    >>> Interval(5, 3)
    ValidationError: Interval start 5 is after end 3
    >>> Interval(0, 3)
    ValidationError: Interval start must be at least 1, found 0 (field=start)

Coordinates must be whole numbers; ``Interval(1.5, 3)`` is rejected rather than truncated.
"""

import numbers
from typing import Any

import attr

from rangewell.errors import ValidationError


def _to_coordinate(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Coordinates must be whole numbers, found {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("+-").isdigit():
        return int(value)
    raise ValidationError(f"Coordinates must be whole numbers, found {value!r}")


def _check_start(instance: "Interval", attribute: Any, value: int) -> None:
    if value < 1:
        raise ValidationError(f"Interval start must be at least 1, found {value}",
                              field=attribute.name)


def _check_start_end(instance: "Interval", attribute: Any, value: int) -> None:
    if instance.start > value:
        raise ValidationError(f"Interval start {instance.start} is after end {value}")


@attr.s(frozen=True, auto_attribs=True, order=True, repr=False)
class Interval:
    """A closed, 1-based interval.

    Attributes:
        start: the first position covered by the interval
        end: the last position covered by the interval (inclusive)
    """

    start: int = attr.ib(converter=_to_coordinate, validator=_check_start)
    end: int = attr.ib(converter=_to_coordinate, validator=_check_start_end)

    @classmethod
    def from_width(cls, start: int, width: int) -> "Interval":
        """Builds the interval starting at ``start`` covering ``width`` positions."""
        return cls(start=start, end=start + width - 1)

    @property
    def width(self) -> int:
        """The number of positions covered by this interval."""
        return self.end - self.start + 1

    @property
    def mid(self) -> int:
        """The middle position, rounded down for intervals of even width."""
        return (self.start + self.end) // 2

    def overlaps(self, other: "Interval") -> bool:
        """True if the two intervals share at least one position."""
        return self.start <= other.end and other.start <= self.end

    def contains(self, other: "Interval") -> bool:
        """True if ``other`` lies entirely within this interval."""
        return self.start <= other.start and other.end <= self.end

    def overlap_width(self, other: "Interval") -> int:
        """Returns the number of positions shared by the two intervals, or zero if disjoint."""
        return max(0, min(self.end, other.end) - max(self.start, other.start) + 1)

    def shift(self, offset: int) -> "Interval":
        """Returns a new interval moved by ``offset`` positions."""
        return Interval(start=self.start + offset, end=self.end + offset)

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"

    def __repr__(self) -> str:
        return f"Interval({self.start}, {self.end})"
