"""
Errors Raised by rangewell
--------------------------

Every operation in :py:mod:`rangewell` is a pure computation, so there is a single error type:

    - :class:`~rangewell.errors.ValidationError` -- raised when an input is malformed (an
        interval whose start is after its end, parallel arrays of different lengths, an unknown
        overlap type, ...).

Operations on empty inputs are not errors; they return empty results of the correct type.
"""

from typing import Optional


class ValidationError(ValueError):
    """Raised when the input to an operation is malformed.

    Attributes:
        message: the description of the problem, without the field and index
        field: optionally the name of the offending field or argument
        index: optionally the index of the offending element
    """

    def __init__(self,
                 message: str,
                 field: Optional[str] = None,
                 index: Optional[int] = None) -> None:
        self.message = message
        details = []
        if field is not None:
            details.append(f"field={field}")
        if index is not None:
            details.append(f"index={index}")
        if details:
            message = f"{message} ({', '.join(details)})"
        super().__init__(message)
        self.field = field
        self.index = index
