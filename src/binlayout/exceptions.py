from __future__ import annotations


class LayoutError(ValueError):
    """Base class for every error raised while building or parsing a layout."""


class LayoutDefinitionError(LayoutError):
    """Invalid layout configuration (bad step chain, duplicate field, bad document)."""


class BoundsError(LayoutError):
    """A read would run past the end of the buffer."""

    def __init__(self, offset: int, size: int, length: int):
        super().__init__(f"underrun: need {size} at {offset}, buffer is {length} bytes")
        self.offset = offset
        self.size = size
        self.length = length


class MalformedStringError(LayoutError):
    """No NUL terminator before end of buffer, or the run is not valid UTF-8."""


class UnknownDiscriminantError(LayoutError):
    def __init__(self, field: str, value: int, offset: int):
        super().__init__(f"{field}: no struct mapped for discriminant {value} at {offset}")
        self.field = field
        self.value = value
        self.offset = offset


class MissingCountFieldError(LayoutError):
    """
    An array takes its length from a sibling field that is not in the record.
    The count field must be declared (and therefore parsed) before the array.
    """


class ArrayCountError(LayoutError):
    pass


class PointerCycleError(LayoutError):
    """Pointers in the buffer lead back to a struct that is still being parsed."""


class NegativeOffsetError(LayoutError):
    pass
