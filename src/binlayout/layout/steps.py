from __future__ import annotations
from collections import ChainMap
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, MutableMapping, NamedTuple, Optional, Tuple, Union

from binlayout.binary.primitives import POINTER_WIDTH, PrimitiveType, decode_cstring, read_primitive
from binlayout.binary.view import ByteView
from binlayout.exceptions import (
    ArrayCountError,
    LayoutDefinitionError,
    MissingCountFieldError,
    UnknownDiscriminantError,
)
from binlayout.models.options import DEFAULT_OPTIONS, StepOptions
from binlayout.trace import TraceFn

if TYPE_CHECKING:
    from .member import Member
    from .structure import Struct

# (value, width) where width is None when the step cannot know its own size
StepResult = Tuple[Any, Optional[int]]


class CustomResult(NamedTuple):
    value: Any
    byte_size: int


CustomDecoder = Callable[[ByteView, int], Tuple[Any, int]]


@dataclass(frozen=True, eq=False)
class Step:
    options: StepOptions = DEFAULT_OPTIONS

    # True when the output is the next step's input offset instead of a value
    yields_offset = False

    def apply(self, view: ByteView, offset: int, record: MutableMapping[str, Any],
              field: str, trace: TraceFn) -> StepResult:
        raise NotImplementedError

    def _emit(self, trace: TraceFn, field: str, offset: int, value: Any) -> None:
        if self.options.debug:
            trace(field, offset, value)


@dataclass(frozen=True, eq=False)
class PrimitiveRead(Step):
    ptype: PrimitiveType = None  # type: ignore[assignment]

    def apply(self, view, offset, record, field, trace):
        value = read_primitive(view, self.ptype, offset, self.options.little_endian)
        self._emit(trace, field, offset, value)
        return value, self.ptype.width


@dataclass(frozen=True, eq=False)
class PointerRead(Step):
    yields_offset = True

    def apply(self, view, offset, record, field, trace):
        address = view.u32le(offset)
        self._emit(trace, field, offset, address)
        if address == 0 and not self.options.allow_null_pointer:
            return None, POINTER_WIDTH
        return address, POINTER_WIDTH


@dataclass(frozen=True, eq=False)
class StringRead(Step):
    def apply(self, view, offset, record, field, trace):
        text, width = decode_cstring(view, offset)
        self._emit(trace, field, offset, text)
        return text, width


def _parse_span(struct: "Struct", view: ByteView, offset: int, trace: TraceFn) -> StepResult:
    value = struct.parse(view, offset, reset_cursor_after=False, trace=trace)
    return value, struct.get_current_offset() - offset


@dataclass(frozen=True, eq=False)
class NestedStruct(Step):
    struct: "Struct" = None  # type: ignore[assignment]

    def apply(self, view, offset, record, field, trace):
        value, width = _parse_span(self.struct, view, offset, trace)
        self._emit(trace, field, offset, value)
        return value, width


@dataclass(frozen=True, eq=False)
class DispatchedStruct(Step):
    variants: Mapping[int, "Struct"] = None  # type: ignore[assignment]

    def apply(self, view, offset, record, field, trace):
        discriminant = view.u8(offset)
        struct = self.variants.get(discriminant)
        if struct is None:
            raise UnknownDiscriminantError(field, discriminant, offset)
        value, width = _parse_span(struct, view, offset, trace)
        self._emit(trace, field, offset, value)
        return value, width


@dataclass(frozen=True, eq=False)
class ArrayOf(Step):
    count: Union[int, str] = 0
    element: "Member" = None  # type: ignore[assignment]

    def resolve_count(self, view: ByteView, offset: int, record: Mapping[str, Any], field: str) -> int:
        if isinstance(self.count, str):
            if self.count not in record:
                raise MissingCountFieldError(
                    f"{field}: count field {self.count!r} not parsed yet; declare it before the array"
                )
            n = record[self.count]
        else:
            n = self.count
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ArrayCountError(f"{field}: bad array count {n!r}")
        # every element needs at least one byte of buffer, so this bounds the loop
        if n > view.remaining(offset):
            raise ArrayCountError(
                f"{field}: count {n} at {offset} exceeds {view.remaining(offset)} remaining bytes"
            )
        return n

    def apply(self, view, offset, record, field, trace):
        n = self.resolve_count(view, offset, record, field)
        scratch = ChainMap({}, record)
        values = []
        total = 0
        for _ in range(n):
            total += self.element.parse(view, offset + total, scratch, trace)
            values.append(scratch[self.element.name])
        self._emit(trace, field, offset, values)
        return values, total


@dataclass(frozen=True, eq=False)
class CustomRead(Step):
    decoder: CustomDecoder = None  # type: ignore[assignment]

    def apply(self, view, offset, record, field, trace):
        value, width = self.decoder(view, offset)
        if isinstance(width, bool) or not isinstance(width, int) or width < 0:
            raise LayoutDefinitionError(f"{field}: custom decoder returned bad byte size {width!r}")
        self._emit(trace, field, offset, value)
        return value, width
