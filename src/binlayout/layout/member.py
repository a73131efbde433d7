from __future__ import annotations
from typing import TYPE_CHECKING, Any, List, Mapping, MutableMapping, Optional, Union

from binlayout.binary.primitives import PRIMITIVES
from binlayout.binary.view import ByteView
from binlayout.exceptions import LayoutDefinitionError
from binlayout.models.options import make_options
from binlayout.trace import TraceFn, log_trace
from .steps import (
    ArrayOf,
    CustomDecoder,
    CustomRead,
    DispatchedStruct,
    NestedStruct,
    PointerRead,
    PrimitiveRead,
    Step,
    StringRead,
)

if TYPE_CHECKING:
    from .structure import Struct


class Member:
    """
    One named field, decoded by an ordered chain of steps.

    Only a pointer feeds its result forward as the next step's offset; any
    other step produces the field's value and ends the chain. The bytes the
    field occupies in its parent are claimed by the first step that knows its
    own width, so `pointer().uint32()` advances the parent by 4 no matter
    what sits at the address.
    """

    __slots__ = ("name", "steps", "claimed_width")

    def __init__(self, name: str):
        self.name = name
        self.steps: List[Step] = []
        self.claimed_width: Optional[int] = None

    def __repr__(self) -> str:
        kinds = ".".join(type(s).__name__ for s in self.steps)
        return f"Member({self.name!r}, {kinds or '-'})"

    # ---- building ----

    def add_step(self, step: Step) -> "Member":
        if self.steps and not self.steps[-1].yields_offset:
            raise LayoutDefinitionError(
                f"{self.name}: cannot chain {type(step).__name__} after {type(self.steps[-1]).__name__}"
            )
        self.steps.append(step)
        return self

    def pointer(self, **options) -> "Member":
        return self.add_step(PointerRead(make_options(**options)))

    def _primitive(self, kind: str, options: dict) -> None:
        self.add_step(PrimitiveRead(make_options(**options), PRIMITIVES[kind]))

    def int8(self, **options) -> None:    self._primitive("int8", options)
    def uint8(self, **options) -> None:   self._primitive("uint8", options)
    def int16(self, **options) -> None:   self._primitive("int16", options)
    def uint16(self, **options) -> None:  self._primitive("uint16", options)
    def int32(self, **options) -> None:   self._primitive("int32", options)
    def uint32(self, **options) -> None:  self._primitive("uint32", options)
    def int64(self, **options) -> None:   self._primitive("int64", options)
    def uint64(self, **options) -> None:  self._primitive("uint64", options)
    def float32(self, **options) -> None: self._primitive("float32", options)
    def float64(self, **options) -> None: self._primitive("float64", options)

    def string(self, **options) -> None:
        self.add_step(StringRead(make_options(**options)))

    def struct(self, struct: "Struct", **options) -> None:
        self.add_step(NestedStruct(make_options(**options), struct))

    def struct_by_type(self, variants: Mapping[int, "Struct"], **options) -> None:
        self.add_step(DispatchedStruct(make_options(**options), dict(variants)))

    def array(self, count: Union[int, str], **options) -> "Member":
        """Append an array step and return the element member to configure."""
        if isinstance(count, bool) or not isinstance(count, (int, str)):
            raise LayoutDefinitionError(f"{self.name}: array count must be an int or a field name")
        if isinstance(count, int) and count < 0:
            raise LayoutDefinitionError(f"{self.name}: negative array count {count}")
        element = Member(self.name)
        self.add_step(ArrayOf(make_options(**options), count, element))
        return element

    def custom(self, decoder: CustomDecoder, **options) -> None:
        if not callable(decoder):
            raise LayoutDefinitionError(f"{self.name}: custom decoder is not callable")
        self.add_step(CustomRead(make_options(**options), decoder))

    # ---- parsing ----

    def _claim(self, width: Optional[int]) -> None:
        if self.claimed_width is None and width is not None:
            self.claimed_width = width

    def parse(self, view: ByteView, offset: int, record: MutableMapping[str, Any],
              trace: Optional[TraceFn] = None) -> int:
        """Run the chain at offset, store the value in record; return bytes consumed."""
        trace = trace or log_trace
        outer = self.claimed_width  # recursive layouts re-enter the same member
        self.claimed_width = None
        try:
            current: Any = offset
            for step in self.steps:
                value, width = step.apply(view, current, record, self.name, trace)
                self._claim(width)
                current = value
                if current is None:
                    break
            record[self.name] = current if self.steps else None
            return self.claimed_width or 0
        finally:
            self.claimed_width = outer
