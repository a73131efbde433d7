from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from binlayout.binary.view import ByteView
from binlayout.exceptions import LayoutDefinitionError, NegativeOffsetError, PointerCycleError
from binlayout.trace import TraceFn
from .member import Member

logger = logging.getLogger(__name__)

BufferLike = Union[bytes, bytearray, memoryview, ByteView]


class Struct:
    """
    Ordered record layout plus a byte cursor.

    The cursor is the only state kept between parse calls; nested and
    dispatched struct steps read it after a non-resetting parse to learn how
    many bytes the sub-record spanned. A Struct is not safe to parse from two
    threads at once.
    """

    __slots__ = ("_members", "_cursor", "_active")

    def __init__(self, base: Optional["Struct"] = None):
        # derive: share the base's members, never its list
        self._members: List[Member] = list(base._members) if base is not None else []
        self._cursor = 0
        self._active: Set[int] = set()  # start offsets of passes still running

    def derive(self) -> "Struct":
        return Struct(self)

    @property
    def members(self) -> Tuple[Member, ...]:
        return tuple(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"Struct({', '.join(m.name for m in self._members)})"

    def include(self, other: "Struct") -> None:
        """Append the members of other, by reference, to this layout."""
        for member in other._members:
            if any(m.name == member.name for m in self._members):
                raise LayoutDefinitionError(f"duplicate field name {member.name!r}")
            self._members.append(member)

    def add_member(self, name: str) -> Member:
        if any(m.name == name for m in self._members):
            raise LayoutDefinitionError(f"duplicate field name {name!r}")
        member = Member(name)
        self._members.append(member)
        return member

    def get_current_offset(self) -> int:
        return self._cursor

    def set_current_offset(self, offset: int) -> None:
        if offset < 0:
            raise NegativeOffsetError(f"cursor must be non-negative, got {offset}")
        self._cursor = offset

    def parse(
        self,
        view: BufferLike,
        start_offset: Optional[int] = None,
        reset_cursor_after: bool = True,
        trace: Optional[TraceFn] = None,
    ) -> Dict[str, Any]:
        """
        Decode one record.

        Starts at start_offset, or at the current cursor when it is None.
        With reset_cursor_after=False the cursor is left just past the record
        so the caller can measure or continue from it.
        """
        if not isinstance(view, ByteView):
            view = ByteView(view)
        if start_offset is not None:
            self.set_current_offset(start_offset)

        # a pointer back into this struct re-enters parse, so drive the pass
        # from a local and publish it after each member
        cursor = start = self._cursor
        if start in self._active:
            raise PointerCycleError(f"pointer cycle: {self!r} is already being parsed at {start}")
        self._active.add(start)
        record: Dict[str, Any] = {}
        try:
            for member in self._members:
                cursor += member.parse(view, cursor, record, trace)
                self._cursor = cursor
            logger.debug("parsed %d fields at %d..%d", len(record), start, cursor)
        finally:
            self._active.discard(start)
            if reset_cursor_after:
                self._cursor = 0
        return record
