from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple

from binlayout.exceptions import MalformedStringError
from .view import ByteView

POINTER_WIDTH = 4
STRING_ALIGN = 4


@dataclass(frozen=True)
class PrimitiveType:
    name: str
    width: int
    code: str  # struct format character, without byte order

    def fmt(self, little_endian: bool = True) -> str:
        return ("<" if little_endian else ">") + self.code


PRIMITIVE_PLAN: Tuple[PrimitiveType, ...] = (
    PrimitiveType("int8",    1, "b"),
    PrimitiveType("uint8",   1, "B"),
    PrimitiveType("int16",   2, "h"),
    PrimitiveType("uint16",  2, "H"),
    PrimitiveType("int32",   4, "i"),
    PrimitiveType("uint32",  4, "I"),
    PrimitiveType("int64",   8, "q"),
    PrimitiveType("uint64",  8, "Q"),
    PrimitiveType("float32", 4, "f"),
    PrimitiveType("float64", 8, "d"),
)

PRIMITIVES: Dict[str, PrimitiveType] = {p.name: p for p in PRIMITIVE_PLAN}


def read_primitive(view: ByteView, ptype: PrimitiveType, offset: int, little_endian: bool = True):
    return view.unpack(ptype.fmt(little_endian), offset, ptype.width)


def align_up(n: int, boundary: int = STRING_ALIGN) -> int:
    """Round n up to a multiple of boundary."""
    return -(-n // boundary) * boundary


def decode_cstring(view: ByteView, offset: int) -> Tuple[str, int]:
    """
    Decode the NUL-terminated UTF-8 run starting at offset.
    Returns (text, width) where width covers the terminator, padded to 4 bytes.
    """
    end = view.find(0, offset)
    if end < 0:
        raise MalformedStringError(f"no string terminator after offset {offset}")
    raw = view.take(offset, end - offset)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedStringError(f"invalid UTF-8 at offset {offset}: {e}") from e
    return text, align_up(end - offset + 1)
