from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from binlayout.layout.structure import Struct
from binlayout.trace import TraceFn
from .view import ByteView

logger = logging.getLogger(__name__)

BytesLike = Union[str, Path, bytes, bytearray, memoryview]


# -----------------------------
# Helpers
# -----------------------------

def load_bytes(inp: BytesLike) -> bytes:
    if isinstance(inp, (bytes, bytearray, memoryview)):
        return bytes(inp)
    p = Path(str(inp))
    return p.read_bytes()


# -----------------------------
# One record
# -----------------------------

def parse_file(
    struct: Struct,
    data: BytesLike,
    offset: int = 0,
    trace: Optional[TraceFn] = None,
) -> Dict[str, Any]:
    """Decode a single record of `struct` at `offset` in a file or buffer."""
    view = ByteView(load_bytes(data))
    return struct.parse(view, offset, trace=trace)


# -----------------------------
# Streaming iterator
# -----------------------------

def iter_records(
    struct: Struct,
    data: BytesLike,
    *,
    offset: int = 0,
    limit: Optional[int] = None,
    trace: Optional[TraceFn] = None,
) -> Iterator[Dict[str, Any]]:
    """
    Yield back-to-back records of `struct`, each starting where the last ended.
    Stops at the end of the buffer, after `limit` records, or on a record
    that consumed no bytes.
    """
    view = ByteView(load_bytes(data))
    emitted = 0
    pos = offset
    try:
        while pos < len(view):
            if limit is not None and emitted >= limit:
                return
            record = struct.parse(view, pos, reset_cursor_after=False, trace=trace)
            end = struct.get_current_offset()
            if end == pos:  # safety
                logger.warning("record at %d consumed no bytes; stopping", pos)
                return
            emitted += 1
            pos = end
            yield record
    finally:
        struct.set_current_offset(0)
