from __future__ import annotations
import logging
from typing import Callable

logger = logging.getLogger(__name__)

TraceFn = Callable[[str, int, object], None]


def log_trace(field: str, offset: int, value: object) -> None:
    """Default trace sink: one DEBUG line per traced step."""
    logger.debug("%s @%d -> %r", field, offset, value)
