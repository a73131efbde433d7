from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field


class StepOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    debug: bool = Field(False, description="emit (field, offset, value) to the trace callback")
    little_endian: bool = True
    allow_null_pointer: bool = Field(False, description="decode a zero pointer as 0 instead of None")


DEFAULT_OPTIONS = StepOptions()


def make_options(**kwargs) -> StepOptions:
    return StepOptions(**kwargs) if kwargs else DEFAULT_OPTIONS
