from __future__ import annotations
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PrimitiveKind = Literal[
    "int8", "uint8", "int16", "uint16", "int32",
    "uint32", "int64", "uint64", "float32", "float64",
]


class _StepDef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    debug: bool = False
    little_endian: bool = True
    allow_null_pointer: bool = False

    def option_kwargs(self) -> dict:
        return {
            "debug": self.debug,
            "little_endian": self.little_endian,
            "allow_null_pointer": self.allow_null_pointer,
        }


class PrimitiveStepDef(_StepDef):
    kind: PrimitiveKind


class PointerStepDef(_StepDef):
    kind: Literal["pointer"]


class StringStepDef(_StepDef):
    kind: Literal["string"]


class StructStepDef(_StepDef):
    kind: Literal["struct"]
    ref: str


class DispatchStepDef(_StepDef):
    kind: Literal["struct_by_type"]
    variants: Dict[int, str] = Field(..., min_length=1)


class ArrayStepDef(_StepDef):
    kind: Literal["array"]
    count: Union[Annotated[int, Field(ge=0)], str]
    element: List["StepDef"] = Field(..., min_length=1)


StepDef = Annotated[
    Union[PrimitiveStepDef, PointerStepDef, StringStepDef, StructStepDef, DispatchStepDef, ArrayStepDef],
    Field(discriminator="kind"),
]

ArrayStepDef.model_rebuild()


class MemberDef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    steps: List[StepDef] = Field(..., min_length=1)


class StructDef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    extends: Optional[str] = None
    members: List[MemberDef] = Field(default_factory=list)


class LayoutDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    root: Optional[str] = None
    structs: Dict[str, StructDef] = Field(..., min_length=1)
