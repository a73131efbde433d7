from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from binlayout.exceptions import LayoutDefinitionError
from binlayout.models.document import (
    ArrayStepDef,
    DispatchStepDef,
    LayoutDocument,
    MemberDef,
    PointerStepDef,
    PrimitiveStepDef,
    StringStepDef,
    StructStepDef,
)
from .member import Member
from .structure import Struct

logger = logging.getLogger(__name__)


class Layout:
    """Named structs built from a layout document."""

    def __init__(self, structs: Dict[str, Struct], root: Optional[str] = None):
        self.structs = structs
        self.root = root

    def get(self, name: Optional[str] = None) -> Struct:
        name = name or self.root
        if name is None:
            if len(self.structs) != 1:
                raise LayoutDefinitionError("layout has several structs and no root; name one")
            name = next(iter(self.structs))
        try:
            return self.structs[name]
        except KeyError:
            raise LayoutDefinitionError(f"unknown struct {name!r}") from None


def _derive_order(doc: LayoutDocument) -> List[str]:
    """Struct names with every base ahead of the structs extending it."""
    order: List[str] = []
    state: Dict[str, int] = {}  # 1 = visiting, 2 = done

    def visit(name: str, chain: List[str]) -> None:
        if state.get(name) == 2:
            return
        if state.get(name) == 1:
            raise LayoutDefinitionError(f"extends cycle: {' -> '.join(chain + [name])}")
        state[name] = 1
        base = doc.structs[name].extends
        if base is not None:
            if base not in doc.structs:
                raise LayoutDefinitionError(f"{name} extends unknown struct {base!r}")
            visit(base, chain + [name])
        state[name] = 2
        order.append(name)

    for name in doc.structs:
        visit(name, [])
    return order


def _lookup(structs: Dict[str, Struct], ref: str, where: str) -> Struct:
    if ref not in structs:
        raise LayoutDefinitionError(f"{where}: unknown struct {ref!r}")
    return structs[ref]


def _add_steps(member: Member, steps, structs: Dict[str, Struct], where: str) -> None:
    for sd in steps:
        opts = sd.option_kwargs()
        if isinstance(sd, PointerStepDef):
            member.pointer(**opts)
        elif isinstance(sd, PrimitiveStepDef):
            getattr(member, sd.kind)(**opts)
        elif isinstance(sd, StringStepDef):
            member.string(**opts)
        elif isinstance(sd, StructStepDef):
            member.struct(_lookup(structs, sd.ref, where), **opts)
        elif isinstance(sd, DispatchStepDef):
            variants = {k: _lookup(structs, v, where) for k, v in sd.variants.items()}
            member.struct_by_type(variants, **opts)
        elif isinstance(sd, ArrayStepDef):
            element = member.array(sd.count, **opts)
            _add_steps(element, sd.element, structs, f"{where}[]")
        else:  # pragma: no cover
            raise LayoutDefinitionError(f"{where}: unsupported step {sd!r}")


def build_layout(doc: LayoutDocument) -> Layout:
    if doc.root is not None and doc.root not in doc.structs:
        raise LayoutDefinitionError(f"root {doc.root!r} is not a declared struct")

    order = _derive_order(doc)
    structs: Dict[str, Struct] = {name: Struct() for name in doc.structs}

    # structs may point at each other in any order, so every Struct exists
    # before members are added; a derived struct copies its base once the
    # base is complete
    for name in order:
        sdef = doc.structs[name]
        target = structs[name]
        if sdef.extends is not None:
            target.include(structs[sdef.extends])
        for mdef in sdef.members:
            _add_member(target, mdef, structs, name)

    logger.debug("built %d structs (root=%s)", len(structs), doc.root)
    return Layout(structs, doc.root)


def _add_member(struct: Struct, mdef: MemberDef, structs: Dict[str, Struct], owner: str) -> None:
    member = struct.add_member(mdef.name)
    _add_steps(member, mdef.steps, structs, f"{owner}.{mdef.name}")


def load_layout(src: Union[str, Path, bytes]) -> Layout:
    """
    Build a Layout from a JSON document given as a path, JSON text or bytes.
    """
    if isinstance(src, Path) or (isinstance(src, str) and not src.lstrip().startswith("{")):
        src = Path(src).read_text(encoding="utf-8")
    try:
        doc = LayoutDocument.model_validate_json(src)
    except ValidationError as e:
        raise LayoutDefinitionError(f"invalid layout document: {e}") from e
    return build_layout(doc)
