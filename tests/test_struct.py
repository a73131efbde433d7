from struct import pack

import pytest

from binlayout.exceptions import (
    LayoutDefinitionError,
    NegativeOffsetError,
    PointerCycleError,
    UnknownDiscriminantError,
)
from binlayout.layout.structure import Struct


def test_new_struct_has_no_members():
    s = Struct()
    assert len(s) == 0
    assert s.members == ()


def test_manually_set_offset():
    s = Struct()
    s.set_current_offset(100)
    assert s.get_current_offset() == 100


def test_negative_offset_rejected():
    with pytest.raises(NegativeOffsetError):
        Struct().set_current_offset(-1)
    with pytest.raises(ValueError):
        Struct().parse(bytes(4), -1)


def test_duplicate_member_rejected():
    s = Struct()
    s.add_member("a").uint8()
    with pytest.raises(LayoutDefinitionError):
        s.add_member("a")


def test_derived_struct_copies_members():
    original = Struct()
    original.add_member("test").uint8()

    derived = Struct(original)
    assert len(derived) == 1
    assert derived.members[0] is original.members[0]

    derived.add_member("extra").uint8()
    assert len(derived) == 2
    assert len(original) == 1


def test_derive_method_extends_layout():
    base = Struct()
    base.add_member("a").uint8()
    ext = base.derive()
    ext.add_member("b").uint16()
    assert ext.parse(bytes([1, 2, 0]), 0) == {"a": 1, "b": 2}
    assert base.parse(bytes([1, 2, 0]), 0) == {"a": 1}


def test_record_follows_declaration_order():
    s = Struct()
    for name in ("z", "a", "m"):
        s.add_member(name).uint8()
    assert list(s.parse(bytes([1, 2, 3]), 0)) == ["z", "a", "m"]


def test_parse_resets_cursor_by_default():
    s = Struct()
    s.add_member("a").uint32()
    s.parse(bytes(4), 0)
    assert s.get_current_offset() == 0


def test_parse_keeps_cursor_when_asked():
    s = Struct()
    s.add_member("a").uint8()
    s.add_member("b").uint32()
    s.parse(bytes(8), 1, reset_cursor_after=False)
    assert s.get_current_offset() == 6


def test_parse_continues_from_cursor():
    s = Struct()
    s.add_member("a").uint8()
    s.set_current_offset(2)
    assert s.parse(bytes([10, 11, 12])) == {"a": 12}
    assert s.get_current_offset() == 0


def test_consecutive_parses_without_reset():
    s = Struct()
    s.add_member("a").uint16()
    data = pack("<3H", 7, 8, 9)
    first = s.parse(data, 0, reset_cursor_after=False)
    second = s.parse(data, reset_cursor_after=False)
    assert (first, second) == ({"a": 7}, {"a": 8})
    assert s.get_current_offset() == 4


def test_nested_struct():
    data = pack("<If", 42, 3.14)
    sub = Struct()
    sub.add_member("float").float32()

    s = Struct()
    s.add_member("int").uint32()
    s.add_member("subStruct").struct(sub)

    result = s.parse(data, 0)
    assert result["int"] == 42
    assert result["subStruct"]["float"] == pytest.approx(3.14, rel=1e-6)


def test_nested_struct_size_is_cursor_span():
    sub = Struct()
    sub.add_member("a").uint16()
    sub.add_member("b").uint32()
    sub.add_member("c").uint8()

    s = Struct()
    s.add_member("sub").struct(sub)
    s.add_member("after").uint8()

    data = pack("<HIBB", 1, 2, 3, 4)
    assert s.parse(data, 0, reset_cursor_after=False) == {"sub": {"a": 1, "b": 2, "c": 3}, "after": 4}
    assert s.get_current_offset() == 8


def test_pointer_to_nested_struct():
    sub = Struct()
    sub.add_member("x").uint8()
    sub.add_member("y").uint8()

    s = Struct()
    s.add_member("sub").pointer().struct(sub)
    s.add_member("after").uint8()

    data = bytes([8, 0, 0, 0, 77, 0, 0, 0, 5, 6])
    assert s.parse(data, 0) == {"sub": {"x": 5, "y": 6}, "after": 77}


def _variants():
    sub = Struct()
    sub.add_member("structType").uint8()
    sub.add_member("float").float32()
    other = Struct()
    other.add_member("structType").uint8()
    other.add_member("value").uint16()
    return {1: sub, 2: other}


def test_struct_by_type():
    data = pack("<IBf", 42, 1, 3.14)
    s = Struct()
    s.add_member("int").uint32()
    s.add_member("subStruct").struct_by_type(_variants())

    result = s.parse(data, 0)
    assert result["int"] == 42
    assert result["subStruct"]["structType"] == 1
    assert result["subStruct"]["float"] == pytest.approx(3.14, rel=1e-6)


def test_struct_by_type_size_follows_variant():
    s = Struct()
    s.add_member("items").array(2).struct_by_type(_variants())
    data = pack("<BfBH", 1, 0.5, 2, 300)
    assert s.parse(data, 0) == {
        "items": [{"structType": 1, "float": 0.5}, {"structType": 2, "value": 300}],
    }


def test_struct_by_type_unmapped_fails():
    data = pack("<IBf", 42, 9, 3.14)
    s = Struct()
    s.add_member("int").uint32()
    s.add_member("subStruct").struct_by_type(_variants())

    with pytest.raises(UnknownDiscriminantError) as ei:
        s.parse(data, 0)
    assert ei.value.value == 9
    assert ei.value.offset == 4
    assert s.get_current_offset() == 0


def test_self_referential_list():
    node = Struct()
    node.add_member("value").uint32()
    node.add_member("next").pointer().struct(node)

    data = pack("<IIII", 1, 8, 2, 0)
    assert node.parse(data, 0, reset_cursor_after=False) == {
        "value": 1,
        "next": {"value": 2, "next": None},
    }
    assert node.get_current_offset() == 8


def test_parse_accepts_bytearray_and_memoryview():
    s = Struct()
    s.add_member("a").uint8()
    assert s.parse(bytearray([3]), 0) == {"a": 3}
    assert s.parse(memoryview(b"\x00\x04")[1:], 0) == {"a": 4}


def test_pointer_cycle_fails():
    node = Struct()
    node.add_member("value").uint32()
    node.add_member("next").pointer().struct(node)

    data = pack("<IIII", 1, 0, 2, 8)
    with pytest.raises(PointerCycleError):
        node.parse(data, 8)
    assert node.get_current_offset() == 0
    assert node.parse(data, 0) == {"value": 1, "next": None}


def test_pointer_cycle_through_two_structs():
    a, b = Struct(), Struct()
    a.add_member("to_b").pointer().struct(b)
    b.add_member("to_a").pointer().struct(a)

    data = pack("<III", 0, 8, 4)
    with pytest.raises(PointerCycleError):
        a.parse(data, 4)


def test_shared_target_is_not_a_cycle():
    leaf = Struct()
    leaf.add_member("v").uint8()
    s = Struct()
    s.add_member("first").pointer().struct(leaf)
    s.add_member("second").pointer().struct(leaf)

    data = pack("<IIB", 8, 8, 5)
    assert s.parse(data, 0) == {"first": {"v": 5}, "second": {"v": 5}}
