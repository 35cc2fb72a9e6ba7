"""
Tests for destination shapes.

These tests verify:
    - Slot binding by name and override key
    - Allocation of empty values
    - Shape derivation from dataclasses
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from plistbind.examples import BackupBucket, ExcludeRule, ExcludeSet
from plistbind.shapes import (
    Box,
    CompositeShape,
    DynamicShape,
    Kind,
    OptionalShape,
    ScalarShape,
    SequenceShape,
    Slot,
    describe,
    plist_field,
    shape_for_type,
)


@dataclass
class Node:
    children: List["Node"] = field(default_factory=list)


class TestScalarShape:
    """Test ScalarShape objects."""

    def test_default_width(self):
        assert ScalarShape(Kind.REAL).width == 64

    def test_single_precision_label(self):
        assert ScalarShape(Kind.REAL, 32).label == "real32"
        assert ScalarShape(Kind.STRING).label == "string"

    def test_invalid_width(self):
        """Widths are checked per kind."""
        with pytest.raises(ValueError):
            ScalarShape(Kind.REAL, 16)
        with pytest.raises(ValueError):
            ScalarShape(Kind.STRING, 32)

    def test_zero_values(self):
        assert ScalarShape(Kind.STRING).new() == ""
        assert ScalarShape(Kind.INTEGER).new() == 0
        assert ScalarShape(Kind.BOOLEAN).new() is False
        assert ScalarShape(Kind.DATA).new() == b""


class TestCompositeShape:
    """Test slot binding."""

    def build(self) -> CompositeShape:
        return CompositeShape(
            name="Rule",
            slots=(
                Slot("kind", ScalarShape(Kind.INTEGER), key="type"),
                Slot("text", ScalarShape(Kind.STRING)),
                Slot("type", ScalarShape(Kind.STRING)),
            ),
        )

    def test_bind_by_name(self):
        assert self.build().bind("text").name == "text"

    def test_bind_by_override_key(self):
        assert self.build().bind("type").name == "kind"

    def test_first_declared_slot_wins(self):
        """'type' matches both the override on kind and the later slot named type."""
        shape = self.build()
        assert shape.bind("type") is shape.slots[0]

    def test_bind_is_case_sensitive(self):
        assert self.build().bind("Text") is None

    def test_unknown_key(self):
        assert self.build().bind("missing") is None

    def test_new_namespace_record(self):
        """Namespace records start with every slot set to its empty value."""
        record = self.build().new()
        assert record.kind == 0
        assert record.text == ""

    def test_empty_composite_binds_nothing(self):
        assert CompositeShape(name="Empty").bind("anything") is None


class TestOtherShapes:
    """Test sequence, optional and dynamic shapes."""

    def test_sequence_new(self):
        shape = SequenceShape(ScalarShape(Kind.STRING))
        assert shape.new() == []
        assert shape.new_element() == ""
        assert shape.label == "list of string"

    def test_optional_allocates_inner(self):
        shape = OptionalShape(SequenceShape(DynamicShape()))
        assert shape.new() is None
        assert shape.allocate() == []

    def test_dynamic_new(self):
        assert DynamicShape().new() is None

    def test_box_default(self):
        assert Box().value is None


class TestDescribe:
    """Test derivation of shapes from dataclasses."""

    def test_scalar_fields(self):
        @dataclass
        class Record:
            name: str = ""
            count: int = 0
            ratio: float = 0.0
            flag: bool = False
            when: datetime = datetime.min
            blob: bytes = b""

        shape = describe(Record)
        kinds = [s.shape.kind for s in shape.slots]
        assert kinds == [Kind.STRING, Kind.INTEGER, Kind.REAL, Kind.BOOLEAN, Kind.DATE, Kind.DATA]
        assert shape.name == "Record"
        assert shape.factory is Record

    def test_required_fields_get_zero_values(self):
        @dataclass
        class Rule:
            kind: int
            text: str
            note: str = "n/a"

        assert describe(Rule).new() == Rule(kind=0, text="", note="n/a")

    def test_override_key_and_width(self):
        @dataclass
        class Record:
            value: float = plist_field(key="Value", width=32, default=0.0)

        slot = describe(Record).slots[0]
        assert slot.key == "Value"
        assert slot.shape == ScalarShape(Kind.REAL, 32)

    def test_nested_example_records(self):
        shape = describe(BackupBucket)
        excludes = shape.bind("Excludes")
        assert excludes.shape == describe(ExcludeSet)
        rules = excludes.shape.bind("excludes")
        assert rules.name == "rules"
        assert rules.shape == SequenceShape(describe(ExcludeRule))

    def test_containers_and_dynamic(self):
        assert shape_for_type(List[str]) == SequenceShape(ScalarShape(Kind.STRING))
        assert shape_for_type(list) == SequenceShape(DynamicShape())
        assert shape_for_type(Optional[int]) == OptionalShape(ScalarShape(Kind.INTEGER))
        assert shape_for_type(int | None) == OptionalShape(ScalarShape(Kind.INTEGER))
        assert shape_for_type(Any) == DynamicShape()
        assert shape_for_type(Dict[str, int]) == DynamicShape()

    def test_width_applies_to_list_elements(self):
        assert shape_for_type(List[float], 32) == SequenceShape(ScalarShape(Kind.REAL, 32))

    def test_unknown_type_warns(self):
        with pytest.warns(UserWarning):
            assert shape_for_type(complex) == DynamicShape()

    def test_describe_is_cached(self):
        assert describe(BackupBucket) is describe(BackupBucket)

    def test_not_a_dataclass(self):
        with pytest.raises(TypeError):
            describe(dict)

    def test_recursive_record_rejected(self):
        with pytest.raises(TypeError):
            describe(Node)
