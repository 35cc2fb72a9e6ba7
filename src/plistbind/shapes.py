"""
Destination shapes.

A shape describes where decoded values go. The decoder never inspects the
caller's classes; it only consults these descriptors:

    CompositeShape  - named slots written with setattr (records)
    SequenceShape   - growable list of one element shape
    ScalarShape     - string / integer / real / date / data / boolean
    DynamicShape    - whatever kind the document holds
    OptionalShape   - allocated on first write (auto-vivification)

Shapes are usually derived once from a dataclass with describe(), or loaded
from a schema document (see plistbind.serialization).

ARCHITECTURAL RULE:
    Shapes are immutable and carry no decoding logic.
"""

import dataclasses
import functools
import types
import typing
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import SimpleNamespace
from typing import Any, Callable, Dict, Optional, Tuple


class Kind(Enum):
    """Scalar value kinds of the plist grammar."""

    STRING = "string"
    INTEGER = "integer"
    REAL = "real"
    DATE = "date"
    DATA = "data"
    BOOLEAN = "boolean"


_VALID_WIDTHS = {
    Kind.INTEGER: (8, 16, 32, 64),
    Kind.REAL: (32, 64),
}

_ZERO_DATE = datetime(1, 1, 1, tzinfo=timezone.utc)

_ZERO_VALUES = {
    Kind.STRING: "",
    Kind.INTEGER: 0,
    Kind.REAL: 0.0,
    Kind.DATE: _ZERO_DATE,
    Kind.DATA: b"",
    Kind.BOOLEAN: False,
}


class Shape(ABC):
    """Base class for all destination shapes."""

    @abstractmethod
    def new(self) -> Any:
        """Return an empty value for a freshly allocated destination."""

    @property
    @abstractmethod
    def label(self) -> str:
        """Short human-readable name used in error messages."""


@dataclass(frozen=True)
class ScalarShape(Shape):
    """
    A single concrete value.

    Properties:
        kind: Which scalar kind the slot holds
        width: Bit width for INTEGER (8/16/32/64) and REAL (32/64).
               A 32-bit REAL parses with single precision.
    """

    kind: Kind
    width: int = 64

    def __post_init__(self):
        allowed = _VALID_WIDTHS.get(self.kind, (64,))
        if self.width not in allowed:
            raise ValueError(f"Invalid width {self.width} for {self.kind.value}; expected one of {allowed}")

    def new(self) -> Any:
        return _ZERO_VALUES[self.kind]

    @property
    def label(self) -> str:
        if self.kind in _VALID_WIDTHS and self.width != 64:
            return f"{self.kind.value}{self.width}"
        return self.kind.value


@dataclass(frozen=True)
class DynamicShape(Shape):
    """Accepts any decoded value; Python's own types record the kind."""

    def new(self) -> Any:
        return None

    @property
    def label(self) -> str:
        return "dynamic"


@dataclass(frozen=True)
class SequenceShape(Shape):
    """Ordered list whose elements all decode against `element`."""

    element: Shape

    def new(self) -> list:
        return []

    def new_element(self) -> Any:
        return self.element.new()

    @property
    def label(self) -> str:
        return f"list of {self.element.label}"


@dataclass(frozen=True)
class OptionalShape(Shape):
    """Slot that stays None until a value is written into it."""

    inner: Shape

    def new(self) -> Any:
        return None

    def allocate(self) -> Any:
        return self.inner.new()

    @property
    def label(self) -> str:
        return f"optional {self.inner.label}"


@dataclass(frozen=True)
class Slot:
    """
    One named field of a composite.

    Properties:
        name: Attribute name on the record
        shape: Shape of the value stored there
        key: Override binding name; the slot also answers to this key
    """

    name: str
    shape: Shape
    key: Optional[str] = None

    def matches(self, key: str) -> bool:
        return key == self.name or (self.key is not None and key == self.key)


@dataclass(frozen=True)
class CompositeShape(Shape):
    """
    A record with named slots.

    Properties:
        name: Record name (class name for described dataclasses)
        slots: Slots in declaration order
        factory: Zero-argument callable allocating an empty record
    """

    name: str
    slots: Tuple[Slot, ...] = ()
    factory: Callable[[], Any] = field(default=SimpleNamespace, compare=False, repr=False)

    def bind(self, key: str) -> Optional[Slot]:
        """
        Find the slot a mapping key writes to.

        Args:
            key: Key text exactly as it appears in the document

        Returns:
            The first slot in declaration order whose name or override key
            equals `key`, or None if no slot accepts it
        """
        for slot in self.slots:
            if slot.matches(key):
                return slot
        return None

    def new(self) -> Any:
        record = self.factory()
        for slot in self.slots:
            if not hasattr(record, slot.name):
                setattr(record, slot.name, slot.shape.new())
        return record

    def get(self, record: Any, slot: Slot) -> Any:
        return getattr(record, slot.name, None)

    def set(self, record: Any, slot: Slot, value: Any) -> None:
        setattr(record, slot.name, value)

    @property
    def label(self) -> str:
        return self.name


@dataclass
class Box:
    """
    Mutable cell for top-level destinations that cannot be changed in place.

    Example:
        box = Box()
        unmarshal(b"<plist><integer>7</integer></plist>", box, ScalarShape(Kind.INTEGER))
        box.value  # 7
    """

    value: Any = None


def plist_field(key: Optional[str] = None, width: Optional[int] = None, **kwargs) -> Any:
    """
    dataclasses.field() carrying plist binding metadata.

    Args:
        key: Override binding name (the field also answers to its own name)
        width: Bit width for int/float fields, e.g. 32 for single precision
        **kwargs: Passed through to dataclasses.field()
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    if key is not None:
        metadata["plist"] = key
    if width is not None:
        metadata["plist_width"] = width
    return field(metadata=metadata, **kwargs)


_SCALAR_TYPES: Dict[type, Kind] = {
    str: Kind.STRING,
    int: Kind.INTEGER,
    float: Kind.REAL,
    datetime: Kind.DATE,
    bytes: Kind.DATA,
    bool: Kind.BOOLEAN,
}

_DESCRIBED: Dict[type, CompositeShape] = {}


def describe(cls: type) -> CompositeShape:
    """
    Derive a CompositeShape from a dataclass.

    Type hints map to shapes:
        str, int, float, bool, datetime, bytes -> ScalarShape
        List[X]                               -> SequenceShape
        Optional[X]                           -> OptionalShape
        Any, dict                             -> DynamicShape
        nested dataclass                      -> CompositeShape

    Results are cached per class.

    Raises:
        TypeError: If cls is not a dataclass or refers to itself
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"describe() needs a dataclass type, got {cls!r}")
    return _describe_dataclass(cls, ())


def _describe_dataclass(cls: type, stack: Tuple[type, ...]) -> CompositeShape:
    cached = _DESCRIBED.get(cls)
    if cached is not None:
        return cached
    if cls in stack:
        raise TypeError(f"Recursive record {cls.__name__} cannot be described")

    hints = typing.get_type_hints(cls)
    slots = []
    for f in dataclasses.fields(cls):
        shape = shape_for_type(hints.get(f.name, Any), f.metadata.get("plist_width"), stack + (cls,))
        slots.append(Slot(name=f.name, shape=shape, key=f.metadata.get("plist")))

    shape = CompositeShape(name=cls.__name__, slots=tuple(slots), factory=_record_factory(cls, slots))
    _DESCRIBED[cls] = shape
    return shape


def _record_factory(cls: type, slots: list) -> Callable[[], Any]:
    """The class itself, or a partial passing zero values for required fields."""
    required = {
        f.name
        for f in dataclasses.fields(cls)
        if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
    }
    if not required:
        return cls
    return functools.partial(_new_record, cls, tuple(s for s in slots if s.name in required))


def _new_record(cls: type, required: Tuple[Slot, ...]) -> Any:
    return cls(**{slot.name: slot.shape.new() for slot in required})


def shape_for_type(hint: Any, width: Optional[int] = None, stack: Tuple[type, ...] = ()) -> Shape:
    """Map a single type hint to a shape (see describe())."""
    if hint is Any:
        return DynamicShape()

    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin is typing.Union or origin is types.UnionType:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1 and len(args) == 2:
            return OptionalShape(shape_for_type(members[0], width, stack))
        return DynamicShape()

    if hint is list or origin is list:
        element = shape_for_type(args[0], width, stack) if args else DynamicShape()
        return SequenceShape(element)

    if hint is dict or origin is dict:
        return DynamicShape()

    if hint in _SCALAR_TYPES:
        return ScalarShape(_SCALAR_TYPES[hint], width or 64)

    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return _describe_dataclass(hint, stack)

    warnings.warn(f"No plist shape for {hint!r}; treating it as dynamic", UserWarning)
    return DynamicShape()


__all__ = [
    "Kind",
    "Shape",
    "ScalarShape",
    "DynamicShape",
    "SequenceShape",
    "OptionalShape",
    "Slot",
    "CompositeShape",
    "Box",
    "plist_field",
    "describe",
    "shape_for_type",
]
