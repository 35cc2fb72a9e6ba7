"""
Serialization helpers for shapes and decoded values.

Shapes round-trip losslessly through an intermediate dict representation, so
a destination can be declared in a YAML or JSON schema file instead of a
dataclass. Composites loaded this way allocate SimpleNamespace records.

Decoded values (records, lists, dates, blobs) can be flattened to plain
Python data and dumped as JSON or YAML.
"""
from __future__ import annotations

import base64
import dataclasses
import json
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any, Dict

import yaml

from plistbind.shapes import (
    CompositeShape,
    DynamicShape,
    Kind,
    OptionalShape,
    ScalarShape,
    SequenceShape,
    Shape,
    Slot,
)


def shape_to_dict(shape: Shape) -> Dict[str, Any]:
    if isinstance(shape, ScalarShape):
        return {"type": "scalar", "kind": shape.kind.value, "width": shape.width}
    if isinstance(shape, DynamicShape):
        return {"type": "dynamic"}
    if isinstance(shape, SequenceShape):
        return {"type": "sequence", "element": shape_to_dict(shape.element)}
    if isinstance(shape, OptionalShape):
        return {"type": "optional", "inner": shape_to_dict(shape.inner)}
    if isinstance(shape, CompositeShape):
        return {
            "type": "composite",
            "name": shape.name,
            "slots": [slot_to_dict(s) for s in shape.slots],
        }
    raise TypeError(f"Unsupported Shape type: {type(shape)}")


def shape_from_dict(d: Any) -> Shape:
    """
    Build a shape from its dict form.

    A bare string is shorthand for a scalar kind or "dynamic":

        {"type": "sequence", "element": "string"}
    """
    if isinstance(d, str):
        if d == "dynamic":
            return DynamicShape()
        return ScalarShape(Kind(d))
    t = d.get("type")
    if t == "scalar":
        return ScalarShape(Kind(d["kind"]), d.get("width", 64))
    if t == "dynamic":
        return DynamicShape()
    if t == "sequence":
        return SequenceShape(shape_from_dict(d.get("element", "dynamic")))
    if t == "optional":
        return OptionalShape(shape_from_dict(d["inner"]))
    if t == "composite":
        slots = tuple(slot_from_dict(s) for s in d.get("slots", []))
        return CompositeShape(name=d.get("name", ""), slots=slots)
    raise TypeError(f"Unsupported shape dict type: {t}")


def slot_to_dict(s: Slot) -> Dict[str, Any]:
    return {"name": s.name, "key": s.key, "shape": shape_to_dict(s.shape)}


def slot_from_dict(d: Dict[str, Any]) -> Slot:
    return Slot(name=d["name"], shape=shape_from_dict(d.get("shape", "dynamic")), key=d.get("key"))


def shape_to_json(shape: Shape) -> str:
    return json.dumps(shape_to_dict(shape), sort_keys=True)


def shape_from_json(s: str) -> Shape:
    d = json.loads(s)
    return shape_from_dict(d)


def shape_to_yaml(shape: Shape) -> str:
    return yaml.safe_dump(shape_to_dict(shape))


def shape_from_yaml(s: str) -> Shape:
    d = yaml.safe_load(s)
    return shape_from_dict(d)


def format_date(value: datetime) -> str:
    """RFC3339 text for a timezone-aware datetime; UTC is written as Z."""
    text = value.isoformat()
    if value.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def value_to_dict(value: Any) -> Any:
    """
    Flatten a decoded value to plain dicts, lists and scalars.

    Records become dicts keyed by attribute name, datetimes become RFC3339
    text and bytes become base64 text.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: value_to_dict(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, SimpleNamespace):
        return {k: value_to_dict(v) for k, v in vars(value).items()}
    if isinstance(value, dict):
        return {k: value_to_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [value_to_dict(v) for v in value]
    if isinstance(value, datetime):
        return format_date(value)
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


def value_to_json(value: Any) -> str:
    return json.dumps(value_to_dict(value), sort_keys=True)


def value_to_yaml(value: Any) -> str:
    return yaml.safe_dump(value_to_dict(value))
