"""
Plist decoder (Layer 2: tokens -> caller's destination).

Binds a property-list document directly into a destination described by a
Shape, in one recursive pass:

    unmarshal()     - document envelope: <?xml?>, <!DOCTYPE>, <plist> ... </plist>
    decode_value()  - exactly one value, dispatched on its tag name
    skip_value()    - discards one value for keys no slot accepts

Positions are threaded through every call; each function returns the offset
just past what it consumed.

FAILURE POLICY:
    The first structural, type or conversion error aborts the decode.
    Slots written before the failure stay written.
"""

import base64
import binascii
import dataclasses
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from typing import Any, Optional, Tuple, Union

from plistbind.errors import (
    NotAPlistError,
    PlistConversionError,
    PlistSyntaxError,
    PlistTypeError,
    TrailingDataError,
)
from plistbind.scanner import TagKind, classify_tag, describe_tag, next_tag
from plistbind.shapes import (
    Box,
    CompositeShape,
    DynamicShape,
    Kind,
    OptionalShape,
    ScalarShape,
    SequenceShape,
    Shape,
    describe,
)

logger = logging.getLogger(__name__)

_DECLARATION_PREFIXES = (b"<?xml", b"<!DOCTYPE")
_ROOT_PREFIX = b"<plist"
_ROOT_CLOSE = b"</plist>"

_SCALAR_TAGS = {
    b"<string>": Kind.STRING,
    b"<integer>": Kind.INTEGER,
    b"<real>": Kind.REAL,
    b"<date>": Kind.DATE,
    b"<data>": Kind.DATA,
}

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_REAL_RE = re.compile(r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)", re.IGNORECASE)
_RFC3339_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.([0-9]+))?(Z|[+-][0-9]{2}:[0-9]{2})"
)

Bytes = Union[bytes, bytearray, memoryview, str]

_FLOAT32_MAX = (2 - 2.0 ** -23) * 2.0 ** 127


# ---------------------------------------------------------------------------
# Scalar conversion
# ---------------------------------------------------------------------------


def _parse_integer(text: str, width: int) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise ValueError(f"invalid integer literal {text!r}")
    value = int(text)
    limit = 1 << (width - 1)
    if not -limit <= value < limit:
        raise ValueError(f"{text} out of range for {width}-bit integer")
    return value


def _parse_real(text: str, width: int) -> float:
    if not _REAL_RE.fullmatch(text):
        raise ValueError(f"invalid real literal {text!r}")
    value = float(text)
    if value in (float("inf"), float("-inf")) and "inf" not in text.lower():
        raise ValueError(f"{text} out of range for {width}-bit real")
    if width == 32:
        value = _round_float32(text, value)
    return value


def _round_float32(text: str, value: float) -> float:
    """Round the literal itself (not its 64-bit approximation) to single precision."""
    if value == 0 or math.isinf(value) or math.isnan(value):
        return value
    exact = abs(Fraction(text))
    exp = exact.numerator.bit_length() - exact.denominator.bit_length()
    if exact < Fraction(2) ** exp:
        exp -= 1
    # subnormals share the exponent of the smallest normal
    scale = 23 - max(exp, -126)
    result = math.ldexp(round(exact * Fraction(2) ** scale), -scale)
    if result > _FLOAT32_MAX:
        raise ValueError(f"{text} out of range for 32-bit real")
    return math.copysign(result, value)


def _parse_date(text: str) -> datetime:
    match = _RFC3339_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"not an RFC3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()

    if zone == "Z":
        tz = timezone.utc
    else:
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"invalid zone offset {zone}")
        offset = timedelta(hours=hours, minutes=minutes)
        tz = timezone(-offset if zone[0] == "-" else offset)

    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    return datetime(int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond, tzinfo=tz)


def _parse_data(text: str) -> bytes:
    # line breaks are allowed between base64 groups, nothing else is
    return base64.b64decode(text.replace("\r", "").replace("\n", ""), validate=True)


def _text(body: bytes, offset: int) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PlistConversionError(f"invalid UTF-8 text: {body!r}", repr(body), offset) from e


def _convert(kind: Kind, text: str, width: int, offset: int) -> Any:
    try:
        if kind is Kind.STRING:
            return text
        if kind is Kind.INTEGER:
            return _parse_integer(text, width)
        if kind is Kind.REAL:
            return _parse_real(text, width)
        if kind is Kind.DATE:
            return _parse_date(text)
        return _parse_data(text)
    except (ValueError, binascii.Error) as e:
        raise PlistConversionError(f"non-{kind.value} in <{kind.value}> tag: {text} ({e})", text, offset) from e


def _scalar_width(shape: Shape, kind: Kind, tag: bytes, offset: int) -> int:
    """Check that a scalar of `kind` may be stored in `shape`; return its width."""
    if isinstance(shape, DynamicShape):
        return 64
    if isinstance(shape, ScalarShape) and shape.kind is kind:
        return shape.width
    raise PlistTypeError(f"cannot decode {describe_tag(tag)} into {shape.label}", offset)


# ---------------------------------------------------------------------------
# Value decoder
# ---------------------------------------------------------------------------


def decode_value(data: bytes, pos: int, shape: Shape, current: Any = None) -> Tuple[Any, int]:
    """
    Decode exactly one value starting at the next tag.

    Args:
        data: Document bytes
        pos: Offset to start from
        shape: Shape of the destination slot
        current: Value currently in the slot. Records are filled in place
                 and lists are appended to.

    Returns:
        (value, pos): the value to store in the slot and the offset after it

    Raises:
        PlistSyntaxError, PlistTypeError, PlistConversionError
    """
    offset = pos
    _, tag, pos = next_tag(data, pos)
    if not tag:
        raise PlistSyntaxError("unexpected end of data", pos)

    while isinstance(shape, OptionalShape):
        if current is None:
            current = shape.allocate()
        shape = shape.inner

    if tag == b"<dict>":
        return _decode_dict(data, pos, shape, current, offset)
    if tag == b"<array>":
        return _decode_array(data, pos, shape, current, offset)

    if tag == b"<true/>" or tag == b"<false/>":
        _scalar_width(shape, Kind.BOOLEAN, tag, offset)
        return tag == b"<true/>", pos
    if tag == b"<dict/>":
        return _dict_target(shape, current, tag, offset), pos
    if tag == b"<array/>":
        _array_element_shape(shape, tag, offset)
        return (current if isinstance(current, list) else []), pos
    if tag == b"<string/>":
        _scalar_width(shape, Kind.STRING, tag, offset)
        return "", pos

    kind = _SCALAR_TAGS.get(tag)
    if kind is None:
        raise PlistSyntaxError(f"unexpected tag {describe_tag(tag)}", offset)

    body, end_tag, pos = next_tag(data, pos)
    if not end_tag:
        raise PlistSyntaxError(f"unexpected end of data inside <{kind.value}>", pos)
    if end_tag != b"</" + tag[1:]:
        raise PlistSyntaxError(f"expected </{kind.value}> but got {describe_tag(end_tag)}", pos)

    width = _scalar_width(shape, kind, tag, offset)
    return _convert(kind, _text(body, offset), width, offset), pos


def _dict_target(shape: Shape, current: Any, tag: bytes, offset: int) -> Any:
    if isinstance(shape, CompositeShape):
        return current if current is not None else shape.new()
    if isinstance(shape, DynamicShape):
        return current if isinstance(current, dict) else {}
    raise PlistTypeError(f"cannot decode {describe_tag(tag)} into non-record {shape.label}", offset)


def _array_element_shape(shape: Shape, tag: bytes, offset: int) -> Shape:
    if isinstance(shape, SequenceShape):
        return shape.element
    if isinstance(shape, DynamicShape):
        return shape
    raise PlistTypeError(f"cannot decode {describe_tag(tag)} into non-list {shape.label}", offset)


def _decode_dict(data: bytes, pos: int, shape: Shape, current: Any, offset: int) -> Tuple[Any, int]:
    target = _dict_target(shape, current, b"<dict>", offset)

    while True:
        _, tag, pos = next_tag(data, pos)
        if not tag:
            raise PlistSyntaxError("unexpected end of data inside <dict>", pos)
        if tag == b"</dict>":
            return target, pos
        if tag != b"<key>":
            raise PlistSyntaxError(f"unexpected tag {describe_tag(tag)} inside <dict>", pos)

        body, tag, pos = next_tag(data, pos)
        if not tag:
            raise PlistSyntaxError("unexpected end of data inside <dict>", pos)
        if tag != b"</key>":
            raise PlistSyntaxError(f"unexpected tag {describe_tag(tag)} inside <dict>", pos)
        key = _text(body, pos)

        if isinstance(shape, DynamicShape):
            target[key], pos = decode_value(data, pos, shape)
            continue

        slot = shape.bind(key)
        if slot is None:
            logger.debug("Skipping key %r not bound by %s", key, shape.name)
            pos = skip_value(data, pos)
            continue

        value, pos = decode_value(data, pos, slot.shape, shape.get(target, slot))
        shape.set(target, slot, value)


def _decode_array(data: bytes, pos: int, shape: Shape, current: Any, offset: int) -> Tuple[Any, int]:
    element_shape = _array_element_shape(shape, b"<array>", offset)
    target = current if isinstance(current, list) else []

    while True:
        _, tag, after = next_tag(data, pos)
        if not tag:
            raise PlistSyntaxError("unexpected end of data inside <array>", after)
        if tag == b"</array>":
            return target, after
        template = shape.new_element() if isinstance(shape, SequenceShape) else None
        value, pos = decode_value(data, pos, element_shape, template)
        target.append(value)


def skip_value(data: bytes, pos: int) -> int:
    """
    Discard one complete value of any shape.

    Opening tags deepen the nesting and closing tags unwind it. Self-closing
    tokens such as <true/> are whole values of their own and never change
    the depth.

    Returns:
        Offset just past the skipped value

    Raises:
        PlistSyntaxError: On end of data or an unbalanced closing tag
    """
    depth = 0
    while True:
        offset = pos
        _, tag, pos = next_tag(data, pos)
        if not tag:
            raise PlistSyntaxError("unexpected end of data while skipping value", pos)

        kind = classify_tag(tag)
        if kind is TagKind.CLOSE:
            if depth == 0:
                raise PlistSyntaxError(f"unexpected closing tag {describe_tag(tag)}", offset)
            depth -= 1
            if depth == 0:
                return pos
        elif kind is TagKind.SELF_CLOSING:
            if depth == 0:
                return pos
        elif kind is TagKind.DECLARATION:
            raise PlistSyntaxError(f"unexpected declaration {describe_tag(tag)}", offset)
        else:
            depth += 1


# ---------------------------------------------------------------------------
# Document decoder
# ---------------------------------------------------------------------------


def _as_bytes(data: Bytes) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"plist data must be bytes or str, not {type(data).__name__}")


def _shape_of(target: Any) -> Shape:
    if isinstance(target, Box):
        return DynamicShape()
    if isinstance(target, (list, dict)):
        return SequenceShape(DynamicShape()) if isinstance(target, list) else DynamicShape()
    if dataclasses.is_dataclass(target) and not isinstance(target, type):
        return describe(type(target))
    raise TypeError(f"cannot infer a plist shape for {type(target).__name__}; pass shape= explicitly")


def _check_target(target: Any, shape: Shape) -> None:
    """Reject destinations that cannot be updated in place, before parsing."""
    if isinstance(target, Box):
        return
    inner = shape.inner if isinstance(shape, OptionalShape) else shape
    if isinstance(inner, CompositeShape) and target is not None and not isinstance(target, (dict, list)):
        return
    if isinstance(inner, SequenceShape) and isinstance(target, list):
        return
    if isinstance(inner, DynamicShape) and isinstance(target, (list, dict)):
        return
    raise TypeError(f"cannot decode {shape.label} into {type(target).__name__} in place; use a Box")


def _open_document(data: bytes) -> int:
    pos = 0
    while True:
        offset = pos
        _, tag, pos = next_tag(data, pos)
        if tag.startswith(_DECLARATION_PREFIXES):
            continue
        if not tag.startswith(_ROOT_PREFIX):
            raise NotAPlistError("not a plist", offset)
        return pos


def _close_document(data: bytes, pos: int) -> None:
    content, tag, end = next_tag(data, pos)
    if tag != _ROOT_CLOSE or content.strip() or data[end:].strip():
        raise TrailingDataError("junk on end of plist", pos)


def unmarshal(data: Bytes, target: Any, shape: Optional[Shape] = None) -> None:
    """
    Decode a plist document into a caller-owned destination.

    Args:
        data: Raw document (bytes; str is encoded as UTF-8)
        target: Destination: a dataclass instance, a record with an explicit
                CompositeShape, a list, a dict, or a Box
        shape: Shape of the destination. Derived from the target when omitted.

    Raises:
        TypeError: If the target cannot be updated in place (nothing is parsed)
        PlistError: On the first decoding failure
    """
    data = _as_bytes(data)
    if shape is None:
        shape = _shape_of(target)
    _check_target(target, shape)

    pos = _open_document(data)
    logger.debug("Decoding plist into %s", shape.label)

    if isinstance(target, Box):
        target.value, pos = decode_value(data, pos, shape, target.value)
    else:
        value, pos = decode_value(data, pos, shape, target)
        if value is not target:
            raise PlistTypeError(f"document root does not fit {type(target).__name__}; use a Box", pos)

    _close_document(data, pos)


def loads(data: Bytes, shape: Optional[Shape] = None) -> Any:
    """
    Decode a plist document into a newly allocated value.

    Args:
        data: Raw document
        shape: Destination shape (DynamicShape when omitted)

    Returns:
        The decoded value
    """
    box = Box()
    unmarshal(data, box, shape if shape is not None else DynamicShape())
    return box.value


def load_file(filepath: str, target: Any, shape: Optional[Shape] = None) -> None:
    """
    Read a plist file and decode it into target (see unmarshal()).

    Raises:
        FileNotFoundError: If file doesn't exist
        PlistError: If decoding fails
    """
    try:
        with open(filepath, "rb") as f:
            content = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Plist file not found: {filepath}")

    unmarshal(content, target, shape)


__all__ = [
    "decode_value",
    "skip_value",
    "unmarshal",
    "loads",
    "load_file",
]
