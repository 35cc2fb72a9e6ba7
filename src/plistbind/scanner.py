"""
Tag scanner (Layer 1: raw bytes -> tokens).

The scanner knows nothing about plist semantics. It cuts the byte stream at
'<' and '>' and hands back the text before a tag, the tag itself, and the
position after it. Callers thread the position through, the same way the
expression parser threads its token index.

No entity decoding and no attribute parsing happen here.
"""

from enum import Enum
from typing import Tuple


class TagKind(Enum):
    """Structural role of a token."""

    OPEN = "open"                  # <dict>
    CLOSE = "close"                # </dict>
    SELF_CLOSING = "self_closing"  # <true/>
    DECLARATION = "declaration"    # <?xml ...?>, <!DOCTYPE ...>


def next_tag(data: bytes, pos: int = 0) -> Tuple[bytes, bytes, int]:
    """
    Find the next <...> token at or after pos.

    Args:
        data: Raw document bytes
        pos: Offset to start scanning from

    Returns:
        (content, tag, pos) where content is the text before the tag, tag is
        the token including its delimiters and pos is the offset after it.
        When no complete tag remains, content is the rest of the data, tag is
        b"" and pos is len(data).
    """
    start = data.find(b"<", pos)
    if start < 0:
        return data[pos:], b"", len(data)
    end = data.find(b">", start)
    if end < 0:
        return data[pos:], b"", len(data)
    end += 1
    return data[pos:start], data[start:end], end


def classify_tag(tag: bytes) -> TagKind:
    """Classify a non-empty token by its delimiters."""
    if tag.startswith(b"</"):
        return TagKind.CLOSE
    if tag.startswith(b"<?") or tag.startswith(b"<!"):
        return TagKind.DECLARATION
    if tag.endswith(b"/>"):
        return TagKind.SELF_CLOSING
    return TagKind.OPEN


def describe_tag(tag: bytes) -> str:
    """Printable form of a token for error messages."""
    return tag.decode("utf-8", "replace") if tag else "end of data"


__all__ = ["TagKind", "next_tag", "classify_tag", "describe_tag"]
