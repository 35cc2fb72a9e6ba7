"""
Error taxonomy for plist decoding.

Every failure aborts the decode and surfaces as exactly one of these:

    PlistSyntaxError      - structural problems (tags, nesting, envelope)
    PlistTypeError        - a value aimed at a destination of the wrong shape
    PlistConversionError  - text that cannot become the requested scalar
"""

from typing import Optional


class PlistError(Exception):
    """Base class for all decoding failures."""

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset


class PlistSyntaxError(PlistError):
    """Raised when the tag structure of a document is malformed."""
    pass


class NotAPlistError(PlistSyntaxError):
    """Raised when the document has no <plist> root wrapper."""
    pass


class TrailingDataError(PlistSyntaxError):
    """Raised when anything but </plist> follows the root value."""
    pass


class PlistTypeError(PlistError, TypeError):
    """Raised when a value cannot be stored in the destination shape."""
    pass


class PlistConversionError(PlistError, ValueError):
    """Raised when scalar body text fails to convert."""

    def __init__(self, message: str, text: str = "", offset: Optional[int] = None):
        super().__init__(message, offset)
        self.text = text


__all__ = [
    "PlistError",
    "PlistSyntaxError",
    "NotAPlistError",
    "TrailingDataError",
    "PlistTypeError",
    "PlistConversionError",
]
