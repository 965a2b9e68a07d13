"""Character-class checks from RFC 6749 Appendix A.

Each check returns False for anything that is not a non-empty string, so
callers can pass raw request values straight through.
"""

from __future__ import annotations

import re
from typing import Any

# name-char: "-" / "." / "_" / DIGIT / ALPHA
_NCHAR = re.compile(r"[\w.\-]+", re.ASCII)
# NQCHAR: %x21 / %x23-5B / %x5D-7E
_NQCHAR = re.compile(r"[\x21\x23-\x5B\x5D-\x7E]+")
# NQSCHAR: %x20-21 / %x23-5B / %x5D-7E
_NQSCHAR = re.compile(r"[\x20-\x21\x23-\x5B\x5D-\x7E]+")
# UNICODECHARNOCRLF: %x09 / %x20-7E / %x80-D7FF / %xE000-FFFD / %x10000-10FFFF
_UCHAR = re.compile(r"[\x09\x20-\x7E\x80-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]+")
# VSCHAR: %x20-7E
_VSCHAR = re.compile(r"[\x20-\x7E]+")
# scheme ":" per RFC 3986 Section 3.1, followed by at least one character
_URI = re.compile(r"[a-zA-Z][a-zA-Z0-9+.\-]*:.+", re.DOTALL)


def _matches(pattern: re.Pattern[str], value: Any) -> bool:
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def nchar(value: Any) -> bool:
    return _matches(_NCHAR, value)


def nqchar(value: Any) -> bool:
    return _matches(_NQCHAR, value)


def nqschar(value: Any) -> bool:
    return _matches(_NQSCHAR, value)


def uchar(value: Any) -> bool:
    return _matches(_UCHAR, value)


def vschar(value: Any) -> bool:
    return _matches(_VSCHAR, value)


def uri(value: Any) -> bool:
    """Check that ``value`` is an absolute URI (has a scheme)."""
    return _matches(_URI, value)
