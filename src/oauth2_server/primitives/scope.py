"""Scope parsing (RFC 6749 Section 3.3)."""

from __future__ import annotations

import re
from typing import Any

from oauth2_server.models.errors import InvalidScopeError
from oauth2_server.primitives import formats

_WHITESPACE = re.compile(r"\s+")


def parse_scope(requested_scope: Any) -> list[str] | None:
    """Parse a space-delimited scope string into its ordered scope tokens.

    Scope is optional, so ``None`` yields ``None``. The value is trimmed
    before the character check, which makes a whitespace-only string empty
    and therefore invalid.

    Raises:
        InvalidScopeError: If the value is not a string or contains
            characters outside NQSCHAR.
    """
    if requested_scope is None:
        return None

    if not isinstance(requested_scope, str):
        raise InvalidScopeError("Invalid parameter: `scope`")

    requested_scope = requested_scope.strip()

    if not formats.nqschar(requested_scope):
        raise InvalidScopeError("Invalid parameter: `scope`")

    return _WHITESPACE.split(requested_scope)


def join_scope(scope: list[str] | str | None) -> str | None:
    """Space-join a scope list. Strings are already in wire form."""
    if scope is None or isinstance(scope, str):
        return scope
    return " ".join(scope)
