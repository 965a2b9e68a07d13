"""Normalized request and response value objects.

The handlers never touch a web framework. An adapter builds a ``Request``
from whatever the framework hands it, runs a handler, and copies the
``Response`` status, headers and body back out.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from oauth2_server.models.errors import InvalidArgumentError


def _fold_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    return {name.lower(): value for name, value in headers.items()}


def _mime_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def _type_matches(expected: str, actual: str) -> bool:
    """Match a mime type against ``type/subtype``, a bare subtype, or ``*`` wildcards."""
    expected = expected.lower()
    if "/" not in expected:
        # Shorthand such as "json" or "urlencoded", matched against the subtype.
        subtype = actual.split("/", 1)[-1]
        return expected == subtype or subtype.endswith(f"+{expected}")

    exp_type, exp_sub = expected.split("/", 1)
    act_type, _, act_sub = actual.partition("/")
    return exp_type in ("*", act_type) and exp_sub in ("*", act_sub)


class Request:
    """An incoming HTTP request as the handlers see it.

    Header names are case-folded. ``body`` and ``query`` are mappings of
    already-decoded parameters.
    """

    def __init__(
        self,
        *,
        method: str | None = None,
        headers: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        **properties: Any,
    ):
        if headers is None:
            raise InvalidArgumentError("Missing parameter: `headers`")
        if method is None:
            raise InvalidArgumentError("Missing parameter: `method`")
        if query is None:
            raise InvalidArgumentError("Missing parameter: `query`")

        self.body: Mapping[str, Any] = body if body is not None else {}
        self.headers = _fold_headers(headers)
        self.method = method.upper() if isinstance(method, str) else method
        self.query: Mapping[str, Any] = query

        for key, value in properties.items():
            if not hasattr(self, key):
                setattr(self, key, value)

    def get(self, field: str) -> Any:
        """Return a request header by case-insensitive name."""
        return self.headers.get(field.lower())

    def is_(self, *types: str | list[str]) -> str | bool:
        """Return the first of ``types`` matching the request content type.

        Accepts types as separate arguments or as a single list. Returns
        False if the request has no content type or nothing matches.
        """
        if len(types) == 1 and isinstance(types[0], (list, tuple)):
            types = tuple(types[0])

        content_type = self.get("content-type")
        if not content_type:
            return False

        actual = _mime_type(content_type)
        for candidate in types:
            if _type_matches(candidate, actual):
                return candidate
        return False

    def param(self, name: str) -> Any:
        """Return a parameter from the body, falling back to the query string."""
        return self.body.get(name) or self.query.get(name)


class Response:
    """The response a handler fills in: status, headers and body."""

    def __init__(
        self,
        *,
        body: Any = None,
        headers: Mapping[str, Any] | None = None,
        **properties: Any,
    ):
        self.body: Any = body if body is not None else {}
        self.headers = _fold_headers(headers or {})
        self.status = 200

        for key, value in properties.items():
            if not hasattr(self, key):
                setattr(self, key, value)

    def get(self, field: str) -> Any:
        return self.headers.get(field.lower())

    def set(self, field: str, value: Any) -> None:
        self.headers[field.lower()] = value

    def redirect(self, url: str) -> None:
        self.set("Location", url)
        self.status = 302
