from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

from oauth2_server.models.entities import Client
from oauth2_server.models.http import Request

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def make_model(**methods: Any) -> SimpleNamespace:
    """Build a model exposing only the given capabilities.

    Plain values become ``AsyncMock(return_value=value)``; callables and
    mocks are used as is. A bare ``MagicMock`` would claim every capability.
    """
    attributes = {}
    for name, value in methods.items():
        if callable(value):
            attributes[name] = value
        else:
            attributes[name] = AsyncMock(return_value=value)
    return SimpleNamespace(**attributes)


def echo_save_token() -> AsyncMock:
    """``save_token`` that stores the token with its client and user attached."""

    async def save_token(token, client, user):
        token.client = client
        token.user = user
        return token

    return AsyncMock(side_effect=save_token)


def form_request(
    body: dict[str, Any] | None = None,
    *,
    method: str = "POST",
    headers: dict[str, Any] | None = None,
    query: dict[str, Any] | None = None,
) -> Request:
    """A form-encoded request, as the token endpoint expects."""
    return Request(
        method=method,
        headers={"Content-Type": FORM_CONTENT_TYPE, **(headers or {})},
        query=query or {},
        body=body or {},
    )


def in_future(seconds: int = 3600) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)


def in_past(seconds: int = 3600) -> datetime:
    return datetime.now(timezone.utc) - timedelta(seconds=seconds)


def make_client(**overrides: Any) -> Client:
    values = {
        "id": "client-123",
        "secret": "s3cret",
        "grants": [
            "authorization_code",
            "client_credentials",
            "password",
            "refresh_token",
        ],
        "redirect_uris": ["http://example.com/cb"],
    }
    values.update(overrides)
    return Client(**values)
