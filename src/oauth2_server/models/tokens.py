"""Token record validation and the bearer token response (RFC 6750).

``TokenModel`` checks the record the application model returned from
``save_token`` and ``BearerToken`` renders it as an RFC 6749 Section 5.1
response body.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from oauth2_server.models.errors import InvalidArgumentError
from oauth2_server.primitives.records import field_of, is_present
from oauth2_server.primitives.scope import join_scope
from oauth2_server.primitives.tokens import lifetime_from_expires_at

# Attributes that are part of the token record itself and never echoed as
# extended attributes.
RESERVED_TOKEN_ATTRIBUTES = frozenset(
    {
        "access_token",
        "access_token_expires_at",
        "refresh_token",
        "refresh_token_expires_at",
        "scope",
        "client",
        "user",
        "authorization_code",
        "extra",
    }
)


def _extended_attributes(record: Any) -> dict[str, Any]:
    """Collect the non-reserved attributes of a token record."""
    if isinstance(record, Mapping):
        candidates = dict(record)
    elif is_dataclass(record):
        candidates = {f.name: getattr(record, f.name) for f in fields(record)}
    else:
        candidates = dict(vars(record)) if hasattr(record, "__dict__") else {}

    extra = candidates.pop("extra", None) or {}
    candidates.update(extra)
    return {
        key: value
        for key, value in candidates.items()
        if key not in RESERVED_TOKEN_ATTRIBUTES and not key.startswith("_")
    }


@dataclass
class TokenModel:
    """A validated token record as returned by ``model.save_token``."""

    access_token: str
    client: Any
    user: Any
    access_token_expires_at: datetime | None = None
    refresh_token: str | None = None
    refresh_token_expires_at: datetime | None = None
    scope: list[str] | None = None
    access_token_lifetime: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(
        cls, record: Any, allow_extended_token_attributes: bool = False
    ) -> TokenModel:
        """Validate a saved token record.

        Args:
            record: Whatever ``model.save_token`` returned.
            allow_extended_token_attributes: Copy non-reserved attributes
                into ``extra`` so they reach the token response.

        Raises:
            InvalidArgumentError: If the record lacks an access token, client
                or user, or carries expiry values that are not datetimes.
        """
        access_token = field_of(record, "access_token")
        client = field_of(record, "client")
        user = field_of(record, "user")
        access_token_expires_at = field_of(record, "access_token_expires_at")
        refresh_token_expires_at = field_of(record, "refresh_token_expires_at")

        if not access_token:
            raise InvalidArgumentError("Missing parameter: `access_token`")
        if not is_present(client):
            raise InvalidArgumentError("Missing parameter: `client`")
        if not is_present(user):
            raise InvalidArgumentError("Missing parameter: `user`")
        if access_token_expires_at and not isinstance(access_token_expires_at, datetime):
            raise InvalidArgumentError("Invalid parameter: `access_token_expires_at`")
        if refresh_token_expires_at and not isinstance(refresh_token_expires_at, datetime):
            raise InvalidArgumentError("Invalid parameter: `refresh_token_expires_at`")

        return cls(
            access_token=access_token,
            client=client,
            user=user,
            access_token_expires_at=access_token_expires_at,
            refresh_token=field_of(record, "refresh_token"),
            refresh_token_expires_at=refresh_token_expires_at,
            scope=field_of(record, "scope"),
            access_token_lifetime=(
                lifetime_from_expires_at(access_token_expires_at)
                if access_token_expires_at
                else None
            ),
            extra=(
                _extended_attributes(record) if allow_extended_token_attributes else {}
            ),
        )

    def to_bearer_token(self) -> BearerToken:
        extra = {
            key: value
            for key, value in self.extra.items()
            if key not in BearerToken.model_fields
        }
        return BearerToken(
            access_token=self.access_token,
            expires_in=self.access_token_lifetime,
            refresh_token=self.refresh_token,
            scope=join_scope(self.scope),
            **extra,
        )


class BearerToken(BaseModel):
    """Successful token response body (RFC 6749 Section 5.1).

    ``scope`` is always the space-joined string form. Extended attributes
    are carried as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None

    def to_body(self) -> dict[str, Any]:
        """Render the response body, omitting absent optional fields."""
        return self.model_dump(exclude_none=True)
