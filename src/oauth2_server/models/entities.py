"""Records exchanged between the protocol core and the application model.

The core never persists anything itself. These records are what the model
returns from its lookups and receives in its ``save_*`` calls. A model may
return these dataclasses, any object with the same attribute names, or a
mapping with the same keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# The user is application defined. The core only requires it to be truthy.
User = Any


@dataclass
class Client:
    """A registered OAuth client."""

    id: str
    grants: list[str] = field(default_factory=list)
    redirect_uris: list[str] = field(default_factory=list)
    secret: str | None = None
    access_token_lifetime: int | None = None
    refresh_token_lifetime: int | None = None
    # Carried for the application; PKCE is currently accepted from any client.
    is_public: bool = False


@dataclass
class AuthorizationCode:
    """An authorization code issued by the authorize endpoint."""

    authorization_code: str
    expires_at: datetime | None = None
    redirect_uri: str | None = None
    scope: list[str] | None = None
    client: Client | None = None
    user: User = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None


@dataclass
class Token:
    """An access token, optionally paired with a refresh token.

    ``extra`` holds application specific attributes. They are only echoed
    in token responses when extended token attributes are enabled.
    """

    access_token: str
    access_token_expires_at: datetime | None = None
    refresh_token: str | None = None
    refresh_token_expires_at: datetime | None = None
    scope: list[str] | None = None
    client: Client | None = None
    user: User = None
    authorization_code: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
