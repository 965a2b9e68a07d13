"""Capabilities the application model provides, per consumer.

Each handler and grant type depends on a small interface rather than on one
large model class. Methods may be plain functions or coroutines; the core
awaits results that are awaitable.

Optional capabilities are listed in each protocol's docstring. They are
detected at runtime, and the core falls back to its own behaviour when one
is missing.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from oauth2_server.models.entities import AuthorizationCode, Client, Token, User
from oauth2_server.primitives.records import MaybeAwaitable


@runtime_checkable
class ClientModel(Protocol):
    def get_client(
        self, client_id: str, client_secret: str | None
    ) -> MaybeAwaitable[Client | None]: ...


@runtime_checkable
class TokenSaverModel(Protocol):
    """Shared by every grant type.

    Optional:
        ``generate_access_token(client, user, scope)``
        ``generate_refresh_token(client, user, scope)``
        ``validate_scope(user, client, scope) -> list[str] | falsy``
    """

    def save_token(
        self, token: Token, client: Client, user: User
    ) -> MaybeAwaitable[Token | None]: ...


@runtime_checkable
class AuthorizationCodeGrantModel(TokenSaverModel, Protocol):
    def get_authorization_code(
        self, authorization_code: str
    ) -> MaybeAwaitable[AuthorizationCode | None]: ...

    def revoke_authorization_code(
        self, code: AuthorizationCode
    ) -> MaybeAwaitable[Any]: ...


@runtime_checkable
class ClientCredentialsGrantModel(TokenSaverModel, Protocol):
    def get_user_from_client(self, client: Client) -> MaybeAwaitable[User]: ...


@runtime_checkable
class PasswordGrantModel(TokenSaverModel, Protocol):
    def get_user(
        self, username: str, password: str, client: Client
    ) -> MaybeAwaitable[User]: ...


@runtime_checkable
class RefreshTokenGrantModel(TokenSaverModel, Protocol):
    def get_refresh_token(self, refresh_token: str) -> MaybeAwaitable[Token | None]: ...

    def revoke_token(self, token: Token) -> MaybeAwaitable[Any]: ...


@runtime_checkable
class AuthenticateModel(Protocol):
    """Used by the authenticate handler.

    Optional (required when a scope is configured):
        ``verify_scope(token, scope) -> truthy``
    """

    def get_access_token(self, access_token: str) -> MaybeAwaitable[Token | None]: ...


@runtime_checkable
class AuthorizeModel(ClientModel, Protocol):
    """Used by the authorize handler.

    ``get_access_token`` is needed by the default authenticate handler.

    Optional:
        ``generate_authorization_code(client, user, scope)``
        ``validate_scope(user, client, scope)``
        ``validate_redirect_uri(redirect_uri, client) -> bool``
    """

    def save_authorization_code(
        self, code: AuthorizationCode, client: Client, user: User
    ) -> MaybeAwaitable[AuthorizationCode]: ...
