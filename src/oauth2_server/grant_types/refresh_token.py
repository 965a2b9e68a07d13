"""Refresh token grant (RFC 6749 Section 6)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from oauth2_server.grant_types.base import AbstractGrantType
from oauth2_server.models.entities import Client, Token, User
from oauth2_server.models.errors import (
    InvalidGrantError,
    InvalidRequestError,
    InvalidScopeError,
    ServerError,
)
from oauth2_server.models.http import Request
from oauth2_server.models.protocols import RefreshTokenGrantModel
from oauth2_server.primitives import formats
from oauth2_server.primitives.records import field_of, is_expired, is_present, resolve
from oauth2_server.primitives.scope import parse_scope

logger = logging.getLogger(__name__)


class RefreshTokenGrantType(AbstractGrantType):
    """Trades a refresh token for a new access token.

    With ``always_issue_new_refresh_token`` (the default) the presented
    token is revoked and a new refresh token is issued alongside the access
    token. Otherwise the refresh token stays valid and only an access token
    is minted.
    """

    required_model_methods = ("get_refresh_token", "revoke_token", "save_token")
    model: RefreshTokenGrantModel

    async def handle(self, request: Request, client: Client) -> Any:
        self._require_handle_args(request, client)

        token = await self.get_refresh_token(request, client)
        token = await self.revoke_token(token)
        scope = self.get_scope(request, token)

        return await self.save_token(field_of(token, "user"), client, scope)

    async def get_refresh_token(self, request: Request, client: Client) -> Token:
        """Fetch the presented refresh token and check it may be used.

        The format check runs before the lookup, so malformed values never
        reach the model.

        Raises:
            InvalidRequestError: If ``refresh_token`` is missing or malformed.
            InvalidGrantError: If the token is unknown, was issued to another
                client, or has expired.
            ServerError: If the model returned a token record it cannot trust.
        """
        request_token = request.body.get("refresh_token")
        if not request_token:
            raise InvalidRequestError("Missing parameter: `refresh_token`")
        if not formats.vschar(request_token):
            raise InvalidRequestError("Invalid parameter: `refresh_token`")

        token = await resolve(self.model.get_refresh_token(request_token))
        if not is_present(token):
            raise InvalidGrantError("Invalid grant: refresh token is invalid")

        token_client = field_of(token, "client")
        if not is_present(token_client):
            raise ServerError(
                "Server error: `get_refresh_token()` did not return a `client` object"
            )
        if not is_present(field_of(token, "user")):
            raise ServerError(
                "Server error: `get_refresh_token()` did not return a `user` object"
            )

        if field_of(token_client, "id") != field_of(client, "id"):
            raise InvalidGrantError("Invalid grant: refresh token was issued to another client")

        expires_at = field_of(token, "refresh_token_expires_at")
        if expires_at and not isinstance(expires_at, datetime):
            raise ServerError(
                "Server error: `refresh_token_expires_at` must be a datetime instance"
            )
        if expires_at and is_expired(expires_at):
            raise InvalidGrantError("Invalid grant: refresh token has expired")

        return token

    async def revoke_token(self, token: Token) -> Token:
        if not self.always_issue_new_refresh_token:
            return token

        status = await resolve(self.model.revoke_token(token))
        if not is_present(status):
            raise InvalidGrantError(
                "Invalid grant: refresh token is invalid or could not be revoked"
            )

        logger.info(f"Revoked refresh token for client {field_of(field_of(token, 'client'), 'id')}")
        return token

    def get_scope(self, request: Request, token: Token | None = None) -> list[str] | None:
        """Narrow the new token's scope to a subset of the original grant.

        RFC 6749 Section 6: the requested scope must not include any scope
        not originally granted, and if omitted is treated as equal to it.
        """
        requested_scope = parse_scope(request.body.get("scope"))
        original_scope = field_of(token, "scope")

        if not original_scope and not requested_scope:
            return None
        if not original_scope:
            raise InvalidScopeError("Invalid scope: Unable to add extra scopes")
        if not requested_scope:
            return original_scope
        if not all(scope in original_scope for scope in requested_scope):
            raise InvalidScopeError("Invalid scope: Unable to add extra scopes")
        return requested_scope

    async def save_token(
        self, user: User, client: Client, scope: list[str] | None
    ) -> Any:
        access_token = await self.generate_access_token(client, user, scope)
        token = Token(
            access_token=access_token,
            access_token_expires_at=self.get_access_token_expires_at(),
            scope=scope,
        )

        if self.always_issue_new_refresh_token:
            token.refresh_token = await self.generate_refresh_token(client, user, scope)
            token.refresh_token_expires_at = self.get_refresh_token_expires_at()

        return await self._save(token, client, user)
