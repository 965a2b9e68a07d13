"""Resource owner password credentials grant (RFC 6749 Section 4.3)."""

from __future__ import annotations

from typing import Any

from oauth2_server.grant_types.base import AbstractGrantType
from oauth2_server.models.entities import Client, Token, User
from oauth2_server.models.errors import InvalidGrantError, InvalidRequestError
from oauth2_server.models.http import Request
from oauth2_server.models.protocols import PasswordGrantModel
from oauth2_server.primitives import formats
from oauth2_server.primitives.records import is_present, resolve


class PasswordGrantType(AbstractGrantType):
    required_model_methods = ("get_user", "save_token")
    model: PasswordGrantModel

    async def handle(self, request: Request, client: Client) -> Any:
        self._require_handle_args(request, client)

        scope = self.get_scope(request)
        user = await self.get_user(request, client)

        return await self.save_token(user, client, scope)

    async def get_user(self, request: Request, client: Client) -> User:
        """Look up the resource owner from ``username`` and ``password``.

        Raises:
            InvalidRequestError: If either parameter is missing or malformed.
            InvalidGrantError: If the model does not recognize the credentials.
        """
        username = request.body.get("username")
        password = request.body.get("password")

        if not username:
            raise InvalidRequestError("Missing parameter: `username`")
        if not password:
            raise InvalidRequestError("Missing parameter: `password`")
        if not formats.uchar(username):
            raise InvalidRequestError("Invalid parameter: `username`")
        if not formats.uchar(password):
            raise InvalidRequestError("Invalid parameter: `password`")

        user = await resolve(self.model.get_user(username, password, client))
        if not is_present(user):
            raise InvalidGrantError("Invalid grant: user credentials are invalid")
        return user

    async def save_token(
        self, user: User, client: Client, requested_scope: list[str] | None
    ) -> Any:
        scope = await self.validate_scope(user, client, requested_scope)
        access_token = await self.generate_access_token(client, user, scope)
        refresh_token = await self.generate_refresh_token(client, user, scope)

        token = Token(
            access_token=access_token,
            access_token_expires_at=self.get_access_token_expires_at(),
            refresh_token=refresh_token,
            refresh_token_expires_at=self.get_refresh_token_expires_at(),
            scope=scope,
        )
        return await self._save(token, client, user)
