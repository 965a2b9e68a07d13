"""Client credentials grant (RFC 6749 Section 4.4)."""

from __future__ import annotations

from typing import Any

from oauth2_server.grant_types.base import AbstractGrantType
from oauth2_server.models.entities import Client, Token, User
from oauth2_server.models.errors import InvalidGrantError
from oauth2_server.models.http import Request
from oauth2_server.models.protocols import ClientCredentialsGrantModel
from oauth2_server.primitives.records import is_present, resolve


class ClientCredentialsGrantType(AbstractGrantType):
    """Issues an access token to an authenticated client acting for itself.

    The model still has to map the client to a user record. No refresh token
    is issued (RFC 6749 Section 4.4.3).
    """

    required_model_methods = ("get_user_from_client", "save_token")
    model: ClientCredentialsGrantModel

    async def handle(self, request: Request, client: Client) -> Any:
        self._require_handle_args(request, client)

        scope = self.get_scope(request)
        user = await self.get_user_from_client(client)

        return await self.save_token(user, client, scope)

    async def get_user_from_client(self, client: Client) -> User:
        user = await resolve(self.model.get_user_from_client(client))
        if not is_present(user):
            raise InvalidGrantError("Invalid grant: user credentials are invalid")
        return user

    async def save_token(
        self, user: User, client: Client, requested_scope: list[str] | None
    ) -> Any:
        scope = await self.validate_scope(user, client, requested_scope)
        access_token = await self.generate_access_token(client, user, scope)

        token = Token(
            access_token=access_token,
            access_token_expires_at=self.get_access_token_expires_at(),
            scope=scope,
        )
        return await self._save(token, client, user)
