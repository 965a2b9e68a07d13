"""Shared behaviour for grant types.

A grant type turns a token request into a saved token: it fetches and
checks the grant artifact through the model, negotiates scope, mints
tokens and hands them to ``model.save_token``. Subclasses declare the model
capabilities they need in ``required_model_methods``; construction fails
fast when the model lacks one.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, ClassVar

from oauth2_server.models.entities import Client, Token, User
from oauth2_server.models.errors import InvalidArgumentError, InvalidScopeError
from oauth2_server.models.http import Request
from oauth2_server.primitives.records import field_of, implements, is_present, resolve
from oauth2_server.primitives.scope import parse_scope
from oauth2_server.primitives.tokens import (
    expires_at_from_lifetime,
    generate_random_token,
)

logger = logging.getLogger(__name__)


class AbstractGrantType:
    """Base class for built-in and extension grant types.

    Extension grant types registered with the token handler are constructed
    with the same keyword options and must provide
    ``async handle(request, client)``.

    Args:
        model: Application model.
        access_token_lifetime: Access token lifetime in seconds.
        refresh_token_lifetime: Refresh token lifetime in seconds.
        always_issue_new_refresh_token: Rotate refresh tokens on use.
    """

    required_model_methods: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        *,
        model: Any = None,
        access_token_lifetime: int | None = None,
        refresh_token_lifetime: int | None = None,
        always_issue_new_refresh_token: bool = True,
        **options: Any,
    ):
        if model is None:
            raise InvalidArgumentError("Missing parameter: `model`")

        for method in self.required_model_methods:
            if not implements(model, method):
                raise InvalidArgumentError(
                    f"Invalid argument: model does not implement `{method}()`"
                )

        if not access_token_lifetime:
            raise InvalidArgumentError("Missing parameter: `access_token_lifetime`")

        self.model = model
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.always_issue_new_refresh_token = always_issue_new_refresh_token is not False

    async def handle(self, request: Request, client: Client) -> Any:
        raise NotImplementedError

    async def generate_access_token(
        self, client: Client, user: User, scope: list[str] | None
    ) -> str:
        if implements(self.model, "generate_access_token"):
            # No random fallback once the model owns generation, even if it
            # returns nothing: that would issue tokens the model never meant to.
            return await resolve(self.model.generate_access_token(client, user, scope))
        return generate_random_token()

    async def generate_refresh_token(
        self, client: Client, user: User, scope: list[str] | None
    ) -> str:
        if implements(self.model, "generate_refresh_token"):
            return await resolve(self.model.generate_refresh_token(client, user, scope))
        return generate_random_token()

    def get_access_token_expires_at(self) -> datetime:
        return expires_at_from_lifetime(self.access_token_lifetime)

    def get_refresh_token_expires_at(self) -> datetime | None:
        if not self.refresh_token_lifetime:
            return None
        return expires_at_from_lifetime(self.refresh_token_lifetime)

    def get_scope(self, request: Request) -> list[str] | None:
        return parse_scope(request.body.get("scope"))

    async def validate_scope(
        self, user: User, client: Client, scope: list[str] | None
    ) -> list[str] | None:
        """Let the model accept, narrow or reject the requested scope.

        Without ``model.validate_scope`` the requested scope is used as is.

        Raises:
            InvalidScopeError: If the model rejects the scope.
        """
        if not implements(self.model, "validate_scope"):
            return scope

        validated_scope = await resolve(self.model.validate_scope(user, client, scope))
        if not is_present(validated_scope):
            raise InvalidScopeError("Invalid scope: Requested scope is invalid")
        return validated_scope

    async def _save(self, token: Token, client: Client, user: User) -> Any:
        saved = await resolve(self.model.save_token(token, client, user))
        logger.info(f"Issued access token for client {field_of(client, 'id')}")
        return saved

    @staticmethod
    def _require_handle_args(request: Request | None, client: Client | None) -> None:
        if request is None:
            raise InvalidArgumentError("Missing parameter: `request`")
        if not is_present(client):
            raise InvalidArgumentError("Missing parameter: `client`")
