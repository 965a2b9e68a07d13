"""Authorization code grant (RFC 6749 Section 4.1.3, RFC 7636 Section 4.6)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from oauth2_server.grant_types.base import AbstractGrantType
from oauth2_server.models.entities import AuthorizationCode, Client, Token, User
from oauth2_server.models.errors import (
    InvalidGrantError,
    InvalidRequestError,
    ServerError,
)
from oauth2_server.models.http import Request
from oauth2_server.models.protocols import AuthorizationCodeGrantModel
from oauth2_server.primitives import formats, pkce
from oauth2_server.primitives.records import field_of, is_expired, is_present, resolve

logger = logging.getLogger(__name__)


class AuthorizationCodeGrantType(AbstractGrantType):
    """Exchanges a single-use authorization code for an access token.

    The code is fetched, checked against the requesting client, its expiry,
    the redirect URI it was issued for and any PKCE challenge, then revoked
    before a token is minted.
    """

    required_model_methods = (
        "get_authorization_code",
        "revoke_authorization_code",
        "save_token",
    )

    model: AuthorizationCodeGrantModel

    async def handle(self, request: Request, client: Client) -> Any:
        self._require_handle_args(request, client)

        code = await self.get_authorization_code(request, client)
        self.validate_redirect_uri(request, code)
        await self.revoke_authorization_code(code)

        return await self.save_token(
            field_of(code, "user"),
            client,
            field_of(code, "authorization_code"),
            field_of(code, "scope"),
        )

    async def get_authorization_code(
        self, request: Request, client: Client
    ) -> AuthorizationCode:
        """Fetch the code named in the request and check it can be redeemed.

        Raises:
            InvalidRequestError: If ``code`` is missing or malformed.
            InvalidGrantError: If the code is unknown, belongs to another
                client, has expired, or the PKCE verifier does not match.
            ServerError: If the model returned a code record it cannot trust.
        """
        request_code = request.body.get("code")
        if not request_code:
            raise InvalidRequestError("Missing parameter: `code`")
        if not formats.vschar(request_code):
            raise InvalidRequestError("Invalid parameter: `code`")

        code = await resolve(self.model.get_authorization_code(request_code))
        if not is_present(code):
            raise InvalidGrantError("Invalid grant: authorization code is invalid")

        code_client = field_of(code, "client")
        expires_at = field_of(code, "expires_at")
        if not is_present(code_client):
            raise ServerError(
                "Server error: `get_authorization_code()` did not return a `client` object"
            )
        if not isinstance(expires_at, datetime):
            raise ServerError("Server error: `expires_at` must be a datetime instance")
        if not is_present(field_of(code, "user")):
            raise ServerError(
                "Server error: `get_authorization_code()` did not return a `user` object"
            )

        # Same message as an unknown code, so existence is not leaked.
        if field_of(code_client, "id") != field_of(client, "id"):
            raise InvalidGrantError("Invalid grant: authorization code is invalid")

        if is_expired(expires_at):
            raise InvalidGrantError("Invalid grant: authorization code has expired")

        redirect_uri = field_of(code, "redirect_uri")
        if redirect_uri and not formats.uri(redirect_uri):
            raise InvalidGrantError("Invalid grant: `redirect_uri` is not a valid URI")

        self._validate_code_verifier(request, code)
        return code

    def _validate_code_verifier(self, request: Request, code: AuthorizationCode) -> None:
        code_verifier = request.body.get("code_verifier")
        code_challenge = field_of(code, "code_challenge")

        if not code_challenge:
            if code_verifier:
                # A verifier for a code issued without a challenge is a mismatch.
                raise InvalidGrantError("Invalid grant: code verifier is invalid")
            return

        if not code_verifier:
            raise InvalidGrantError("Missing parameter: `code_verifier`")

        hashed = pkce.compute_challenge_for_verifier(
            field_of(code, "code_challenge_method"), code_verifier
        )
        if not hashed:
            raise ServerError(
                "Server error: `get_authorization_code()` did not return a valid "
                "`code_challenge_method` property"
            )
        if hashed != code_challenge:
            raise InvalidGrantError("Invalid grant: code verifier is invalid")

        logger.debug("PKCE code verifier accepted")

    def validate_redirect_uri(self, request: Request, code: AuthorizationCode) -> None:
        """Require the token request to repeat the redirect URI the code was issued for.

        RFC 6749 Section 4.1.3: required if it was included in the
        authorization request, and the values must be identical.
        """
        code_redirect_uri = field_of(code, "redirect_uri")
        if not code_redirect_uri:
            return

        redirect_uri = request.param("redirect_uri")
        if not formats.uri(redirect_uri):
            raise InvalidRequestError("Invalid request: `redirect_uri` is not a valid URI")
        if redirect_uri != code_redirect_uri:
            raise InvalidRequestError("Invalid request: `redirect_uri` is invalid")

    async def revoke_authorization_code(self, code: AuthorizationCode) -> AuthorizationCode:
        status = await resolve(self.model.revoke_authorization_code(code))
        if not is_present(status):
            raise InvalidGrantError("Invalid grant: authorization code is invalid")
        return code

    async def save_token(
        self,
        user: User,
        client: Client,
        authorization_code: str,
        requested_scope: list[str] | None,
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
            authorization_code=authorization_code,
        )
        return await self._save(token, client, user)
