"""Authorization endpoint for the authorization code flow (RFC 6749 Section 4.1.1)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from oauth2_server.handlers.authenticate import AuthenticateHandler
from oauth2_server.models.entities import AuthorizationCode, Client, User
from oauth2_server.models.errors import (
    AccessDeniedError,
    InvalidArgumentError,
    InvalidClientError,
    InvalidRequestError,
    InvalidScopeError,
    OAuthError,
    ServerError,
    UnauthorizedClientError,
    UnsupportedResponseTypeError,
)
from oauth2_server.models.http import Request, Response
from oauth2_server.models.protocols import AuthorizeModel
from oauth2_server.primitives import formats, pkce
from oauth2_server.primitives.records import field_of, implements, is_present, resolve
from oauth2_server.primitives.scope import parse_scope
from oauth2_server.primitives.tokens import (
    expires_at_from_lifetime,
    generate_random_token,
)
from oauth2_server.response_types import (
    RESPONSE_TYPES,
    CodeResponseType,
    build_error_redirect_uri,
)

logger = logging.getLogger(__name__)

_AUTHENTICATE_OPTIONS = (
    "scope",
    "add_accepted_scopes_header",
    "add_authorized_scopes_header",
    "allow_bearer_tokens_in_query_string",
)


class AuthorizeHandler:
    """Issues authorization codes to an authenticated resource owner.

    The user is resolved through an authenticate handler: by default an
    ``AuthenticateHandler`` over the same model, whose access token's
    ``user`` becomes the resource owner. A custom handler must return the
    user itself.

    Client and user failures are raised directly. Everything after that is
    also reported to the client by redirecting to its redirect URI with
    RFC 6749 Section 4.1.2.1 error parameters.

    Args:
        model: Provides ``get_client``, ``save_authorization_code`` and, for
            the default authenticate handler, ``get_access_token``.
        authorization_code_lifetime: Code lifetime in seconds.
        allow_empty_state: Accept requests without ``state``.
        authenticate_handler: Object with ``async handle(request, response)``
            returning the user.
    """

    model: AuthorizeModel

    def __init__(
        self,
        *,
        model: Any = None,
        authorization_code_lifetime: int | None = None,
        allow_empty_state: bool = False,
        authenticate_handler: Any = None,
        **options: Any,
    ):
        if authenticate_handler is not None and not implements(
            authenticate_handler, "handle"
        ):
            raise InvalidArgumentError(
                "Invalid argument: authenticate_handler does not implement `handle()`"
            )
        if not authorization_code_lifetime:
            raise InvalidArgumentError("Missing parameter: `authorization_code_lifetime`")
        if model is None:
            raise InvalidArgumentError("Missing parameter: `model`")
        if not implements(model, "get_client"):
            raise InvalidArgumentError(
                "Invalid argument: model does not implement `get_client()`"
            )
        if not implements(model, "save_authorization_code"):
            raise InvalidArgumentError(
                "Invalid argument: model does not implement `save_authorization_code()`"
            )

        self.model = model
        self.authorization_code_lifetime = authorization_code_lifetime
        self.allow_empty_state = allow_empty_state
        self.authenticate_handler = authenticate_handler or AuthenticateHandler(
            model=model,
            **{key: options[key] for key in _AUTHENTICATE_OPTIONS if key in options},
        )

    async def handle(self, request: Request, response: Response) -> AuthorizationCode:
        """Issue an authorization code and redirect back to the client.

        Returns:
            The authorization code record the model saved.

        Raises:
            InvalidArgumentError: If ``request`` or ``response`` have the
                wrong type.
            OAuthError: For every protocol failure. Once the redirect URI is
                known the response is also set to the error redirect.
        """
        if not isinstance(request, Request):
            raise InvalidArgumentError(
                "Invalid argument: `request` must be an instance of Request"
            )
        if not isinstance(response, Response):
            raise InvalidArgumentError(
                "Invalid argument: `response` must be an instance of Response"
            )

        expires_at = self.get_authorization_code_expires_at()
        try:
            client = await self.get_client(request)
            user = await self.get_user(request, response)
        except OAuthError as e:
            logger.warning(f"Authorization request rejected: {e.name}: {e.message}")
            raise
        except Exception as e:
            logger.exception("Model failure while resolving client or user")
            raise ServerError(e) from e

        uri = None
        state = None
        try:
            uri = self.get_redirect_uri(request, client)
            state = self.get_state(request)

            if request.query.get("allowed") == "false" or request.body.get("allowed") == "false":
                raise AccessDeniedError("Access denied: user denied access to application")

            requested_scope = self.get_scope(request)
            scope = await self.validate_scope(user, client, requested_scope)
            authorization_code = await self.generate_authorization_code(client, user, scope)
            response_type = self.get_response_type(request)
            code_challenge = self.get_code_challenge(request)
            code_challenge_method = self.get_code_challenge_method(request)

            code = await self.save_authorization_code(
                AuthorizationCode(
                    authorization_code=authorization_code,
                    expires_at=expires_at,
                    redirect_uri=uri,
                    scope=scope,
                    code_challenge=code_challenge or None,
                    code_challenge_method=code_challenge_method if code_challenge else None,
                ),
                client,
                user,
            )

            redirect_uri = response_type(field_of(code, "authorization_code")).build_redirect_uri(
                uri, state
            )
            response.redirect(redirect_uri)
            logger.info(f"Issued authorization code for client {field_of(client, 'id')}")
            return code
        except Exception as e:
            error = e if isinstance(e, OAuthError) else ServerError(e)
            if error is not e:
                logger.exception("Model failure while issuing authorization code")

            if uri:
                response.redirect(
                    build_error_redirect_uri(uri, error.name, error.message, state)
                )
            logger.warning(f"Authorization request failed: {error.name}: {error.message}")
            if error is e:
                raise
            raise error from e

    def get_authorization_code_expires_at(self) -> datetime:
        return expires_at_from_lifetime(self.authorization_code_lifetime)

    async def get_client(self, request: Request) -> Client:
        """Look up and vet the client named in the authorization request.

        Raises:
            InvalidRequestError: If ``client_id`` or ``redirect_uri`` are
                missing or malformed.
            InvalidClientError: If the client is unknown, is misconfigured or
                the redirect URI is not registered for it.
            UnauthorizedClientError: If it may not use the code flow.
        """
        client_id = request.param("client_id")
        if not client_id:
            raise InvalidRequestError("Missing parameter: `client_id`")
        if not formats.vschar(client_id):
            raise InvalidRequestError("Invalid parameter: `client_id`")

        redirect_uri = request.param("redirect_uri")
        if redirect_uri and not formats.uri(redirect_uri):
            raise InvalidRequestError("Invalid request: `redirect_uri` is not a valid URI")

        client = await resolve(self.model.get_client(client_id, None))
        if not is_present(client):
            raise InvalidClientError("Invalid client: client credentials are invalid")

        grants = field_of(client, "grants")
        if not grants:
            raise InvalidClientError("Invalid client: missing client `grants`")
        if not isinstance(grants, (list, tuple)) or "authorization_code" not in grants:
            raise UnauthorizedClientError("Unauthorized client: `grant_type` is invalid")
        if not field_of(client, "redirect_uris"):
            raise InvalidClientError("Invalid client: missing client `redirect_uri`")

        if redirect_uri and not await self.validate_redirect_uri(redirect_uri, client):
            raise InvalidClientError(
                "Invalid client: `redirect_uri` does not match client value"
            )
        return client

    async def validate_redirect_uri(self, redirect_uri: str, client: Client) -> bool:
        if implements(self.model, "validate_redirect_uri"):
            return bool(await resolve(self.model.validate_redirect_uri(redirect_uri, client)))
        return redirect_uri in field_of(client, "redirect_uris")

    async def get_user(self, request: Request, response: Response) -> User:
        """Resolve the resource owner through the authenticate handler."""
        if isinstance(self.authenticate_handler, AuthenticateHandler):
            token = await self.authenticate_handler.handle(request, response)
            user = field_of(token, "user")
        else:
            user = await resolve(self.authenticate_handler.handle(request, response))

        if not is_present(user):
            raise ServerError("Server error: `handle()` did not return a `user` object")
        return user

    def get_redirect_uri(self, request: Request, client: Client) -> str:
        return request.param("redirect_uri") or field_of(client, "redirect_uris")[0]

    def get_state(self, request: Request) -> str | None:
        state = request.param("state")
        state_exists = bool(state)
        state_is_valid = formats.vschar(state) if state_exists else self.allow_empty_state

        if not state_is_valid:
            prefix = "Invalid" if state_exists else "Missing"
            raise InvalidRequestError(f"{prefix} parameter: `state`")
        return state

    def get_scope(self, request: Request) -> list[str] | None:
        return parse_scope(request.param("scope"))

    async def validate_scope(
        self, user: User, client: Client, scope: list[str] | None
    ) -> list[str] | None:
        if not implements(self.model, "validate_scope"):
            return scope

        validated_scope = await resolve(self.model.validate_scope(user, client, scope))
        if not is_present(validated_scope):
            raise InvalidScopeError("Invalid scope: Requested scope is invalid")
        return validated_scope

    async def generate_authorization_code(
        self, client: Client, user: User, scope: list[str] | None
    ) -> str:
        if implements(self.model, "generate_authorization_code"):
            return await resolve(self.model.generate_authorization_code(client, user, scope))
        return generate_random_token()

    def get_response_type(self, request: Request) -> type[CodeResponseType]:
        response_type = request.param("response_type")
        if not response_type:
            raise InvalidRequestError("Missing parameter: `response_type`")
        if response_type not in RESPONSE_TYPES:
            raise UnsupportedResponseTypeError(
                "Unsupported response type: `response_type` is not supported"
            )
        return RESPONSE_TYPES[response_type]

    def get_code_challenge(self, request: Request) -> str | None:
        code_challenge = request.param("code_challenge")
        if code_challenge and not pkce.code_challenge_matches_format(code_challenge):
            raise InvalidRequestError("Invalid parameter: `code_challenge`")
        return code_challenge

    def get_code_challenge_method(self, request: Request) -> str:
        """RFC 7636 Section 4.3: defaults to ``plain`` when not present."""
        method = request.param("code_challenge_method")
        if method and not pkce.is_valid_method(method):
            raise InvalidRequestError(
                f"Invalid request: transform algorithm '{method}' not supported"
            )
        return method or "plain"

    async def save_authorization_code(
        self, code: AuthorizationCode, client: Client, user: User
    ) -> AuthorizationCode:
        saved = await resolve(self.model.save_authorization_code(code, client, user))
        if not is_present(saved):
            raise ServerError(
                "Server error: `save_authorization_code()` did not return an authorization code"
            )
        return saved
