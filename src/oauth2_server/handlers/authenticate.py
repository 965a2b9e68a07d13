"""Bearer token authentication for protected resources (RFC 6750)."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

from oauth2_server.models.entities import Token
from oauth2_server.models.errors import (
    InsufficientScopeError,
    InvalidArgumentError,
    InvalidRequestError,
    InvalidTokenError,
    OAuthError,
    ServerError,
    UnauthorizedRequestError,
)
from oauth2_server.models.http import Request, Response
from oauth2_server.models.protocols import AuthenticateModel
from oauth2_server.primitives.records import (
    field_of,
    implements,
    is_expired,
    is_present,
    resolve,
)
from oauth2_server.primitives.scope import join_scope, parse_scope

logger = logging.getLogger(__name__)

_BEARER_HEADER = re.compile(r"^Bearer\s(\S+)")

# Errors that get their RFC 6750 error code in the challenge.
_CHALLENGE_ERRORS = (InvalidRequestError, InvalidTokenError, InsufficientScopeError)


class AuthenticateHandler:
    """Validates the bearer token presented with a resource request.

    Args:
        model: Provides ``get_access_token`` and, when ``scope`` is set,
            ``verify_scope``.
        scope: Scope the resource requires, as a space-delimited string.
        add_accepted_scopes_header: Send ``X-Accepted-OAuth-Scopes``.
        add_authorized_scopes_header: Send ``X-OAuth-Scopes``.
        allow_bearer_tokens_in_query_string: Accept ``?access_token=``
            (RFC 6750 Section 2.3 discourages it).
    """

    model: AuthenticateModel

    def __init__(
        self,
        *,
        model: Any = None,
        scope: str | None = None,
        add_accepted_scopes_header: bool | None = None,
        add_authorized_scopes_header: bool | None = None,
        allow_bearer_tokens_in_query_string: bool = False,
        **options: Any,
    ):
        if model is None:
            raise InvalidArgumentError("Missing parameter: `model`")
        if not implements(model, "get_access_token"):
            raise InvalidArgumentError(
                "Invalid argument: model does not implement `get_access_token()`"
            )

        if scope and add_accepted_scopes_header is None:
            raise InvalidArgumentError("Missing parameter: `add_accepted_scopes_header`")
        if scope and add_authorized_scopes_header is None:
            raise InvalidArgumentError("Missing parameter: `add_authorized_scopes_header`")
        if scope and not implements(model, "verify_scope"):
            raise InvalidArgumentError(
                "Invalid argument: model does not implement `verify_scope()`"
            )

        self.model = model
        self.scope = parse_scope(scope)
        self.add_accepted_scopes_header = add_accepted_scopes_header
        self.add_authorized_scopes_header = add_authorized_scopes_header
        self.allow_bearer_tokens_in_query_string = allow_bearer_tokens_in_query_string

    async def handle(self, request: Request, response: Response) -> Token:
        """Authenticate the request and return the access token record.

        Raises:
            OAuthError: On any failure. ``response`` then carries a
                ``WWW-Authenticate`` challenge where RFC 6750 asks for one.
        """
        if not isinstance(request, Request):
            raise InvalidArgumentError(
                "Invalid argument: `request` must be an instance of Request"
            )
        if not isinstance(response, Response):
            raise InvalidArgumentError(
                "Invalid argument: `response` must be an instance of Response"
            )

        try:
            request_token = self.get_token_from_request(request)
            access_token = await self.get_access_token(request_token)
            self.validate_access_token(access_token)

            if self.scope:
                await self.verify_scope(access_token)

            self.update_response(response, access_token)
            return access_token
        except Exception as e:
            error = e if isinstance(e, OAuthError) else ServerError(e)
            if error is not e:
                logger.exception("Model failure while authenticating request")

            if isinstance(error, UnauthorizedRequestError):
                response.set("WWW-Authenticate", 'Bearer realm="Service"')
            elif isinstance(error, _CHALLENGE_ERRORS):
                response.set(
                    "WWW-Authenticate", f'Bearer realm="Service",error="{error.name}"'
                )

            logger.warning(f"Authentication failed: {error.name}: {error.message}")
            if error is e:
                raise
            raise error from e

    def get_token_from_request(self, request: Request) -> str:
        """Extract the bearer token from exactly one of header, query or body.

        Raises:
            InvalidRequestError: If more than one source carries a token.
            UnauthorizedRequestError: If no source carries one.
        """
        header_token = request.get("Authorization")
        query_token = request.query.get("access_token")
        body_token = request.body.get("access_token")

        sources = sum(1 for token in (header_token, query_token, body_token) if token)
        if sources > 1:
            raise InvalidRequestError(
                "Invalid request: only one authentication method is allowed"
            )

        if header_token:
            logger.debug("Bearer token taken from Authorization header")
            return self.get_token_from_request_header(request)
        if query_token:
            logger.debug("Bearer token taken from query string")
            return self.get_token_from_request_query(request)
        if body_token:
            logger.debug("Bearer token taken from request body")
            return self.get_token_from_request_body(request)

        raise UnauthorizedRequestError("Unauthorized request: no authentication given")

    def get_token_from_request_header(self, request: Request) -> str:
        token = request.get("Authorization")
        matches = _BEARER_HEADER.match(token)
        if not matches:
            raise InvalidRequestError("Invalid request: malformed authorization header")
        return matches.group(1)

    def get_token_from_request_query(self, request: Request) -> str:
        if not self.allow_bearer_tokens_in_query_string:
            raise InvalidRequestError(
                "Invalid request: do not send bearer tokens in query URLs"
            )
        return request.query.get("access_token")

    def get_token_from_request_body(self, request: Request) -> str:
        """RFC 6750 Section 2.2: form-encoded body, never with GET."""
        if request.method == "GET":
            raise InvalidRequestError(
                "Invalid request: token may not be passed in the body when using the GET verb"
            )
        if not request.is_("application/x-www-form-urlencoded"):
            raise InvalidRequestError(
                "Invalid request: content must be application/x-www-form-urlencoded"
            )
        return request.body.get("access_token")

    async def get_access_token(self, token: str) -> Token:
        access_token = await resolve(self.model.get_access_token(token))
        if not is_present(access_token):
            raise InvalidTokenError("Invalid token: access token is invalid")
        if not is_present(field_of(access_token, "user")):
            raise ServerError(
                "Server error: `get_access_token()` did not return a `user` object"
            )
        return access_token

    def validate_access_token(self, access_token: Token) -> Token:
        expires_at = field_of(access_token, "access_token_expires_at")
        if expires_at and not isinstance(expires_at, datetime):
            raise ServerError(
                "Server error: `access_token_expires_at` must be a datetime instance"
            )
        if expires_at and is_expired(expires_at):
            raise InvalidTokenError("Invalid token: access token has expired")
        return access_token

    async def verify_scope(self, access_token: Token) -> bool:
        scope = await resolve(self.model.verify_scope(access_token, self.scope))
        if not is_present(scope):
            raise InsufficientScopeError(
                "Insufficient scope: authorized scope is insufficient"
            )
        return scope

    def update_response(self, response: Response, access_token: Token) -> None:
        if self.scope and self.add_accepted_scopes_header:
            response.set("X-Accepted-OAuth-Scopes", join_scope(self.scope))
        if self.scope and self.add_authorized_scopes_header:
            token_scope = field_of(access_token, "scope")
            if isinstance(token_scope, (list, tuple)):
                token_scope = join_scope(list(token_scope))
            response.set("X-OAuth-Scopes", token_scope)
