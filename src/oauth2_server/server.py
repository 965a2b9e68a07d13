"""Entry points for embedding the protocol core in an application.

``OAuth2Server`` holds the model and server-wide options and builds a fresh
handler per call, so a single instance can serve concurrent requests.
"""

from __future__ import annotations

from typing import Any

from oauth2_server.handlers.authenticate import AuthenticateHandler
from oauth2_server.handlers.authorize import AuthorizeHandler
from oauth2_server.handlers.token import TokenHandler
from oauth2_server.models.entities import AuthorizationCode, Token
from oauth2_server.models.errors import InvalidArgumentError
from oauth2_server.models.http import Request, Response


AUTHENTICATE_DEFAULTS: dict[str, Any] = {
    "add_accepted_scopes_header": True,
    "add_authorized_scopes_header": True,
    "allow_bearer_tokens_in_query_string": False,
}

AUTHORIZE_DEFAULTS: dict[str, Any] = {
    "allow_empty_state": False,
    "authorization_code_lifetime": 5 * 60,
}

TOKEN_DEFAULTS: dict[str, Any] = {
    "access_token_lifetime": 60 * 60,
    "refresh_token_lifetime": 60 * 60 * 24 * 14,
    "allow_extended_token_attributes": False,
    "require_client_authentication": {},
    "always_issue_new_refresh_token": True,
}


class OAuth2Server:
    """Server facade over the token, authorize and authenticate handlers.

    Options are merged per call as ``defaults <- server options <- call
    options``, so any handler option can be set once here or per request.

    Example:
        server = OAuth2Server(model=MyModel(), access_token_lifetime=900)
        token = await server.token(request, response)
    """

    def __init__(self, *, model: Any = None, **options: Any):
        if model is None:
            raise InvalidArgumentError("Missing parameter: `model`")

        self.model = model
        self.options = options

    def _merge(self, defaults: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
        return {**defaults, **self.options, "model": self.model, **options}

    async def authenticate(
        self,
        request: Request,
        response: Response | None = None,
        **options: Any,
    ) -> Token:
        """Validate the bearer token on a resource request.

        Accepts a scope string as ``scope`` to require it for this call.
        """
        handler = AuthenticateHandler(**self._merge(AUTHENTICATE_DEFAULTS, options))
        return await handler.handle(request, response if response is not None else Response())

    async def authorize(
        self, request: Request, response: Response, **options: Any
    ) -> AuthorizationCode:
        handler = AuthorizeHandler(**self._merge(AUTHORIZE_DEFAULTS, options))
        return await handler.handle(request, response)

    async def token(self, request: Request, response: Response, **options: Any) -> Any:
        handler = TokenHandler(**self._merge(TOKEN_DEFAULTS, options))
        return await handler.handle(request, response)
