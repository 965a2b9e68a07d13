"""Token endpoint (RFC 6749 Section 3.2)."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any, Mapping, NamedTuple

from oauth2_server.grant_types.registry import GrantTypeFactory, GrantTypeRegistry
from oauth2_server.models.entities import Client
from oauth2_server.models.errors import (
    InvalidArgumentError,
    InvalidClientError,
    InvalidRequestError,
    OAuthError,
    ServerError,
    UnauthorizedClientError,
    UnsupportedGrantTypeError,
)
from oauth2_server.models.http import Request, Response
from oauth2_server.models.protocols import ClientModel
from oauth2_server.models.tokens import TokenModel
from oauth2_server.primitives import formats, pkce
from oauth2_server.primitives.records import field_of, implements, is_present, resolve

logger = logging.getLogger(__name__)

_BASIC_AUTH = re.compile(r"^ *(?:[Bb][Aa][Ss][Ii][Cc]) +([A-Za-z0-9._~+/-]+=*) *$")


class ClientCredentials(NamedTuple):
    client_id: str | None
    client_secret: str | None = None


def parse_basic_auth(header: Any) -> ClientCredentials | None:
    """Parse an RFC 7617 ``Basic`` Authorization header.

    Returns None when the header is absent or not a well-formed Basic
    credential. The user-id ends at the first colon.
    """
    if not isinstance(header, str):
        return None
    matches = _BASIC_AUTH.match(header)
    if not matches:
        return None

    try:
        decoded = base64.b64decode(matches.group(1)).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    if ":" not in decoded:
        return None
    client_id, client_secret = decoded.split(":", 1)
    return ClientCredentials(client_id, client_secret)


class TokenHandler:
    """Authenticates the client, runs the grant type and renders the token response.

    Args:
        model: Provides ``get_client`` plus what the enabled grant types need.
        access_token_lifetime: Default access token lifetime in seconds.
        refresh_token_lifetime: Default refresh token lifetime in seconds.
        allow_extended_token_attributes: Echo non-reserved token attributes
            in the response body.
        require_client_authentication: Per grant type, whether a client
            secret is required. Grant types not listed require one.
        always_issue_new_refresh_token: Rotate refresh tokens on use.
        extended_grant_types: Extra grant types by ``grant_type`` value,
            either a mapping of factories or a ``GrantTypeRegistry``.
    """

    model: ClientModel

    def __init__(
        self,
        *,
        model: Any = None,
        access_token_lifetime: int | None = None,
        refresh_token_lifetime: int | None = None,
        allow_extended_token_attributes: bool = False,
        require_client_authentication: Mapping[str, bool] | None = None,
        always_issue_new_refresh_token: bool = True,
        extended_grant_types: Mapping[str, GrantTypeFactory] | GrantTypeRegistry | None = None,
        **options: Any,
    ):
        if not access_token_lifetime:
            raise InvalidArgumentError("Missing parameter: `access_token_lifetime`")
        if model is None:
            raise InvalidArgumentError("Missing parameter: `model`")
        if not refresh_token_lifetime:
            raise InvalidArgumentError("Missing parameter: `refresh_token_lifetime`")
        if not implements(model, "get_client"):
            raise InvalidArgumentError(
                "Invalid argument: model does not implement `get_client()`"
            )

        self.model = model
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.allow_extended_token_attributes = allow_extended_token_attributes
        self.require_client_authentication = dict(require_client_authentication or {})
        self.always_issue_new_refresh_token = always_issue_new_refresh_token is not False

        if isinstance(extended_grant_types, GrantTypeRegistry):
            self.grant_types = extended_grant_types.copy()
        else:
            self.grant_types = GrantTypeRegistry(extended_grant_types)

    async def handle(self, request: Request, response: Response) -> Any:
        """Issue a token for a token request.

        On success the response body holds the bearer token and the saved
        token record is returned. On failure the response holds the RFC 6749
        error body and status, and the error is raised.

        Raises:
            InvalidArgumentError: If ``request`` or ``response`` have the
                wrong type.
            OAuthError: For every protocol failure. Unexpected exceptions
                from the model are raised as ``ServerError``.
        """
        if not isinstance(request, Request):
            raise InvalidArgumentError(
                "Invalid argument: `request` must be an instance of Request"
            )
        if not isinstance(response, Response):
            raise InvalidArgumentError(
                "Invalid argument: `response` must be an instance of Response"
            )

        if request.method != "POST":
            raise InvalidRequestError("Invalid request: method must be POST")
        if not request.is_("application/x-www-form-urlencoded"):
            raise InvalidRequestError(
                "Invalid request: content must be application/x-www-form-urlencoded"
            )

        try:
            client = await self.get_client(request, response)
            data = await self.handle_grant_type(request, client)
            token = TokenModel.from_record(
                data, allow_extended_token_attributes=self.allow_extended_token_attributes
            )
            self.update_success_response(response, token)
            return data
        except Exception as e:
            error = e if isinstance(e, OAuthError) else ServerError(e)
            if error is not e:
                logger.exception("Model failure while issuing token")

            self.update_error_response(response, error)
            logger.warning(f"Token request failed: {error.name}: {error.message}")
            if error is e:
                raise
            raise error from e

    async def get_client(self, request: Request, response: Response) -> Client:
        """Authenticate the client making the token request.

        Raises:
            InvalidRequestError: If credentials are missing or malformed.
            InvalidClientError: If the model rejects them. Status is 401 with
                a ``WWW-Authenticate`` challenge when the client tried HTTP
                Basic authentication (RFC 6749 Section 5.2).
            ServerError: If the client record has no usable ``grants``.
        """
        credentials = self.get_client_credentials(request)
        grant_type = request.body.get("grant_type")
        is_pkce = pkce.is_pkce_request(grant_type, request.body.get("code_verifier"))

        if not credentials.client_id:
            raise InvalidRequestError("Missing parameter: `client_id`")
        if (
            self.is_client_authentication_required(grant_type)
            and not credentials.client_secret
            and not is_pkce
        ):
            raise InvalidRequestError("Missing parameter: `client_secret`")
        if not formats.vschar(credentials.client_id):
            raise InvalidRequestError("Invalid parameter: `client_id`")
        if credentials.client_secret and not formats.vschar(credentials.client_secret):
            raise InvalidRequestError("Invalid parameter: `client_secret`")

        try:
            client = await resolve(
                self.model.get_client(credentials.client_id, credentials.client_secret)
            )
            if not is_present(client):
                raise InvalidClientError("Invalid client: client is invalid")

            grants = field_of(client, "grants")
            if not grants:
                raise ServerError("Server error: missing client `grants`")
            if not isinstance(grants, (list, tuple)):
                raise ServerError("Server error: `grants` must be an array")
            return client
        except InvalidClientError as e:
            if request.get("Authorization"):
                response.set("WWW-Authenticate", 'Basic realm="Service"')
                raise InvalidClientError(e, code=401) from e
            raise

    def get_client_credentials(self, request: Request) -> ClientCredentials:
        """Find the client credentials in the request.

        Sources, in order: HTTP Basic header, ``client_id`` with
        ``client_secret`` in the body, then a bare ``client_id`` when the
        request uses PKCE or the grant type does not require client
        authentication.

        Raises:
            InvalidClientError: If no source applies.
        """
        grant_type = request.body.get("grant_type")
        client_id = request.body.get("client_id")

        credentials = parse_basic_auth(request.get("Authorization"))
        if credentials:
            logger.debug("Client credentials taken from Authorization header")
            return credentials

        client_secret = request.body.get("client_secret")
        if client_id and client_secret:
            logger.debug("Client credentials taken from request body")
            return ClientCredentials(client_id, client_secret)

        if pkce.is_pkce_request(grant_type, request.body.get("code_verifier")) and client_id:
            logger.debug("Public PKCE client identified by client_id only")
            return ClientCredentials(client_id)

        if not self.is_client_authentication_required(grant_type) and client_id:
            return ClientCredentials(client_id)

        raise InvalidClientError("Invalid client: cannot retrieve client credentials")

    async def handle_grant_type(self, request: Request, client: Client) -> Any:
        """Resolve ``grant_type`` and run the grant with this client's lifetimes.

        Raises:
            InvalidRequestError: If ``grant_type`` is missing or malformed.
            UnsupportedGrantTypeError: If no grant type is registered under it.
            UnauthorizedClientError: If the client may not use it.
        """
        grant_type = request.body.get("grant_type")

        if not grant_type:
            raise InvalidRequestError("Missing parameter: `grant_type`")
        if not formats.nchar(grant_type) and not formats.uri(grant_type):
            raise InvalidRequestError("Invalid parameter: `grant_type`")
        if grant_type not in self.grant_types:
            raise UnsupportedGrantTypeError("Unsupported grant type: `grant_type` is invalid")

        grants = field_of(client, "grants")
        if not isinstance(grants, (list, tuple)) or grant_type not in grants:
            raise UnauthorizedClientError("Unauthorized client: `grant_type` is invalid")

        logger.debug(f"Dispatching token request to grant type '{grant_type}'")
        handler = self.grant_types.create(
            grant_type,
            access_token_lifetime=self.get_access_token_lifetime(client),
            model=self.model,
            refresh_token_lifetime=self.get_refresh_token_lifetime(client),
            always_issue_new_refresh_token=self.always_issue_new_refresh_token,
        )
        return await handler.handle(request, client)

    def get_access_token_lifetime(self, client: Client) -> int:
        return field_of(client, "access_token_lifetime") or self.access_token_lifetime

    def get_refresh_token_lifetime(self, client: Client) -> int:
        return field_of(client, "refresh_token_lifetime") or self.refresh_token_lifetime

    def is_client_authentication_required(self, grant_type: Any) -> bool:
        if self.require_client_authentication:
            return self.require_client_authentication.get(grant_type, True) is not False
        return True

    def update_success_response(self, response: Response, token: TokenModel) -> None:
        response.body = token.to_bearer_token().to_body()
        response.set("Cache-Control", "no-store")
        response.set("Pragma", "no-cache")

    def update_error_response(self, response: Response, error: OAuthError) -> None:
        response.body = error.to_dict()
        response.status = error.code
