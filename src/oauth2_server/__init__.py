"""Server-side OAuth 2.0 (RFC 6749) with bearer tokens (RFC 6750) and PKCE (RFC 7636)."""

from oauth2_server.grant_types import (
    AbstractGrantType,
    AuthorizationCodeGrantType,
    BuiltinGrantType,
    ClientCredentialsGrantType,
    GrantTypeRegistry,
    PasswordGrantType,
    RefreshTokenGrantType,
)
from oauth2_server.handlers import AuthenticateHandler, AuthorizeHandler, TokenHandler
from oauth2_server.models.entities import AuthorizationCode, Client, Token
from oauth2_server.models.errors import (
    AccessDeniedError,
    ErrorKind,
    InsufficientScopeError,
    InvalidArgumentError,
    InvalidClientError,
    InvalidGrantError,
    InvalidRequestError,
    InvalidScopeError,
    InvalidTokenError,
    OAuthError,
    ServerError,
    UnauthorizedClientError,
    UnauthorizedRequestError,
    UnsupportedGrantTypeError,
    UnsupportedResponseTypeError,
)
from oauth2_server.models.http import Request, Response
from oauth2_server.models.tokens import BearerToken, TokenModel
from oauth2_server.primitives.pkce import (
    code_challenge_matches_format,
    compute_challenge_for_verifier,
    is_pkce_request,
    is_valid_method,
)
from oauth2_server.primitives.scope import parse_scope
from oauth2_server.response_types import CodeResponseType
from oauth2_server.server import OAuth2Server

__all__ = [
    "AbstractGrantType",
    "AccessDeniedError",
    "AuthenticateHandler",
    "AuthorizationCode",
    "AuthorizationCodeGrantType",
    "AuthorizeHandler",
    "BearerToken",
    "BuiltinGrantType",
    "Client",
    "ClientCredentialsGrantType",
    "CodeResponseType",
    "ErrorKind",
    "GrantTypeRegistry",
    "InsufficientScopeError",
    "InvalidArgumentError",
    "InvalidClientError",
    "InvalidGrantError",
    "InvalidRequestError",
    "InvalidScopeError",
    "InvalidTokenError",
    "OAuth2Server",
    "OAuthError",
    "PasswordGrantType",
    "RefreshTokenGrantType",
    "Request",
    "Response",
    "ServerError",
    "Token",
    "TokenHandler",
    "TokenModel",
    "UnauthorizedClientError",
    "UnauthorizedRequestError",
    "UnsupportedGrantTypeError",
    "UnsupportedResponseTypeError",
    "code_challenge_matches_format",
    "compute_challenge_for_verifier",
    "is_pkce_request",
    "is_valid_method",
    "parse_scope",
]
