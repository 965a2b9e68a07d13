from oauth2_server.models.entities import AuthorizationCode, Client, Token, User
from oauth2_server.models.errors import (
    AccessDeniedError,
    ErrorKind,
    ErrorResponse,
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
from oauth2_server.models.protocols import (
    AuthenticateModel,
    AuthorizationCodeGrantModel,
    AuthorizeModel,
    ClientCredentialsGrantModel,
    ClientModel,
    PasswordGrantModel,
    RefreshTokenGrantModel,
    TokenSaverModel,
)
