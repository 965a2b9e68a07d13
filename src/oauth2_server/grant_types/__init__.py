from oauth2_server.grant_types.authorization_code import AuthorizationCodeGrantType
from oauth2_server.grant_types.base import AbstractGrantType
from oauth2_server.grant_types.client_credentials import ClientCredentialsGrantType
from oauth2_server.grant_types.password import PasswordGrantType
from oauth2_server.grant_types.refresh_token import RefreshTokenGrantType
from oauth2_server.grant_types.registry import (
    BUILTIN_GRANT_TYPES,
    BuiltinGrantType,
    GrantTypeFactory,
    GrantTypeRegistry,
)

__all__ = [
    "AbstractGrantType",
    "AuthorizationCodeGrantType",
    "BUILTIN_GRANT_TYPES",
    "BuiltinGrantType",
    "ClientCredentialsGrantType",
    "GrantTypeFactory",
    "GrantTypeRegistry",
    "PasswordGrantType",
    "RefreshTokenGrantType",
]
