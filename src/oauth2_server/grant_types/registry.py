"""Registry mapping ``grant_type`` values to grant type factories."""

from __future__ import annotations

import logging
from copy import copy
from enum import Enum
from typing import Any, Callable, Mapping

from oauth2_server.grant_types.authorization_code import AuthorizationCodeGrantType
from oauth2_server.grant_types.base import AbstractGrantType
from oauth2_server.grant_types.client_credentials import ClientCredentialsGrantType
from oauth2_server.grant_types.password import PasswordGrantType
from oauth2_server.grant_types.refresh_token import RefreshTokenGrantType
from oauth2_server.models.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

# Called with the grant options as keyword arguments. Grant type classes
# qualify, as does any function returning an object with ``async handle()``.
GrantTypeFactory = Callable[..., AbstractGrantType]


class BuiltinGrantType(str, Enum):
    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    PASSWORD = "password"
    REFRESH_TOKEN = "refresh_token"


BUILTIN_GRANT_TYPES: dict[str, GrantTypeFactory] = {
    BuiltinGrantType.AUTHORIZATION_CODE.value: AuthorizationCodeGrantType,
    BuiltinGrantType.CLIENT_CREDENTIALS.value: ClientCredentialsGrantType,
    BuiltinGrantType.PASSWORD.value: PasswordGrantType,
    BuiltinGrantType.REFRESH_TOKEN.value: RefreshTokenGrantType,
}


class GrantTypeRegistry:
    """The grant types a token endpoint accepts.

    Starts with the four built-in grant types. Extensions, including
    URN-named ones such as ``urn:ietf:params:oauth:grant-type:jwt-bearer``,
    are added with ``register``. Registering a built-in name replaces the
    built-in.
    """

    def __init__(self, extended_grant_types: Mapping[str, GrantTypeFactory] | None = None):
        self._factories: dict[str, GrantTypeFactory] = dict(BUILTIN_GRANT_TYPES)
        for name, factory in (extended_grant_types or {}).items():
            self.register(name, factory)

    def register(self, name: str, factory: GrantTypeFactory) -> None:
        """Register a grant type under its ``grant_type`` value.

        Args:
            name: The ``grant_type`` value clients send.
            factory: Callable building the grant type from keyword options.

        Raises:
            InvalidArgumentError: If ``factory`` is not callable.
        """
        if not callable(factory):
            raise InvalidArgumentError(
                f"Invalid argument: grant type `{name}` must be a class or factory"
            )
        if name in BUILTIN_GRANT_TYPES:
            logger.warning(f"Extension grant type overrides built-in '{name}'")
        self._factories[name] = factory

    def unregister(self, name: str) -> None:
        """Stop accepting a grant type. Silently succeeds if it is unknown."""
        self._factories.pop(name, None)

    def get(self, name: str) -> GrantTypeFactory | None:
        return self._factories.get(name)

    def create(self, name: str, **options: Any) -> AbstractGrantType | None:
        """Build the grant type registered under ``name``, or None if there is none."""
        factory = self.get(name)
        if factory is None:
            return None
        return factory(**options)

    def names(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def copy(self) -> GrantTypeRegistry:
        return copy(self)

    def __copy__(self) -> GrantTypeRegistry:
        clone = GrantTypeRegistry.__new__(GrantTypeRegistry)
        clone._factories = dict(self._factories)
        return clone
