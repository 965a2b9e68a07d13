"""Error taxonomy for OAuth 2.0 protocol failures.

Every protocol failure is an ``OAuthError`` tagged with an ``ErrorKind``. The
kind carries the RFC error name and the default HTTP status as data, so the
handlers can shape error responses without caring which failure occurred.

The per-kind subclasses only pin the kind. They exist so callers can write
``except InvalidGrantError`` as well as ``if err.kind is ErrorKind.INVALID_GRANT``.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel


class ErrorKind(Enum):
    """RFC 6749 / RFC 6750 error kinds with their default status codes."""

    INVALID_ARGUMENT = ("invalid_argument", 500)
    INVALID_REQUEST = ("invalid_request", 400)
    INVALID_CLIENT = ("invalid_client", 400)
    INVALID_GRANT = ("invalid_grant", 400)
    INVALID_SCOPE = ("invalid_scope", 400)
    INVALID_TOKEN = ("invalid_token", 401)
    UNAUTHORIZED_CLIENT = ("unauthorized_client", 400)
    UNAUTHORIZED_REQUEST = ("unauthorized_request", 401)
    UNSUPPORTED_GRANT_TYPE = ("unsupported_grant_type", 400)
    UNSUPPORTED_RESPONSE_TYPE = ("unsupported_response_type", 400)
    ACCESS_DENIED = ("access_denied", 400)
    INSUFFICIENT_SCOPE = ("insufficient_scope", 403)
    SERVER_ERROR = ("server_error", 503)

    def __init__(self, error_name: str, status_code: int):
        self.error_name = error_name
        self.status_code = status_code


class ErrorResponse(BaseModel):
    """OAuth 2.0 error response body (RFC 6749 Section 5.2)."""

    error: str
    error_description: str | None = None


class OAuthError(Exception):
    """A protocol error tagged with its kind.

    Args:
        message_or_error: Human readable description, or an exception whose
            message is reused and which is kept as ``inner``.
        kind: The error kind. Subclasses pin this.
        code: HTTP status override (e.g. 401 for header-authenticated
            ``invalid_client``).
        **properties: Extra attributes attached to the error.
    """

    default_kind: ErrorKind = ErrorKind.SERVER_ERROR

    def __init__(
        self,
        message_or_error: str | BaseException | None = None,
        *,
        kind: ErrorKind | None = None,
        code: int | None = None,
        **properties: Any,
    ):
        self.kind = kind or self.default_kind
        self.inner: BaseException | None = None

        if isinstance(message_or_error, BaseException):
            self.inner = message_or_error
            message = str(message_or_error)
        else:
            message = message_or_error or ""

        self.code = code if code is not None else self.kind.status_code
        if not message:
            message = HTTPStatus(self.code).phrase

        self.message = message
        for key, value in properties.items():
            setattr(self, key, value)

        super().__init__(message)

    @property
    def name(self) -> str:
        return self.kind.error_name

    @property
    def status(self) -> int:
        return self.code

    @property
    def status_code(self) -> int:
        return self.code

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.name, error_description=self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the RFC 6749 error body."""
        return self.to_response().model_dump(exclude_none=True)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code})"


class InvalidArgumentError(OAuthError):
    """Raised for programmer or configuration errors, never caught internally."""

    default_kind = ErrorKind.INVALID_ARGUMENT


class InvalidRequestError(OAuthError):
    """The request is missing a parameter or is otherwise malformed."""

    default_kind = ErrorKind.INVALID_REQUEST


class InvalidClientError(OAuthError):
    """Client authentication failed (e.g. unknown client)."""

    default_kind = ErrorKind.INVALID_CLIENT


class InvalidGrantError(OAuthError):
    """The grant is invalid, expired, revoked or issued to another client."""

    default_kind = ErrorKind.INVALID_GRANT


class InvalidScopeError(OAuthError):
    """The requested scope is invalid, unknown or malformed."""

    default_kind = ErrorKind.INVALID_SCOPE


class InvalidTokenError(OAuthError):
    """The access token is expired, revoked, malformed or invalid."""

    default_kind = ErrorKind.INVALID_TOKEN


class UnauthorizedClientError(OAuthError):
    """The client is not authorized to use this grant type."""

    default_kind = ErrorKind.UNAUTHORIZED_CLIENT


class UnauthorizedRequestError(OAuthError):
    """The request carries no authentication information at all.

    RFC 6750 Section 3.1: the resource server should not include error
    details in this case.
    """

    default_kind = ErrorKind.UNAUTHORIZED_REQUEST


class UnsupportedGrantTypeError(OAuthError):
    """The grant type is not supported by the authorization server."""

    default_kind = ErrorKind.UNSUPPORTED_GRANT_TYPE


class UnsupportedResponseTypeError(OAuthError):
    """The response type is not supported by the authorization server."""

    default_kind = ErrorKind.UNSUPPORTED_RESPONSE_TYPE


class AccessDeniedError(OAuthError):
    """The resource owner denied the request."""

    default_kind = ErrorKind.ACCESS_DENIED


class InsufficientScopeError(OAuthError):
    """The request requires higher privileges than the access token provides."""

    default_kind = ErrorKind.INSUFFICIENT_SCOPE


class ServerError(OAuthError):
    """The model broke its data contract or failed unexpectedly."""

    default_kind = ErrorKind.SERVER_ERROR
