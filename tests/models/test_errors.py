import pytest

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


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        "error_class, name, code",
        [
            (InvalidArgumentError, "invalid_argument", 500),
            (InvalidRequestError, "invalid_request", 400),
            (InvalidClientError, "invalid_client", 400),
            (InvalidGrantError, "invalid_grant", 400),
            (InvalidScopeError, "invalid_scope", 400),
            (InvalidTokenError, "invalid_token", 401),
            (UnauthorizedClientError, "unauthorized_client", 400),
            (UnauthorizedRequestError, "unauthorized_request", 401),
            (UnsupportedGrantTypeError, "unsupported_grant_type", 400),
            (UnsupportedResponseTypeError, "unsupported_response_type", 400),
            (AccessDeniedError, "access_denied", 400),
            (InsufficientScopeError, "insufficient_scope", 403),
            (ServerError, "server_error", 503),
        ],
    )
    def test_each_kind_carries_rfc_name_and_status(self, error_class, name, code):
        # Act
        error = error_class("Something failed")

        # Assert
        assert isinstance(error, OAuthError)
        assert error.name == name
        assert error.code == code
        assert error.status == code
        assert error.status_code == code
        assert error.kind.error_name == name

    def test_kind_can_be_given_explicitly(self):
        error = OAuthError("Invalid grant: code expired", kind=ErrorKind.INVALID_GRANT)

        assert error.name == "invalid_grant"
        assert error.code == 400

    def test_code_override(self):
        error = InvalidClientError("Invalid client: client is invalid", code=401)

        assert error.code == 401
        assert error.kind is ErrorKind.INVALID_CLIENT

    def test_empty_message_falls_back_to_status_phrase(self):
        assert InvalidRequestError().message == "Bad Request"
        assert ServerError().message == "Service Unavailable"

    def test_wrapping_an_exception_keeps_it_as_inner(self):
        # Arrange
        original = RuntimeError("database is down")

        # Act
        error = ServerError(original)

        # Assert
        assert error.inner is original
        assert error.message == "database is down"
        assert str(error) == "database is down"

    def test_extra_properties_become_attributes(self):
        error = InvalidTokenError("Invalid token: access token has expired", realm="Service")

        assert error.realm == "Service"


class TestErrorResponse:
    def test_to_dict_renders_rfc_6749_error_body(self):
        error = InvalidGrantError("Invalid grant: refresh token has expired")

        assert error.to_dict() == {
            "error": "invalid_grant",
            "error_description": "Invalid grant: refresh token has expired",
        }
