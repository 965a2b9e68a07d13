import re
from unittest.mock import AsyncMock

import pytest

from oauth2_server.handlers.authenticate import AuthenticateHandler
from oauth2_server.handlers.authorize import AuthorizeHandler
from oauth2_server.models.entities import AuthorizationCode, Token
from oauth2_server.models.errors import (
    AccessDeniedError,
    InvalidArgumentError,
    InvalidClientError,
    InvalidRequestError,
    InvalidScopeError,
    InvalidTokenError,
    ServerError,
    UnauthorizedClientError,
    UnsupportedResponseTypeError,
)
from oauth2_server.models.http import Request, Response

from tests.conftest import in_future, make_client, make_model

CODE_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


async def echo_code(code, client, user):
    code.client = client
    code.user = user
    return code


class StaticUserHandler:
    def __init__(self, user):
        self.user = user

    async def handle(self, request, response):
        return self.user


class AuthorizeHandlerTest:
    def setup_method(self):
        self.client = make_client()
        self.user = {"id": "user-1"}
        self.model = make_model(
            get_access_token=AsyncMock(
                return_value=Token(
                    access_token="abc",
                    access_token_expires_at=in_future(),
                    user=self.user,
                )
            ),
            get_client=AsyncMock(return_value=self.client),
            save_authorization_code=AsyncMock(side_effect=echo_code),
        )

    def make_handler(self, **options) -> AuthorizeHandler:
        options.setdefault("authorization_code_lifetime", 120)
        return AuthorizeHandler(model=self.model, **options)

    @staticmethod
    def authorize_request(**query) -> Request:
        params = {
            "client_id": "client-123",
            "response_type": "code",
            "state": "foobar",
        }
        params.update(query)
        params = {key: value for key, value in params.items() if value is not None}
        return Request(
            method="GET",
            headers={"Authorization": "Bearer abc"},
            query=params,
            body={},
        )


class TestConstruction(AuthorizeHandlerTest):
    def test_custom_authenticate_handler_needs_handle(self):
        with pytest.raises(
            InvalidArgumentError,
            match=re.escape("authenticate_handler does not implement `handle()`"),
        ):
            self.make_handler(authenticate_handler=object())

    def test_requires_authorization_code_lifetime(self):
        with pytest.raises(InvalidArgumentError, match="`authorization_code_lifetime`"):
            AuthorizeHandler(model=self.model)

    def test_requires_model(self):
        with pytest.raises(InvalidArgumentError, match="Missing parameter: `model`"):
            AuthorizeHandler(authorization_code_lifetime=120)

    @pytest.mark.parametrize("missing", ["get_client", "save_authorization_code"])
    def test_requires_model_capabilities(self, missing):
        delattr(self.model, missing)

        with pytest.raises(InvalidArgumentError, match=re.escape(f"`{missing}()`")):
            self.make_handler()

    def test_default_authenticate_handler_needs_get_access_token(self):
        delattr(self.model, "get_access_token")

        with pytest.raises(InvalidArgumentError, match=re.escape("`get_access_token()`")):
            self.make_handler()

    def test_default_authenticate_handler(self):
        handler = self.make_handler(allow_bearer_tokens_in_query_string=True)

        assert isinstance(handler.authenticate_handler, AuthenticateHandler)
        assert handler.authenticate_handler.allow_bearer_tokens_in_query_string is True


class TestHandle(AuthorizeHandlerTest):
    async def test_redirects_with_code_and_state(self):
        # Arrange
        self.model.generate_authorization_code = AsyncMock(return_value="fooobar-long-authzcode-?")
        handler = self.make_handler()
        response = Response()

        # Act
        code = await handler.handle(self.authorize_request(), response)

        # Assert
        assert response.status == 302
        assert (
            response.get("Location")
            == "http://example.com/cb?code=fooobar-long-authzcode-%3F&state=foobar"
        )
        assert code.authorization_code == "fooobar-long-authzcode-?"
        assert code.redirect_uri == "http://example.com/cb"
        assert code.user is self.user
        assert code.code_challenge is None
        assert code.code_challenge_method is None

    async def test_keeps_existing_redirect_uri_query(self):
        # Arrange
        self.client.redirect_uris = ["http://example.com/cb?tenant=acme"]
        self.model.generate_authorization_code = AsyncMock(return_value="abc")
        response = Response()

        # Act
        await self.make_handler().handle(self.authorize_request(), response)

        # Assert
        assert response.get("Location") == "http://example.com/cb?tenant=acme&code=abc&state=foobar"

    async def test_saves_code_with_expiry_scope_and_random_value(self):
        # Arrange
        handler = self.make_handler()
        request = self.authorize_request(scope="read write")

        # Act
        code = await handler.handle(request, Response())

        # Assert
        assert re.fullmatch(r"[0-9a-f]{64}", code.authorization_code)
        assert code.scope == ["read", "write"]
        assert code.expires_at > in_future(60)
        assert code.expires_at < in_future(180)
        self.model.save_authorization_code.assert_awaited_once()

    async def test_persists_pkce_challenge(self):
        request = self.authorize_request(
            code_challenge=CODE_CHALLENGE, code_challenge_method="S256"
        )

        code = await self.make_handler().handle(request, Response())

        assert code.code_challenge == CODE_CHALLENGE
        assert code.code_challenge_method == "S256"

    async def test_pkce_method_defaults_to_plain(self):
        request = self.authorize_request(code_challenge=CODE_CHALLENGE)

        code = await self.make_handler().handle(request, Response())

        assert code.code_challenge_method == "plain"

    async def test_access_denied_redirects_with_error(self):
        # Arrange
        response = Response()
        request = self.authorize_request(allowed="false")

        # Act
        with pytest.raises(AccessDeniedError):
            await self.make_handler().handle(request, response)

        # Assert
        assert response.status == 302
        assert response.get("Location") == (
            "http://example.com/cb?error=access_denied"
            "&error_description=Access%20denied%3A%20user%20denied%20access%20to%20application"
            "&state=foobar"
        )
        self.model.save_authorization_code.assert_not_awaited()

    async def test_error_redirect_replaces_existing_query(self):
        self.client.redirect_uris = ["http://example.com/cb?tenant=acme"]
        response = Response()

        with pytest.raises(UnsupportedResponseTypeError):
            await self.make_handler().handle(self.authorize_request(response_type="token"), response)

        assert response.get("Location").startswith(
            "http://example.com/cb?error=unsupported_response_type&"
        )
        assert "tenant" not in response.get("Location")

    @pytest.mark.parametrize(
        "query, error_class, message",
        [
            ({"response_type": None}, InvalidRequestError, "Missing parameter: `response_type`"),
            ({"response_type": "token"}, UnsupportedResponseTypeError, "`response_type` is not supported"),
            ({"scope": '"quoted"'}, InvalidScopeError, "Invalid parameter: `scope`"),
            ({"code_challenge": "too-short"}, InvalidRequestError, "Invalid parameter: `code_challenge`"),
            (
                {"code_challenge": CODE_CHALLENGE, "code_challenge_method": "sha1"},
                InvalidRequestError,
                "transform algorithm 'sha1' not supported",
            ),
        ],
    )
    async def test_request_errors_are_redirected(self, query, error_class, message):
        response = Response()

        with pytest.raises(error_class, match=message):
            await self.make_handler().handle(self.authorize_request(**query), response)

        assert response.status == 302
        assert "state=foobar" in response.get("Location")

    async def test_state_is_required(self):
        response = Response()

        with pytest.raises(InvalidRequestError, match="Missing parameter: `state`"):
            await self.make_handler().handle(self.authorize_request(state=None), response)

        assert "state=" not in response.get("Location")

    async def test_empty_state_when_allowed(self):
        self.model.generate_authorization_code = AsyncMock(return_value="abc")
        response = Response()

        await self.make_handler(allow_empty_state=True).handle(
            self.authorize_request(state=None), response
        )

        assert response.get("Location") == "http://example.com/cb?code=abc"

    async def test_malformed_state(self):
        with pytest.raises(InvalidRequestError, match="Invalid parameter: `state`"):
            await self.make_handler().handle(self.authorize_request(state="bad\nstate"), Response())

    async def test_model_can_refuse_scope(self):
        self.model.validate_scope = AsyncMock(return_value=False)

        with pytest.raises(InvalidScopeError, match="Requested scope is invalid"):
            await self.make_handler().handle(self.authorize_request(scope="admin"), Response())

    async def test_model_failure_after_redirect_uri_is_known_is_redirected(self):
        # Arrange
        failure = RuntimeError("disk full")
        self.model.save_authorization_code = AsyncMock(side_effect=failure)
        response = Response()

        # Act
        with pytest.raises(ServerError) as exc_info:
            await self.make_handler().handle(self.authorize_request(), response)

        # Assert
        assert exc_info.value.inner is failure
        assert response.get("Location").startswith("http://example.com/cb?error=server_error")

    async def test_client_errors_are_raised_without_redirect(self):
        self.model.get_client.return_value = None
        response = Response()

        with pytest.raises(InvalidClientError, match="Invalid client: client credentials are invalid"):
            await self.make_handler().handle(self.authorize_request(), response)

        assert response.get("Location") is None

    async def test_authentication_failures_are_raised_without_redirect(self):
        self.model.get_access_token.return_value = None
        response = Response()

        with pytest.raises(InvalidTokenError):
            await self.make_handler().handle(self.authorize_request(), response)

        assert response.get("Location") is None
        self.model.save_authorization_code.assert_not_awaited()

    async def test_custom_authenticate_handler_returns_user(self):
        user = {"id": "custom"}
        handler = self.make_handler(authenticate_handler=StaticUserHandler(user))

        code = await handler.handle(self.authorize_request(), Response())

        assert code.user is user

    async def test_custom_authenticate_handler_without_user(self):
        handler = self.make_handler(authenticate_handler=StaticUserHandler(None))

        with pytest.raises(ServerError, match=re.escape("`handle()` did not return a `user` object")):
            await handler.handle(self.authorize_request(), Response())

    async def test_rejects_non_response_objects(self):
        with pytest.raises(InvalidArgumentError, match="must be an instance of Response"):
            await self.make_handler().handle(self.authorize_request(), None)


class TestGetClient(AuthorizeHandlerTest):
    @pytest.mark.parametrize(
        "query, error_class, message",
        [
            ({"client_id": None}, InvalidRequestError, "Missing parameter: `client_id`"),
            ({"client_id": "bad\tid"}, InvalidRequestError, "Invalid parameter: `client_id`"),
            ({"redirect_uri": "not-a-uri"}, InvalidRequestError, "`redirect_uri` is not a valid URI"),
        ],
    )
    async def test_request_checks(self, query, error_class, message):
        handler = self.make_handler()

        with pytest.raises(error_class, match=message):
            await handler.get_client(self.authorize_request(**query))
        self.model.get_client.assert_not_awaited()

    async def test_looks_up_client_without_secret(self):
        client = await self.make_handler().get_client(self.authorize_request())

        assert client is self.client
        self.model.get_client.assert_awaited_once_with("client-123", None)

    @pytest.mark.parametrize(
        "overrides, error_class, message",
        [
            ({"grants": []}, InvalidClientError, "Invalid client: missing client `grants`"),
            ({"grants": ["password"]}, UnauthorizedClientError, "`grant_type` is invalid"),
            ({"grants": "authorization_code_x"}, UnauthorizedClientError, "`grant_type` is invalid"),
            ({"redirect_uris": []}, InvalidClientError, "missing client `redirect_uri`"),
        ],
    )
    async def test_client_record_checks(self, overrides, error_class, message):
        self.model.get_client.return_value = make_client(**overrides)

        with pytest.raises(error_class, match=message):
            await self.make_handler().get_client(self.authorize_request())

    async def test_redirect_uri_must_be_registered(self):
        request = self.authorize_request(redirect_uri="http://evil.example.com/cb")

        with pytest.raises(
            InvalidClientError, match="`redirect_uri` does not match client value"
        ):
            await self.make_handler().get_client(request)

    async def test_redirect_uri_validation_is_delegated_to_model(self):
        # Arrange
        self.model.validate_redirect_uri = AsyncMock(return_value=True)
        request = self.authorize_request(redirect_uri="http://other.example.com/cb")

        # Act
        client = await self.make_handler().get_client(request)

        # Assert
        assert client is self.client
        self.model.validate_redirect_uri.assert_awaited_once_with(
            "http://other.example.com/cb", self.client
        )

    async def test_uses_requested_redirect_uri(self):
        self.client.redirect_uris = ["http://example.com/cb", "http://example.com/other"]
        self.model.generate_authorization_code = AsyncMock(return_value="abc")
        response = Response()

        code = await self.make_handler().handle(
            self.authorize_request(redirect_uri="http://example.com/other"), response
        )

        assert code.redirect_uri == "http://example.com/other"
        assert response.get("Location") == "http://example.com/other?code=abc&state=foobar"
