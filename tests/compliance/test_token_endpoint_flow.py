"""Token endpoint behaviour across grant types with a stateful model."""

import base64

import pytest

from oauth2_server import OAuth2Server, Response
from oauth2_server.models.entities import Client
from oauth2_server.models.errors import InvalidGrantError, InvalidScopeError

from tests.conftest import form_request


class InMemoryModel:
    """Keeps issued tokens so refresh rotation can be followed end to end."""

    def __init__(self):
        self.client = Client(id="app", secret="s3cret", grants=["password", "refresh_token"])
        self.tokens = {}

    def get_client(self, client_id, client_secret):
        if client_id == self.client.id and client_secret in (None, self.client.secret):
            return self.client
        return None

    async def get_user(self, username, password, client):
        if (username, password) == ("alice", "wonderland"):
            return {"username": "alice"}
        return None

    async def save_token(self, token, client, user):
        token.client = client
        token.user = user
        if token.refresh_token:
            self.tokens[token.refresh_token] = token
        return token

    async def get_refresh_token(self, refresh_token):
        return self.tokens.get(refresh_token)

    async def revoke_token(self, token):
        return self.tokens.pop(token.refresh_token, None) is not None


def basic_auth() -> dict[str, str]:
    return {"Authorization": "Basic " + base64.b64encode(b"app:s3cret").decode()}


class TestPasswordThenRefresh:
    def setup_method(self):
        self.model = InMemoryModel()
        self.server = OAuth2Server(model=self.model)

    async def issue(self, scope: str = "read write") -> dict:
        response = Response()
        await self.server.token(
            form_request(
                {"grant_type": "password", "username": "alice", "password": "wonderland", "scope": scope},
                headers=basic_auth(),
            ),
            response,
        )
        return response.body

    async def refresh(self, refresh_token: str, **extra) -> dict:
        response = Response()
        await self.server.token(
            form_request({"grant_type": "refresh_token", "refresh_token": refresh_token, **extra}, headers=basic_auth()),
            response,
        )
        return response.body

    async def test_password_grant_response_shape(self):
        body = await self.issue()

        assert body["token_type"] == "Bearer"
        assert body["scope"] == "read write"
        assert isinstance(body["scope"], str)
        assert body["expires_in"] in (3599, 3600)
        assert body["refresh_token"]

    async def test_refresh_rotates_and_old_token_is_single_use(self):
        # Arrange
        first = await self.issue()

        # Act
        second = await self.refresh(first["refresh_token"])

        # Assert
        assert second["refresh_token"] != first["refresh_token"]
        assert second["scope"] == "read write"
        with pytest.raises(InvalidGrantError, match="refresh token is invalid"):
            await self.refresh(first["refresh_token"])

    async def test_refresh_can_narrow_but_not_widen_scope(self):
        first = await self.issue()

        narrowed = await self.refresh(first["refresh_token"], scope="read")
        with pytest.raises(InvalidScopeError, match="Unable to add extra scopes"):
            await self.refresh(narrowed["refresh_token"], scope="read write")

        assert narrowed["scope"] == "read"

    async def test_wrong_password(self):
        response = Response()

        with pytest.raises(InvalidGrantError, match="user credentials are invalid"):
            await self.server.token(
                form_request(
                    {"grant_type": "password", "username": "alice", "password": "nope"},
                    headers=basic_auth(),
                ),
                response,
            )

        assert response.status == 400
        assert response.body == {
            "error": "invalid_grant",
            "error_description": "Invalid grant: user credentials are invalid",
        }
