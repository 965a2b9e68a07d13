from dataclasses import dataclass

import pytest

from oauth2_server.models.entities import Client, Token
from oauth2_server.models.errors import InvalidArgumentError
from oauth2_server.models.tokens import TokenModel

from tests.conftest import in_future


class TestTokenModelValidation:
    def setup_method(self):
        self.client = Client(id="client-123", grants=["password"])
        self.user = {"id": "user-1"}

    @pytest.mark.parametrize("missing", ["access_token", "client", "user"])
    def test_requires_access_token_client_and_user(self, missing):
        # Arrange
        record = {"access_token": "abc", "client": self.client, "user": self.user}
        record[missing] = None

        # Act & Assert
        with pytest.raises(InvalidArgumentError, match=f"Missing parameter: `{missing}`"):
            TokenModel.from_record(record)

    @pytest.mark.parametrize("field", ["access_token_expires_at", "refresh_token_expires_at"])
    def test_expiry_values_must_be_datetimes(self, field):
        record = {"access_token": "abc", "client": self.client, "user": self.user}
        record[field] = "2030-01-01"

        with pytest.raises(InvalidArgumentError, match=f"Invalid parameter: `{field}`"):
            TokenModel.from_record(record)

    def test_empty_user_mapping_is_accepted(self):
        model = TokenModel.from_record({"access_token": "abc", "client": self.client, "user": {}})

        assert model.user == {}

    def test_computes_access_token_lifetime(self):
        token = Token(
            access_token="abc",
            access_token_expires_at=in_future(3600),
            client=self.client,
            user=self.user,
        )

        model = TokenModel.from_record(token)

        assert model.access_token_lifetime in (3599, 3600)


class TestBearerToken:
    def setup_method(self):
        self.client = Client(id="client-123", grants=["password"])

    def test_renders_scope_as_space_joined_string(self):
        # Arrange
        token = Token(
            access_token="abc",
            refresh_token="def",
            access_token_expires_at=in_future(60),
            scope=["read", "write"],
            client=self.client,
            user={"id": 1},
        )

        # Act
        body = TokenModel.from_record(token).to_bearer_token().to_body()

        # Assert
        assert body["access_token"] == "abc"
        assert body["token_type"] == "Bearer"
        assert body["refresh_token"] == "def"
        assert body["scope"] == "read write"
        assert body["expires_in"] in (59, 60)

    def test_string_scope_from_model_is_not_split(self):
        token = Token(access_token="abc", scope="read", client=self.client, user={"id": 1})

        body = TokenModel.from_record(token).to_bearer_token().to_body()

        assert body["scope"] == "read"

    def test_omits_absent_optional_fields(self):
        token = Token(access_token="abc", client=self.client, user={"id": 1})

        body = TokenModel.from_record(token).to_bearer_token().to_body()

        assert body == {"access_token": "abc", "token_type": "Bearer"}

    def test_extended_attributes_are_dropped_by_default(self):
        token = Token(
            access_token="abc", client=self.client, user={"id": 1}, extra={"tenant": "acme"}
        )

        body = TokenModel.from_record(token).to_bearer_token().to_body()

        assert "tenant" not in body

    def test_extended_attributes_are_included_when_allowed(self):
        # Arrange
        token = Token(
            access_token="abc",
            client=self.client,
            user={"id": 1},
            authorization_code="code-1",
            extra={"tenant": "acme", "token_type": "ignored"},
        )

        # Act
        body = (
            TokenModel.from_record(token, allow_extended_token_attributes=True)
            .to_bearer_token()
            .to_body()
        )

        # Assert
        assert body["tenant"] == "acme"
        assert body["token_type"] == "Bearer"
        assert "authorization_code" not in body
        assert "client" not in body
        assert "user" not in body

    def test_extended_attributes_from_custom_record_objects(self):
        @dataclass
        class CustomToken:
            access_token: str
            client: Client
            user: dict
            id_hint: str

        record = CustomToken(access_token="abc", client=self.client, user={"id": 1}, id_hint="x")

        body = (
            TokenModel.from_record(record, allow_extended_token_attributes=True)
            .to_bearer_token()
            .to_body()
        )

        assert body["id_hint"] == "x"
