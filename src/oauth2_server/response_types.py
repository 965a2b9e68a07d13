"""Authorization endpoint response types (RFC 6749 Section 4.1.2)."""

from __future__ import annotations

from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from oauth2_server.models.errors import InvalidArgumentError


def _with_query(redirect_uri: str, params: dict[str, str], keep_query: bool) -> str:
    parts = urlsplit(redirect_uri)
    query = parse_qsl(parts.query, keep_blank_values=True) if keep_query else []
    query.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(query, quote_via=quote)))


def build_error_redirect_uri(
    redirect_uri: str, error: str, error_description: str, state: str | None = None
) -> str:
    """Replace the redirect URI's query with RFC 6749 Section 4.1.2.1 error parameters."""
    params = {"error": error, "error_description": error_description}
    if state:
        params["state"] = state
    return _with_query(redirect_uri, params, keep_query=False)


class CodeResponseType:
    """``response_type=code``: deliver the authorization code on the redirect URI."""

    def __init__(self, code: str | None):
        if not code:
            raise InvalidArgumentError("Missing parameter: `code`")
        self.code = code

    def build_redirect_uri(self, redirect_uri: str | None, state: str | None = None) -> str:
        """Append ``code`` (and ``state``) to ``redirect_uri``, keeping its existing query."""
        if not redirect_uri:
            raise InvalidArgumentError("Missing parameter: `redirect_uri`")

        params = {"code": self.code}
        if state:
            params["state"] = state
        return _with_query(redirect_uri, params, keep_query=True)


RESPONSE_TYPES = {"code": CodeResponseType}
