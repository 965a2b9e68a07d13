"""PKCE (Proof Key for Code Exchange) checks for the authorization server.

Implements the server side of RFC 7636: recognising PKCE token requests,
validating code challenges and recomputing a challenge from the verifier a
client presents at the token endpoint.
"""

from __future__ import annotations

import base64
import hashlib
import re
from typing import Any

CODE_CHALLENGE_METHODS = frozenset({"plain", "S256"})

# RFC 7636 Section 4.2: 43-128 characters of [A-Z] / [a-z] / [0-9] / "-" / "." / "_" / "~"
_CODE_CHALLENGE = re.compile(r"[A-Za-z0-9\-._~]{43,128}")


def is_pkce_request(grant_type: Any, code_verifier: Any) -> bool:
    """Return True if a token request is an authorization code exchange using PKCE."""
    return (
        grant_type == "authorization_code"
        and isinstance(code_verifier, str)
        and len(code_verifier) > 0
    )


def code_challenge_matches_format(value: Any) -> bool:
    """Check a code challenge (or verifier) against the RFC 7636 ABNF."""
    return isinstance(value, str) and _CODE_CHALLENGE.fullmatch(value) is not None


def is_valid_method(method: Any) -> bool:
    return method in CODE_CHALLENGE_METHODS


def compute_challenge_for_verifier(method: Any, verifier: Any) -> str | None:
    """Transform a code verifier with the given challenge method.

    ``plain`` returns the verifier unchanged, which includes handing a falsy
    verifier straight back. ``S256`` returns BASE64URL(SHA256(verifier))
    without padding. Unknown methods and falsy verifiers under ``S256``
    yield ``None``.

    Args:
        method: Code challenge method, ``plain`` or ``S256``.
        verifier: Code verifier presented by the client.

    Returns:
        The code challenge the verifier corresponds to, or None.
    """
    if not is_valid_method(method):
        return None

    if method == "plain":
        return verifier

    if not isinstance(verifier, str) or not verifier:
        return None

    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
