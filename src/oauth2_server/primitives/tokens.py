"""Default token generation and lifetime arithmetic."""

from __future__ import annotations

import hashlib
import math
import secrets
from datetime import datetime, timedelta

from oauth2_server.primitives.records import as_aware, utcnow


def generate_random_token() -> str:
    """Generate an opaque token: SHA-256 of 256 random bytes, as 64 hex chars."""
    return hashlib.sha256(secrets.token_bytes(256)).hexdigest()


def expires_at_from_lifetime(lifetime: float) -> datetime:
    """Absolute expiry instant ``lifetime`` seconds from now."""
    return utcnow() + timedelta(seconds=lifetime)


def lifetime_from_expires_at(expires_at: datetime) -> int:
    """Whole seconds remaining until ``expires_at``."""
    return math.floor((as_aware(expires_at) - utcnow()).total_seconds())
