"""Domain models for the authentication session."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from datetime import datetime

_logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "User"
DEFAULT_EXPIRES_IN = 3600


@dataclass(frozen=True)
class Session:
    """Client-side record of whether a user is signed in."""

    is_authenticated: bool = False
    username: str = ""
    token: str = ""
    token_expiry: datetime | None = None
    loading: bool = False

    def is_expired(self, now: datetime) -> bool:
        """Return True when the token expiry is at or before ``now``."""
        return self.token_expiry is not None and self.token_expiry <= now

    def to_storage(self) -> dict[str, object]:
        """Serialize using the persisted camelCase layout."""
        return {
            "isAuthenticated": self.is_authenticated,
            "username": self.username,
            "token": self.token,
            "tokenExpiry": (
                self.token_expiry.isoformat() if self.token_expiry else None
            ),
            "loading": self.loading,
        }

    @classmethod
    def from_storage(cls, payload: dict[str, object]) -> "Session":
        """Rebuild a session from its persisted layout.

        Raises ``ValueError`` when the payload is not a usable session.
        """
        raw_expiry = payload.get("tokenExpiry")
        if not isinstance(raw_expiry, str) or not raw_expiry:
            raise ValueError("Persisted session has no token expiry")
        expiry = datetime.fromisoformat(raw_expiry.replace("Z", "+00:00"))
        if expiry.tzinfo is None:
            raise ValueError("Persisted token expiry has no timezone")
        return cls(
            is_authenticated=bool(payload.get("isAuthenticated")),
            username=str(payload.get("username") or ""),
            token=str(payload.get("token") or ""),
            token_expiry=expiry,
            loading=bool(payload.get("loading")),
        )


EMPTY_SESSION = Session()


@dataclass(frozen=True)
class TokenData:
    """Credentials returned by a code exchange."""

    id_token: str | None = None
    access_token: str | None = None
    expires_in: int | str | None = None

    @property
    def token(self) -> str:
        return self.id_token or self.access_token or ""

    @property
    def expires_in_seconds(self) -> int:
        if self.expires_in in (None, ""):
            return DEFAULT_EXPIRES_IN
        try:
            return int(self.expires_in)
        except (TypeError, ValueError):
            _logger.warning("Ignoring unparsable expires_in: %r", self.expires_in)
            return DEFAULT_EXPIRES_IN


def decode_username(token: str | None) -> str:
    """Read a display name from the payload segment of a dot-delimited token.

    Any decoding problem falls back to the generic label.
    """
    if not token:
        return DEFAULT_USERNAME
    parts = token.split(".")
    if len(parts) != 3:  # noqa: PLR2004
        return DEFAULT_USERNAME
    try:
        segment = parts[1]
        padded = segment + "=" * (-len(segment) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded))
    except (binascii.Error, ValueError):
        _logger.warning("Error extracting username from token", exc_info=True)
        return DEFAULT_USERNAME
    if not isinstance(payload, dict):
        return DEFAULT_USERNAME
    for key in ("name", "email", "username"):
        value = payload.get(key)
        if value:
            return str(value)
    return DEFAULT_USERNAME
