"""Authorization code exchange adapters."""

import base64
import hashlib
import json
from dataclasses import dataclass
from typing import Protocol

import httpx

from photo_gallery.domain.session import DEFAULT_EXPIRES_IN, TokenData

DEMO_USERNAME = "Demo User"


class TokenExchangeError(RuntimeError):
    """Raised when an authorization code cannot be exchanged."""


class TokenExchanger(Protocol):
    """Interface for turning an authorization code into tokens."""

    async def exchange(self, code: str) -> TokenData:
        """Exchange the code returned by the hosted UI."""


@dataclass
class DemoTokenExchanger(TokenExchanger):
    """Synthesizes a token from the code without calling the provider.

    The result is deterministic for a given code and shaped like a JWT so the
    username can be read back from its payload. Nothing is verified.
    """

    username: str = DEMO_USERNAME
    expires_in: int = DEFAULT_EXPIRES_IN

    async def exchange(self, code: str) -> TokenData:
        digest = hashlib.sha256(code.encode("utf-8")).hexdigest()
        header = _b64url({"alg": "none", "typ": "JWT"})
        payload = _b64url({"sub": digest[:32], "username": self.username})
        token = f"{header}.{payload}.simulated-{digest[:16]}"
        return TokenData(id_token=token, expires_in=self.expires_in)


@dataclass
class HttpxTokenExchanger(TokenExchanger):
    """Exchanges codes at the hosted UI's OAuth2 token endpoint."""

    token_url: str
    client_id: str
    redirect_uri: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, token_url: str, client_id: str, redirect_uri: str
    ) -> "HttpxTokenExchanger":
        """Create a token exchanger with a managed httpx session."""
        return cls(
            token_url=token_url,
            client_id=client_id,
            redirect_uri=redirect_uri,
            http_client=httpx.AsyncClient(),
        )

    async def exchange(self, code: str) -> TokenData:
        """POST the authorization_code grant and return the issued tokens."""
        try:
            response = await self.http_client.post(
                self.token_url,
                data={
                    "grant_type": "authorization_code",
                    "client_id": self.client_id,
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                },
                timeout=10,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TokenExchangeError(f"Token exchange failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise TokenExchangeError("Token endpoint returned an unexpected body")
        return TokenData(
            id_token=payload.get("id_token"),
            access_token=payload.get("access_token"),
            expires_in=payload.get("expires_in"),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _b64url(payload: dict[str, object]) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
