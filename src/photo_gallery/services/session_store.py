"""Authentication session store and redirect handshake."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol
from urllib.parse import parse_qs, urlsplit, urlunsplit

from photo_gallery.adapters.token_exchange import TokenExchanger, TokenExchangeError
from photo_gallery.config import Settings
from photo_gallery.domain.session import (
    EMPTY_SESSION,
    Session,
    TokenData,
    decode_username,
)

STORAGE_KEY = "photoGalleryAuth"

_logger = logging.getLogger(__name__)

SessionObserver = Callable[[Session], None]


class StateStorage(Protocol):
    """Durable client-side string storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value for ``key``, if present."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    def remove(self, key: str) -> None:
        """Delete ``key`` if present."""


class Navigator(Protocol):
    """The client's page location."""

    def current_url(self) -> str:
        """Return the current page URL."""

    def replace_url(self, url: str) -> None:
        """Replace the current URL without reloading."""

    def navigate(self, url: str) -> None:
        """Navigate away to ``url``."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionStore:
    """Single source of truth for authentication state.

    Observers are called synchronously with the new snapshot after every
    change; they return nothing and pull whatever else they need.
    """

    settings: Settings
    storage: StateStorage
    navigator: Navigator
    token_exchanger: TokenExchanger
    clock: Callable[[], datetime] = _utc_now
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _session: Session = field(default=EMPTY_SESSION, init=False)
    _observers: list[SessionObserver] = field(default_factory=list, init=False)

    @property
    def session(self) -> Session:
        return self._session

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Register an observer and return a callable that removes it."""
        self._observers.append(observer)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: SessionObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    async def restore_or_exchange(self) -> None:
        """Resolve the session at startup.

        A ``code`` query parameter means the hosted UI just redirected back;
        otherwise the persisted session is restored if it has not expired.
        """
        self._set_loading(True)
        try:
            code = _auth_code(self.navigator.current_url())
            if code:
                await self._exchange_code(code)
            else:
                self._restore_persisted()
        finally:
            self._set_loading(False)

    def set_authenticated_user(self, token_data: TokenData) -> None:
        """Record a freshly issued token as the signed-in session."""
        expiry = self.clock() + timedelta(seconds=token_data.expires_in_seconds)
        self._session = Session(
            is_authenticated=True,
            username=decode_username(token_data.id_token),
            token=token_data.token,
            token_expiry=expiry,
            loading=False,
        )
        self._persist()
        self._emit()

    def clear_session(self) -> None:
        """Forget the session locally and in storage."""
        self._session = EMPTY_SESSION
        self.storage.remove(STORAGE_KEY)
        self._emit()

    def logout(self) -> None:
        self.clear_session()

    def start_login_redirect(self) -> None:
        """Send the browser to the hosted login page."""
        self._redirect(self.settings.login_url)

    def start_register_redirect(self) -> None:
        """Send the browser to the hosted registration page."""
        self._redirect(self.settings.signup_url)

    def identity_logins(self) -> dict[str, str]:
        """Logins map for identity pool credentials, empty when signed out."""
        if not self._session.is_authenticated or not self._session.token:
            return {}
        return {self.settings.identity_provider_key: self._session.token}

    def check_expiry(self) -> bool:
        """Clear the session if its token has expired; return True if it did."""
        if self._session.is_expired(self.clock()):
            _logger.info("Token expired, logging out")
            self.clear_session()
            return True
        return False

    async def run_expiry_watchdog(self, interval_seconds: float = 60.0) -> None:
        """Check token expiry on a fixed interval until cancelled."""
        while True:
            await self.sleep(interval_seconds)
            self.check_expiry()

    async def _exchange_code(self, code: str) -> None:
        _logger.info("Authorization code received from identity provider")
        try:
            token_data = await self.token_exchanger.exchange(code)
        except TokenExchangeError:
            _logger.exception("Authorization code exchange failed")
            self.clear_session()
        else:
            self.set_authenticated_user(token_data)
        finally:
            # Strip the code so a refresh does not replay the exchange.
            self.navigator.replace_url(_without_query(self.navigator.current_url()))

    def _restore_persisted(self) -> None:
        saved = self.storage.get(STORAGE_KEY)
        if saved is None:
            return
        try:
            restored = Session.from_storage(json.loads(saved))
        except (ValueError, TypeError, AttributeError):
            _logger.exception("Error parsing saved auth data")
            self.clear_session()
            return
        if restored.is_authenticated and restored.token and not restored.is_expired(
            self.clock()
        ):
            self._session = replace(restored, loading=True)
            self._emit()
            return
        self.clear_session()

    def _set_loading(self, loading: bool) -> None:
        self._session = replace(self._session, loading=loading)
        self._emit()

    def _redirect(self, url: str) -> None:
        self._set_loading(True)
        self.navigator.navigate(url)

    def _persist(self) -> None:
        self.storage.set(STORAGE_KEY, json.dumps(self._session.to_storage()))

    def _emit(self) -> None:
        snapshot = self._session
        for observer in list(self._observers):
            observer(snapshot)


def _auth_code(url: str) -> str | None:
    values = parse_qs(urlsplit(url).query).get("code")
    return values[0] if values else None


def _without_query(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
