"""Navigator backed by the system web browser."""

import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass, field

_logger = logging.getLogger(__name__)


@dataclass
class SystemBrowserNavigator:
    """Tracks the client's current URL and opens external pages in a browser.

    ``current_url`` plays the role of the page location: the loopback
    ``/callback`` route sets it to the URL the identity provider redirected to.
    """

    location: str
    opener: Callable[[str], bool] = field(default=webbrowser.open)
    history: list[str] = field(default_factory=list)

    def current_url(self) -> str:
        return self.location

    def set_location(self, url: str) -> None:
        """Record a new location, as when the browser arrives at a page."""
        self.history.append(self.location)
        self.location = url

    def replace_url(self, url: str) -> None:
        """Swap the current location in place without any navigation."""
        self.location = url

    def navigate(self, url: str) -> None:
        """Leave for an external page."""
        _logger.info("Opening %s", url)
        self.set_location(url)
        if not self.opener(url):
            _logger.warning("No browser available; open this URL manually: %s", url)
