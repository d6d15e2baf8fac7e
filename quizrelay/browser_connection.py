"""
Attaches the relay to a Chrome the user already runs.

The relay never launches its own browser: DeepSeek needs the user's login, so
it connects over the DevTools protocol to a Chrome started with
--remote-debugging-port and drives the chat tab found there.

    with BrowserConnection() as browser:
        page = browser.get_chat_page()
"""

import sys
from typing import Iterator, Optional
from urllib.parse import urlparse

import requests
from playwright.sync_api import sync_playwright, Browser, BrowserContext, Page, Playwright

from .config import CDPConfig, CHAT_URL
from .utils.logging import logger, log_success, log_error


class BrowserConnection:
    """CDP session to a running Chrome. Leaving the context detaches; Chrome stays open."""

    def __init__(self, config: Optional[CDPConfig] = None, chat_url: str = CHAT_URL):
        self.config = config or CDPConfig()
        self.chat_url = chat_url
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None

    def __enter__(self) -> "BrowserConnection":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self.browser is not None and self.browser.is_connected()

    def connect(self) -> None:
        """
        Attach to Chrome and pick the context holding the user's cookies.

        Raises:
            ConnectionError: With a hint on how to start Chrome
        """
        cdp_url = self.config.cdp_url
        logger.info(f"Attaching to Chrome at {cdp_url}")

        self.playwright = sync_playwright().start()
        try:
            self.browser = self.playwright.chromium.connect_over_cdp(
                cdp_url,
                timeout=self.config.connection_timeout * 1000,
            )
        except Exception as e:
            log_error(f"Chrome did not accept the CDP connection: {e}")
            self.playwright.stop()
            self.playwright = None
            raise ConnectionError(_connection_hint(cdp_url, str(e))) from e

        if self.browser.contexts:
            self.context = self.browser.contexts[0]
        else:
            # Happens with a fresh incognito-only window; the chat will ask to log in
            self.context = self.browser.new_context()
            logger.warning("Chrome exposed no browser context, opened a new one without cookies")

        log_success(f"Attached to Chrome ({len(self.context.pages)} open tab(s))")

    def disconnect(self) -> None:
        """Detach from Chrome without closing it."""
        if self.playwright is None:
            return
        try:
            self.playwright.stop()
        except Exception as e:
            logger.warning(f"Detaching from Chrome raised: {e}")
        finally:
            self.playwright = None
            self.browser = None
            self.context = None
        logger.info("Detached from Chrome")

    def _open_pages(self) -> Iterator[tuple]:
        for context in self.browser.contexts:
            for page in context.pages:
                yield context, page

    def get_chat_page(self) -> Page:
        """
        Return the tab showing the chat, opening CHAT_URL if none does.

        Raises:
            RuntimeError: If called before connect()
        """
        if self.browser is None or self.context is None:
            raise RuntimeError("Not attached to Chrome. Call connect() first.")

        wanted = _host(self.chat_url)
        for context, page in self._open_pages():
            if _host(page.url) != wanted:
                continue
            try:
                page.wait_for_load_state("domcontentloaded", timeout=5000)
            except Exception as e:
                logger.debug(f"Chat tab {page.url} not responding, skipping: {e}")
                continue
            self.context = context
            page.bring_to_front()
            logger.info(f"Reusing chat tab {page.url[:60]}")
            return page

        logger.info(f"No chat tab open, navigating to {self.chat_url}")
        page = self.context.new_page()
        try:
            page.goto(self.chat_url, wait_until="domcontentloaded", timeout=60000)
        except Exception as e:
            # Slow loads still end up usable; submission reports a missing input otherwise
            logger.warning(f"Chat page load did not finish: {e}")
        return page


def _connection_hint(cdp_url: str, error: str) -> str:
    lowered = error.lower()
    if "econnrefused" in lowered or "connection refused" in lowered:
        return (
            f"Nothing is listening at {cdp_url}. "
            f"Start Chrome with: {get_chrome_launch_command()}"
        )
    if "timeout" in lowered:
        return f"Chrome at {cdp_url} did not answer in time. It may still be starting."
    return f"Could not attach to Chrome at {cdp_url}: {error}"


def _host(url: str) -> str:
    """Lowercased hostname without a leading www. ("" for blank tabs)."""
    if not url or url == "about:blank":
        return ""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def get_chrome_launch_command(port: int = 9222) -> str:
    """Shell command that starts Chrome with remote debugging on this OS."""
    flag = f"--remote-debugging-port={port}"
    if sys.platform == "darwin":
        return f"/Applications/Google\\ Chrome.app/Contents/MacOS/Google\\ Chrome {flag}"
    if sys.platform == "win32":
        return f'"C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe" {flag}'
    return f"google-chrome {flag}"


def check_chrome_debugging(cdp_url: Optional[str] = None) -> bool:
    """True if Chrome's /json/version endpoint answers at cdp_url."""
    base = (cdp_url or CDPConfig().cdp_url).rstrip("/")
    try:
        return requests.get(f"{base}/json/version", timeout=5).status_code == 200
    except requests.exceptions.RequestException as e:
        logger.debug(f"CDP probe failed: {e}")
        return False
