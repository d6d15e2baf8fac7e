"""
Base Engine class for chat UI automation.

Provides the selector-fallback helpers and error screenshots shared by engines.
"""

import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
from playwright.sync_api import Locator, Page

from ..config import ErrorConfig, SELECTORS, SubmissionConfig
from ..models import QuestionRequest
from ..observer import ObservationController
from ..utils.logging import logger


class BaseEngine(ABC):
    """
    Abstract base class for chat UI automation.

    Subclasses must implement:
    - submit()
    """

    def __init__(
        self,
        engine_name: str,
        selectors: Optional[Dict[str, List[str]]] = None,
        submission: Optional[SubmissionConfig] = None,
        error_config: Optional[ErrorConfig] = None,
    ):
        self.engine_name = engine_name
        self.selectors = selectors or SELECTORS
        self.submission = submission or SubmissionConfig()
        self.error_config = error_config or ErrorConfig()
        self.page: Optional[Page] = None
        self.observer: Optional[ObservationController] = None

    def setup(self, page: Page) -> None:
        """
        Set up the engine with a page.

        Args:
            page: Playwright Page object
        """
        self.page = page

    def attach(self, observer: ObservationController) -> None:
        """Attach the ObservationController started after each successful send."""
        self.observer = observer

    @abstractmethod
    def submit(self, request: QuestionRequest) -> None:
        """
        Write a question into the chat UI and send it.

        Args:
            request: The question to submit
        """
        pass

    def _require_page(self) -> Page:
        if not self.page:
            raise RuntimeError("Engine not set up. Call setup(page) first.")
        return self.page

    def _selector_list(self, selector_key: str) -> List[str]:
        selectors = self.selectors.get(selector_key, [])
        if isinstance(selectors, str):
            selectors = [selectors]
        return list(selectors)

    def _find_first(self, selector_key: str) -> Optional[Locator]:
        """
        Find the first element matched by the selectors for a key, in priority order.

        Returns:
            Locator for the element, or None
        """
        page = self._require_page()

        for selector in self._selector_list(selector_key):
            try:
                element = page.locator(selector).first
                if element.count() > 0:
                    return element
            except Exception as e:
                logger.debug(f"Selector {selector} failed: {e}")

        return None

    def take_error_screenshot(self) -> None:
        """Take a screenshot for debugging errors."""
        try:
            if self.error_config.screenshot_on_error and self.page:
                os.makedirs(self.error_config.screenshot_dir, exist_ok=True)

                timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                filename = f"{self.error_config.screenshot_dir}/{self.engine_name}_{timestamp}.png"

                self.page.screenshot(path=filename)
                logger.info(f"Error screenshot saved: {filename}")
        except Exception as e:
            logger.debug(f"Could not take screenshot: {e}")
