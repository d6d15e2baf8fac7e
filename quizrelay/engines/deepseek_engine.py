"""
DeepSeek chat engine.

Handles automation of chat.deepseek.com:
- Writing the rendered question into the chat input and sending it
- Exposing the page's reply messages to the ObservationController
- Forwarding DOM mutations to the controller through an exposed binding

All waits go through page.wait_for_timeout so Playwright keeps dispatching
binding calls while we wait.
"""

import uuid
from typing import Any, Callable, List, Optional
from playwright.sync_api import Locator, Page

from ..config import SELECTORS
from ..errors import InputNotFound, SendControlNotFound
from ..models import QuestionRequest
from ..observer import ObservationController, RegionSource
from ..prompt_builder import build_prompt
from ..utils.logging import logger, log_session
from .base_engine import BaseEngine

# Works for contenteditable surfaces and for React-controlled textareas,
# where assigning .value directly is ignored unless the native setter is used.
WRITE_PROMPT_SCRIPT = """
(el, text) => {
    el.focus();
    const editable = el.isContentEditable || el.getAttribute('contenteditable') === 'true';
    if (editable) {
        el.innerText = text;
    } else {
        const descriptor = Object.getOwnPropertyDescriptor(Object.getPrototypeOf(el), 'value');
        if (descriptor && descriptor.set) {
            descriptor.set.call(el, text);
        } else {
            el.value = text;
        }
    }
    el.dispatchEvent(new InputEvent('input', { bubbles: true, composed: true }));
}
"""

# Coalesces bursts of mutations into one binding call per macrotask.
OBSERVE_SCRIPT = """
([rootSelectors, binding]) => {
    if (window.__quizrelayObserver) {
        window.__quizrelayObserver.disconnect();
    }
    let target = null;
    for (const selector of rootSelectors) {
        try {
            target = document.querySelector(selector);
        } catch (e) {
            continue;
        }
        if (target) break;
    }
    target = target || document.body;

    let pending = false;
    const observer = new MutationObserver(() => {
        if (pending) return;
        pending = true;
        setTimeout(() => {
            pending = false;
            const notify = window[binding];
            if (notify) Promise.resolve(notify()).catch(() => {});
        }, 0);
    });
    observer.observe(target, { childList: true, subtree: true, characterData: true });
    window.__quizrelayObserver = observer;
}
"""

DISCONNECT_SCRIPT = """
() => {
    if (window.__quizrelayObserver) {
        window.__quizrelayObserver.disconnect();
        window.__quizrelayObserver = null;
    }
}
"""


class DeepSeekPageSource(RegionSource):
    """
    RegionSource backed by a live Playwright page.

    Regions are Locators for the reply message elements.
    """

    def __init__(self, page: Page, root_selectors: Optional[List[str]] = None, text_timeout_ms: int = 1000):
        self.page = page
        self.root_selectors = root_selectors or SELECTORS["observe_root"]
        self.text_timeout_ms = text_timeout_ms
        self.binding_name = f"__quizrelayChanged_{uuid.uuid4().hex[:8]}"
        self._callback: Optional[Callable[[], None]] = None
        self._binding_exposed = False

    def find_regions(self, selector: str) -> List[Locator]:
        return self.page.locator(selector).all()

    def find_code_blocks(self, region: Locator, selector: str) -> List[str]:
        return region.locator(selector).all_text_contents()

    def region_text(self, region: Locator) -> str:
        return region.text_content(timeout=self.text_timeout_ms) or ""

    def _on_change(self, source: Any) -> None:
        callback = self._callback
        if callback is not None:
            callback()

    def subscribe(self, callback: Callable[[], None]) -> None:
        if not self._binding_exposed:
            self.page.expose_binding(self.binding_name, self._on_change)
            self._binding_exposed = True

        self._callback = callback
        self.page.evaluate(OBSERVE_SCRIPT, [self.root_selectors, self.binding_name])
        log_session("observe", "DOM change observer attached", "debug")

    def unsubscribe(self) -> None:
        self._callback = None
        try:
            self.page.evaluate(DISCONNECT_SCRIPT)
        except Exception as e:
            logger.debug(f"Could not disconnect DOM observer: {e}")


class DeepSeekEngine(BaseEngine):
    """
    DeepSeek browser automation engine (the submission side).

    After a successful send it starts the attached ObservationController;
    the controller's baseline must already have been captured with prepare().
    """

    def __init__(self, observer: Optional[ObservationController] = None, **kwargs):
        super().__init__("deepseek", **kwargs)
        self.observer = observer

    def submit(self, request: QuestionRequest) -> None:
        """
        Write the question into the chat input and send it.

        Raises:
            InputNotFound: If the chat input is missing
            SendControlNotFound: If no enabled send control is found
        """
        page = self._require_page()
        prompt = build_prompt(request)
        log_session("submit", f"Submitting {request.kind} question: {request.prompt[:50]}...")

        chat_input = self._find_first("prompt_input")
        if chat_input is None:
            raise InputNotFound("Input area not found")

        page.wait_for_timeout(self.submission.input_settle_ms)
        chat_input.evaluate(WRITE_PROMPT_SCRIPT, prompt)

        # Let the UI enable its send control
        page.wait_for_timeout(self.submission.send_settle_ms)

        send_button = self._find_send_button()
        if send_button is None:
            raise SendControlNotFound("Send button not found")

        send_button.click()
        log_session("submit", f"Question sent ({len(prompt)} chars)")

        if self.observer is not None:
            self.observer.start()

    def _find_send_button(self) -> Optional[Locator]:
        """First enabled match from the send selectors, else the first enabled icon button."""
        page = self._require_page()

        for selector in self._selector_list("send_button"):
            try:
                button = page.locator(selector).first
                if button.count() > 0 and button.is_enabled():
                    return button
            except Exception:
                continue

        for selector in self._selector_list("send_button_fallback"):
            try:
                for button in page.locator(selector).all():
                    if button.is_enabled():
                        log_session("submit", f"Using fallback send control ({selector})", "debug")
                        return button
            except Exception:
                continue

        return None
