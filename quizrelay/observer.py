"""
Observation controller: watches the chat page for the assistant's reply.

One session per question. While observing, two independent triggers call
rescan(): DOM change notifications (notify_change) and a periodic re-check
driven by tick(). A hard timeout bounds the wait. Either trigger may fire
while the other is mid-scan; the DeliveryGuard's responded flag makes the
first accepted payload the only one reported.

States:
    IDLE -> OBSERVING -> (DELIVERED | TIMED_OUT | RESET) -> IDLE
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .config import ObservationConfig, SELECTORS
from .delivery import DeliveryGuard
from .models import ObservationSession
from .utils.logging import log_session
from .utils.payload_utils import (
    extract_payload,
    find_answer_object,
    find_payload_object,
    looks_like_payload_block,
)


class ObservationState(str, Enum):
    IDLE = "idle"
    OBSERVING = "observing"
    DELIVERED = "delivered"
    TIMED_OUT = "timed_out"
    RESET = "reset"


class RegionSource(ABC):
    """
    Read-only view of the chat page.

    Regions are opaque handles to rendered reply units, in page order.
    """

    @abstractmethod
    def find_regions(self, selector: str) -> List[Any]:
        """Return all reply regions matching a selector, in page order."""
        pass

    @abstractmethod
    def find_code_blocks(self, region: Any, selector: str) -> List[str]:
        """Return the text of code blocks inside a region matching a selector."""
        pass

    @abstractmethod
    def region_text(self, region: Any) -> str:
        """Return the full text content of a region."""
        pass

    @abstractmethod
    def subscribe(self, callback: Callable[[], None]) -> None:
        """Start calling callback whenever the page content changes."""
        pass

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop change notifications. Must be safe to call when not subscribed."""
        pass


class ObservationController:
    """
    Owns the single live ObservationSession and its triggers.

    Usage:
        controller = ObservationController(source, DeliveryGuard(channel))
        controller.prepare()      # question accepted: capture baseline
        ...submit the question...
        controller.start()        # arm change subscription, re-check, timeout
        while controller.is_observing:
            page.wait_for_timeout(100)
            controller.tick()
    """

    def __init__(
        self,
        source: RegionSource,
        guard: DeliveryGuard,
        timing: Optional[ObservationConfig] = None,
        selectors: Optional[Dict[str, List[str]]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.guard = guard
        self.timing = timing or ObservationConfig()
        self.selectors = selectors or SELECTORS
        self.clock = clock

        self.state = ObservationState.IDLE
        self.session: Optional[ObservationSession] = None
        self.last_outcome: Optional[ObservationState] = None

        self._deadline: Optional[float] = None
        self._next_check: Optional[float] = None
        self._subscribed = False

    @property
    def is_observing(self) -> bool:
        return self.state is ObservationState.OBSERVING

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def prepare(self) -> ObservationSession:
        """
        Accept a new question: cancel any live session and record the baseline.

        Returns:
            The new (not yet active) session
        """
        self.reset()
        baseline = len(self.collect_regions())
        self.session = ObservationSession(baseline_message_count=baseline)
        log_session("observe", f"Existing replies on page: {baseline}", "debug")
        return self.session

    def start(self) -> ObservationSession:
        """Idle -> Observing. Arms the change subscription, re-check timer and timeout."""
        if self.is_observing:
            self.reset()
        if self.session is None or self.session.active or self.session.responded:
            self.prepare()

        now = self.clock()
        session = self.session
        session.start_time = now
        session.active = True

        self._deadline = now + self.timing.session_timeout
        self._next_check = now + self.timing.rescan_interval
        self.state = ObservationState.OBSERVING

        try:
            self.source.subscribe(self.notify_change)
            self._subscribed = True
        except Exception as e:
            # The periodic re-check still runs without notifications
            log_session("observe", f"Change notifications unavailable: {e}", "warning")

        log_session("observe", "Watching for the assistant's reply...")
        return session

    def reset(self) -> None:
        """Disarm everything and return to Idle. No-op when already idle."""
        if not self.is_observing:
            return
        self._finish(ObservationState.RESET)
        log_session("observe", "Observation reset", "debug")

    def _finish(self, outcome: ObservationState) -> None:
        self._deadline = None
        self._next_check = None

        if self._subscribed:
            self._subscribed = False
            try:
                self.source.unsubscribe()
            except Exception as e:
                log_session("observe", f"Unsubscribe failed: {e}", "debug")

        if self.session is not None:
            self.session.active = False

        self.last_outcome = outcome
        self.state = ObservationState.IDLE

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def notify_change(self) -> None:
        """Change-notification trigger."""
        if self.is_observing:
            self.rescan()

    def tick(self, now: Optional[float] = None) -> ObservationState:
        """
        Timer trigger: fires the timeout, then the periodic re-check when due.

        Returns:
            The controller state after the tick
        """
        if not self.is_observing:
            return self.state

        now = self.clock() if now is None else now
        if self._timed_out(now):
            return self.state

        if self._next_check is not None and now >= self._next_check:
            self._next_check = now + self.timing.rescan_interval
            self.rescan(now)

        return self.state

    def _timed_out(self, now: float) -> bool:
        if self._deadline is None or now < self._deadline:
            return False
        if self.session is not None and self.session.responded:
            return False
        self._finish(ObservationState.TIMED_OUT)
        log_session(
            "observe",
            f"No payload within {self.timing.session_timeout:.0f}s, giving up on this question",
        )
        return True

    # ------------------------------------------------------------------
    # Rescan
    # ------------------------------------------------------------------

    def collect_regions(self) -> List[Any]:
        """Regions from the first response selector that matches anything."""
        for selector in self.selectors.get("response_regions", []):
            try:
                regions = self.source.find_regions(selector)
            except Exception as e:
                log_session("observe", f"Selector {selector} failed: {e}", "debug")
                continue
            if regions:
                return list(regions)
        return []

    def rescan(self, now: Optional[float] = None) -> bool:
        """
        Look for a payload in replies that appeared after the baseline.

        Never raises.

        Returns:
            True if this call delivered the session's payload
        """
        session = self.session
        if not self.is_observing or session is None or session.responded:
            return False

        now = self.clock() if now is None else now
        if self._timed_out(now):
            return False

        try:
            delivered = self._scan(session, now)
        except Exception as e:
            log_session("observe", f"Rescan failed, waiting for next trigger: {e}", "debug")
            delivered = False

        if session.responded and self.session is session and self.is_observing:
            self._finish(ObservationState.DELIVERED)

        return delivered

    def _scan(self, session: ObservationSession, now: float) -> bool:
        regions = self.collect_regions()
        if len(regions) <= session.baseline_message_count:
            return False

        for index, region in enumerate(regions[session.baseline_message_count:]):
            try:
                if self._scan_region(session, region, now):
                    return True
            except Exception as e:
                # Usually a region detached mid-render; later regions may still hold the payload
                log_session("observe", f"Skipping reply {index}: {e}", "debug")
            if session.responded or not session.active:
                # Another trigger won, or the session was replaced mid-scan
                return False

        return False

    def _scan_region(self, session: ObservationSession, region: Any, now: float) -> bool:
        # Code blocks first
        for selector in self.selectors.get("code_blocks", []):
            try:
                blocks = self.source.find_code_blocks(region, selector)
            except Exception:
                continue
            for block in blocks:
                block_text = (block or "").strip()
                if not looks_like_payload_block(block_text):
                    continue
                payload = extract_payload(block_text)
                if payload is not None:
                    return self._deliver(session, payload.raw, "code block")

        # Then the whole reply text
        text = (self.source.region_text(region) or "").strip()
        candidate = find_answer_object(text)
        if candidate:
            payload = extract_payload(candidate)
            if payload is not None:
                return self._deliver(session, payload.raw, "reply text")

        # Late-arrival rescue: streaming should be over, take any object with both keys as-is
        if session.age(now) > self.timing.late_rescue_grace:
            late = find_payload_object(text)
            if late:
                return self._deliver(session, late, "late rescue")

        return False

    def _deliver(self, session: ObservationSession, raw: str, via: str) -> bool:
        if not session.active:
            return False
        claimed = self.guard.deliver(session, raw)
        if claimed:
            log_session("observe", f"Payload found in {via}")
        return claimed
