"""
Relay Worker

This module runs the relay as a single-threaded loop that:
1. Hands control to Playwright for a short while (DOM change bindings fire here)
2. Ticks the observation controller (periodic re-check and session timeout)
3. Polls the host for new messages and posts acknowledgments

Nothing here blocks outside Playwright's own waits, so change notifications,
the re-check timer and new questions all interleave on one thread.
"""

import signal
import time
from typing import Callable, Dict, List, Optional

from playwright.sync_api import Page

from .channel import Channel, HostChannel
from .config import RelayConfig, config as default_config
from .delivery import DeliveryGuard
from .engines import get_engine
from .engines.deepseek_engine import DeepSeekPageSource
from .observer import ObservationController, ObservationState
from .relay import QuestionRelay
from .utils.logging import logger, log_success


def build_relay(
    page: Page,
    channel: Channel,
    config: Optional[RelayConfig] = None,
    selectors: Optional[Dict[str, List[str]]] = None,
) -> QuestionRelay:
    """
    Wire engine, page source, delivery guard and controller for one page.

    Returns:
        QuestionRelay ready to handle messages
    """
    config = config or default_config
    selectors = selectors or config.selectors

    source = DeepSeekPageSource(page, root_selectors=selectors.get("observe_root"))
    observer = ObservationController(
        source,
        DeliveryGuard(channel),
        timing=config.observation,
        selectors=selectors,
    )
    engine = get_engine(
        "deepseek",
        selectors=selectors,
        submission=config.submission,
        error_config=config.error,
    )
    engine.setup(page)
    return QuestionRelay(engine, observer)


class RelayWorker:
    """
    Serves host messages against one chat page until stopped.

    Flow:
    1. Host queues {"type": "receiveQuestion", ...}
    2. Worker fetches it, submits it, posts the acknowledgment
    3. Controller reports the payload through the host channel when it shows up
    """

    def __init__(
        self,
        page: Page,
        relay: QuestionRelay,
        channel: HostChannel,
        pump_interval_ms: int = 100,
        poll_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.page = page
        self.relay = relay
        self.channel = channel
        self.pump_interval_ms = pump_interval_ms
        self.poll_interval = poll_interval
        self.clock = clock

        self.running = True
        self.messages_handled = 0
        self.messages_failed = 0
        self._last_poll: Optional[float] = None

        # Handle graceful shutdown
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info("Shutdown requested, stopping after this step...")
        self.running = False

    def step(self) -> None:
        """Run one loop iteration."""
        self.page.wait_for_timeout(self.pump_interval_ms)
        self.relay.observer.tick()

        now = self.clock()
        if self._last_poll is not None and now - self._last_poll < self.poll_interval:
            return
        self._last_poll = now

        inbound = self.channel.fetch_next()
        if inbound is None:
            return

        ack = self.relay.handle_message(inbound.message)
        if ack.get("received"):
            self.messages_handled += 1
        else:
            self.messages_failed += 1
        self.channel.acknowledge(inbound.id, ack)

    def run(self) -> int:
        """
        Main worker loop.

        Returns:
            Exit code
        """
        log_success(f"Relay worker polling {self.channel.base_url} every {self.poll_interval:.0f}s")

        try:
            while self.running:
                self.step()
        except KeyboardInterrupt:
            pass
        finally:
            self.relay.observer.reset()

            print("\n" + "=" * 60)
            print("RELAY SUMMARY")
            print("=" * 60)
            print(f"Questions submitted: {self.messages_handled}")
            print(f"Questions rejected:  {self.messages_failed}")
            print(f"Payloads delivered:  {self.relay.observer.guard.delivered_count}")
            print("=" * 60)

        return 0


def wait_for_outcome(page: Page, observer: ObservationController, pump_interval_ms: int = 100) -> ObservationState:
    """
    Pump the page until the current session ends.

    Returns:
        The session's outcome (DELIVERED, TIMED_OUT or RESET)
    """
    while observer.is_observing:
        page.wait_for_timeout(pump_interval_ms)
        observer.tick()
    return observer.last_outcome or ObservationState.IDLE
