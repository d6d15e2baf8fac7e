"""In-memory stand-ins for the page, clock and host channel."""

from typing import Any, Callable, Dict, List, Optional

from quizrelay.channel import Channel
from quizrelay.errors import DeliveryError
from quizrelay.observer import RegionSource

ASSISTANT_SELECTOR = "[data-testid='chat-message-assistant']"


class FakeRegion:
    """A rendered reply: its full text plus the text of its <pre> blocks."""

    def __init__(self, text: str = "", code_blocks: Optional[List[str]] = None):
        self.text = text
        self.code_blocks = list(code_blocks or [])


class BrokenRegion(FakeRegion):
    """A region that was detached from the DOM mid-scan."""

    def __init__(self):
        super().__init__()

    @property
    def text(self):
        raise RuntimeError("element is not attached to the DOM")

    @text.setter
    def text(self, value):
        pass


class FakeSource(RegionSource):
    def __init__(self, regions: Optional[List[FakeRegion]] = None, selector: str = ASSISTANT_SELECTOR):
        self.regions = list(regions or [])
        self.selector = selector
        self.callback: Optional[Callable[[], None]] = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self.fail_subscribe = False
        self.on_find: Optional[Callable[[], None]] = None

    def find_regions(self, selector: str) -> List[Any]:
        hook, self.on_find = self.on_find, None
        if hook is not None:
            hook()
        return list(self.regions) if selector == self.selector else []

    def find_code_blocks(self, region: FakeRegion, selector: str) -> List[str]:
        return list(region.code_blocks) if selector == "pre" else []

    def region_text(self, region: FakeRegion) -> str:
        return region.text

    def subscribe(self, callback: Callable[[], None]) -> None:
        if self.fail_subscribe:
            raise RuntimeError("page closed")
        self.subscribe_calls += 1
        self.callback = callback

    def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1
        self.callback = None

    def emit_change(self) -> None:
        if self.callback is not None:
            self.callback()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingChannel(Channel):
    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, Any]] = []
        self.attempts = 0
        self.fail = fail
        self.on_send: Optional[Callable[[], None]] = None

    def send(self, message: Dict[str, Any]) -> None:
        self.attempts += 1
        hook, self.on_send = self.on_send, None
        if hook is not None:
            hook()
        if self.fail:
            raise DeliveryError("host returned 500")
        self.sent.append(message)
