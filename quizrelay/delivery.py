"""
Delivery guard: reports a payload to the host at most once per session.

The responded flag is checked and set before the channel is called, so a
second rescan in the same tick sees it and backs off. A failed send is logged
and dropped. Retrying cannot help because the assistant has already answered
in the UI.
"""

from typing import Any, Dict

from .channel import Channel
from .models import ObservationSession
from .utils.logging import log_error, log_session

RESPONSE_MESSAGE_TYPE = "deepseekResponse"


def response_message(raw: str) -> Dict[str, Any]:
    """Build the outbound message for a payload's raw text."""
    return {"type": RESPONSE_MESSAGE_TYPE, "response": raw}


class DeliveryGuard:
    """Sends the first accepted payload of a session and ignores the rest."""

    def __init__(self, channel: Channel):
        self.channel = channel
        self.delivered_count = 0
        self.failed_count = 0

    def deliver(self, session: ObservationSession, raw: str) -> bool:
        """
        Report raw payload text for a session.

        Args:
            session: The session the payload belongs to
            raw: Candidate text exactly as matched (not re-serialized)

        Returns:
            True if this call claimed the session's single delivery, False if
            the session had already responded
        """
        if session.responded:
            return False
        session.responded = True

        try:
            self.channel.send(response_message(raw))
            self.delivered_count += 1
            log_session("deliver", f"Payload delivered ({len(raw)} chars)")
        except Exception as e:
            self.failed_count += 1
            log_error(f"Sending response failed, not retrying: {e}")

        return True
