"""
Inbound message dispatch.

Turns host messages into submissions and builds the acknowledgment the host
waits for. Only submission problems are reported back here; anything that goes
wrong while observing the reply is handled (or absorbed) by the controller.
"""

from typing import Any, Dict

from .engines.base_engine import BaseEngine
from .errors import InvalidQuestion, SubmissionError
from .models import QuestionRequest
from .observer import ObservationController
from .utils.logging import log_error, log_session

QUESTION_MESSAGE_TYPE = "receiveQuestion"
RESET_MESSAGE_TYPE = "resetObservation"


class QuestionRelay:
    """Routes host messages to the engine and the observation controller."""

    def __init__(self, engine: BaseEngine, observer: ObservationController):
        self.engine = engine
        self.observer = observer
        self.engine.attach(observer)

    def handle_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle one inbound message.

        Returns:
            {"received": True, "status": ...} on success,
            {"received": False, "error": ...} otherwise
        """
        msg_type = message.get("type") if isinstance(message, dict) else None

        if msg_type == RESET_MESSAGE_TYPE:
            self.observer.reset()
            return {"received": True, "status": "reset"}

        if msg_type != QUESTION_MESSAGE_TYPE:
            return {"received": False, "error": f"Unsupported message type: {msg_type}"}

        # A new question always cancels whatever was being watched
        self.observer.reset()

        try:
            request = QuestionRequest.from_dict(message.get("question"))
        except InvalidQuestion as e:
            log_error(f"Rejected question: {e}")
            return {"received": False, "error": str(e)}

        self.observer.prepare()

        try:
            self.engine.submit(request)
        except SubmissionError as e:
            log_error(f"Submission failed: {e}")
            self.engine.take_error_screenshot()
            return {"received": False, "error": str(e)}
        except Exception as e:
            log_error("Submission failed unexpectedly", e)
            self.engine.take_error_screenshot()
            self.observer.reset()
            return {"received": False, "error": str(e)}

        log_session("submit", "Question accepted, observing reply")
        return {"received": True, "status": "processing"}
