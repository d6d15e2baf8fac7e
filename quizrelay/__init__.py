"""
DeepSeek Quiz Relay

Submits quiz questions to DeepSeek chat running in your own Chrome browser
and reports the JSON answer the assistant writes back.

Components:
- Payload extraction (utils.payload_utils)
- Observation controller (observer)
- Delivery guard (delivery)
- DeepSeek submission engine (engines)
"""

__version__ = "1.0.0"

from .browser_connection import BrowserConnection
from .config import config, RelayConfig
from .delivery import DeliveryGuard
from .engines import get_engine, ENGINES
from .observer import ObservationController, ObservationState
from .relay import QuestionRelay

__all__ = [
    "BrowserConnection",
    "DeliveryGuard",
    "ENGINES",
    "ObservationController",
    "ObservationState",
    "QuestionRelay",
    "RelayConfig",
    "config",
    "get_engine",
]
