"""
Relay utility modules
"""

from .logging import logger, setup_logging, log_session, log_success, log_error
from .payload_utils import ExtractedPayload, extract_payload

__all__ = [
    "logger",
    "setup_logging",
    "log_session",
    "log_success",
    "log_error",
    "ExtractedPayload",
    "extract_payload",
]
