"""
Configuration for the DeepSeek quiz relay.

Settings for the relay, grouped by concern. Every timing and endpoint can be
overridden from the environment (a .env file is read at import).
Selector lists are plain data so a changed chat UI only needs a JSON override
(see load_selectors), not a code change.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

# ===========================================
# Chat URL
# ===========================================

CHAT_URL = os.getenv("CHAT_URL", "https://chat.deepseek.com")

# ===========================================
# CDP Connection Settings
# ===========================================

@dataclass
class CDPConfig:
    """Chrome DevTools Protocol connection configuration."""

    # CDP endpoint - default Chrome debugging port
    cdp_url: str = field(default_factory=lambda: os.getenv("CDP_URL", "http://localhost:9222"))

    # Connection timeout in seconds
    connection_timeout: int = 30

# ===========================================
# Observation Timing
# ===========================================

@dataclass
class ObservationConfig:
    """Timing for the response observation session (seconds unless noted)."""

    # Periodic re-check, independent of DOM change notifications
    rescan_interval: float = field(
        default_factory=lambda: float(os.getenv("RESCAN_INTERVAL", "1"))
    )

    # Hard session budget; nothing is delivered after this
    session_timeout: float = field(
        default_factory=lambda: float(os.getenv("SESSION_TIMEOUT", "180"))
    )

    # Session age after which the late-arrival rescue scan is allowed
    late_rescue_grace: float = field(
        default_factory=lambda: float(os.getenv("LATE_RESCUE_GRACE", "30"))
    )

    # How long the worker hands control to Playwright between ticks (ms)
    pump_interval_ms: int = 100

@dataclass
class SubmissionConfig:
    """Settling delays used while writing and sending a question (ms)."""

    # Wait before focusing the input surface
    input_settle_ms: int = 50

    # Wait for the UI to enable its send control after the text changed
    send_settle_ms: int = 300

# ===========================================
# Host Channel Configuration
# ===========================================

@dataclass
class ChannelConfig:
    """Host messaging channel configuration."""

    # Base URL of the host that hands out questions and collects responses
    host_url: str = field(
        default_factory=lambda: os.getenv("RELAY_HOST_URL", "http://localhost:3000")
    )

    # Bearer token for the host
    secret: str = field(
        default_factory=lambda: os.getenv("RELAY_SECRET", "")
    )

    # Seconds between polls for new messages
    poll_interval: float = field(
        default_factory=lambda: float(os.getenv("RELAY_POLL_INTERVAL", "2"))
    )

    # HTTP timeout (seconds)
    request_timeout: int = 15

# ===========================================
# Error Handling Configuration
# ===========================================

@dataclass
class ErrorConfig:
    """Error handling configuration."""

    # Log file path
    log_file: str = field(
        default_factory=lambda: os.getenv("LOG_FILE", "./quizrelay.log")
    )

    # Screenshot when a submission fails
    screenshot_on_error: bool = True

    # Screenshot directory
    screenshot_dir: str = field(
        default_factory=lambda: os.getenv("SCREENSHOT_DIR", "./screenshots")
    )

# ===========================================
# DeepSeek Selectors
# ===========================================

# Every list is tried in order, first match wins.
SELECTORS: Dict[str, List[str]] = {
    "prompt_input": [
        "#chat-input",
        "textarea#chat-input",
        "textarea[placeholder*='DeepSeek']",
        "div[contenteditable='true'][role='textbox']",
        "textarea",
    ],
    "send_button": [
        "[role='button'].f6d670",
        ".f6d670",
        "button[aria-label='Send message']",
        "button[type='submit']",
        "[data-testid='send-button']",
        ".bf38813a button",
    ],
    # Used when none of the send_button selectors match
    "send_button_fallback": [
        "button:has(svg)",
    ],
    # Assistant reply units - specific test markers first, structural fallback last
    "response_regions": [
        "[data-testid='chat-message-assistant']",
        "model-response",
        ".ds-markdown",
        ".f9bf7997",
    ],
    "code_blocks": [
        ".md-code-block pre",
        "pre code",
        "pre",
        ".code-block pre",
        ".ds-markdown pre",
    ],
    # Root element watched for DOM changes
    "observe_root": [
        "body",
    ],
}


def load_selectors(path: Optional[str] = None, base: Optional[Dict[str, List[str]]] = None) -> Dict[str, List[str]]:
    """
    Load selector lists, merging a JSON override file on top of the defaults.

    Args:
        path: JSON file mapping selector keys to lists of selectors
        base: Defaults to merge into (SELECTORS if not given)

    Returns:
        New selector dict

    Raises:
        ConfigError: If the file is unreadable or has unknown keys / bad values
    """
    selectors = {key: list(values) for key, values in (base or SELECTORS).items()}
    if not path:
        return selectors

    try:
        overrides = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not read selectors file {path}: {e}") from e

    if not isinstance(overrides, dict):
        raise ConfigError(f"Selectors file {path} must contain a JSON object")

    for key, values in overrides.items():
        if key not in selectors:
            raise ConfigError(f"Unknown selector key '{key}' in {path}")
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, list) or not values or not all(isinstance(v, str) for v in values):
            raise ConfigError(f"Selector '{key}' must be a non-empty list of strings")
        selectors[key] = values

    return selectors

# ===========================================
# Main Config Class
# ===========================================

@dataclass
class RelayConfig:
    """Main configuration container."""

    cdp: CDPConfig = field(default_factory=CDPConfig)
    observation: ObservationConfig = field(default_factory=ObservationConfig)
    submission: SubmissionConfig = field(default_factory=SubmissionConfig)
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    error: ErrorConfig = field(default_factory=ErrorConfig)

    selectors: Dict[str, List[str]] = field(
        default_factory=lambda: load_selectors(os.getenv("RELAY_SELECTORS_FILE"))
    )

# Create default config instance
config = RelayConfig()
