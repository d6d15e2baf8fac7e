"""
Host messaging channels.

The host hands out questions ({"type": "receiveQuestion", "question": {...}}),
waits for an acknowledgment, and later receives
{"type": "deepseekResponse", "response": "<raw payload text>"}.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .errors import DeliveryError
from .utils.logging import console, logger, log_error, log_session


@dataclass
class InboundMessage:
    """A message fetched from the host, with the id used to acknowledge it."""
    id: str
    message: Dict[str, Any]


class Channel(ABC):
    """Outbound side of the host channel."""

    @abstractmethod
    def send(self, message: Dict[str, Any]) -> None:
        """
        Send a message to the host.

        Raises:
            DeliveryError: If the host rejects the message
        """
        pass


class HostChannel(Channel):
    """
    HTTP channel to the host application.

    Usage:
        channel = HostChannel("http://localhost:3000", secret="token")
        inbound = channel.fetch_next()
        if inbound:
            channel.acknowledge(inbound.id, {"received": True, "status": "processing"})
    """

    def __init__(self, base_url: str, secret: Optional[str] = None, timeout: int = 15):
        self.base_url = base_url.rstrip("/")
        self.secret = secret
        self.timeout = timeout

    @property
    def _headers(self) -> Dict[str, str]:
        """Get request headers with authentication."""
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["Authorization"] = f"Bearer {self.secret}"
        return headers

    def fetch_next(self) -> Optional[InboundMessage]:
        """
        Fetch the next pending message, if any.

        Returns:
            InboundMessage, or None when nothing is pending or the host is unreachable
        """
        try:
            response = requests.get(
                f"{self.base_url}/api/relay/messages/next",
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError:
            log_error(f"Cannot connect to host at {self.base_url}")
            return None
        except requests.exceptions.RequestException as e:
            logger.warning(f"Polling host failed: {e}")
            return None

        if response.status_code == 204:
            return None

        if response.status_code == 401:
            log_error("Authentication failed. Check RELAY_SECRET.")
            return None

        if response.status_code != 200:
            log_error(f"Host error: {response.status_code} - {response.text[:200]}")
            return None

        try:
            data = response.json()
        except ValueError:
            log_error("Host returned a non-JSON message")
            return None

        if not isinstance(data, dict) or "id" not in data or not isinstance(data.get("message"), dict):
            log_error(f"Malformed message from host: {str(data)[:200]}")
            return None

        return InboundMessage(id=str(data["id"]), message=data["message"])

    def acknowledge(self, message_id: str, ack: Dict[str, Any]) -> bool:
        """
        Post the acknowledgment for a fetched message.

        Returns:
            True if the host accepted it
        """
        try:
            response = requests.post(
                f"{self.base_url}/api/relay/messages/{message_id}/ack",
                json=ack,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Acknowledgment for {message_id} failed: {e}")
            return False

        if response.status_code not in (200, 201, 204):
            logger.warning(f"Acknowledgment for {message_id} rejected: {response.status_code}")
            return False
        return True

    def send(self, message: Dict[str, Any]) -> None:
        try:
            response = requests.post(
                f"{self.base_url}/api/relay/responses",
                json=message,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise DeliveryError(f"Could not reach host: {e}") from e

        if response.status_code not in (200, 201, 202, 204):
            raise DeliveryError(
                f"Host rejected response: {response.status_code} - {response.text[:200]}"
            )

        log_session("channel", f"Response posted to {self.base_url}", "debug")


class ConsoleChannel(Channel):
    """Prints outbound messages; used for one-shot runs from the command line."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    def send(self, message: Dict[str, Any]) -> None:
        self.sent.append(message)
        console.print_json(json.dumps(message, ensure_ascii=False))
