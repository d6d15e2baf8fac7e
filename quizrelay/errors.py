"""Relay error types."""


class RelayError(Exception):
    """Base error for the quiz relay."""


class ConfigError(RelayError):
    """Raised when configuration loading or validation fails."""


class InvalidQuestion(RelayError):
    """Raised when an inbound question cannot be turned into a request."""


class SubmissionError(RelayError):
    """Raised when a question could not be submitted to the chat UI."""


class InputNotFound(SubmissionError):
    """Raised when the chat input surface is missing."""


class SendControlNotFound(SubmissionError):
    """Raised when no usable send control is found."""


class DeliveryError(RelayError):
    """Raised by a channel when the host rejects an outbound message."""
