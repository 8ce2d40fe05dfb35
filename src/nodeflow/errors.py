"""Exception types raised by the nodeflow core."""

from typing import Any


class NodeflowError(Exception):
    """Base class for nodeflow errors."""


class ModerationViolation(NodeflowError):
    """Input failed a moderation check.

    The message is the check's configured, user-facing error message.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedOutputError(NodeflowError):
    """Model output could not be parsed into the expected structure."""

    def __init__(self, message: str, raw_output: Any = None):
        super().__init__(message)
        self.raw_output = raw_output


class MemoryAccessError(NodeflowError):
    """Reading from or appending to the message store failed."""


class NodeInputError(NodeflowError):
    """A node input is missing or has the wrong type."""


class ConfigError(NodeflowError):
    """Configuration loading or validation error."""
