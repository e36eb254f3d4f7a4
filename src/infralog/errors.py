"""
Exception types for Infralog.

Every error raised during a poll cycle carries the stage it happened in, so
the cycle handler can log and count it without inspecting the message.
"""

from typing import Optional


class InfralogError(Exception):
    """Base class for all Infralog errors."""

    stage: Optional[str] = None


class ConfigError(InfralogError, ValueError):
    """Invalid or missing configuration. Fatal at startup."""


class FetchError(InfralogError):
    """The backend could not supply the current state."""

    stage = "fetch"


class ParseError(InfralogError, ValueError):
    """State bytes are not a valid Terraform state document."""

    stage = "parse"


class CompareError(InfralogError):
    """Two snapshots could not be compared."""

    stage = "compare"


class PersistError(InfralogError):
    """The last snapshot could not be loaded or saved."""

    stage = "persist"


class DeliveryError(InfralogError):
    """A target failed to accept a notification."""

    stage = "deliver"
