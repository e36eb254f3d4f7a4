"""
Backend interface for reading Terraform state files.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class Backend(ABC):
    """A source of raw Terraform state bytes."""

    name = "unknown"

    @property
    @abstractmethod
    def source(self) -> str:
        """Describe the state location, e.g. ``s3://bucket/key``."""

    @property
    def location(self) -> Dict[str, Any]:
        """Structured state location keyed by backend, e.g. ``{"s3": {...}}``."""
        return {}

    @abstractmethod
    def get_state(self) -> bytes:
        """
        Retrieve the current state file contents.

        Raises:
            FetchError: If the state cannot be read
        """
