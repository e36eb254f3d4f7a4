"""
Notification target interface and the payload handed to every target.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..gitmeta import GitMetadata
from ..tfstate import StateDiff
from ..types import Value

TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def format_value(value: Value) -> str:
    """Render an attribute value for human readable messages."""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


@dataclass(frozen=True)
class Payload:
    """A diff together with when and where it was detected."""

    diffs: StateDiff
    timestamp: datetime
    source: str
    git: Optional[GitMetadata] = None
    location: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        diff: StateDiff,
        source: str,
        git: Optional[GitMetadata] = None,
        now: Optional[datetime] = None,
        location: Optional[Dict[str, Any]] = None,
    ) -> "Payload":
        return cls(
            diffs=diff,
            timestamp=now or datetime.now(timezone.utc),
            source=source,
            git=git,
            location=dict(location or {}),
        )

    @property
    def formatted_time(self) -> str:
        return self.timestamp.astimezone(timezone.utc).strftime(TIME_FORMAT)

    def metadata(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"tfstate": self.location or {"source": self.source}}
        if self.git is not None and not self.git.is_empty():
            metadata["git"] = self.git.to_dict()
        return metadata


class Target(ABC):
    """A sink that receives notifications about detected drift."""

    name = "unknown"

    @abstractmethod
    def write(self, payload: Payload) -> None:
        """
        Deliver the payload.

        Raises:
            DeliveryError: If the payload could not be delivered
        """
