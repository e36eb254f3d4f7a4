"""
Diff result types produced by comparing two snapshots.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..types import DiffDocument, Value

STATUS_ADDED = "added"
STATUS_REMOVED = "removed"
STATUS_CHANGED = "changed"


@dataclass(frozen=True)
class ValueDiff:
    """A before/after pair. A missing side is None."""

    before: Value = None
    after: Value = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.before is not None:
            data["before"] = self.before
        if self.after is not None:
            data["after"] = self.after
        return data


@dataclass(frozen=True)
class ResourceDiff:
    resource_type: str
    resource_name: str
    status: str
    attribute_diffs: Dict[str, ValueDiff] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "resource_type": self.resource_type,
            "resource_name": self.resource_name,
            "status": self.status,
        }
        if self.attribute_diffs:
            data["attribute_diffs"] = {
                name: diff.to_dict() for name, diff in self.attribute_diffs.items()
            }
        return data


@dataclass(frozen=True)
class OutputDiff:
    output_name: str
    status: str
    value_diff: ValueDiff = field(default_factory=ValueDiff)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_name": self.output_name,
            "status": self.status,
            "value_diff": self.value_diff.to_dict(),
        }


@dataclass(frozen=True)
class StateDiff:
    resource_diffs: List[ResourceDiff] = field(default_factory=list)
    output_diffs: List[OutputDiff] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(self.resource_diffs) or bool(self.output_diffs)

    def to_dict(self) -> DiffDocument:
        data: DiffDocument = {
            "resource_diffs": [diff.to_dict() for diff in self.resource_diffs],
        }
        if self.output_diffs:
            data["output_diffs"] = [diff.to_dict() for diff in self.output_diffs]
        return data
