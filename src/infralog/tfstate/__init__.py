"""
Terraform state snapshots and the diff engine that compares them.
"""

from .compare import compare, values_equal
from .diff import (
    STATUS_ADDED,
    STATUS_CHANGED,
    STATUS_REMOVED,
    OutputDiff,
    ResourceDiff,
    StateDiff,
    ValueDiff,
)
from .state import (
    Output,
    Resource,
    ResourceInstance,
    Snapshot,
    parse_state,
    resource_id,
    split_resource_id,
)

__all__ = [
    "compare",
    "values_equal",
    "parse_state",
    "resource_id",
    "split_resource_id",
    "Snapshot",
    "Resource",
    "ResourceInstance",
    "Output",
    "StateDiff",
    "ResourceDiff",
    "OutputDiff",
    "ValueDiff",
    "STATUS_ADDED",
    "STATUS_REMOVED",
    "STATUS_CHANGED",
]
