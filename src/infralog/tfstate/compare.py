"""
Snapshot comparison.

This module computes the structured difference between two Terraform state
snapshots. Resources are joined on their resource ID and outputs on their
name; both are reported in ascending key order so identical inputs always
yield identical diffs.
"""

from typing import Dict, List, Mapping, Optional, Sequence

from ..config import Filter
from ..errors import CompareError
from ..types import Attributes, Value
from .diff import (
    STATUS_ADDED,
    STATUS_CHANGED,
    STATUS_REMOVED,
    OutputDiff,
    ResourceDiff,
    StateDiff,
    ValueDiff,
)
from .state import Output, Resource, ResourceInstance, Snapshot, split_resource_id


def values_equal(a: Value, b: Value) -> bool:
    """
    Structural equality over JSON values.

    Booleans never equal numbers, numbers compare numerically (``1 == 1.0``)
    and lists and objects are compared element by element.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))
    if type(a) is not type(b):
        return False
    return a == b


def compare(
    old_state: Optional[Snapshot], new_state: Optional[Snapshot], state_filter: Filter
) -> StateDiff:
    """
    Compares two snapshots and returns their differences.

    Resources whose type fails the filter are dropped from both sides before
    comparing, and outputs are filtered by name. Unchanged resources and
    outputs never appear in the result.

    Args:
        old_state: The last confirmed snapshot
        new_state: The freshly fetched snapshot
        state_filter: Resource type and output name filter

    Returns:
        StateDiff with resource diffs sorted by resource ID and output diffs
        sorted by output name

    Raises:
        CompareError: If either snapshot is missing
    """
    if old_state is None or new_state is None:
        raise CompareError("old_state and new_state cannot be None")

    old_resources = _map_resources(old_state.resources, state_filter)
    new_resources = _map_resources(new_state.resources, state_filter)

    resource_diffs: List[ResourceDiff] = []
    for rid in sorted(old_resources.keys() | new_resources.keys()):
        parts = split_resource_id(rid)
        old_resource = old_resources.get(rid)
        new_resource = new_resources.get(rid)

        if old_resource is None:
            resource_diffs.append(
                ResourceDiff(parts.resource_type, parts.resource_name, STATUS_ADDED)
            )
            continue
        if new_resource is None:
            resource_diffs.append(
                ResourceDiff(parts.resource_type, parts.resource_name, STATUS_REMOVED)
            )
            continue

        attribute_diffs = compare_instances(old_resource.instances, new_resource.instances)
        if attribute_diffs:
            resource_diffs.append(
                ResourceDiff(
                    parts.resource_type,
                    parts.resource_name,
                    STATUS_CHANGED,
                    attribute_diffs,
                )
            )

    old_outputs = {
        name: output
        for name, output in old_state.outputs.items()
        if state_filter.matches_output(name)
    }
    new_outputs = {
        name: output
        for name, output in new_state.outputs.items()
        if state_filter.matches_output(name)
    }

    return StateDiff(
        resource_diffs=resource_diffs,
        output_diffs=compare_outputs(old_outputs, new_outputs),
    )


def _map_resources(resources: Sequence[Resource], state_filter: Filter) -> Dict[str, Resource]:
    resource_map: Dict[str, Resource] = {}
    for resource in resources:
        rid = resource.id
        if state_filter.matches_resource_type(split_resource_id(rid).resource_type):
            resource_map[rid] = resource
    return resource_map


def compare_instances(
    old_instances: Sequence[ResourceInstance], new_instances: Sequence[ResourceInstance]
) -> Dict[str, ValueDiff]:
    """
    Compares the attributes of the first instance on each side.

    Only index 0 is compared for resources expanded with count or for_each.
    Returns an empty dict when either side has no instances.
    """
    if not old_instances or not new_instances:
        return {}
    return compare_attributes(old_instances[0].attributes, new_instances[0].attributes)


def compare_attributes(old_attrs: Attributes, new_attrs: Attributes) -> Dict[str, ValueDiff]:
    """
    Returns a ValueDiff per differing attribute, keyed in sorted order.
    """
    attribute_diffs: Dict[str, ValueDiff] = {}
    for key in sorted(old_attrs.keys() | new_attrs.keys()):
        if key not in old_attrs:
            attribute_diffs[key] = ValueDiff(after=new_attrs[key])
        elif key not in new_attrs:
            attribute_diffs[key] = ValueDiff(before=old_attrs[key])
        elif not values_equal(old_attrs[key], new_attrs[key]):
            attribute_diffs[key] = ValueDiff(before=old_attrs[key], after=new_attrs[key])
    return attribute_diffs


def compare_outputs(
    old_outputs: Mapping[str, Output], new_outputs: Mapping[str, Output]
) -> List[OutputDiff]:
    output_diffs: List[OutputDiff] = []
    for name in sorted(old_outputs.keys() | new_outputs.keys()):
        if name not in old_outputs:
            output_diffs.append(OutputDiff(name, STATUS_ADDED))
        elif name not in new_outputs:
            output_diffs.append(OutputDiff(name, STATUS_REMOVED))
        elif not values_equal(old_outputs[name].value, new_outputs[name].value):
            output_diffs.append(
                OutputDiff(
                    name,
                    STATUS_CHANGED,
                    ValueDiff(before=old_outputs[name].value, after=new_outputs[name].value),
                )
            )
    return output_diffs
