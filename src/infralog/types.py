"""
Type definitions for Infralog.

Terraform attribute and output values are plain JSON values. These aliases
name the shapes that flow between the parser, the diff engine and the
targets.
"""

from typing import Any, Dict, List, Union

# A JSON value as decoded from a state file
Value = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]
Attributes = Dict[str, Value]

# JSON-ready documents
StateDocument = Dict[str, Any]
DiffDocument = Dict[str, Any]

# Slack Block Kit payloads
Block = Dict[str, Any]
SlackMessage = Dict[str, Any]
