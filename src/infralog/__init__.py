"""
Infralog: Terraform state drift notifier.

Infralog polls a Terraform state file and reports what changed since the last
state it saw. The detection process:
1. Reads the current state from a local file or S3
2. Compares it with the last confirmed snapshot, filtered by resource type
   and output name
3. Sends any differences to the configured webhook, Slack and stdout targets
4. Advances and persists the last confirmed snapshot
"""

from .core import DriftMonitor
from .tfstate import StateDiff, compare, parse_state

__all__ = ["DriftMonitor", "StateDiff", "compare", "parse_state"]
