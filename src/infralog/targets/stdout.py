"""
Standard output notification target.

Renders either one JSON object per changed resource or output (``json``) or
a bordered, human readable report (``text``).
"""

import json
import sys
from datetime import timezone
from typing import IO, Any, Dict, List, Optional

from ..config import StdoutConfig
from ..errors import DeliveryError
from ..tfstate import STATUS_ADDED, STATUS_CHANGED, STATUS_REMOVED
from .base import Payload, Target, format_value

FORMAT_JSON = "json"
FORMAT_TEXT = "text"

HEAVY_RULE = "━" * 50
LIGHT_RULE = "─" * 50

STATUS_SYMBOLS = {
    STATUS_ADDED: "[+]",
    STATUS_REMOVED: "[-]",
    STATUS_CHANGED: "[~]",
}


class StdoutTarget(Target):
    name = "stdout"

    def __init__(self, config: StdoutConfig, stream: Optional[IO[str]] = None) -> None:
        fmt = (config.format or "").lower()
        self.format = FORMAT_JSON if fmt == FORMAT_JSON else FORMAT_TEXT
        self._stream = stream

    @property
    def stream(self) -> IO[str]:
        # Resolved lazily so redirected stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def write(self, payload: Payload) -> None:
        if self.format == FORMAT_JSON:
            text = "".join(json.dumps(entry) + "\n" for entry in build_log_entries(payload))
        else:
            text = render_text(payload)

        try:
            self.stream.write(text)
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise DeliveryError(f"error writing to stdout: {e}") from e


def _timestamp(payload: Payload) -> str:
    return payload.timestamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def build_log_entries(payload: Payload) -> List[Dict[str, Any]]:
    """Build one log entry per changed resource and output."""
    timestamp = _timestamp(payload)
    entries: List[Dict[str, Any]] = []

    for diff in payload.diffs.resource_diffs:
        entry: Dict[str, Any] = {
            "timestamp": timestamp,
            "level": "info",
            "msg": f"resource {diff.status}",
            "event_type": "resource_change",
            "source": payload.source,
            "resource_type": diff.resource_type,
            "resource_name": diff.resource_name,
            "status": diff.status,
        }
        if diff.attribute_diffs:
            entry["changes"] = {
                attr: value_diff.to_dict()
                for attr, value_diff in diff.attribute_diffs.items()
            }
        entries.append(entry)

    for diff in payload.diffs.output_diffs:
        entry = {
            "timestamp": timestamp,
            "level": "info",
            "msg": f"output {diff.status}",
            "event_type": "output_change",
            "source": payload.source,
            "output_name": diff.output_name,
            "status": diff.status,
        }
        if diff.status == STATUS_CHANGED:
            entry["changes"] = {"value": diff.value_diff.to_dict()}
        entries.append(entry)

    return entries


def render_text(payload: Payload) -> str:
    """Render the bordered text report."""
    lines = [
        HEAVY_RULE,
        "  TERRAFORM STATE CHANGES DETECTED",
        HEAVY_RULE,
        f"  Time:   {payload.formatted_time}",
        f"  Source: {payload.source}",
        LIGHT_RULE,
    ]

    diffs = payload.diffs
    if diffs.resource_diffs:
        lines += ["", "  RESOURCE CHANGES", ""]
        for diff in diffs.resource_diffs:
            symbol = STATUS_SYMBOLS.get(diff.status, "[?]")
            lines.append(
                f"  {symbol} {diff.resource_type}.{diff.resource_name} ({diff.status})"
            )
            if diff.status == STATUS_CHANGED:
                for attr, value_diff in diff.attribute_diffs.items():
                    lines.append(
                        f"      {attr}: {format_value(value_diff.before)} → "
                        f"{format_value(value_diff.after)}"
                    )

    if diffs.output_diffs:
        lines += ["", "  OUTPUT CHANGES", ""]
        for diff in diffs.output_diffs:
            symbol = STATUS_SYMBOLS.get(diff.status, "[?]")
            lines.append(f"  {symbol} {diff.output_name} ({diff.status})")
            if diff.status == STATUS_CHANGED:
                lines.append(
                    f"      {format_value(diff.value_diff.before)} → "
                    f"{format_value(diff.value_diff.after)}"
                )

    lines += ["", HEAVY_RULE]
    return "\n".join(lines) + "\n"
