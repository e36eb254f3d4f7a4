"""
Slack notification target.

Sends a Block Kit message to a Slack incoming webhook. Slack failures are not
retried.
"""

import json
from typing import List

import requests

from ..config import SlackConfig
from ..errors import ConfigError, DeliveryError
from ..tfstate import STATUS_ADDED, STATUS_CHANGED, STATUS_REMOVED, OutputDiff, ResourceDiff, StateDiff
from ..types import Block, SlackMessage
from ..utils import DEFAULT_TIMEOUT_SECONDS
from .base import Payload, Target, format_value

MAX_ATTRIBUTES_PER_RESOURCE = 5
SHORT_SHA_LENGTH = 8

STATUS_EMOJI = {
    STATUS_ADDED: ":large_green_circle:",
    STATUS_REMOVED: ":red_circle:",
    STATUS_CHANGED: ":large_yellow_circle:",
}


class SlackTarget(Target):
    name = "slack"

    def __init__(self, config: SlackConfig, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        if not config.webhook_url:
            raise ConfigError("slack webhook URL is required")
        self.webhook_url = config.webhook_url
        self.channel = config.channel
        self.username = config.username
        self.icon_emoji = config.icon_emoji
        self.timeout = timeout

    def write(self, payload: Payload) -> None:
        message = self.build_message(payload)
        try:
            response = requests.post(
                self.webhook_url,
                data=json.dumps(message).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DeliveryError(f"error sending slack message: {e}") from e

        response.close()
        if not 200 <= response.status_code < 300:
            raise DeliveryError(
                f"slack request failed with status code: {response.status_code}"
            )

    def build_message(self, payload: Payload) -> SlackMessage:
        """Build the Block Kit message for a payload."""
        blocks: List[Block] = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "Terraform State Changes"},
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": _context_text(payload)},
            },
            {"type": "divider"},
        ]

        diff = payload.diffs
        if diff.resource_diffs:
            blocks.append(_section(format_resource_changes(diff.resource_diffs)))
        if diff.output_diffs:
            blocks.append(_section(format_output_changes(diff.output_diffs)))

        message: SlackMessage = {"text": fallback_text(diff), "blocks": blocks}
        if self.channel:
            message["channel"] = self.channel
        if self.username:
            message["username"] = self.username
        if self.icon_emoji:
            message["icon_emoji"] = self.icon_emoji
        return message


def _section(text: str) -> Block:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context_text(payload: Payload) -> str:
    text = f"*Time:* {payload.formatted_time}"
    if payload.source:
        text += f"\n*Source:* `{payload.source}`"

    git = payload.git
    if git is not None and not git.is_empty():
        text += "\n\n*Git Context*\n"
        if git.committer:
            text += f"👤 *Committer:* {git.committer}\n"
        if git.branch:
            text += f"🌿 *Branch:* `{git.branch}`\n"
        if git.commit_sha:
            text += f"📝 *Commit:* `{git.commit_sha[:SHORT_SHA_LENGTH]}`\n"
        if git.repo_url:
            text += f"🔗 *Repository:* {git.repo_url}\n"
    return text


def format_resource_changes(diffs: List[ResourceDiff]) -> str:
    lines = ["*Resource Changes*", ""]
    for diff in diffs:
        emoji = STATUS_EMOJI.get(diff.status, ":white_circle:")
        lines.append(f"{emoji} `{diff.resource_type}.{diff.resource_name}` - {diff.status}")

        if diff.status != STATUS_CHANGED:
            continue
        attributes = list(diff.attribute_diffs.items())
        for attr, change in attributes[:MAX_ATTRIBUTES_PER_RESOURCE]:
            lines.append(
                f"    • `{attr}`: `{format_value(change.before)}` → `{format_value(change.after)}`"
            )
        hidden = len(attributes) - MAX_ATTRIBUTES_PER_RESOURCE
        if hidden > 0:
            lines.append(f"    • _...and {hidden} more attributes_")
    return "\n".join(lines) + "\n"


def format_output_changes(diffs: List[OutputDiff]) -> str:
    lines = ["*Output Changes*", ""]
    for diff in diffs:
        emoji = STATUS_EMOJI.get(diff.status, ":white_circle:")
        lines.append(f"{emoji} `{diff.output_name}` - {diff.status}")
        if diff.status == STATUS_CHANGED:
            lines.append(
                f"    • `{format_value(diff.value_diff.before)}` → "
                f"`{format_value(diff.value_diff.after)}`"
            )
    return "\n".join(lines) + "\n"


def fallback_text(diff: StateDiff) -> str:
    parts = []
    if diff.resource_diffs:
        parts.append(f"{len(diff.resource_diffs)} resource(s)")
    if diff.output_diffs:
        parts.append(f"{len(diff.output_diffs)} output(s)")
    return f"Terraform state changes detected: {', '.join(parts)} changed"
