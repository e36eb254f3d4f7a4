"""
Notification targets.

Each target receives the same Payload and delivers it in its own format:
a JSON webhook, a Slack Block Kit message or a report on standard output.
"""

from .base import Payload, Target
from .dispatch import build_targets, notify_targets
from .slack import SlackTarget
from .stdout import StdoutTarget
from .webhook import WebhookTarget

__all__ = [
    "Payload",
    "Target",
    "WebhookTarget",
    "SlackTarget",
    "StdoutTarget",
    "build_targets",
    "notify_targets",
]
