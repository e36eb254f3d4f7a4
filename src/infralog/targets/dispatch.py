"""
Delivery of a payload to every configured target.
"""

from typing import List, Sequence

from ..config import StdoutConfig, TargetConfig
from ..errors import DeliveryError
from ..metrics import record_notification_error, record_notification_success
from ..utils import setup_logging
from .base import Payload, Target
from .slack import SlackTarget
from .stdout import FORMAT_TEXT, StdoutTarget
from .webhook import WebhookTarget

logger = setup_logging()


def build_targets(config: TargetConfig) -> List[Target]:
    """
    Creates notification targets from configuration.

    Falls back to a text stdout target when nothing is configured so drift is
    never silently dropped.

    Raises:
        ConfigError: If a configured target is invalid
    """
    targets: List[Target] = []
    if config.webhook.url:
        targets.append(WebhookTarget(config.webhook))
    if config.slack.webhook_url:
        targets.append(SlackTarget(config.slack))
    if config.stdout.enabled:
        targets.append(StdoutTarget(config.stdout))

    if not targets:
        logger.info("No targets configured, using stdout as default")
        targets.append(StdoutTarget(StdoutConfig(enabled=True, format=FORMAT_TEXT)))
    return targets


def notify_targets(targets: Sequence[Target], payload: Payload) -> List[str]:
    """
    Sends the payload to every target in order.

    A failing target is logged and counted but does not stop delivery to the
    remaining targets.

    Returns:
        Names of the targets that failed
    """
    failed: List[str] = []
    for target in targets:
        try:
            target.write(payload)
        except DeliveryError as e:
            logger.error(f"Error writing to {target.name} target: {e}")
            record_notification_error(target.name)
            failed.append(target.name)
        except Exception as e:
            logger.error(f"Unexpected error writing to {target.name} target: {str(e)}")
            record_notification_error(target.name)
            failed.append(target.name)
        else:
            record_notification_success(target.name)
    return failed
