"""
Webhook notification target.

Posts the diff as JSON to an HTTP endpoint. Transport errors and configured
status codes are retried with exponential backoff and jitter; any other
non-2xx status fails immediately.
"""

import json
import random
import time
from typing import Callable, Optional

import requests

from ..config import RetryConfig, WebhookConfig
from ..errors import ConfigError, DeliveryError
from ..utils import DEFAULT_TIMEOUT_SECONDS, setup_logging
from .base import Payload, Target

logger = setup_logging()

ALLOWED_METHODS = ("POST", "PUT")
JITTER_FRACTION = 0.25


def calculate_delay(retry: RetryConfig, attempt: int, rand: float) -> float:
    """
    Compute the delay before the attempt following ``attempt``.

    Args:
        retry: Retry policy with defaults applied
        attempt: The 1-indexed attempt that just failed
        rand: A sample from [0, 1) used for jitter

    Returns:
        Delay in milliseconds: ``min(initial * 2**(attempt-1), max)`` with
        up to 25% jitter either way
    """
    backoff = min(
        float(retry.initial_delay_ms) * (2 ** (attempt - 1)),
        float(retry.max_delay_ms),
    )
    jitter = backoff * JITTER_FRACTION * (rand * 2 - 1)
    return backoff + jitter


class WebhookTarget(Target):
    name = "webhook"

    def __init__(
        self,
        config: WebhookConfig,
        sleep: Callable[[float], None] = time.sleep,
        rand: Callable[[], float] = random.random,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """
        Args:
            config: Webhook URL, method and retry policy
            sleep: Called with the backoff delay in seconds
            rand: Source of jitter samples in [0, 1)
            timeout: Per-request timeout in seconds

        Raises:
            ConfigError: If the URL is missing or the method is not POST or PUT
        """
        if not config.url:
            raise ConfigError("webhook URL is required")

        method = (config.method or "POST").upper()
        if method not in ALLOWED_METHODS:
            raise ConfigError(
                f"invalid method: {config.method}. Method must be POST or PUT"
            )

        self.url = config.url
        self.method = method
        self.retry = config.retry.with_defaults()
        self.timeout = timeout
        self._sleep = sleep
        self._rand = rand

    def write(self, payload: Payload) -> None:
        body = build_body(payload)

        last_error: Optional[str] = None
        max_attempts = self.retry.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                status_code = self._do_request(body)
            except requests.RequestException as e:
                last_error = f"error making webhook request: {e}"
                logger.warning(f"Webhook attempt {attempt}/{max_attempts} failed: {e}")
                if attempt < max_attempts:
                    self._backoff(attempt)
                continue

            if 200 <= status_code < 300:
                return

            last_error = f"webhook request failed with status code: {status_code}"
            if status_code not in self.retry.retry_status_codes:
                raise DeliveryError(last_error)

            logger.warning(
                f"Webhook attempt {attempt}/{max_attempts} returned {status_code}"
            )
            if attempt < max_attempts:
                self._backoff(attempt)

        raise DeliveryError(
            f"webhook request failed after {max_attempts} attempts: {last_error}"
        )

    def _do_request(self, body: str) -> int:
        response = requests.request(
            self.method,
            self.url,
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.close()
        return response.status_code

    def _backoff(self, attempt: int) -> None:
        delay_ms = calculate_delay(self.retry, attempt, self._rand())
        self._sleep(delay_ms / 1000.0)


def build_body(payload: Payload) -> str:
    """Render the webhook request body."""
    return json.dumps(
        {
            "diffs": payload.diffs.to_dict(),
            "metadata": payload.metadata(),
        }
    )
