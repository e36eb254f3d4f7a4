"""
Configuration loader for Infralog.

Configuration is read from a YAML file and then overlaid with ``INFRALOG_*``
environment variables, which take precedence over the file.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigError

DEFAULT_POLLING_INTERVAL = 300
DEFAULT_METRICS_ADDRESS = "0.0.0.0:8080"
DEFAULT_RETRY_STATUS_CODES = (500, 502, 503, 504)

CONFIG_FILE_ENV = "INFRALOG_CONFIG_FILE"


@dataclass
class Filter:
    """
    Allow-list for resource types and output names.

    ``None`` matches everything, an empty list matches nothing and a
    non-empty list is an exact membership test.
    """

    resource_types: Optional[List[str]] = None
    outputs: Optional[List[str]] = None

    def matches_resource_type(self, resource_type: str) -> bool:
        return _matches(self.resource_types, resource_type)

    def matches_output(self, output: str) -> bool:
        return _matches(self.outputs, output)


def _matches(allowed: Optional[List[str]], name: str) -> bool:
    if allowed is None:
        return True
    if len(allowed) == 0:
        return False
    return name in allowed


@dataclass
class RetryConfig:
    """Webhook retry policy. Zero values are replaced by defaults."""

    max_attempts: int = 0
    initial_delay_ms: int = 0
    max_delay_ms: int = 0
    retry_status_codes: Optional[Tuple[int, ...]] = None

    def with_defaults(self) -> "RetryConfig":
        return RetryConfig(
            max_attempts=self.max_attempts or 3,
            initial_delay_ms=self.initial_delay_ms or 1000,
            max_delay_ms=self.max_delay_ms or 30000,
            retry_status_codes=(
                DEFAULT_RETRY_STATUS_CODES
                if self.retry_status_codes is None
                else tuple(self.retry_status_codes)
            ),
        )


@dataclass
class WebhookConfig:
    url: str = ""
    method: str = ""
    retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass
class SlackConfig:
    webhook_url: str = ""
    channel: str = ""
    username: str = ""
    icon_emoji: str = ""


@dataclass
class StdoutConfig:
    enabled: bool = False
    format: str = "text"


@dataclass
class TargetConfig:
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    stdout: StdoutConfig = field(default_factory=StdoutConfig)


@dataclass
class S3Config:
    bucket: str = ""
    key: str = ""
    region: str = ""


@dataclass
class LocalConfig:
    path: str = ""


@dataclass
class TFStateConfig:
    s3: S3Config = field(default_factory=S3Config)
    local: LocalConfig = field(default_factory=LocalConfig)


@dataclass
class PollingConfig:
    interval: int = DEFAULT_POLLING_INTERVAL


@dataclass
class PersistenceConfig:
    state_file: str = ""


@dataclass
class MetricsConfig:
    enabled: bool = False
    address: str = DEFAULT_METRICS_ADDRESS


@dataclass
class Config:
    """Configuration class for Infralog."""

    tfstate: TFStateConfig = field(default_factory=TFStateConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    target: TargetConfig = field(default_factory=TargetConfig)
    filter: Filter = field(default_factory=Filter)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log_level: str = "INFO"

    def validate(self) -> None:
        """
        Raises:
            ConfigError: If no backend is configured or the interval is invalid
        """
        if not self.tfstate.s3.bucket and not self.tfstate.local.path:
            raise ConfigError(
                "no backend configured. Configure either tfstate.s3 or tfstate.local"
            )
        if self.tfstate.s3.bucket and not self.tfstate.s3.key:
            raise ConfigError("tfstate.s3.key is required when tfstate.s3.bucket is set")
        if self.polling.interval <= 0:
            raise ConfigError("polling.interval must be a positive number of seconds")


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _str_list(value: Any, name: str) -> Optional[List[str]]:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigError(f"'{name}' must be a list")
    return [str(item) for item in value]


def _config_from_dict(data: Dict[str, Any]) -> Config:
    tfstate = _section(data, "tfstate")
    s3 = _section(tfstate, "s3")
    local = _section(tfstate, "local")
    polling = _section(data, "polling")
    target = _section(data, "target")
    webhook = _section(target, "webhook")
    retry = _section(webhook, "retry")
    slack = _section(target, "slack")
    stdout = _section(target, "stdout")
    filters = _section(data, "filter")
    persistence = _section(data, "persistence")
    metrics = _section(data, "metrics")

    status_codes = retry.get("retry_on_status")
    try:
        return Config(
            tfstate=TFStateConfig(
                s3=S3Config(
                    bucket=s3.get("bucket", ""),
                    key=s3.get("key", ""),
                    region=s3.get("region", ""),
                ),
                local=LocalConfig(path=local.get("path", "")),
            ),
            polling=PollingConfig(
                interval=int(polling.get("interval", DEFAULT_POLLING_INTERVAL))
            ),
            target=TargetConfig(
                webhook=WebhookConfig(
                    url=webhook.get("url", ""),
                    method=webhook.get("method", ""),
                    retry=RetryConfig(
                        max_attempts=int(retry.get("max_attempts", 0)),
                        initial_delay_ms=int(retry.get("initial_delay_ms", 0)),
                        max_delay_ms=int(retry.get("max_delay_ms", 0)),
                        retry_status_codes=(
                            None
                            if status_codes is None
                            else tuple(int(code) for code in status_codes)
                        ),
                    ),
                ),
                slack=SlackConfig(
                    webhook_url=slack.get("webhook_url", ""),
                    channel=slack.get("channel", ""),
                    username=slack.get("username", ""),
                    icon_emoji=slack.get("icon_emoji", ""),
                ),
                stdout=StdoutConfig(
                    enabled=bool(stdout.get("enabled", False)),
                    format=stdout.get("format", "text"),
                ),
            ),
            filter=Filter(
                resource_types=_str_list(
                    filters.get("resource_types"), "filter.resource_types"
                ),
                outputs=_str_list(filters.get("outputs"), "filter.outputs"),
            ),
            persistence=PersistenceConfig(
                state_file=persistence.get("state_file", "")
            ),
            metrics=MetricsConfig(
                enabled=bool(metrics.get("enabled", False)),
                address=metrics.get("address", DEFAULT_METRICS_ADDRESS),
            ),
            log_level=data.get("log_level", "INFO"),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid configuration value: {e}") from e


def _env_str(name: str) -> Optional[str]:
    value = os.environ.get(name)
    return value if value else None


def _env_int(name: str) -> Optional[int]:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _env_bool(name: str) -> Optional[bool]:
    value = _env_str(name)
    if value is None:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> Optional[List[str]]:
    value = _env_str(name)
    if value is None:
        return None
    parts = [part.strip() for part in value.split(",") if part.strip()]
    return parts or None


def _env_int_list(name: str) -> Optional[Tuple[int, ...]]:
    parts = _env_list(name)
    if parts is None:
        return None
    codes = tuple(int(part) for part in parts if part.isdigit())
    return codes or None


def _apply_env(config: Config) -> None:
    """Overlay INFRALOG_* environment variables onto the configuration."""
    overrides: List[Tuple[Any, str, Any]] = [
        (config.tfstate.s3, "bucket", _env_str("INFRALOG_TFSTATE_S3_BUCKET")),
        (config.tfstate.s3, "key", _env_str("INFRALOG_TFSTATE_S3_KEY")),
        (config.tfstate.s3, "region", _env_str("INFRALOG_TFSTATE_S3_REGION")),
        (config.tfstate.local, "path", _env_str("INFRALOG_TFSTATE_LOCAL_PATH")),
        (config.polling, "interval", _env_int("INFRALOG_POLLING_INTERVAL")),
        (config.target.webhook, "url", _env_str("INFRALOG_TARGET_WEBHOOK_URL")),
        (config.target.webhook, "method", _env_str("INFRALOG_TARGET_WEBHOOK_METHOD")),
        (
            config.target.webhook.retry,
            "max_attempts",
            _env_int("INFRALOG_TARGET_WEBHOOK_RETRY_MAX_ATTEMPTS"),
        ),
        (
            config.target.webhook.retry,
            "initial_delay_ms",
            _env_int("INFRALOG_TARGET_WEBHOOK_RETRY_INITIAL_DELAY_MS"),
        ),
        (
            config.target.webhook.retry,
            "max_delay_ms",
            _env_int("INFRALOG_TARGET_WEBHOOK_RETRY_MAX_DELAY_MS"),
        ),
        (
            config.target.webhook.retry,
            "retry_status_codes",
            _env_int_list("INFRALOG_TARGET_WEBHOOK_RETRY_RETRY_ON_STATUS"),
        ),
        (config.target.slack, "webhook_url", _env_str("INFRALOG_TARGET_SLACK_WEBHOOK_URL")),
        (config.target.slack, "channel", _env_str("INFRALOG_TARGET_SLACK_CHANNEL")),
        (config.target.slack, "username", _env_str("INFRALOG_TARGET_SLACK_USERNAME")),
        (config.target.slack, "icon_emoji", _env_str("INFRALOG_TARGET_SLACK_ICON_EMOJI")),
        (config.target.stdout, "enabled", _env_bool("INFRALOG_TARGET_STDOUT_ENABLED")),
        (config.target.stdout, "format", _env_str("INFRALOG_TARGET_STDOUT_FORMAT")),
        (config.filter, "resource_types", _env_list("INFRALOG_FILTER_RESOURCE_TYPES")),
        (config.filter, "outputs", _env_list("INFRALOG_FILTER_OUTPUTS")),
        (config.persistence, "state_file", _env_str("INFRALOG_PERSISTENCE_STATE_FILE")),
        (config.metrics, "enabled", _env_bool("INFRALOG_METRICS_ENABLED")),
        (config.metrics, "address", _env_str("INFRALOG_METRICS_ADDRESS")),
        (config, "log_level", _env_str("INFRALOG_LOG_LEVEL")),
    ]
    for section, attr, value in overrides:
        if value is not None:
            setattr(section, attr, value)


def load_config(path: Optional[str] = None) -> Config:
    """
    Loads configuration from a YAML file and the environment.

    Args:
        path: Path to the YAML configuration file. Falls back to the
            INFRALOG_CONFIG_FILE environment variable, and to environment
            variables only when neither is set.

    Returns:
        Config object with environment overrides applied

    Raises:
        ConfigError: If the file cannot be read or contains invalid values
    """
    path = path or os.environ.get(CONFIG_FILE_ENV)

    data: Dict[str, Any] = {}
    if path:
        try:
            with open(path, "r") as f:
                loaded = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in config file {path}: {e}") from e
        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ConfigError("config file must contain a mapping")
            data = loaded

    config = _config_from_dict(data)
    _apply_env(config)
    return config
