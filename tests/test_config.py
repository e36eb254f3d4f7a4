"""
Tests for configuration module.
"""

import os
import tempfile
import unittest
from unittest.mock import patch

from infralog.config import Config, Filter, RetryConfig, load_config
from infralog.errors import ConfigError

SAMPLE_CONFIG = """
tfstate:
  s3:
    bucket: my-terraform-bucket
    key: prod/terraform.tfstate
    region: eu-west-2
polling:
  interval: 60
target:
  webhook:
    url: https://hooks.example.com/drift
    method: put
    retry:
      max_attempts: 5
      retry_on_status: [503]
  slack:
    webhook_url: https://hooks.slack.com/services/T000/B000/XXX
    channel: "#infra"
  stdout:
    enabled: true
    format: json
filter:
  resource_types: [aws_instance, aws_s3_bucket]
persistence:
  state_file: /var/lib/infralog/state.json
metrics:
  enabled: true
  address: "127.0.0.1:9100"
"""


class TestLoadConfig(unittest.TestCase):
    """Test configuration loading and validation."""

    def setUp(self) -> None:
        handle, self.config_path = tempfile.mkstemp(suffix=".yaml")
        with os.fdopen(handle, "w") as f:
            f.write(SAMPLE_CONFIG)

    def tearDown(self) -> None:
        os.remove(self.config_path)

    @patch.dict("os.environ", {}, clear=True)
    def test_load_config_from_file(self) -> None:
        """Test successful configuration loading."""
        config = load_config(self.config_path)
        self.assertIsInstance(config, Config)
        self.assertEqual(config.tfstate.s3.bucket, "my-terraform-bucket")
        self.assertEqual(config.tfstate.s3.key, "prod/terraform.tfstate")
        self.assertEqual(config.polling.interval, 60)
        self.assertEqual(config.target.webhook.method, "put")
        self.assertEqual(config.target.webhook.retry.max_attempts, 5)
        self.assertEqual(config.target.webhook.retry.retry_status_codes, (503,))
        self.assertEqual(config.target.slack.channel, "#infra")
        self.assertTrue(config.target.stdout.enabled)
        self.assertEqual(config.target.stdout.format, "json")
        self.assertEqual(config.filter.resource_types, ["aws_instance", "aws_s3_bucket"])
        self.assertIsNone(config.filter.outputs)
        self.assertEqual(config.persistence.state_file, "/var/lib/infralog/state.json")
        self.assertTrue(config.metrics.enabled)
        self.assertEqual(config.metrics.address, "127.0.0.1:9100")
        self.assertEqual(config.log_level, "INFO")

    @patch.dict(
        "os.environ",
        {
            "INFRALOG_POLLING_INTERVAL": "30",
            "INFRALOG_TARGET_WEBHOOK_URL": "https://override.example.com",
            "INFRALOG_TARGET_WEBHOOK_RETRY_RETRY_ON_STATUS": "500, 429",
            "INFRALOG_FILTER_OUTPUTS": "vpc_id, subnet_id",
            "INFRALOG_TARGET_STDOUT_ENABLED": "false",
            "INFRALOG_LOG_LEVEL": "DEBUG",
        },
        clear=True,
    )
    def test_environment_overrides_file(self) -> None:
        config = load_config(self.config_path)
        self.assertEqual(config.polling.interval, 30)
        self.assertEqual(config.target.webhook.url, "https://override.example.com")
        self.assertEqual(config.target.webhook.retry.retry_status_codes, (500, 429))
        self.assertEqual(config.filter.outputs, ["vpc_id", "subnet_id"])
        self.assertFalse(config.target.stdout.enabled)
        self.assertEqual(config.log_level, "DEBUG")
        # untouched values come from the file
        self.assertEqual(config.tfstate.s3.bucket, "my-terraform-bucket")

    @patch.dict(
        "os.environ",
        {"INFRALOG_CONFIG_FILE": "", "INFRALOG_POLLING_INTERVAL": "not-a-number"},
        clear=True,
    )
    def test_malformed_environment_integer_is_ignored(self) -> None:
        config = load_config(self.config_path)
        self.assertEqual(config.polling.interval, 60)

    @patch.dict(
        "os.environ", {"INFRALOG_TFSTATE_LOCAL_PATH": "/tmp/terraform.tfstate"}, clear=True
    )
    def test_environment_only(self) -> None:
        config = load_config()
        self.assertEqual(config.tfstate.local.path, "/tmp/terraform.tfstate")
        self.assertEqual(config.polling.interval, 300)
        self.assertIsNone(config.filter.resource_types)
        config.validate()

    @patch.dict("os.environ", {}, clear=True)
    def test_config_file_from_environment(self) -> None:
        with patch.dict("os.environ", {"INFRALOG_CONFIG_FILE": self.config_path}):
            config = load_config()
        self.assertEqual(config.tfstate.s3.bucket, "my-terraform-bucket")

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/infralog.yaml")

    @patch.dict("os.environ", {}, clear=True)
    def test_invalid_yaml(self) -> None:
        with open(self.config_path, "w") as f:
            f.write("tfstate: [unclosed")
        with self.assertRaises(ConfigError):
            load_config(self.config_path)

    @patch.dict("os.environ", {}, clear=True)
    def test_empty_filter_list_is_kept(self) -> None:
        with open(self.config_path, "w") as f:
            f.write("filter:\n  resource_types: []\n")
        config = load_config(self.config_path)
        self.assertEqual(config.filter.resource_types, [])
        self.assertIsNone(config.filter.outputs)


class TestValidate(unittest.TestCase):
    def test_missing_backend(self) -> None:
        """Test that missing backend raises ConfigError."""
        with self.assertRaises(ConfigError) as context:
            Config().validate()
        self.assertIn("no backend configured", str(context.exception))

    def test_config_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            Config().validate()

    def test_non_positive_interval(self) -> None:
        config = Config()
        config.tfstate.local.path = "terraform.tfstate"
        config.polling.interval = 0
        with self.assertRaises(ConfigError):
            config.validate()

    def test_s3_requires_key(self) -> None:
        config = Config()
        config.tfstate.s3.bucket = "bucket"
        with self.assertRaises(ConfigError):
            config.validate()


class TestFilter(unittest.TestCase):
    def test_unset_matches_everything(self) -> None:
        state_filter = Filter()
        self.assertTrue(state_filter.matches_resource_type("aws_instance"))
        self.assertTrue(state_filter.matches_output("anything"))

    def test_empty_matches_nothing(self) -> None:
        state_filter = Filter(resource_types=[], outputs=[])
        self.assertFalse(state_filter.matches_resource_type("aws_instance"))
        self.assertFalse(state_filter.matches_output("vpc_id"))

    def test_membership(self) -> None:
        state_filter = Filter(resource_types=["aws_instance"], outputs=["vpc_id"])
        self.assertTrue(state_filter.matches_resource_type("aws_instance"))
        self.assertFalse(state_filter.matches_resource_type("aws_s3_bucket"))
        self.assertTrue(state_filter.matches_output("vpc_id"))
        self.assertFalse(state_filter.matches_output("subnet_id"))


class TestRetryConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        retry = RetryConfig().with_defaults()
        self.assertEqual(retry.max_attempts, 3)
        self.assertEqual(retry.initial_delay_ms, 1000)
        self.assertEqual(retry.max_delay_ms, 30000)
        self.assertEqual(retry.retry_status_codes, (500, 502, 503, 504))

    def test_explicit_values_are_kept(self) -> None:
        retry = RetryConfig(
            max_attempts=5, initial_delay_ms=10, max_delay_ms=100, retry_status_codes=(429,)
        ).with_defaults()
        self.assertEqual(retry.max_attempts, 5)
        self.assertEqual(retry.initial_delay_ms, 10)
        self.assertEqual(retry.max_delay_ms, 100)
        self.assertEqual(retry.retry_status_codes, (429,))


if __name__ == "__main__":
    unittest.main()
