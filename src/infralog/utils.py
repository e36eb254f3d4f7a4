"""
Utility functions for Infralog.
"""

import functools
import logging
from typing import Callable, Optional, TypeVar, cast

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .errors import FetchError, InfralogError
from .metrics import record_poll_error

LOGGER_NAME = "infralog"
DEFAULT_TIMEOUT_SECONDS = 30


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up logging configuration for Infralog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR). When omitted
            an already configured level is left untouched.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    if log_level is not None:
        logger.setLevel(getattr(logging, log_level.upper()))
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


F = TypeVar("F", bound=Callable[..., object])


def cycle_error_handler(func: F) -> F:
    """
    Decorator for consistent error handling and logging around a poll cycle.
    Catches Infralog errors raised by any stage of the cycle, logs them with
    their stage, records a poll error metric and returns None so the
    scheduler carries on with the next tick.
    """

    @functools.wraps(func)
    def wrapper(*args: object, **kwargs: object) -> object:
        logger = setup_logging()
        try:
            return func(*args, **kwargs)
        except InfralogError as e:
            stage = e.stage or "unknown"
            logger.error(f"Poll cycle failed at {stage} stage: {e}")
            record_poll_error(stage)
            return None

    return cast(F, wrapper)


def download_s3_file(
    bucket: str,
    key: str,
    region: Optional[str] = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    """
    Downloads an object from S3 and returns its raw content.

    Args:
        bucket: S3 bucket name
        key: Object key within the bucket
        region: AWS region of the bucket (default chain when omitted)
        timeout_seconds: Connect and read timeout for the request
        logger: Logger instance for error logging

    Returns:
        Object content as bytes

    Raises:
        FetchError: If the bucket or key is missing or the download fails
    """
    if logger is None:
        logger = setup_logging()

    if not bucket or not key:
        raise FetchError(f"Invalid S3 location: s3://{bucket}/{key}")

    s3_path = f"s3://{bucket}/{key}"
    try:
        logger.debug(f"Downloading S3 file: {s3_path}")
        s3_client = boto3.client(
            "s3",
            region_name=region,
            config=BotoConfig(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"max_attempts": 3},
            ),
        )
        response = s3_client.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read()
        if isinstance(content, str):
            content = content.encode("utf-8")
        logger.debug(f"Successfully downloaded {len(content)} bytes from S3")
        return content

    except (ClientError, BotoCoreError) as e:
        logger.error(f"Failed to download S3 file {s3_path}: {str(e)}")
        raise FetchError(f"failed to download file from S3: {e}") from e
