"""
S3 backend.

Reads the state object with boto3 using the default AWS credential chain.
"""

from typing import Any, Dict

from ..config import S3Config
from ..utils import DEFAULT_TIMEOUT_SECONDS, download_s3_file
from .base import Backend


class S3Backend(Backend):
    name = "s3"

    def __init__(self, config: S3Config, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.bucket = config.bucket
        self.key = config.key
        self.region = config.region or None
        self.timeout_seconds = timeout_seconds

    @property
    def source(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    @property
    def location(self) -> Dict[str, Any]:
        return {"s3": {"bucket": self.bucket, "key": self.key, "region": self.region or ""}}

    def get_state(self) -> bytes:
        return download_s3_file(
            self.bucket, self.key, region=self.region, timeout_seconds=self.timeout_seconds
        )
