"""
State backends: where the current Terraform state is read from.
"""

from ..config import TFStateConfig
from ..errors import ConfigError
from .base import Backend
from .local import LocalBackend
from .s3 import S3Backend


def build_backend(config: TFStateConfig) -> Backend:
    """
    Creates the configured backend. A local path wins over S3.

    Raises:
        ConfigError: If no backend is configured
    """
    if config.local.path:
        return LocalBackend(config.local)
    if config.s3.bucket:
        return S3Backend(config.s3)
    raise ConfigError("no backend configured. Configure either tfstate.s3 or tfstate.local")


__all__ = ["Backend", "LocalBackend", "S3Backend", "build_backend"]
