"""
Local file backend.
"""

from typing import Any, Dict

from ..config import LocalConfig
from ..errors import FetchError
from .base import Backend


class LocalBackend(Backend):
    name = "local"

    def __init__(self, config: LocalConfig) -> None:
        self.path = config.path

    @property
    def source(self) -> str:
        return f"file://{self.path}"

    @property
    def location(self) -> Dict[str, Any]:
        return {"local": {"path": self.path}}

    def get_state(self) -> bytes:
        try:
            with open(self.path, "rb") as f:
                return f.read()
        except OSError as e:
            raise FetchError(f"failed to read state file: {e}") from e
