"""
Persistence of the last seen Terraform state across restarts.
"""

from .file import FileStore
from .store import Store

__all__ = ["Store", "FileStore"]
