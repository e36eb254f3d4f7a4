"""
State storage interface.

A store keeps the last snapshot Infralog has seen so that changes made while
the process was down are still reported after a restart.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..tfstate import Snapshot


class Store(ABC):
    """
    Persists the last seen snapshot. Implementations must be safe for
    concurrent use.
    """

    @abstractmethod
    def load(self) -> Optional[Snapshot]:
        """Return the persisted snapshot, or None if nothing was saved yet."""

    @abstractmethod
    def save(self, snapshot: Snapshot) -> None:
        """Persist the given snapshot."""
