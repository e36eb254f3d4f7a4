"""
Core drift detection orchestration logic.

This module contains the poll cycle: fetch the current state from the
backend, compare it with the last confirmed snapshot, notify every target
about the differences, then advance and persist the last snapshot.
"""

from typing import Optional, Sequence

from .backends import Backend
from .config import Filter
from .errors import PersistError
from .gitmeta import GitMetadata
from .metrics import record_change, record_poll_success
from .persistence import Store
from .targets import Payload, Target, notify_targets
from .tfstate import Snapshot, StateDiff, compare, parse_state
from .utils import cycle_error_handler, setup_logging

logger = setup_logging()


class DriftMonitor:
    """
    Owns the last confirmed snapshot and runs one poll cycle at a time.

    ``last_snapshot`` is read at the start of every cycle and replaced only
    by that cycle, after its notifications have been sent. The monitor is
    driven from a single thread and does no locking of its own.
    """

    def __init__(
        self,
        backend: Backend,
        targets: Sequence[Target],
        state_filter: Filter,
        store: Optional[Store] = None,
        git: Optional[GitMetadata] = None,
        last_snapshot: Optional[Snapshot] = None,
    ) -> None:
        self.backend = backend
        self.targets = list(targets)
        self.filter = state_filter
        self.store = store
        self.git = git
        self.last_snapshot = last_snapshot

    def fetch_snapshot(self) -> Snapshot:
        """
        Fetches and parses the current state.

        Raises:
            FetchError: If the backend cannot supply the state
            ParseError: If the state is malformed
        """
        data = self.backend.get_state()
        return parse_state(data, source=self.backend.source)

    def initialize(self) -> Snapshot:
        """
        Establishes the baseline snapshot.

        Uses the persisted snapshot when there is one, otherwise fetches the
        live state and persists it as the baseline.

        Raises:
            PersistError: If a persisted snapshot exists but cannot be read
            FetchError: If there is no persisted snapshot and fetching fails
            ParseError: If the fetched state is malformed
        """
        if self.last_snapshot is not None:
            return self.last_snapshot

        if self.store is not None:
            self.last_snapshot = self.store.load()
            if self.last_snapshot is not None:
                logger.info(f"Loaded persisted state (serial {self.last_snapshot.serial})")
                return self.last_snapshot

        snapshot = self.fetch_snapshot()
        self.last_snapshot = snapshot
        logger.info(
            f"Initial state loaded from {self.backend.source} "
            f"with {len(snapshot.resources)} resources"
        )
        self._persist(snapshot)
        return snapshot

    @cycle_error_handler
    def poll(self) -> Optional[StateDiff]:
        """
        Runs one poll cycle.

        Returns:
            The computed StateDiff, or None if a stage failed (the error is
            logged and counted, and the last snapshot is left untouched)
        """
        logger.debug(f"Polling {self.backend.source}")

        current = self.fetch_snapshot()
        diff = compare(self.last_snapshot, current, self.filter)
        record_poll_success()

        if not diff.has_changes():
            logger.debug("No changes detected")
            return diff

        logger.info(
            f"Detected {len(diff.resource_diffs)} resource change(s) and "
            f"{len(diff.output_diffs)} output change(s)"
        )
        for resource_diff in diff.resource_diffs:
            record_change(resource_diff.status, resource_diff.resource_type)

        payload = Payload.create(
            diff, self.backend.source, self.git, location=self.backend.location
        )
        failed = notify_targets(self.targets, payload)
        if failed:
            logger.warning(f"Delivery failed for target(s): {', '.join(failed)}")

        self.last_snapshot = current
        self._persist(current)
        return diff

    def _persist(self, snapshot: Snapshot) -> None:
        if self.store is None:
            return
        try:
            self.store.save(snapshot)
        except PersistError as e:
            logger.warning(f"Failed to persist state: {e}")
