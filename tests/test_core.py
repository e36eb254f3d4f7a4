"""
Unit tests for the poll cycle in DriftMonitor.
The backend and targets are in-memory fakes; no network or AWS calls are made.
"""

import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from prometheus_client import REGISTRY

from infralog.backends import Backend
from infralog.config import Filter, StdoutConfig
from infralog.core import DriftMonitor
from infralog.errors import DeliveryError, FetchError, PersistError
from infralog.persistence import FileStore
from infralog.targets import Payload, StdoutTarget, Target
from infralog.tfstate import parse_state

SAMPLE_STATE = Path(__file__).parent / "sample_state.json"


class FakeBackend(Backend):
    name = "fake"

    def __init__(self, states: List[object]) -> None:
        self.states = list(states)

    @property
    def source(self) -> str:
        return "file:///tmp/terraform.tfstate"

    @property
    def location(self) -> Dict[str, Any]:
        return {"local": {"path": "/tmp/terraform.tfstate"}}

    def get_state(self) -> bytes:
        state = self.states.pop(0)
        if isinstance(state, Exception):
            raise state
        return state  # type: ignore[return-value]


class RecordingTarget(Target):
    def __init__(self, name: str = "recording", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.received: List[Payload] = []

    def write(self, payload: Payload) -> None:
        self.received.append(payload)
        if self.fail:
            raise DeliveryError("target down")


def poll_errors(stage: str) -> float:
    return REGISTRY.get_sample_value("infralog_poll_errors_total", {"stage": stage}) or 0.0


class TestDriftMonitor(unittest.TestCase):
    def setUp(self) -> None:
        self.sample = json.loads(SAMPLE_STATE.read_text())
        self.baseline = json.dumps(self.sample).encode()

        changed = json.loads(SAMPLE_STATE.read_text())
        changed["serial"] = 13
        changed["resources"][0]["instances"][0]["attributes"]["instance_type"] = "t2.small"
        self.changed = json.dumps(changed).encode()

        self.tmp = tempfile.TemporaryDirectory()
        self.store_path = os.path.join(self.tmp.name, "last.json")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def make_monitor(
        self, states: List[object], target: Optional[RecordingTarget] = None, **kwargs: object
    ) -> DriftMonitor:
        return DriftMonitor(
            backend=FakeBackend(states),
            targets=[target or RecordingTarget()],
            state_filter=Filter(),
            **kwargs,  # type: ignore[arg-type]
        )

    def test_initialize_fetches_and_persists_baseline(self) -> None:
        store = FileStore(self.store_path)
        monitor = self.make_monitor([self.baseline], store=store)

        snapshot = monitor.initialize()

        self.assertEqual(snapshot.serial, 12)
        self.assertIs(monitor.last_snapshot, snapshot)
        self.assertEqual(store.load(), snapshot)

    def test_initialize_prefers_persisted_snapshot(self) -> None:
        store = FileStore(self.store_path)
        store.save(parse_state(self.changed))
        backend = MagicMock(spec=Backend)
        monitor = DriftMonitor(backend, [], Filter(), store=store)

        snapshot = monitor.initialize()

        self.assertEqual(snapshot.serial, 13)
        backend.get_state.assert_not_called()

    def test_initialize_fails_on_corrupt_persisted_state(self) -> None:
        with open(self.store_path, "w") as f:
            f.write("{broken")
        monitor = self.make_monitor([self.baseline], store=FileStore(self.store_path))

        with self.assertRaises(PersistError):
            monitor.initialize()

    def test_poll_without_changes(self) -> None:
        target = RecordingTarget()
        store = MagicMock()
        monitor = self.make_monitor([self.baseline], target=target, store=store)
        monitor.last_snapshot = parse_state(self.baseline)
        baseline = monitor.last_snapshot

        diff = monitor.poll()

        self.assertIsNotNone(diff)
        self.assertFalse(diff.has_changes())
        self.assertEqual(target.received, [])
        self.assertIs(monitor.last_snapshot, baseline)
        store.save.assert_not_called()

    def test_poll_with_changes_notifies_and_advances(self) -> None:
        target = RecordingTarget()
        store = FileStore(self.store_path)
        monitor = self.make_monitor([self.changed], target=target, store=store)
        monitor.last_snapshot = parse_state(self.baseline)

        diff = monitor.poll()

        self.assertEqual(len(diff.resource_diffs), 1)
        self.assertEqual(diff.resource_diffs[0].status, "changed")
        self.assertEqual(len(target.received), 1)
        self.assertEqual(target.received[0].source, "file:///tmp/terraform.tfstate")
        self.assertEqual(
            target.received[0].metadata(), {"tfstate": {"local": {"path": "/tmp/terraform.tfstate"}}}
        )
        self.assertEqual(monitor.last_snapshot.serial, 13)
        self.assertEqual(store.load().serial, 13)

    def test_failed_target_still_advances(self) -> None:
        broken, healthy = RecordingTarget("broken", fail=True), RecordingTarget("healthy")
        monitor = DriftMonitor(FakeBackend([self.changed]), [broken, healthy], Filter())
        monitor.last_snapshot = parse_state(self.baseline)

        monitor.poll()

        self.assertEqual(len(healthy.received), 1)
        self.assertEqual(monitor.last_snapshot.serial, 13)

    def test_persist_failure_still_advances(self) -> None:
        store = MagicMock()
        store.save.side_effect = PersistError("disk full")
        monitor = self.make_monitor([self.changed], store=store)
        monitor.last_snapshot = parse_state(self.baseline)

        diff = monitor.poll()

        self.assertIsNotNone(diff)
        self.assertEqual(monitor.last_snapshot.serial, 13)

    def test_removed_state_directory_still_advances(self) -> None:
        directory = os.path.join(self.tmp.name, "sub")
        store = FileStore(os.path.join(directory, "last.json"))
        os.rmdir(directory)
        monitor = self.make_monitor([self.changed], store=store)
        monitor.last_snapshot = parse_state(self.baseline)

        diff = monitor.poll()

        self.assertIsNotNone(diff)
        self.assertEqual(monitor.last_snapshot.serial, 13)

    def test_unencodable_stdout_does_not_block_other_targets(self) -> None:
        ascii_stream = io.TextIOWrapper(io.BytesIO(), encoding="ascii")
        healthy = RecordingTarget("healthy")
        monitor = DriftMonitor(
            FakeBackend([self.changed]),
            [StdoutTarget(StdoutConfig(enabled=True), stream=ascii_stream), healthy],
            Filter(),
        )
        monitor.last_snapshot = parse_state(self.baseline)

        diff = monitor.poll()

        self.assertIsNotNone(diff)
        self.assertEqual(len(healthy.received), 1)
        self.assertEqual(monitor.last_snapshot.serial, 13)

    def test_fetch_error_skips_cycle(self) -> None:
        target = RecordingTarget()
        monitor = self.make_monitor([FetchError("bucket unreachable")], target=target)
        monitor.last_snapshot = parse_state(self.baseline)
        before = poll_errors("fetch")

        self.assertIsNone(monitor.poll())

        self.assertEqual(poll_errors("fetch"), before + 1)
        self.assertEqual(monitor.last_snapshot.serial, 12)
        self.assertEqual(target.received, [])

    def test_parse_error_skips_cycle(self) -> None:
        monitor = self.make_monitor([b"{not json"])
        monitor.last_snapshot = parse_state(self.baseline)
        before = poll_errors("parse")

        self.assertIsNone(monitor.poll())

        self.assertEqual(poll_errors("parse"), before + 1)
        self.assertEqual(monitor.last_snapshot.serial, 12)

    def test_compare_error_without_baseline(self) -> None:
        monitor = self.make_monitor([self.baseline])
        before = poll_errors("compare")

        self.assertIsNone(monitor.poll())

        self.assertEqual(poll_errors("compare"), before + 1)
        self.assertIsNone(monitor.last_snapshot)

    def test_filter_suppresses_changes(self) -> None:
        target = RecordingTarget()
        monitor = DriftMonitor(
            FakeBackend([self.changed]), [target], Filter(resource_types=["aws_vpc"])
        )
        monitor.last_snapshot = parse_state(self.baseline)

        diff = monitor.poll()

        self.assertFalse(diff.has_changes())
        self.assertEqual(target.received, [])
        self.assertEqual(monitor.last_snapshot.serial, 12)


if __name__ == "__main__":
    unittest.main()
