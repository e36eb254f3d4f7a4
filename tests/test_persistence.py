"""
Tests for the file-backed state store.
"""

import json
import os
import tempfile
import unittest
from unittest.mock import patch

from infralog.errors import ConfigError, PersistError
from infralog.persistence import FileStore
from infralog.tfstate import Output, Resource, ResourceInstance, Snapshot


def sample_snapshot(serial: int = 42) -> Snapshot:
    return Snapshot(
        version=4,
        terraform_version="1.5.0",
        serial=serial,
        lineage="test-lineage",
        resources=(
            Resource(
                type="aws_instance",
                name="web",
                mode="managed",
                instances=(
                    ResourceInstance(
                        attributes={
                            "id": "i-123456",
                            "instance_type": "t2.micro",
                            "ebs_optimized": False,
                            "cpu_core_count": 2,
                            "tags": {"Name": "web"},
                        }
                    ),
                ),
            ),
        ),
        outputs={"instance_ip": Output(value="10.0.0.1")},
    )


class TestFileStore(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "state.json")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_empty_path(self) -> None:
        with self.assertRaises(ConfigError):
            FileStore("")

    def test_creates_nested_directories(self) -> None:
        path = os.path.join(self.tmp.name, "nested", "dir", "state.json")
        FileStore(path)
        self.assertTrue(os.path.isdir(os.path.dirname(path)))

    def test_load_nonexistent(self) -> None:
        self.assertIsNone(FileStore(self.path).load())

    def test_save_and_load_across_instances(self) -> None:
        """A new store on the same path sees exactly what was saved."""
        want = sample_snapshot()
        FileStore(self.path).save(want)

        got = FileStore(self.path).load()

        self.assertEqual(got, want)

    def test_saved_file_is_indented_json(self) -> None:
        FileStore(self.path).save(sample_snapshot())
        with open(self.path) as f:
            content = f.read()
        self.assertIn('\n  "serial": 42', content)
        self.assertEqual(json.loads(content)["lineage"], "test-lineage")

    def test_save_overwrites(self) -> None:
        store = FileStore(self.path)
        store.save(sample_snapshot(serial=1))
        store.save(sample_snapshot(serial=2))
        self.assertEqual(store.load().serial, 2)

    def test_load_corrupted_file(self) -> None:
        with open(self.path, "w") as f:
            f.write("not valid json")
        with self.assertRaises(PersistError):
            FileStore(self.path).load()

    def test_load_wrong_schema(self) -> None:
        with open(self.path, "w") as f:
            f.write('{"resources": "nope"}')
        with self.assertRaises(PersistError):
            FileStore(self.path).load()

    def test_no_temporary_file_left_behind(self) -> None:
        FileStore(self.path).save(sample_snapshot())
        self.assertEqual(os.listdir(self.tmp.name), ["state.json"])

    def test_rename_failure_cleans_up_and_keeps_target(self) -> None:
        store = FileStore(self.path)
        store.save(sample_snapshot(serial=1))

        with patch("infralog.persistence.file.os.replace", side_effect=OSError("boom")):
            with self.assertRaises(PersistError):
                store.save(sample_snapshot(serial=2))

        self.assertEqual(os.listdir(self.tmp.name), ["state.json"])
        self.assertEqual(store.load().serial, 1)

    def test_missing_directory_is_persist_error(self) -> None:
        directory = os.path.join(self.tmp.name, "sub")
        store = FileStore(os.path.join(directory, "state.json"))
        os.rmdir(directory)

        with self.assertRaises(PersistError):
            store.save(sample_snapshot())


if __name__ == "__main__":
    unittest.main()
