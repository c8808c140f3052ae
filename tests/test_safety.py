"""Safety tests to ensure the test suite doesn't touch local app data.

The default backends write to:
- ./data/storage (uploaded materials)
- ./db (SQLite document store)

All tests MUST use temporary directories via pytest fixtures.
"""

import hashlib
import os
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).parent


def _hash_directory(path: Path) -> str | None:
    """Hash directory structure, file sizes and mtimes.

    Returns None if directory doesn't exist.
    """
    if not path.exists():
        return None

    hasher = hashlib.sha256()

    for root, dirs, files in os.walk(path):
        dirs.sort()
        files.sort()

        for filename in files:
            filepath = Path(root) / filename
            hasher.update(str(filepath.relative_to(path)).encode())
            stat = filepath.stat()
            hasher.update(str(stat.st_size).encode())
            hasher.update(str(int(stat.st_mtime)).encode())

    return hasher.hexdigest()


@pytest.mark.parametrize("directory", ["data/storage", "db"])
class TestLocalDataSafety:
    """Default storage and database directories are left alone."""

    @pytest.fixture(scope="class")
    def state_before(self):
        return {d: _hash_directory(Path(d)) for d in ("data/storage", "db")}

    def test_directory_unchanged(self, directory, state_before):
        if _hash_directory(Path(directory)) != state_before[directory]:
            pytest.fail(
                f"./{directory} was created or modified during the test run. "
                "All tests MUST use temporary directories."
            )


class TestTestIsolation:
    """Meta-tests ensuring test files wire fakes instead of default backends."""

    def _test_files(self) -> list[Path]:
        return [p for p in TESTS_DIR.rglob("test_*.py") if p.name != "test_safety.py"]

    def test_no_default_database(self):
        """init_db() with no path would open ./db/studyhub.db."""
        violations = [
            str(p.relative_to(TESTS_DIR))
            for p in self._test_files()
            if "init_db()" in p.read_text(encoding="utf-8")
        ]

        if violations:
            pytest.fail("Calls init_db() without a temp path:\n  " + "\n  ".join(violations))

    def test_no_app_without_services(self):
        """create_app() with no services builds the configured backends."""
        violations = [
            str(p.relative_to(TESTS_DIR))
            for p in self._test_files()
            if "create_app()" in p.read_text(encoding="utf-8")
        ]

        if violations:
            pytest.fail("Calls create_app() without injected services:\n  " + "\n  ".join(violations))
