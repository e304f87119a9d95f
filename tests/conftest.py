import os
import time

import pytest

# Keep test runs from writing a log file into the working tree.
os.environ.setdefault("LOCALDB_LOG_FILE", "")

from localdb import Database, TableStore  # noqa: E402


@pytest.fixture
def store(tmp_path):
    s = TableStore(tmp_path / "data", write_delay=0.05)
    yield s
    s.close()


@pytest.fixture
def db(store):
    return Database(store)


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def slow_store(tmp_path):
    """A store whose timers never fire during a test."""
    s = TableStore(tmp_path / "slow", write_delay=60)
    yield s
    for name in s.scheduler.pending():
        s.scheduler.cancel(name)
    s.scheduler.stop()


@pytest.fixture
def wait_until():
    return _wait_until
