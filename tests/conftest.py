import os
import sys
import tempfile

import pytest

# Keep any settings-driven storage away from the real data directory
if "ECHO_STORAGE_DATA_DIR" not in os.environ:
    os.environ["ECHO_STORAGE_DATA_DIR"] = tempfile.mkdtemp(prefix="echo-log-tests-")

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

from echo_log_service.services.log_service import LogService  # noqa: E402
from echo_log_service.storage.jsonl_storage import JsonlLogStorage  # noqa: E402
from echo_log_service.storage.sqlite_storage import SqliteLogStorage  # noqa: E402


@pytest.fixture
async def jsonl_storage(tmp_path):
    """Flat-file storage in a temporary directory."""
    storage = JsonlLogStorage(tmp_path / "logs.jsonl", tmp_path / "tags.json")
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture
async def sqlite_storage(tmp_path):
    """SQLite storage in a temporary directory."""
    storage = SqliteLogStorage(str(tmp_path / "logs.db"))
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture(params=["jsonl", "sqlite"])
async def storage(request, tmp_path):
    """Each storage backend in turn."""
    if request.param == "jsonl":
        backend = JsonlLogStorage(tmp_path / "logs.jsonl", tmp_path / "tags.json")
    else:
        backend = SqliteLogStorage(str(tmp_path / "logs.db"))
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture
def log_service(storage):
    """LogService over each storage backend."""
    return LogService(storage)
