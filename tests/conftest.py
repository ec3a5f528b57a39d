import os
import shutil
import sqlite3
import tempfile
from contextlib import closing

import pytest

from mailinglist.app import create_app
from mailinglist.core.logging_service import LoggingService
from mailinglist.core.store import SubscriberStore


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="mailinglist-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_logging_service():
    """Keep the persistent request log off unless a test turns it on."""
    LoggingService.configure(None)
    yield
    LoggingService.configure(None)


@pytest.fixture
def store(tmp_db_dir):
    """Initialised store backed by a fresh database file."""
    s = SubscriberStore(os.path.join(tmp_db_dir, "list.db"))
    s.initialize()
    return s


@pytest.fixture
def app(store):
    app = create_app(store, {"TESTING": True})
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def read_logs():
    """Persisted log rows of a log database, newest first."""
    def read(log_db):
        if not os.path.exists(log_db):
            return []
        with closing(sqlite3.connect(log_db)) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT level, source, message, details, request_path FROM app_logs ORDER BY id DESC"
            ).fetchall()
        return [dict(row) for row in rows]
    return read
