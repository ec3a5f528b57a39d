import os
import sqlite3
from contextlib import contextmanager


class Database:

    @staticmethod
    def ensure_parent_dir(path):
        """Create the directory holding a database file if it is missing"""
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    @staticmethod
    @contextmanager
    def connect(path):
        """
        Open a connection for one unit of work.
        Commits on success, rolls back on error and always closes.
        """
        conn = sqlite3.connect(path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()
