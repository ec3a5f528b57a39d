"""
Persistent request logging for the mailing list service.
Stores structured entries in an app_logs table when a log database is
configured and falls back to the standard logger otherwise.
"""

import json
import sqlite3
import logging
import traceback
from datetime import datetime, timedelta
from flask import request, has_request_context
from .database import Database
from .config import Config

logger = logging.getLogger(__name__)

_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class LoggingService:
    """Centralized logging service for both front ends"""

    log_db = Config.LOG_DB
    _table_ready = set()

    @classmethod
    def configure(cls, log_db):
        """Point the service at a log database (None disables persistence)"""
        cls.log_db = log_db

    @classmethod
    def _ensure_logs_table(cls):
        """Ensure the app_logs table exists"""
        if cls.log_db in cls._table_ready:
            return
        Database.ensure_parent_dir(cls.log_db)
        with Database.connect(cls.log_db) as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {Config.LOG_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    source TEXT NOT NULL,
                    message TEXT NOT NULL,
                    details TEXT,
                    ip_address TEXT,
                    user_agent TEXT,
                    request_path TEXT
                )
            """)
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                ON {Config.LOG_TABLE}(timestamp DESC)
            """)
        cls._table_ready.add(cls.log_db)

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        return ip_address, request.headers.get('User-Agent', ''), request.path

    @classmethod
    def log(cls, level, source, message, details=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (jsonapi, rpcapi, store, ...)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
        """
        level = level.upper()
        if level not in _LEVELS:
            level = 'INFO'

        if isinstance(details, dict):
            details = json.dumps(details, indent=2, default=str)

        if not cls.log_db:
            logger.log(getattr(logging, level), f"[{source}] {message}")
            return

        try:
            cls._ensure_logs_table()
            ip_address, user_agent, request_path = cls._get_request_context()

            with Database.connect(cls.log_db) as conn:
                conn.execute(f"""
                    INSERT INTO {Config.LOG_TABLE}
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    datetime.now().isoformat(), level, source, message, details,
                    ip_address, user_agent, request_path
                ))
        except (sqlite3.Error, OSError) as e:
            logger.log(getattr(logging, level), f"[{source}] {message}")
            if details:
                logger.log(getattr(logging, level), f"Details: {details}")
            logger.warning(f"Logging service error: {e}")

    @classmethod
    def debug(cls, source, message, details=None):
        cls.log('DEBUG', source, message, details)

    @classmethod
    def info(cls, source, message, details=None):
        cls.log('INFO', source, message, details)

    @classmethod
    def warning(cls, source, message, details=None):
        cls.log('WARNING', source, message, details)

    @classmethod
    def error(cls, source, message, details=None):
        cls.log('ERROR', source, message, details)

    @classmethod
    def log_api_call(cls, source, endpoint, method='GET', status_code=200, details=None):
        """Log API calls"""
        message = f"API {method} {endpoint} - Status: {status_code}"
        level = 'INFO' if 200 <= status_code < 400 else 'WARNING' if status_code < 500 else 'ERROR'
        cls.log(level, source, message, details)

    @classmethod
    def log_error_with_traceback(cls, source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        cls.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @classmethod
    def cleanup_old_logs(cls, days_to_keep=30):
        """Clean up old log entries"""
        if not cls.log_db:
            return 0
        try:
            cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
            cls._ensure_logs_table()

            with Database.connect(cls.log_db) as conn:
                cursor = conn.execute(f"""
                    DELETE FROM {Config.LOG_TABLE}
                    WHERE timestamp < ?
                """, (cutoff_iso,))
                deleted_count = cursor.rowcount

            cls.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count

        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Convenience wrapper around LoggingService.log"""
    LoggingService.log(level, source, message, details)
