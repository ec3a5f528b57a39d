import os
from dotenv import load_dotenv

load_dotenv()


def _split_origins(value):
    return [origin.strip() for origin in (value or '').split(',') if origin.strip()]


RPC_BIND_ENV = ('MAILINGLIST_BIND_RPC', 'MAILINGLIST_BIND_GRPC')


def first_env(names, default=None):
    """Value of the first variable in ``names`` that is set"""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


def parse_bind(bind):
    """
    Split a ``host:port`` bind address.
    An empty host (``:8080``) means every interface and comes back as ''.
    """
    if not bind or ':' not in bind:
        raise ValueError(f"bind address must look like 'host:port', got {bind!r}")

    host, _, port = bind.rpartition(':')
    try:
        port = int(port)
    except ValueError:
        raise ValueError(f"bind address has a non-numeric port: {bind!r}") from None

    if not 0 <= port <= 65535:
        raise ValueError(f"bind address port out of range: {bind!r}")

    return host.strip('[]'), port


class Config:
    """
    Base configuration for the mailing list service.
    Every value can be provided through the environment (or a .env file).
    """
    # Subscriber store
    DB_PATH = os.getenv('MAILINGLIST_DB', 'list.db')
    EMAILS_TABLE = "emails"

    # Listeners
    BIND_JSON = os.getenv('MAILINGLIST_BIND_JSON', ':8080')
    # MAILINGLIST_BIND_GRPC is the older name of the RPC bind setting
    BIND_RPC = first_env(RPC_BIND_ENV, ':8081')

    # Persistent request log (disabled unless a path is given)
    LOG_DB = os.getenv('MAILINGLIST_LOG_DB')
    LOG_TABLE = "app_logs"
    LOG_LEVEL = os.getenv('MAILINGLIST_LOG_LEVEL', 'INFO')
    LOG_RETENTION_DAYS = int(os.getenv('MAILINGLIST_LOG_RETENTION_DAYS', '30'))

    # Browser clients allowed to call the JSON API
    CORS_ORIGINS = _split_origins(os.getenv('MAILINGLIST_CORS_ORIGINS'))

    # RPC worker pool
    RPC_WORKERS = int(os.getenv('MAILINGLIST_RPC_WORKERS', '8'))
