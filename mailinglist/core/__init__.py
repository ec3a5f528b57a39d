"""
Mailinglist Core
================

Store, entity and shared plumbing used by both front ends.
"""

from .config import Config, parse_bind
from .database import Database
from .errors import MailingListError, DuplicateKey, InvalidArgument, NotFound, StoreFailure
from .models import SubscriberEntry
from .store import SubscriberStore
from .logging_service import LoggingService, db_log

__all__ = [
    'Config', 'parse_bind', 'Database',
    'MailingListError', 'DuplicateKey', 'InvalidArgument', 'NotFound', 'StoreFailure',
    'SubscriberEntry', 'SubscriberStore',
    'LoggingService', 'db_log',
]
