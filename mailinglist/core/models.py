"""
Subscriber Models
=================

The store's native entity. Confirmation time is kept as an aware UTC datetime;
the epoch (``CONFIRMED_NEVER``) means the address has not been confirmed yet.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

CONFIRMED_NEVER = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(frozen=True)
class SubscriberEntry:
    id: int
    email: str
    confirmed_at: datetime = CONFIRMED_NEVER
    opt_out: bool = False
