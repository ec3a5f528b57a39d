"""
Entity Translation
==================

Pure mapping between ``SubscriberEntry`` and the wire shape of each front end.

JSON over HTTP uses the field names ``Id``, ``Email``, ``ConfirmedAt`` and
``OptOut``; the RPC front end uses ``id``, ``email``, ``confirmed_at`` and
``opt_out``. Both carry the confirmation time as integer epoch seconds.
Encoding then decoding gives back an equal entry for any entry whose
confirmation time has whole-second resolution.
"""

from dataclasses import dataclass, asdict

from .errors import InvalidArgument
from .models import SubscriberEntry
from .store import to_epoch, from_epoch


def encode_timestamp(moment):
    return to_epoch(moment)


def decode_timestamp(seconds):
    if not _is_int(seconds):
        raise InvalidArgument(f"timestamp must be integer epoch seconds, got {seconds!r}")
    try:
        return from_epoch(seconds)
    except (OverflowError, OSError, ValueError) as e:
        raise InvalidArgument(f"timestamp out of range: {seconds}") from e


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _check_email(email):
    if not isinstance(email, str):
        raise InvalidArgument(f"email must be a string, got {type(email).__name__}")
    return email


def _check_flag(value, name):
    if not isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a boolean, got {value!r}")
    return value


def _check_id(value, name):
    if not _is_int(value):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    return value


# ===================
# JSON OVER HTTP
# ===================

def to_json_entry(entry):
    return {
        'Id': entry.id,
        'Email': entry.email,
        'ConfirmedAt': encode_timestamp(entry.confirmed_at),
        'OptOut': entry.opt_out,
    }


def from_json_entry(data):
    """Decode a JSON body into an entry; absent fields take creation defaults"""
    if not isinstance(data, dict):
        raise InvalidArgument("request body must be a JSON object")

    return SubscriberEntry(
        id=_check_id(data.get('Id', 0), 'Id'),
        email=_check_email(data.get('Email', '')),
        confirmed_at=decode_timestamp(data.get('ConfirmedAt', 0)),
        opt_out=_check_flag(data.get('OptOut', False), 'OptOut'),
    )


# ===================
# RPC
# ===================

@dataclass
class RpcEntry:
    """Subscriber as carried inside RPC messages"""
    id: int = 0
    email: str = ''
    confirmed_at: int = 0
    opt_out: bool = False

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise InvalidArgument("email entry must be an object")
        unknown = set(data) - {'id', 'email', 'confirmed_at', 'opt_out'}
        if unknown:
            raise InvalidArgument(f"unknown email entry fields: {sorted(unknown)}")
        return cls(**data)


def to_rpc_entry(entry):
    return RpcEntry(
        id=entry.id,
        email=entry.email,
        confirmed_at=encode_timestamp(entry.confirmed_at),
        opt_out=entry.opt_out,
    )


def from_rpc_entry(message):
    return SubscriberEntry(
        id=_check_id(message.id, 'id'),
        email=_check_email(message.email),
        confirmed_at=decode_timestamp(message.confirmed_at),
        opt_out=_check_flag(message.opt_out, 'opt_out'),
    )
