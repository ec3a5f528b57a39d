"""Typed RPC contract and its JSON framing.

Request frame::

    {"method": "GetEmail", "params": {"email_addr": "a@x.com"}}

Reply frame::

    {"status": "OK", "result": {"email_entry": {...}}}
    {"status": "ALREADY_EXISTS", "error": "email already exists: a@x.com"}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Type

from mailinglist.core.errors import InvalidArgument
from mailinglist.core.translation import RpcEntry as EmailEntry


OK = 'OK'
INVALID_ARGUMENT = 'INVALID_ARGUMENT'
ALREADY_EXISTS = 'ALREADY_EXISTS'
NOT_FOUND = 'NOT_FOUND'
INTERNAL = 'INTERNAL'
UNIMPLEMENTED = 'UNIMPLEMENTED'


class RpcError(Exception):
    """A failed call: a status code plus a human readable message."""

    def __init__(self, status: str, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


def _fields(data, cls, names):
    if not isinstance(data, dict):
        raise InvalidArgument(f"{cls.__name__} params must be an object")
    unknown = set(data) - set(names)
    if unknown:
        raise InvalidArgument(f"unknown {cls.__name__} fields: {sorted(unknown)}")
    return data


# --- requests ---

@dataclass
class GetEmailRequest:
    email_addr: str = ''

    def to_dict(self) -> dict:
        return {'email_addr': self.email_addr}

    @classmethod
    def from_dict(cls, data: dict) -> 'GetEmailRequest':
        return cls(**_fields(data, cls, ('email_addr',)))


@dataclass
class CreateEmailRequest(GetEmailRequest):
    pass


@dataclass
class DeleteEmailRequest(GetEmailRequest):
    pass


@dataclass
class GetEmailBatchRequest:
    page: int = 0
    count: int = 0

    def to_dict(self) -> dict:
        return {'page': self.page, 'count': self.count}

    @classmethod
    def from_dict(cls, data: dict) -> 'GetEmailBatchRequest':
        return cls(**_fields(data, cls, ('page', 'count')))


@dataclass
class UpdateEmailRequest:
    email_entry: EmailEntry = field(default_factory=EmailEntry)

    def to_dict(self) -> dict:
        return {'email_entry': self.email_entry.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> 'UpdateEmailRequest':
        data = _fields(data, cls, ('email_entry',))
        if 'email_entry' not in data:
            raise InvalidArgument("email_entry is required")
        return cls(email_entry=EmailEntry.from_dict(data['email_entry']))


@dataclass
class GetAllRowsRequest:

    def to_dict(self) -> dict:
        return {}

    @classmethod
    def from_dict(cls, data: dict) -> 'GetAllRowsRequest':
        _fields(data, cls, ())
        return cls()


# --- responses ---

@dataclass
class EmailResponse:
    email_entry: Optional[EmailEntry] = None

    def to_dict(self) -> dict:
        entry = self.email_entry.to_dict() if self.email_entry is not None else None
        return {'email_entry': entry}

    @classmethod
    def from_dict(cls, data: dict) -> 'EmailResponse':
        entry = data.get('email_entry')
        return cls(email_entry=EmailEntry.from_dict(entry) if entry is not None else None)


@dataclass
class GetEmailBatchResponse:
    email_entries: List[EmailEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'email_entries': [entry.to_dict() for entry in self.email_entries]}

    @classmethod
    def from_dict(cls, data: dict) -> 'GetEmailBatchResponse':
        return cls(email_entries=[EmailEntry.from_dict(e) for e in data.get('email_entries', [])])


METHODS: Dict[str, Tuple[Type, Type]] = {
    'GetEmail': (GetEmailRequest, EmailResponse),
    'GetEmailBatch': (GetEmailBatchRequest, GetEmailBatchResponse),
    'CreateEmail': (CreateEmailRequest, EmailResponse),
    'UpdateEmail': (UpdateEmailRequest, EmailResponse),
    'DeleteEmail': (DeleteEmailRequest, EmailResponse),
    'GetAllRows': (GetAllRowsRequest, GetEmailBatchResponse),
}


# --- framing ---

def encode_request(method: str, request) -> bytes:
    return json.dumps({'method': method, 'params': request.to_dict()}).encode()


def decode_request(frame: bytes):
    """Return (method, typed request). Raises RpcError for bad frames."""
    try:
        message = json.loads(frame)
    except (UnicodeDecodeError, ValueError) as e:
        raise RpcError(INVALID_ARGUMENT, f"request is not valid JSON: {e}") from e

    if not isinstance(message, dict) or not isinstance(message.get('method'), str):
        raise RpcError(INVALID_ARGUMENT, "request must be an object with a method name")

    method = message['method']
    if method not in METHODS:
        raise RpcError(UNIMPLEMENTED, f"unknown method: {method}")

    request_class = METHODS[method][0]
    try:
        return method, request_class.from_dict(message.get('params') or {})
    except (InvalidArgument, TypeError) as e:
        raise RpcError(INVALID_ARGUMENT, str(e)) from e


def encode_reply(response) -> bytes:
    return json.dumps({'status': OK, 'result': response.to_dict()}).encode()


def encode_error(status: str, message: str) -> bytes:
    return json.dumps({'status': status, 'error': message}).encode()


def decode_reply(frame: bytes, response_class: Type):
    """Return the typed response, or raise RpcError for a failed call."""
    message = json.loads(frame)
    status = message.get('status')
    if status != OK:
        raise RpcError(status or INTERNAL, message.get('error', ''))
    return response_class.from_dict(message.get('result') or {})
