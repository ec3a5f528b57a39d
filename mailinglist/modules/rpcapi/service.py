"""
RPC Service
===========

One method per store operation, typed request in, typed response out.
Writes are followed by a fresh lookup; the reply carries the stored row.
"""

import logging

from mailinglist.core.errors import (
    MailingListError, DuplicateKey, InvalidArgument, NotFound, StoreFailure
)
from mailinglist.core.logging_service import LoggingService
from mailinglist.core.translation import to_rpc_entry, from_rpc_entry
from .messages import (
    METHODS, RpcError, EmailResponse, GetEmailBatchResponse,
    INVALID_ARGUMENT, ALREADY_EXISTS, NOT_FOUND, INTERNAL, UNIMPLEMENTED,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (InvalidArgument, INVALID_ARGUMENT),
    (DuplicateKey, ALREADY_EXISTS),
    (NotFound, NOT_FOUND),
    (StoreFailure, INTERNAL),
)


class MailServer:
    """Mailing list RPC service bound to one SubscriberStore"""

    def __init__(self, store):
        self.store = store

    def dispatch(self, method, request):
        """Invoke ``method`` with a decoded request, mapping store errors to RpcError"""
        if method not in METHODS:
            raise RpcError(UNIMPLEMENTED, f"unknown method: {method}")
        handler = getattr(self, method)
        try:
            response = handler(request)
        except RpcError:
            raise
        except MailingListError as e:
            status = _status_for(e)
            if status == INTERNAL:
                logger.error(f"RPC {method} failed: {e}")
            LoggingService.warning('rpcapi', f"RPC {method} - Status: {status}", {'error': str(e)})
            raise RpcError(status, str(e)) from e
        except Exception as e:
            logger.exception(f"Unexpected error in RPC {method}")
            LoggingService.log_error_with_traceback('rpcapi', e, {'method': method})
            raise RpcError(INTERNAL, 'An unexpected error occurred') from e

        LoggingService.info('rpcapi', f"RPC {method} - Status: OK")
        return response

    def _email_response(self, email):
        entry = self.store.get(email)
        if entry is None:
            raise NotFound(f"email not found: {email}")
        return EmailResponse(email_entry=to_rpc_entry(entry))

    def GetEmail(self, request):
        logger.info(f"RPC GetEmail: {request}")
        _require(request.email_addr)
        return self._email_response(request.email_addr)

    def GetEmailBatch(self, request):
        logger.info(f"RPC GetEmailBatch: {request}")
        if not _positive(request.page) or not _positive(request.count):
            raise InvalidArgument("page and count fields must be > 0")

        entries = self.store.list_page(request.page, request.count)
        return GetEmailBatchResponse(email_entries=[to_rpc_entry(e) for e in entries])

    def CreateEmail(self, request):
        logger.info(f"RPC CreateEmail: {request}")
        _require(request.email_addr)
        self.store.create(request.email_addr)
        return self._email_response(request.email_addr)

    def UpdateEmail(self, request):
        logger.info(f"RPC UpdateEmail: {request}")
        entry = from_rpc_entry(request.email_entry)
        _require(entry.email)
        self.store.update(entry)
        return self._email_response(entry.email)

    def DeleteEmail(self, request):
        logger.info(f"RPC DeleteEmail: {request}")
        _require(request.email_addr)
        self.store.opt_out(request.email_addr)
        return self._email_response(request.email_addr)

    def GetAllRows(self, request):
        entries = self.store.list_all()
        logger.info(f"RPC GetAllRows: {len(entries)} rows")
        return GetEmailBatchResponse(email_entries=[to_rpc_entry(e) for e in entries])


def _status_for(error):
    for error_class, status in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status
    return INTERNAL


def _require(email):
    if not isinstance(email, str) or not email.strip():
        raise InvalidArgument("email_addr is required")


def _positive(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
