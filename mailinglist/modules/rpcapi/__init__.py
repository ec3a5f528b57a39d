"""
RPC API Module
==============

Structured request/response front end over a ZeroMQ ROUTER socket.
One JSON frame per message; see ``messages`` for the contract.

Usage:
    from mailinglist.modules.rpcapi import MailServer, RpcServer

    server = RpcServer(MailServer(store), ':8081')
    server.serve_forever()
"""

from .messages import RpcError, EmailEntry, EmailResponse, GetEmailBatchResponse
from .service import MailServer
from .server import RpcServer

__all__ = ['RpcError', 'EmailEntry', 'EmailResponse', 'GetEmailBatchResponse', 'MailServer', 'RpcServer']
