"""
Mailinglist Modules
===================

Front ends exposing the subscriber store:
- jsonapi: JSON over HTTP (Flask blueprint)
- rpcapi: structured RPC over ZeroMQ
"""

__all__ = ['jsonapi', 'rpcapi']
