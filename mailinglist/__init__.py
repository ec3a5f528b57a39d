"""
Mailinglist - A Subscriber Roster Service
=========================================

A small service that keeps a mailing-list roster in SQLite and exposes it
through two front ends sharing one store:
- JSON over HTTP (Flask blueprint)
- Structured RPC over ZeroMQ

Usage:
    from mailinglist.core import SubscriberStore
    from mailinglist.app import create_app

    store = SubscriberStore('list.db')
    store.initialize()
    app = create_app(store)
"""

__version__ = '0.1.0'

from .core import SubscriberStore, SubscriberEntry

__all__ = ['SubscriberStore', 'SubscriberEntry']
