"""
JSON API Module
===================

Provides:
- POST /email/create -- create a subscriber
- GET /email/get -- look up one subscriber
- GET /email/get_batch -- one page of subscribed addresses
- GET /email/get_all -- every row (operational use)
- PUT /email/update -- upsert a subscriber
- POST /email/delete -- opt a subscriber out

Usage:
    from mailinglist.modules.jsonapi import jsonapi_bp

    app.extensions['mailinglist_store'] = store
    app.register_blueprint(jsonapi_bp)  # Registers at /email
"""

from flask import Blueprint

jsonapi_bp = Blueprint(
    'jsonapi',
    __name__,
    url_prefix='/email'
)

from . import routes
