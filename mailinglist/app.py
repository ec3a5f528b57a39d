"""
Flask application for the JSON front end.
"""

import logging
from flask import Flask
from flask_cors import CORS

from .core.config import Config
from .core.logging_service import LoggingService
from .core.store import SubscriberStore
from .modules.jsonapi import jsonapi_bp

logger = logging.getLogger(__name__)


def create_app(store=None, config=None):
    """
    Build the JSON API app around a SubscriberStore.

    Args:
        store: shared SubscriberStore; one is opened from MAILINGLIST_DB when omitted
        config (dict): overrides copied into app.config
    """
    app = Flask(__name__)
    app.config['MAILINGLIST_DB'] = Config.DB_PATH
    app.config['MAILINGLIST_LOG_DB'] = Config.LOG_DB
    app.config['LOG_RETENTION_DAYS'] = Config.LOG_RETENTION_DAYS
    app.config['CORS_ORIGINS'] = Config.CORS_ORIGINS
    if config:
        app.config.update(config)

    if store is None:
        store = SubscriberStore(app.config['MAILINGLIST_DB'])
        store.initialize()
    app.extensions['mailinglist_store'] = store

    if app.config.get('MAILINGLIST_LOG_DB'):
        LoggingService.configure(app.config['MAILINGLIST_LOG_DB'])
        LoggingService.cleanup_old_logs(app.config['LOG_RETENTION_DAYS'])

    origins = app.config.get('CORS_ORIGINS')
    if origins:
        CORS(app, resources={r"/email/*": {"origins": origins}})
        logger.info(f"CORS enabled for {origins}")

    app.json.sort_keys = False
    app.register_blueprint(jsonapi_bp)
    return app
