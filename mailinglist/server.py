"""
Process bootstrap: open the store, create the table, then serve the JSON and
RPC front ends side by side until both have stopped.
"""

import sys
import logging
import argparse
import threading

from werkzeug.serving import make_server

from .core.config import Config, parse_bind
from .core.errors import StoreFailure
from .core.store import SubscriberStore
from .app import create_app
from .modules.rpcapi import MailServer, RpcServer

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='mailinglist-server',
        description='Serve the mailing list over JSON/HTTP and RPC.'
    )
    parser.add_argument('--db-path', default=Config.DB_PATH,
                        help='SQLite database file (env MAILINGLIST_DB)')
    parser.add_argument('--bind-json', default=Config.BIND_JSON,
                        help='JSON API host:port (env MAILINGLIST_BIND_JSON)')
    parser.add_argument('--bind-rpc', default=Config.BIND_RPC,
                        help='RPC API host:port (env MAILINGLIST_BIND_RPC, or MAILINGLIST_BIND_GRPC)')
    parser.add_argument('--log-level', default=Config.LOG_LEVEL,
                        help='logging level (env MAILINGLIST_LOG_LEVEL)')
    return parser


def configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )


def serve_json(store, bind):
    host, port = parse_bind(bind)
    server = make_server(host or '0.0.0.0', port, create_app(store), threaded=True)
    logger.info(f"JSON API server listening on {bind}")
    server.serve_forever()


def serve_rpc(store, bind):
    RpcServer(MailServer(store), bind).serve_forever()


def _run(name, target, *args):
    """Thread body: a crash is logged and leaves the sibling server running"""
    try:
        logger.info(f"starting {name} API server...")
        target(*args)
    except Exception:
        logger.exception(f"{name} API server stopped with an error")


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        parse_bind(args.bind_json)
        parse_bind(args.bind_rpc)
    except ValueError as e:
        logger.critical(str(e))
        return 2

    logger.info(f"using database '{args.db_path}'")
    store = SubscriberStore(args.db_path)
    try:
        store.initialize()
    except StoreFailure as e:
        logger.critical(f"cannot create subscriber table: {e}")
        return 1

    threads = [
        threading.Thread(target=_run, args=('JSON', serve_json, store, args.bind_json), name='jsonapi'),
        threading.Thread(target=_run, args=('RPC', serve_rpc, store, args.bind_rpc), name='rpcapi'),
    ]
    for thread in threads:
        thread.daemon = True
        thread.start()

    try:
        for thread in threads:
            thread.join()
    except KeyboardInterrupt:
        logger.info("interrupted, shutting down")
    return 0


if __name__ == '__main__':
    sys.exit(main())
