"""ZeroMQ transport for the RPC service.

A ROUTER socket receives request frames; decoding and the store call happen
on a worker pool, and replies are handed back to the socket thread through a
queue plus an inproc signal, since ZeroMQ sockets must stay on one thread.
"""

from __future__ import annotations

import concurrent.futures
import logging
import queue
import threading
from typing import Optional, Tuple

import zmq

from mailinglist.core.config import Config, parse_bind
from .messages import RpcError, INTERNAL, decode_request, encode_reply, encode_error

logger = logging.getLogger(__name__)


class RpcServer:
    """Serve a MailServer on ``bind`` (``host:port``, empty host for all interfaces)."""

    poll_interval = 250  # milliseconds

    def __init__(self, service, bind: str, workers: Optional[int] = None,
                 context: Optional[zmq.Context] = None):
        self.service = service
        self.context = context or zmq.Context.instance()

        host, port = parse_bind(bind)
        self.host = host or '*'

        self.socket = self.context.socket(zmq.ROUTER)
        self.socket.setsockopt(zmq.LINGER, 0)
        try:
            if port == 0:
                self.port = self.socket.bind_to_random_port(f"tcp://{self.host}")
            else:
                self.socket.bind(f"tcp://{self.host}:{port}")
                self.port = port
        except zmq.ZMQError as e:
            self.socket.close()
            raise OSError(f"RPC server cannot bind {bind}: {e}") from e

        self._responses: queue.SimpleQueue = queue.SimpleQueue()

        internal = f"inproc://rpcapi.signal.{id(self)}"
        self._signal_rx = self.context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = self.context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        self.shutdown = False
        self.workers = concurrent.futures.ThreadPoolExecutor(
            max_workers=workers or Config.RPC_WORKERS,
            thread_name_prefix='rpcapi'
        )
        self.thread: Optional[threading.Thread] = None

    @property
    def address(self) -> str:
        host = '127.0.0.1' if self.host in ('*', '0.0.0.0') else self.host
        return f"{host}:{self.port}"

    # --- request handling ---

    def handle(self, frame: bytes) -> bytes:
        """Decode one request frame, run it, and return the reply frame."""
        try:
            method, request = decode_request(frame)
            response = self.service.dispatch(method, request)
        except RpcError as e:
            return encode_error(e.status, e.message)
        except Exception:
            logger.exception("Unhandled error while serving RPC request")
            return encode_error(INTERNAL, 'An unexpected error occurred')
        return encode_reply(response)

    def _req_incoming(self, parts: Tuple[bytes, ...]) -> None:
        envelope, frame = parts[:-1], parts[-1]
        reply = self.handle(frame)
        self._responses.put(envelope + (reply,))
        with self._signal_lock:
            self._signal_tx.send(b'')

    def _rep_outgoing(self) -> None:
        self._signal_rx.recv(flags=zmq.NOBLOCK)
        parts = self._responses.get(block=False)
        self.socket.send_multipart(parts)

    # --- lifecycle ---

    def serve_forever(self) -> None:
        logger.info(f"RPC API server listening on {self.host}:{self.port}")
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        try:
            while not self.shutdown:
                for active, _flag in poller.poll(self.poll_interval):
                    if active == self._signal_rx:
                        self._rep_outgoing()
                    elif active == self.socket:
                        parts = tuple(self.socket.recv_multipart())
                        if len(parts) < 2:
                            continue
                        self.workers.submit(self._req_incoming, parts)
        finally:
            self.workers.shutdown(wait=True)
            self._close()
            logger.info("RPC API server stopped")

    def start(self) -> threading.Thread:
        """Serve on a daemon thread and return it."""
        self.thread = threading.Thread(target=self.serve_forever, name='rpcapi', daemon=True)
        self.thread.start()
        return self.thread

    def stop(self, timeout: Optional[float] = 5) -> None:
        self.shutdown = True
        if self.thread is not None:
            self.thread.join(timeout)

    def _close(self) -> None:
        for sock in (self.socket, self._signal_rx, self._signal_tx):
            sock.close(linger=0)
