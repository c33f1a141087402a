"""ZeroMQ PUSH transport.

Submissions are framed by :mod:`flare.transport.codec` and pushed to a
collector listening on a PULL socket. The ZeroMQ socket is only ever touched
by the background thread; callers hand work over through a queue and an
inproc signal, and get a future back immediately.
"""

from __future__ import annotations

import atexit
import concurrent.futures
import logging
import queue
import threading
import weakref
from typing import Dict, Optional, Tuple

import zmq

from ... import fields
from ...request import event_to_request, session_to_request
from ...response import Response
from ..base import (
    EnvelopeTransport,
    Transport,
    TransportConnectionError,
    TransportError,
    TransportTimeout,
    rejected,
)
from ..codec import to_envelope_frames, to_request_frames

logger = logging.getLogger(__name__)

zmq_context = zmq.Context()


class Client(Transport, EnvelopeTransport):
    """PUSH client for a single collector at *address* and *port*.

    The *api* details are needed to address legacy requests; envelopes carry
    their own addressing.
    """

    def __init__(self, address: str, port: int, api):
        self.address = address
        self.port = int(port)
        self.api = api

        server = f"tcp://{address}:{self.port}"
        self.socket = zmq_context.socket(zmq.PUSH)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.connect(server)

        self._queue = queue.SimpleQueue()

        # The lock around the signal socket is necessary in a multithreaded
        # application; ZeroMQ makes no attempt to be thread-safe.

        internal = f"inproc://flare.zmq.Client:signal:{id(self)}"
        self._sig_rx = zmq_context.socket(zmq.PAIR)
        self._sig_rx.bind(internal)
        self._sig_tx = zmq_context.socket(zmq.PAIR)
        self._sig_tx.connect(internal)
        self._sig_lock = threading.Lock()

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, name="flare-zmq", daemon=True)
        self.thread.start()

        _clients.add(self)

    def send_event(self, event) -> concurrent.futures.Future:
        try:
            frames = to_request_frames(event_to_request(event, self.api))
        except Exception as exc:
            return rejected(TransportError(f"cannot encode event: {exc}"))
        return self._submit(frames, fields.EVENT)

    def send_session(self, session) -> concurrent.futures.Future:
        try:
            frames = to_request_frames(session_to_request(session, self.api))
        except Exception as exc:
            return rejected(TransportError(f"cannot encode session: {exc}"))
        return self._submit(frames, fields.SESSION)

    def send(self, envelope) -> concurrent.futures.Future:
        try:
            frames = to_envelope_frames(envelope)
        except Exception as exc:
            return rejected(TransportError(f"cannot encode envelope: {exc}"))
        item_type = envelope.items[0].type if envelope.items else None
        return self._submit(frames, item_type)

    def close(self, timeout: Optional[float] = None) -> None:
        if self.shutdown:
            return
        self.shutdown = True
        self._wake(None)
        self.thread.join(timeout)

        if self.thread.is_alive():
            self._fail_pending(TransportTimeout(
                f"{self.address}:{self.port}: not sent within {timeout} seconds"
            ))

        with self._sig_lock:
            self._sig_tx.close()

    def _fail_pending(self, error: TransportError) -> None:
        while True:
            try:
                work = self._queue.get(block=False)
            except queue.Empty:
                break
            if work is not None:
                work[2].set_exception(error)

    def _submit(self, frames: Tuple[bytes, ...], item_type) -> concurrent.futures.Future:
        future: concurrent.futures.Future = concurrent.futures.Future()

        if self.shutdown:
            future.set_exception(TransportError("channel is closed"))
            return future

        self._wake((frames, item_type, future))
        return future

    def _wake(self, work) -> None:
        self._queue.put(work)
        with self._sig_lock:
            self._sig_tx.send(b"")

    def _send_one(self) -> None:
        self._sig_rx.recv(flags=zmq.NOBLOCK)
        try:
            work = self._queue.get(block=False)
        except queue.Empty:
            # Already failed by close().
            return

        if work is None:
            return

        frames, item_type, future = work

        try:
            self.socket.send_multipart(frames, flags=zmq.NOBLOCK)
        except zmq.Again:
            future.set_exception(TransportConnectionError(
                f"{self.address}:{self.port}: no collector available"
            ))
        except zmq.ZMQError as exc:
            future.set_exception(TransportError(str(exc)))
        else:
            future.set_result(Response(fields.SUCCESS, type=item_type))

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self._sig_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(10000):
                if active == self._sig_rx:
                    try:
                        self._send_one()
                    except Exception:
                        logger.error("[transport/zmq] send failed", exc_info=True)

        # Anything still queued will never be sent.
        self._fail_pending(TransportError("channel closed before delivery"))

        self.socket.close()
        self._sig_rx.close()


_clients: "weakref.WeakSet[Client]" = weakref.WeakSet()
_client_cache: Dict[Tuple[str, int, str, Optional[str]], Client] = {}
_client_lock = threading.Lock()


def client(address: str, port: int, api) -> Client:
    """Return the cached client for this collector and destination.

    Legacy requests are addressed with the client's own *api* details, so
    two destinations sharing one collector still get separate clients.
    """
    key = (address, int(port), api.dsn.to_string(with_password=True), api.tunnel)
    with _client_lock:
        c = _client_cache.get(key)
        if c is None or c.shutdown:
            c = Client(address, int(port), api)
            _client_cache[key] = c
        return c


def _cleanup() -> None:
    for c in list(_clients):
        try:
            c.close(timeout=1)
        except Exception:
            logger.debug("[transport/zmq] close on exit failed", exc_info=True)
    zmq_context.destroy(linger=0)


atexit.register(_cleanup)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
