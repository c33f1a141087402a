"""RabbitMQ transport backed by a topic exchange.

Every submission becomes a single AMQP message. The protocol version and the
submission kind travel as message headers, the body is the final frame from
:mod:`flare.transport.codec`, and the routing key is ``<kind>.<type>`` (for
example ``req.event`` or ``env.session``) so collectors can bind selectively.

Publisher confirms are enabled and messages are published as mandatory, so
a message the broker cannot route, or refuses outright, fails with
:class:`TransportRejected`. Work still queued when :func:`Client.close` times
out fails with :class:`TransportTimeout`.
"""

from __future__ import annotations

import concurrent.futures
import logging
import queue
import threading
from typing import Optional, Tuple

import pika
import pika.exceptions

from ... import fields
from ...request import event_to_request, session_to_request
from ...response import Response
from ..base import (
    EnvelopeTransport,
    Transport,
    TransportConnectionError,
    TransportError,
    TransportRejected,
    TransportTimeout,
    rejected,
)
from ..codec import REQ, to_envelope_frames, to_request_frames

logger = logging.getLogger(__name__)


class Client(Transport, EnvelopeTransport):
    """Publisher for the exchange named *exchange* on the broker at *host*.

    The connection is opened lazily by the background thread on the first
    submission, and reopened on the next submission if it is lost.
    """

    def __init__(self, host: str, port: int, api, exchange: str = "flare.submit"):
        self.host = host
        self.port = int(port)
        self.api = api
        self.exchange = exchange

        self._queue: queue.Queue = queue.Queue()
        self._connection = None
        self._channel = None

        self.shutdown = False
        self._thread = threading.Thread(target=self._run, name="flare-amqp", daemon=True)
        self._thread.start()

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
        item_type = envelope.items[0].type if envelope.items else fields.EVENT
        return self._submit(frames, item_type)

    def close(self, timeout: Optional[float] = None) -> None:
        if self.shutdown:
            return
        self.shutdown = True
        self._queue.put(None)
        self._thread.join(timeout)

        if self._thread.is_alive():
            # The worker is blocked on the broker; fail what it never picked up.
            self._fail_pending(TransportTimeout(
                f"{self.host}:{self.port}: not published within {timeout} seconds"
            ))
            self._queue.put(None)

    def _fail_pending(self, error: TransportError) -> None:
        while True:
            try:
                work = self._queue.get_nowait()
            except queue.Empty:
                break
            if work is not None:
                work[2].set_exception(error)

    def _submit(self, frames: Tuple[bytes, ...], item_type: str) -> concurrent.futures.Future:
        future: concurrent.futures.Future = concurrent.futures.Future()
        if self.shutdown:
            future.set_exception(TransportError("channel is closed"))
            return future
        self._queue.put((frames, item_type, future))
        return future

    def _params(self) -> pika.ConnectionParameters:
        return pika.ConnectionParameters(
            host=self.host,
            port=self.port,
            heartbeat=600,
            blocked_connection_timeout=300,
        )

    def _connect(self) -> None:
        self._connection = pika.BlockingConnection(self._params())
        self._channel = self._connection.channel()
        self._channel.confirm_delivery()
        self._channel.exchange_declare(
            exchange=self.exchange, exchange_type="topic", durable=True
        )

    def _disconnect(self) -> None:
        connection = self._connection
        self._connection = None
        self._channel = None
        if connection is not None and connection.is_open:
            try:
                connection.close()
            except pika.exceptions.AMQPError:
                logger.debug("[transport/amqp] close failed", exc_info=True)

    def _publish(self, frames: Tuple[bytes, ...], item_type: str) -> None:
        version, kind = frames[0], frames[1]

        headers = {"version": version.decode(), "kind": kind.decode()}
        if kind == REQ:
            headers["type"] = frames[2].decode()
            headers["url"] = frames[3].decode()

        properties = pika.BasicProperties(
            content_type="application/json",
            headers=headers,
        )

        routing_key = f"{kind.decode().lower()}.{item_type}"
        self._channel.basic_publish(
            exchange=self.exchange,
            routing_key=routing_key,
            body=frames[-1],
            mandatory=True,
            properties=properties,
        )

    def _run(self) -> None:
        while True:
            try:
                work = self._queue.get(timeout=30)
            except queue.Empty:
                # Keep heartbeats flowing on an idle connection.
                if self._connection is not None:
                    try:
                        self._connection.process_data_events(time_limit=0)
                    except pika.exceptions.AMQPError:
                        logger.warning("[transport/amqp] connection lost", exc_info=True)
                        self._disconnect()
                continue

            if work is None:
                break

            frames, item_type, future = work

            try:
                if self._channel is None:
                    self._connect()
                self._publish(frames, item_type)
            except (pika.exceptions.UnroutableError, pika.exceptions.NackError) as exc:
                # Refused by the broker; the connection itself is intact.
                future.set_exception(TransportRejected(
                    f"{self.exchange}: {exc!r}"
                ))
            except (pika.exceptions.AMQPConnectionError, OSError) as exc:
                self._disconnect()
                future.set_exception(TransportConnectionError(
                    f"{self.host}:{self.port}: {exc!r}"
                ))
            except Exception as exc:
                self._disconnect()
                future.set_exception(TransportError(repr(exc)))
            else:
                future.set_result(Response(fields.SUCCESS, type=item_type))

        self._fail_pending(TransportError("channel closed before delivery"))

        self._disconnect()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
