"""Transport interface.

This is the (small) contract that delivery channels should follow. Every
send returns a :class:`concurrent.futures.Future` resolving to a
:class:`flare.response.Response`; a failed future carries a
:class:`TransportError`.

Two capabilities coexist while envelopes are being rolled out:

- :class:`Transport`, the legacy per-payload channel. ``send_event`` is
  required, ``send_session`` is optional and must be probed for with
  :func:`supports_sessions` before use.
- :class:`EnvelopeTransport`, the envelope channel, with a single generic
  ``send``.
"""

from __future__ import annotations

import concurrent.futures
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from ..response import Response


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A submission did not complete in a timely fashion."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportRejected(TransportError):
    """The remote side refused the payload."""


class Transport(ABC):
    """Minimal contract for a legacy per-payload channel."""

    @abstractmethod
    def send_event(self, event: Mapping[str, Any]) -> concurrent.futures.Future:
        """Submit a single event."""

    # send_session(session) is optional; see supports_sessions().

    def close(self, timeout: Optional[float] = None) -> None:
        """Release any resources held by the channel."""


class EnvelopeTransport(ABC):
    """Minimal contract for an envelope channel."""

    @abstractmethod
    def send(self, envelope) -> concurrent.futures.Future:
        """Submit a fully built envelope."""

    def close(self, timeout: Optional[float] = None) -> None:
        """Release any resources held by the channel."""


def supports_sessions(transport: Any) -> bool:
    """Whether *transport* is able to accept sessions via ``send_session``."""
    return callable(getattr(transport, "send_session", None))


def resolved(response: Response) -> concurrent.futures.Future:
    """Return a future that has already completed with *response*."""
    future: concurrent.futures.Future = concurrent.futures.Future()
    future.set_result(response)
    return future


def rejected(error: BaseException) -> concurrent.futures.Future:
    """Return a future that has already failed with *error*."""
    future: concurrent.futures.Future = concurrent.futures.Future()
    future.set_exception(error)
    return future


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
