""" The submission backend. A backend owns exactly one legacy transport,
    optionally one envelope transport, and decides on every submission which
    of the two protocol paths a payload takes. Submissions are fire-and-forget:
    the caller gets nothing back, and delivery failures are logged and then
    discarded rather than propagated into the instrumented application.

    Converting exceptions and messages into events is platform specific, and
    is left to concrete subclasses; see :func:`flare.sdk.init` for the check
    that enforces this when a backend is assembled.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from . import fields
from . import transport as transport_module
from .api import init_api_details
from .envelope import create_event_envelope, create_session_envelope
from .errors import ConfigurationError
from .transport import NoopTransport, supports_sessions

logger = logging.getLogger(__name__)


class Backend(ABC):
    """ Capability interface every backend presents to the rest of the SDK.
    """

    @abstractmethod
    def event_from_exception(self, exception, hint=None):
        """ Return a future resolving to an event describing *exception*.
        """

    @abstractmethod
    def event_from_message(self, message, level=None, hint=None):
        """ Return a future resolving to an event describing *message*.
        """

    @abstractmethod
    def send_event(self, event):
        """ Submit *event*; returns nothing, never raises for delivery errors.
        """

    @abstractmethod
    def send_session(self, session):
        """ Submit *session*; returns nothing, never raises for delivery errors.
        """

    @abstractmethod
    def get_transport(self):
        """ Return the legacy transport used by this backend.
        """


# end of class Backend



class BaseBackend(Backend):
    """ The base implementation of a :class:`Backend`. With no further
        configuration every submission goes to a :class:`NoopTransport`;
        subclasses override :func:`_setup_transport` and
        :func:`_setup_new_transport` to supply real channels, and must
        implement the two event conversions.

        Both transports are set up exactly once, here in the constructor,
        and are never replaced afterwards.
    """

    def __init__(self, options):

        self._options = options

        if not options.dsn:
            logger.warning("[backend] no DSN provided, backend will not do anything")

        self._transport = self._setup_transport()
        self._new_transport = self._setup_new_transport()


    @property
    def options(self):
        return self._options


    def event_from_exception(self, exception, hint=None):
        raise ConfigurationError('Backend has to implement `event_from_exception` method')


    def event_from_message(self, message, level=None, hint=None):
        raise ConfigurationError('Backend has to implement `event_from_message` method')


    def send_event(self, event):

        options = self._options
        route = select_route(self._new_transport, options.dsn, options.experiments)

        if route == fields.ENVELOPE:
            api = init_api_details(options.dsn, options.metadata, options.tunnel)
            envelope = create_event_envelope(event, api)
            _dispatch(self._new_transport.send, envelope, 'event')
        else:
            _dispatch(self._transport.send_event, event, 'event')


    def send_session(self, session):

        if not supports_sessions(self._transport):
            logger.warning("[backend] dropping session because custom transport doesn't implement send_session")
            return

        options = self._options
        route = select_route(self._new_transport, options.dsn, options.experiments)

        if route == fields.ENVELOPE:
            api = init_api_details(options.dsn, options.metadata, options.tunnel)

            # Aggregates may produce several envelopes; only the first is sent.
            envelope = create_session_envelope(session, api)[0]
            _dispatch(self._new_transport.send, envelope, 'session')
        else:
            _dispatch(self._transport.send_session, session, 'session')


    def get_transport(self):
        return self._transport


    def get_new_transport(self):
        return self._new_transport


    def _setup_transport(self):
        """ Return the legacy transport for this backend.
        """

        return NoopTransport()


    def _setup_new_transport(self):
        """ Return the envelope transport for this backend, or None.
        """

        return None


# end of class BaseBackend



class ChannelBackend(BaseBackend):
    """ A :class:`BaseBackend` whose transports come from the channel named
        in the options (see :func:`flare.transport.create`). Without a DSN
        this degrades to the no-op behavior of the base class. The event
        conversions are still left to subclasses.
    """

    def __init__(self, options):

        self._channels = None
        BaseBackend.__init__(self, options)


    def _channel_pair(self):

        if self._channels is None:
            if self._options.dsn:
                self._channels = transport_module.create(self._options)
            else:
                self._channels = (NoopTransport(), None)

        return self._channels


    def _setup_transport(self):
        return self._channel_pair()[0]


    def _setup_new_transport(self):
        return self._channel_pair()[1]


# end of class ChannelBackend



def select_route(new_transport, dsn, experiments):
    """ Decide which protocol path a submission takes. The envelope path is
        only used when an envelope transport exists, a destination is
        configured, and the 'new_transport' experiment is enabled; in every
        other case the legacy path is used. This is evaluated per call.
    """

    if new_transport is None or not dsn:
        return fields.LEGACY

    if experiments and experiments.get('new_transport'):
        return fields.ENVELOPE

    return fields.LEGACY



def _dispatch(send, payload, kind):
    """ Invoke *send* with *payload* and discard the outcome. The returned
        future gets a done-callback that only logs, so a failed delivery is
        observed (never left as an unretrieved exception) and never reaches
        the caller. A transport that raises instead of failing its future is
        treated the same way.
    """

    try:
        future = send(payload)
    except Exception as error:
        logger.error("[backend] Error while sending %s: %r", kind, error)
        return

    if future is None:
        return

    def _observe(future):
        if future.cancelled():
            logger.debug("[backend] %s submission cancelled", kind)
            return

        error = future.exception()

        if error is not None:
            logger.error("[backend] Error while sending %s: %r", kind, error)
            return

        response = future.result()
        if response is not None and not response.ok:
            logger.debug("[backend] %s not delivered: %r", kind, response)

    future.add_done_callback(_observe)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
