"""Transport layer implementations."""

from .base import (
    EnvelopeTransport,
    Transport,
    TransportConnectionError,
    TransportError,
    TransportRejected,
    TransportTimeout,
    supports_sessions,
)
from .noop import NoopTransport

from .. import config
from ..api import init_api_details
from ..errors import ConfigurationError


def create(options):
    """ Return a (legacy, envelope) pair of transports for the channel named
        in *options*. The envelope transport is None for channels that do
        not speak envelopes. A single channel instance serves both roles
        when it can.
    """

    name = (options.transport or 'noop').lower()

    if name == 'noop':
        return NoopTransport(), None

    if name not in config.channels:
        raise ConfigurationError(f"unknown transport channel: {name!r}")

    if options.dsn is None:
        raise ConfigurationError(f"transport channel {name!r} requires a dsn")

    api = init_api_details(options.dsn, options.metadata, options.tunnel)
    kwargs = dict(options.transport_options)

    if name == 'zmq':
        from .zmq import push

        address = kwargs.get('address', config.default_zmq_address)
        port = kwargs.get('port', config.default_zmq_port)
        channel = push.client(address, port, api)

    else:
        from .rabbitmq import publish

        host = kwargs.get('host', config.default_amqp_host)
        port = kwargs.get('port', config.default_amqp_port)
        exchange = kwargs.get('exchange', config.default_amqp_exchange)
        channel = publish.Client(host, port, api, exchange=exchange)

    return channel, channel


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
