""" Runtime options for the submission core. Options are normally built in
    code; :func:`Options.from_environment` fills in anything not explicitly
    provided from FLARE_* environment variables, so that a deployment can
    switch channels without touching the application.
"""

import os

from . import api


# Strings that are interpreted as False when read from the environment.

untruths = set((None, False, 0, '0', 'false', 'f', 'no', 'n', 'off', 'disable', ''))

channels = ('noop', 'zmq', 'rabbitmq')

default_zmq_address = 'localhost'
default_zmq_port = 10079
default_amqp_host = 'localhost'
default_amqp_port = 5672
default_amqp_exchange = 'flare.submit'


class Options:
    """ The complete configuration consumed by a backend.

        :ivar dsn: The :class:`flare.api.Dsn` destination, or None.
        :ivar metadata: SDK metadata; 'sdk' holds the name and version.
        :ivar tunnel: Optional URL that envelopes are addressed to instead
                      of the DSN-derived endpoint.
        :ivar experiments: Feature flags; 'new_transport' enables envelopes,
                          see :func:`flare.backend.select_route`.
        :ivar transport: Name of the delivery channel, one of :data:`channels`.
        :ivar transport_options: Keyword arguments for the channel.
    """

    def __init__(self, dsn=None, metadata=None, tunnel=None, experiments=None,
                 transport='noop', transport_options=None):

        if metadata is None:
            metadata = dict(sdk=dict(name=api.SDK_NAME, version=api.SDK_VERSION))

        self.dsn = dsn
        self.metadata = metadata
        self.tunnel = tunnel
        self.experiments = dict(experiments or dict())
        self.transport = transport
        self.transport_options = dict(transport_options or dict())


    def __repr__(self):
        return 'config.Options: dsn=%r transport=%r experiments=%r' % (self.dsn, self.transport, self.experiments)


    @classmethod
    def from_environment(cls, **overrides):
        """ Return a new :class:`Options` instance. Keyword arguments always
            win over the environment.
        """

        environ = os.environ

        transport = environ.get('FLARE_TRANSPORT', 'noop').strip().lower()
        tunnel = environ.get('FLARE_TUNNEL') or None

        experiments = dict()
        flag = environ.get('FLARE_NEW_TRANSPORT', '').strip().lower()
        experiments['new_transport'] = flag not in untruths

        transport_options = dict()

        if transport == 'zmq':
            transport_options['address'] = environ.get('FLARE_ZMQ_ADDRESS', default_zmq_address)
            transport_options['port'] = int(environ.get('FLARE_ZMQ_PORT', default_zmq_port))
        elif transport == 'rabbitmq':
            transport_options['host'] = environ.get('FLARE_AMQP_HOST', default_amqp_host)
            transport_options['port'] = int(environ.get('FLARE_AMQP_PORT', default_amqp_port))
            transport_options['exchange'] = environ.get('FLARE_AMQP_EXCHANGE', default_amqp_exchange)

        arguments = dict()
        arguments['transport'] = transport
        arguments['tunnel'] = tunnel
        arguments['experiments'] = experiments
        arguments['transport_options'] = transport_options
        arguments.update(overrides)

        return cls(**arguments)


# end of class Options


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
