"""RabbitMQ delivery channel."""

from .publish import Client

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
