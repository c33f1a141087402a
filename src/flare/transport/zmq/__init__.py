"""ZeroMQ delivery channel."""

from .push import Client, client

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
