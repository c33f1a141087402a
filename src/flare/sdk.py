""" Assembly of the active backend. :func:`init` is the point at which a
    deployment hands over its backend class; a class that forgot to supply
    the event conversions is rejected here, before any event could ever be
    captured, rather than on the first call.
"""

import logging
import threading

from .backend import Backend, BaseBackend
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_active = None
_active_lock = threading.Lock()

required = ('event_from_exception', 'event_from_message')


def init(backend_class, options):
    """ Instantiate *backend_class* with *options*, register it as the active
        backend, and return it. Any previously active backend is shut down
        first. Raises :class:`ConfigurationError` if the class does not
        implement the event conversions.
    """

    validate(backend_class)

    backend = backend_class(options)

    global _active
    with _active_lock:
        previous = _active
        _active = backend

    if previous is not None:
        _close(previous)

    return backend



def validate(backend_class):
    """ Confirm *backend_class* is a usable :class:`Backend` subclass that
        overrides every conversion left unimplemented by :class:`BaseBackend`.
    """

    if not isinstance(backend_class, type) or not issubclass(backend_class, Backend):
        raise ConfigurationError('not a Backend subclass: ' + repr(backend_class))

    missing = list()

    for name in required:
        method = getattr(backend_class, name, None)
        if method is None or method is getattr(BaseBackend, name):
            missing.append(name)

    if missing:
        raise ConfigurationError('%s has to implement %s' % (backend_class.__name__, ', '.join(missing)))

    abstract = getattr(backend_class, '__abstractmethods__', None)
    if abstract:
        raise ConfigurationError('%s leaves abstract methods unimplemented: %s' % (backend_class.__name__, ', '.join(sorted(abstract))))



def get_backend():
    """ Return the active backend, or None if :func:`init` was never called.
    """

    return _active



def shutdown(timeout=None):
    """ Close the transports of the active backend, if any, and forget it.
    """

    global _active
    with _active_lock:
        backend = _active
        _active = None

    if backend is not None:
        _close(backend, timeout)



def _close(backend, timeout=None):

    transports = list()
    transports.append(backend.get_transport())

    try:
        new_transport = backend.get_new_transport()
    except AttributeError:
        new_transport = None

    if new_transport is not None and new_transport not in transports:
        transports.append(new_transport)

    for transport in transports:
        close = getattr(transport, 'close', None)
        if close is None:
            continue

        try:
            close(timeout)
        except Exception:
            logger.error("[sdk] transport close failed: %r", transport, exc_info=True)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
