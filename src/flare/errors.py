"""Library-level exceptions."""


class FlareError(Exception):
    """Base class for all errors raised by flare itself."""


class ConfigurationError(FlareError):
    """The SDK was assembled incorrectly: a required conversion is missing,
    a channel name is unknown, or similar. Not recoverable at runtime.
    """


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
