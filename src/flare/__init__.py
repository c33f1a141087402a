""" Python implementation of the flare submission core: session lifecycle
    handling, envelope construction, and the backend that ships finished
    events and sessions toward a collector without ever disrupting the
    instrumented application.
"""

# Utility components.

from . import json
from . import fields
from . import errors

# Submodules used by multiple other components.

from . import session
from . import api
from . import envelope
from . import request
from . import response
from . import config
from . import transport

# Primary public-facing interfaces.

from .api import Dsn
from .backend import Backend, BaseBackend, ChannelBackend
from .config import Options
from .errors import ConfigurationError, FlareError
from .session import close_session, make_session, session_to_json, update_session

from . import sdk
init = sdk.init

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
