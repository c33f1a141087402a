"""Transport used when no real channel is configured."""

from __future__ import annotations

import concurrent.futures

from .. import fields
from ..response import Response
from .base import Transport, resolved


class NoopTransport(Transport):
    """Accepts everything, delivers nothing, resolves immediately."""

    reason = "NoopTransport: Event has been skipped because no Dsn is configured."

    def send_event(self, event) -> concurrent.futures.Future:
        return resolved(Response(fields.SKIPPED, reason=self.reason))

    def send_session(self, session) -> concurrent.futures.Future:
        return resolved(Response(fields.SKIPPED, reason=self.reason))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
