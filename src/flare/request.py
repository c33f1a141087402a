""" Legacy per-payload requests. Before envelopes, each event or session
    was submitted on its own: a JSON body, a payload type, and the URL of
    the endpoint that accepts it. Transports that have not migrated to
    envelopes consume :class:`Request` instances built here.
"""

from . import fields
from . import json
from .envelope import create_session_envelope


class Request:
    """ A fully encoded legacy submission.

        :ivar body: The encoded request body, as bytes.
        :ivar type: The payload type, such as 'event' or 'session'.
        :ivar url: The endpoint that accepts this payload.
    """

    def __init__(self, body, type, url):

        self.body = body
        self.type = type
        self.url = url


    def __repr__(self):
        return 'request.Request: %s %s (%d bytes)' % (self.type, self.url, len(self.body))


# end of class Request



def event_to_request(event, api):
    """ Encode *event* as a standalone store request. The caller's event is
        not modified; SDK processing metadata never leaves the process.
    """

    event = dict(event)
    event.pop('sdkProcessingMetadata', None)

    event_type = event.get('type') or fields.EVENT
    body = json.dumps(event)

    return Request(body, event_type, api.store_endpoint())



def session_to_request(session, api):
    """ Sessions were never accepted by the store endpoint; even the legacy
        path ships them inside an envelope, one request per envelope body.
    """

    envelope = create_session_envelope(session, api)[0]
    session_type = envelope.items[0].type

    return Request(envelope.serialize(), session_type, api.envelope_endpoint())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
