""" Envelope construction. An :class:`Envelope` is a self-describing
    container: a header identifying the recipient and the sending SDK,
    followed by one or more typed :class:`Item` instances. The builders
    here are pure; they never touch the network and never modify the
    event or session handed to them.

    On the wire an envelope is newline-delimited::

        {envelope header}
        {item header}
        {item payload}
        {item header}
        {item payload}
        ...

    Each item header carries the byte length of its payload, so a payload
    is never required to be free of newlines.
"""

import time

from . import fields
from . import json
from .session import SessionAggregates, iso_timestamp


# Limits applied when splitting pre-aggregated session data.

max_aggregates = 100
max_items = 100

content_type = 'application/json'


class Item:
    """ A single typed payload within an :class:`Envelope`. The *payload*
        is a Python-native structure that will be encoded as JSON; *headers*
        are any additional item header fields beyond the type, length, and
        content type, which are always derived.
    """

    def __init__(self, type, payload, headers=None):

        self.type = type
        self.payload = payload

        if headers is None:
            headers = dict()

        self.extra_headers = dict(headers)
        self._encapsulated = None


    def __repr__(self):
        return 'envelope.Item: ' + repr(self.headers)


    @property
    def headers(self):
        headers = dict()
        headers['type'] = self.type
        headers['length'] = len(self.encapsulate())
        headers['content_type'] = content_type
        headers.update(self.extra_headers)
        return headers


    def encapsulate(self):
        ''' Return the JSON encoding of the payload. Calling this method
            multiple times will return the cached encapsulation rather than
            generate it anew.
        '''

        if self._encapsulated is None:
            self._encapsulated = json.dumps(self.payload)

        return self._encapsulated


# end of class Item



class Envelope:
    """ An envelope header plus a sequence of items.
    """

    def __init__(self, headers, items=()):

        self.headers = dict(headers)
        self.items = list(items)


    def __iter__(self):
        return iter(self.items)


    def __len__(self):
        return len(self.items)


    def __repr__(self):
        return 'envelope.Envelope: ' + repr(self.headers) + ' ' + repr(self.items)


    def add(self, item):
        self.items.append(item)


    def serialize(self):
        """ Return the newline-delimited byte representation of this envelope.
        """

        lines = list()
        lines.append(json.dumps(self.headers))

        for item in self.items:
            lines.append(json.dumps(item.headers))
            lines.append(item.encapsulate())

        return b'\n'.join(lines)


# end of class Envelope



def create_event_envelope(event, api, sent_at=None):
    """ Wrap a single *event* in an :class:`Envelope` addressed according to
        the *api* details. The event is copied; SDK processing metadata is
        stripped from the copy, and its transaction sampling information,
        if any, moves to the item header.
    """

    event = dict(event)
    processing = event.pop('sdkProcessingMetadata', None) or dict()
    sampling = processing.get('transaction_sampling') or processing.get('transactionSampling')

    _enhance_event_with_sdk_info(event, api.metadata.get('sdk'))

    headers = _envelope_headers(api, sent_at)
    headers['event_id'] = event.get('event_id')

    item_headers = dict()
    if sampling:
        rate = dict(id=sampling.get('method'), rate=sampling.get('rate'))
        item_headers['sample_rates'] = [_drop_none(rate)]

    event_type = event.get('type') or fields.EVENT
    item = Item(event_type, event, item_headers)

    return Envelope(_drop_none(headers), (item,))



def create_session_envelope(session, api, sent_at=None):
    """ Wrap a :class:`Session` or :class:`SessionAggregates` instance in one
        or more envelopes. A single session always produces exactly one
        envelope with one 'session' item; aggregates produce one 'sessions'
        item per :data:`max_aggregates` buckets, and a new envelope for every
        :data:`max_items` items. The return value is always a list.
    """

    headers = _drop_none(_envelope_headers(api, sent_at))

    if not isinstance(session, SessionAggregates):
        item = Item(fields.SESSION, session.to_json())
        return [Envelope(headers, (item,))]

    items = list()
    buckets = session.aggregates

    for start in range(0, max(len(buckets), 1), max_aggregates):
        chunk = buckets[start:start + max_aggregates]
        items.append(Item(fields.SESSIONS, session.to_json(chunk)))

    envelopes = list()
    for start in range(0, len(items), max_items):
        envelopes.append(Envelope(headers, items[start:start + max_items]))

    return envelopes



def parse(data):
    """ Reconstruct an :class:`Envelope` from its serialized *data*. This is
        the inverse of :func:`Envelope.serialize`, and is primarily of use to
        a receiving collector or a test harness.
    """

    if not data:
        raise ValueError('empty envelope')

    header, _, remainder = data.partition(b'\n')
    envelope = Envelope(json.loads(header))

    while remainder:
        item_header, _, remainder = remainder.partition(b'\n')
        if item_header.strip() == b'':
            continue

        item_header = json.loads(item_header)

        try:
            length = item_header['length']
        except KeyError:
            payload, _, remainder = remainder.partition(b'\n')
        else:
            payload = remainder[:length]
            remainder = remainder[length + 1:]

        item_type = item_header.pop('type')
        item_header.pop('length', None)
        item_header.pop('content_type', None)

        item = Item(item_type, json.loads(payload), item_header)
        envelope.add(item)

    return envelope



def _envelope_headers(api, sent_at):

    if sent_at is None:
        sent_at = time.time()

    headers = dict()
    headers['sent_at'] = iso_timestamp(sent_at)
    headers['sdk'] = api.sdk

    if api.tunnel:
        headers['dsn'] = api.dsn.to_string()

    return headers


def _enhance_event_with_sdk_info(event, sdk_info):
    """ Fill in the SDK details of the (already copied) *event*. Values the
        event already carries take precedence; integration and package lists
        are concatenated.
    """

    if not sdk_info:
        return

    sdk = dict(event.get('sdk') or dict())
    sdk['name'] = sdk.get('name') or sdk_info.get('name')
    sdk['version'] = sdk.get('version') or sdk_info.get('version')
    sdk['integrations'] = list(sdk.get('integrations') or ()) + list(sdk_info.get('integrations') or ())
    sdk['packages'] = list(sdk.get('packages') or ()) + list(sdk_info.get('packages') or ())

    event['sdk'] = sdk


def _drop_none(values):
    return dict((key, value) for key, value in values.items() if value is not None)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
