import datetime

import flare
import pytest


def test_encode_and_decode():

    event = dict()
    event['event_id'] = 'e' * 32
    event['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    event['tags'] = {'release': '1.0.0', 'retries': 2}
    event['none'] = None
    event['true'] = True
    event['false'] = False

    encoded = flare.json.dumps(event)

    assert isinstance(encoded, bytes)
    assert flare.json.loads(encoded) == event
    assert flare.json.loads(encoded.decode()) == event


def test_single_line():

    # Envelopes are newline-delimited; an encoded value must never contain
    # a raw newline, even when the value itself does.

    event = dict(message='multiple\nlines', nested=dict(trace=['one\n', '\ntwo']))
    encoded = flare.json.dumps(event)

    assert b'\n' not in encoded
    assert b' ' not in encoded
    assert flare.json.loads(encoded) == event


def test_extended_values(clock):

    session = flare.make_session(release='1.0.0')

    encoded = flare.json.dumps(dict(session=session, tags=set(['a'])))
    decoded = flare.json.loads(encoded)

    assert decoded['session'] == session.to_json()
    assert decoded['tags'] == ['a']

    moment = datetime.datetime(2020, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
    assert flare.json.loads(flare.json.dumps(moment)) == '2020-01-02T03:04:05Z'


def test_unsupported_values():

    with pytest.raises(TypeError):
        flare.json.dumps(dict(handle=object()))


def test_malformed_input():

    with pytest.raises(ValueError):
        flare.json.loads(b'{"unterminated": ')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
