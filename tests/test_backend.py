import logging

import flare
import pytest

from flare import backend
from flare import fields
from flare.transport import NoopTransport, TransportConnectionError

from transports import (
    EventOnlyTransport,
    RaisingTransport,
    RecordingEnvelopeTransport,
    RecordingTransport,
)


def make_backend(options, transport=None, new_transport=None):
    """ Return a BaseBackend whose setup hooks hand back the given transports.
    """

    class Backend(flare.BaseBackend):

        def _setup_transport(self):
            if transport is None:
                return NoopTransport()
            return transport

        def _setup_new_transport(self):
            return new_transport

    return Backend(options)


def error_records(caplog):
    return [record for record in caplog.records if record.levelno == logging.ERROR]


def warning_records(caplog):
    return [record for record in caplog.records if record.levelno == logging.WARNING]


def test_select_route(dsn):

    enabled = dict(new_transport=True)
    disabled = dict(new_transport=False)
    channel = RecordingEnvelopeTransport()

    assert backend.select_route(channel, dsn, enabled) == fields.ENVELOPE

    assert backend.select_route(None, dsn, enabled) == fields.LEGACY
    assert backend.select_route(channel, None, enabled) == fields.LEGACY
    assert backend.select_route(channel, dsn, disabled) == fields.LEGACY
    assert backend.select_route(channel, dsn, dict()) == fields.LEGACY
    assert backend.select_route(channel, dsn, None) == fields.LEGACY


def test_no_dsn(caplog):

    caplog.set_level(logging.DEBUG, logger='flare')

    instance = flare.BaseBackend(flare.Options())

    assert len(warning_records(caplog)) == 1
    assert isinstance(instance.get_transport(), NoopTransport)
    assert instance.get_new_transport() is None

    caplog.clear()

    instance.send_event(dict(event_id='e' * 32))
    instance.send_session(flare.make_session())

    assert error_records(caplog) == []
    assert warning_records(caplog) == []


def test_transport_is_set_once(dsn):

    calls = list()

    class Backend(flare.BaseBackend):
        def _setup_transport(self):
            calls.append(1)
            return RecordingTransport()

    instance = Backend(flare.Options(dsn=dsn))

    first = instance.get_transport()
    instance.send_event(dict())
    second = instance.get_transport()

    assert first is second
    assert len(calls) == 1


def test_legacy_event(dsn):

    transport = RecordingTransport()
    instance = make_backend(flare.Options(dsn=dsn), transport)

    event = dict(event_id='e' * 32)
    assert instance.send_event(event) is None

    assert transport.events == [event]


def test_envelope_event(envelope_options, monkeypatch):

    built = list()
    original = backend.create_event_envelope

    def counting(event, api, sent_at=None):
        built.append(event)
        return original(event, api, sent_at)

    monkeypatch.setattr(backend, 'create_event_envelope', counting)

    transport = RecordingTransport()
    channel = RecordingEnvelopeTransport()
    instance = make_backend(envelope_options, transport, channel)

    instance.send_event(dict(event_id='e' * 32))

    assert len(built) == 1
    assert len(channel.envelopes) == 1
    assert channel.envelopes[0].headers['event_id'] == 'e' * 32
    assert transport.events == []


def test_flag_disabled_uses_legacy(dsn):

    transport = RecordingTransport()
    channel = RecordingEnvelopeTransport()
    options = flare.Options(dsn=dsn, experiments=dict(new_transport=False))
    instance = make_backend(options, transport, channel)

    instance.send_event(dict(event_id='e' * 32))

    assert len(transport.events) == 1
    assert channel.envelopes == []


def test_route_is_evaluated_per_call(envelope_options):

    transport = RecordingTransport()
    channel = RecordingEnvelopeTransport()
    instance = make_backend(envelope_options, transport, channel)

    instance.send_event(dict(event_id='1' * 32))
    envelope_options.experiments['new_transport'] = False
    instance.send_event(dict(event_id='2' * 32))

    assert len(channel.envelopes) == 1
    assert len(transport.events) == 1


def test_envelope_failure_is_logged(envelope_options, caplog):

    caplog.set_level(logging.DEBUG, logger='flare')

    error = TransportConnectionError('collector unreachable')
    channel = RecordingEnvelopeTransport(error=error)
    instance = make_backend(envelope_options, RecordingTransport(), channel)

    caplog.clear()
    instance.send_event(dict(event_id='e' * 32))

    assert len(channel.envelopes) == 1

    errors = error_records(caplog)
    assert len(errors) == 1
    assert 'Error while sending event' in errors[0].getMessage()
    assert 'collector unreachable' in errors[0].getMessage()


def test_legacy_failure_is_logged(dsn, caplog):

    transport = RecordingTransport(error=TransportConnectionError('down'))
    instance = make_backend(flare.Options(dsn=dsn), transport)

    caplog.clear()
    instance.send_event(dict())
    instance.send_session(flare.make_session())

    errors = error_records(caplog)
    assert len(errors) == 2
    assert 'Error while sending event' in errors[0].getMessage()
    assert 'Error while sending session' in errors[1].getMessage()


def test_raising_transport_is_contained(dsn, caplog):

    instance = make_backend(flare.Options(dsn=dsn), RaisingTransport())

    caplog.clear()
    instance.send_event(dict())
    instance.send_session(flare.make_session())

    assert len(error_records(caplog)) == 2


def test_late_failure_is_logged(dsn, caplog):
    """ A failure that happens after send_event() returned is still observed.
    """

    import concurrent.futures

    pending = concurrent.futures.Future()

    class SlowTransport(EventOnlyTransport):
        def send_event(self, event):
            return pending

    instance = make_backend(flare.Options(dsn=dsn), SlowTransport())

    caplog.clear()
    instance.send_event(dict())
    assert error_records(caplog) == []

    pending.set_exception(TransportConnectionError('late'))
    assert len(error_records(caplog)) == 1


def test_session_without_capability(envelope_options, caplog):

    transport = EventOnlyTransport()
    channel = RecordingEnvelopeTransport()
    instance = make_backend(envelope_options, transport, channel)

    caplog.clear()
    instance.send_session(flare.make_session())

    # Dropped before routing, even though the envelope path is available.

    assert transport.events == []
    assert channel.envelopes == []

    warnings = warning_records(caplog)
    assert len(warnings) == 1
    assert 'send_session' in warnings[0].getMessage()


def test_legacy_session(dsn):

    transport = RecordingTransport()
    instance = make_backend(flare.Options(dsn=dsn), transport)

    session = flare.make_session()
    instance.send_session(session)

    assert transport.sessions == [session]


def test_envelope_session(envelope_options):

    transport = RecordingTransport()
    channel = RecordingEnvelopeTransport()
    instance = make_backend(envelope_options, transport, channel)

    session = flare.make_session()
    instance.send_session(session)

    assert transport.sessions == []
    assert len(channel.envelopes) == 1
    assert channel.envelopes[0].items[0].payload['sid'] == session.sid


def test_envelope_session_sends_first_envelope_only(envelope_options, monkeypatch):

    monkeypatch.setattr(flare.envelope, 'max_aggregates', 1)
    monkeypatch.setattr(flare.envelope, 'max_items', 1)

    buckets = list()
    for minute in range(3):
        started = flare.session.iso_timestamp(minute * 60)
        buckets.append(dict(started=started, exited=1, errored=0, crashed=0))

    aggregates = flare.session.SessionAggregates(aggregates=buckets)

    channel = RecordingEnvelopeTransport()
    instance = make_backend(envelope_options, RecordingTransport(), channel)
    instance.send_session(aggregates)

    assert len(channel.envelopes) == 1
    assert channel.envelopes[0].items[0].payload['aggregates'] == buckets[:1]


def test_conversions_are_required():

    instance = flare.BaseBackend(flare.Options())

    with pytest.raises(flare.ConfigurationError):
        instance.event_from_exception(ValueError('boom'))

    with pytest.raises(flare.ConfigurationError):
        instance.event_from_message('hello', 'info')

    # The configuration error is a distinct, catchable kind.

    assert issubclass(flare.ConfigurationError, flare.FlareError)


def test_channel_backend_without_dsn():

    instance = flare.ChannelBackend(flare.Options(transport='zmq'))

    assert isinstance(instance.get_transport(), NoopTransport)
    assert instance.get_new_transport() is None


def test_channel_backend_unknown_channel(dsn):

    with pytest.raises(flare.ConfigurationError):
        flare.ChannelBackend(flare.Options(dsn=dsn, transport='carrier-pigeon'))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
