import flare
import pytest


class Clock:
    """ Replacement for flare.session.timestamp_in_seconds that only moves
        when a test tells it to.
    """

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock(monkeypatch):
    clock = Clock(1000.0)
    monkeypatch.setattr(flare.session, 'timestamp_in_seconds', clock)
    return clock


@pytest.fixture
def dsn():
    return flare.Dsn(host='collector.example.com', project_id='42', public_key='abc123')


@pytest.fixture
def api(dsn):
    return flare.api.init_api_details(dsn, flare.Options().metadata)


@pytest.fixture
def envelope_options(dsn):
    return flare.Options(dsn=dsn, experiments=dict(new_transport=True))


@pytest.fixture(autouse=True)
def no_active_backend():
    yield
    flare.sdk.shutdown()

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
