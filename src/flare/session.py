""" Session lifecycle handling. A :class:`Session` is created once with
    :func:`make_session`, merged zero or more times with
    :func:`update_session`, and finished exactly once with
    :func:`close_session`. None of these functions perform any I/O; the
    serialized form produced by :func:`session_to_json` is what eventually
    ends up on the wire.

    Session updates arrive from best-effort runtime hooks. Malformed input
    is normalized or ignored rather than rejected: a session identifier of
    the wrong length is replaced, non-numeric durations are recomputed, and
    unknown status values are dropped.
"""

import datetime
import math
import logging
import time
import uuid

from . import fields

logger = logging.getLogger(__name__)

_epoch = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


class Session:
    """ A bounded period of client activity tracked for crash and health
        reporting. The attributes are deliberately plain; use the module
        functions (or the equivalent methods) to manipulate them so that
        the merge rules are honored.

        :ivar sid: A 32 character session identifier.
        :ivar started: UNIX epoch timestamp of the session start.
        :ivar timestamp: UNIX epoch timestamp of the most recent update.
        :ivar status: One of the :data:`fields.SESSION_STATUSES`.
        :ivar duration: Elapsed seconds, or None if *ignore_duration* is set.
    """

    def __init__(self, sid, started, timestamp):

        self.sid = sid
        self.started = started
        self.timestamp = timestamp

        self.did = None
        self.duration = 0
        self.environment = None
        self.errors = 0
        self.ignore_duration = False
        self.init = True
        self.ip_address = None
        self.release = None
        self.status = fields.OK
        self.user_agent = None


    def __repr__(self):
        return 'session.Session: ' + repr(self.to_json())


    def update(self, **context):
        update_session(self, **context)


    def close(self, status=None):
        close_session(self, status)


    def to_json(self):
        return session_to_json(self)


# end of class Session



class SessionAggregates:
    """ Pre-aggregated session counts, bucketed by the minute in which each
        session started. This is the payload of a 'sessions' envelope item.
    """

    def __init__(self, release=None, environment=None, aggregates=None):

        self.release = release
        self.environment = environment

        if aggregates is None:
            aggregates = list()

        self.aggregates = list(aggregates)


    def __len__(self):
        return len(self.aggregates)


    def record(self, session):
        """ Count a finished *session* in the bucket for the minute it
            started in. Crashed sessions count as crashed, sessions with
            any errors count as errored, everything else counts as exited.
        """

        started = int(session.started // 60) * 60
        started = iso_timestamp(started)

        for bucket in self.aggregates:
            if bucket['started'] == started:
                break
        else:
            bucket = dict(started=started, exited=0, errored=0, crashed=0)
            self.aggregates.append(bucket)

        if session.status == fields.CRASHED:
            bucket['crashed'] += 1
        elif session.errors:
            bucket['errored'] += 1
        else:
            bucket['exited'] += 1


    def to_json(self, aggregates=None):
        """ Return the serialization-ready form of these aggregates. If
            *aggregates* is specified it replaces the full list of buckets;
            this is how the envelope builder splits large aggregates.
        """

        if aggregates is None:
            aggregates = self.aggregates

        attrs = _drop_none(dict(release=self.release, environment=self.environment))

        result = dict()
        if attrs:
            result['attrs'] = attrs
        result['aggregates'] = [dict(bucket) for bucket in aggregates]

        return result


# end of class SessionAggregates



def make_session(**context):
    """ Return a new :class:`Session`. The session starts with status 'ok',
        no errors, and zero duration; any keyword arguments are then merged
        in via :func:`update_session`. The *started* and *status* fields
        cannot be set at construction time.
    """

    context.pop('started', None)
    context.pop('status', None)

    now = timestamp_in_seconds()
    session = Session(sid=uuid4(), started=now, timestamp=now)

    if context:
        update_session(session, **context)

    return session



def update_session(session, user=None, timestamp=None, ignore_duration=None,
                   sid=None, init=None, did=None, started=None, duration=None,
                   release=None, environment=None, ip_address=None,
                   user_agent=None, errors=None, status=None, **ignored):
    """ Merge the supplied fields into *session*, in place. Each field is
        applied conditionally:

        * *user* back-fills *ip_address* and *did* if they are not already
          known; the distinct id is the first of the user's id, email, or
          username that is set.
        * *timestamp* defaults to the current time.
        * *sid* is only accepted if it is exactly 32 characters long; any
          other value is replaced with a freshly generated identifier.
        * *did*, *ip_address*, and *user_agent* never overwrite an existing
          value.
        * *started*, *duration*, and *errors* are ignored unless they are
          finite numbers.
        * *duration* is cleared if *ignore_duration* is set, otherwise it is
          taken as-is if supplied, otherwise recomputed from *started* and
          *timestamp*, never less than zero.
        * Fields this function does not know are logged and dropped.
    """

    if ignored:
        logger.debug("[session] ignoring unknown fields %s", ", ".join(sorted(ignored)))

    if user:
        user_ip = _user_field(user, 'ip_address')
        if not session.ip_address and user_ip:
            session.ip_address = user_ip

        if not session.did and not did:
            for name in ('id', 'email', 'username'):
                value = _user_field(user, name)
                if value:
                    session.did = value
                    break

    if _is_number(timestamp) and timestamp:
        session.timestamp = timestamp
    else:
        session.timestamp = timestamp_in_seconds()

    if ignore_duration:
        session.ignore_duration = True

    if sid:
        if isinstance(sid, str) and len(sid) == 32:
            session.sid = sid
        else:
            logger.debug("[session] replacing malformed sid %r", sid)
            session.sid = uuid4()

    if init is not None:
        session.init = bool(init)

    if not session.did and did:
        session.did = str(did)

    if _is_number(started):
        session.started = started

    if session.ignore_duration:
        session.duration = None
    elif _is_number(duration):
        session.duration = duration
    else:
        elapsed = session.timestamp - session.started
        session.duration = elapsed if elapsed >= 0 else 0

    if release:
        session.release = release

    if environment:
        session.environment = environment

    if not session.ip_address and ip_address:
        session.ip_address = ip_address

    if not session.user_agent and user_agent:
        session.user_agent = user_agent

    if _is_number(errors):
        session.errors = int(errors)

    if status:
        if status in fields.SESSION_STATUSES:
            session.status = status
        else:
            logger.debug("[session] ignoring unknown status %r", status)



def close_session(session, status=None):
    """ Close out the session. An explicit *status* always wins; otherwise a
        session that is still 'ok' becomes 'exited', and a session already in
        a terminal state keeps its status (the timestamp and duration are
        still refreshed).
    """

    if status:
        update_session(session, status=status)
    elif session.status == fields.OK:
        update_session(session, status=fields.EXITED)
    else:
        update_session(session)



def session_to_json(session):
    """ Return a dictionary ready for serialization. Undefined (None) fields
        are omitted entirely rather than emitted as null, including the
        nested 'attrs' group.
    """

    did = session.did
    if isinstance(did, (str, int, float)) and not isinstance(did, bool):
        did = str(did)
    else:
        did = None

    attrs = dict()
    attrs['release'] = session.release
    attrs['environment'] = session.environment
    attrs['ip_address'] = session.ip_address
    attrs['user_agent'] = session.user_agent
    attrs = _drop_none(attrs)

    result = dict()
    result['sid'] = str(session.sid)
    result['init'] = session.init
    result['started'] = iso_timestamp(session.started)
    result['timestamp'] = iso_timestamp(session.timestamp)
    result['status'] = session.status
    result['errors'] = session.errors
    result['did'] = did
    result['duration'] = session.duration

    result = _drop_none(result)

    if attrs:
        result['attrs'] = attrs

    return result



def timestamp_in_seconds():
    return time.time()


def uuid4():
    """ Return a fresh 32 character session identifier.
    """

    return uuid.uuid4().hex


def _drop_none(values):
    return dict((key, value) for key, value in values.items() if value is not None)


def _is_number(value):
    # bool is a subclass of int; True is not a duration. NaN and infinity
    # are not counts either, and cannot be rendered as timestamps.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def iso_timestamp(seconds):
    """ Convert UNIX epoch *seconds* to an ISO-8601 string with millisecond
        precision, for example '1970-01-01T00:16:40.000Z'.
    """

    milliseconds = int(seconds * 1000)
    moment = _epoch + datetime.timedelta(milliseconds=milliseconds)
    moment = moment.isoformat(timespec='milliseconds')

    return moment.replace('+00:00', 'Z')


def _user_field(user, name):
    try:
        return user[name]
    except (KeyError, TypeError):
        return getattr(user, name, None)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
