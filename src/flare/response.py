""" Outcome of a single transport submission. The submission backend only
    ever looks at these for logging; nothing is handed back to the caller.
"""

from . import fields


class Response:
    """ The *status* is one of :data:`fields.EVENT_STATUSES`; *event* is the
        event or session that was submitted, if the transport cares to say;
        *reason* is a human-readable explanation for any status other than
        'success'.
    """

    def __init__(self, status, event=None, type=None, reason=None):

        if status not in fields.EVENT_STATUSES:
            raise ValueError('invalid response status: ' + repr(status))

        self.status = status
        self.event = event
        self.type = type
        self.reason = reason


    def __repr__(self):
        return 'response.Response: %s (%s)' % (self.status, self.reason)


    @property
    def ok(self):
        return self.status == fields.SUCCESS or self.status == fields.SKIPPED


# end of class Response


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
