''' JSON encoding for everything flare puts on the wire. Envelopes are
    newline-delimited, so every encoded value must be a single line: the
    msgspec encoder always emits compact output and escapes newlines that
    occur inside strings, which makes :func:`dumps` safe to use for both
    envelope headers and item payloads.

    Events are assembled by instrumentation code and may carry values that
    are not natively JSON-serializable; :func:`_default` converts objects
    that provide a to_json() method, such as sessions, and rejects the rest
    with :class:`TypeError`.
'''

import msgspec


def _default(value):

    to_json = getattr(value, 'to_json', None)
    if callable(to_json):
        return to_json()

    # msgspec turns this into a TypeError naming the offending type.
    raise NotImplementedError


encoder = msgspec.json.Encoder(enc_hook=_default)
decoder = msgspec.json.Decoder()


def dumps(value):
    """ Return the compact, single-line JSON encoding of *value* as bytes.
    """

    return encoder.encode(value)


def loads(data):
    """ Decode a JSON document; *data* may be bytes or str. Raises
        :class:`ValueError` for malformed input.
    """

    try:
        return decoder.decode(data)
    except msgspec.DecodeError as error:
        raise ValueError(str(error)) from error


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
