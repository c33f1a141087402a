"""Multipart framing for submissions.

Legacy request
    version, b"REQ", type, url, body

Envelope
    version, b"ENV", serialized_envelope

The same frames are used by every channel: ZeroMQ sends them as a
multipart message, RabbitMQ carries every frame but the last as message
headers and the last frame as the body.
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

from .. import envelope as envelope_module
from ..envelope import Envelope
from ..request import Request


PROTOCOL_VERSION = b"a"

REQ = b"REQ"
ENV = b"ENV"


def to_request_frames(request: Request) -> Tuple[bytes, ...]:
    """Encode a legacy :class:`Request` as multipart frames."""

    return (
        PROTOCOL_VERSION,
        REQ,
        request.type.encode(),
        (request.url or "").encode(),
        request.body,
    )


def to_envelope_frames(envelope: Envelope) -> Tuple[bytes, ...]:
    """Encode an :class:`Envelope` as multipart frames."""

    return (PROTOCOL_VERSION, ENV, envelope.serialize())


def from_frames(parts: Sequence[bytes]) -> Union[Request, Envelope]:
    """Decode multipart frames produced by either encoder above."""

    if len(parts) < 3:
        raise ValueError("truncated submission: %d frames" % len(parts))

    their_version = parts[0]
    if their_version != PROTOCOL_VERSION:
        raise ValueError(
            f"submission is protocol {their_version!r}, recipient expects {PROTOCOL_VERSION!r}"
        )

    kind = parts[1]

    if kind == ENV:
        return envelope_module.parse(parts[2])

    if kind == REQ:
        if len(parts) < 5:
            raise ValueError("truncated request: %d frames" % len(parts))
        return Request(parts[4], parts[2].decode(), parts[3].decode())

    raise ValueError(f"unknown submission kind: {kind!r}")


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
