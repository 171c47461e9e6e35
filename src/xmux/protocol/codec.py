"""Protocol codec: maps typed messages to and from wire frames.

The connection core depends only on the :class:`Codec` interface. The
:class:`CoreCodec` implementation understands the generic frame layouts
shared by every request, reply, error and event; anything it does not know
how to decode in detail is handed back in its generic form.
"""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from typing import Callable, Dict

from . import fields
from .message import (
    DecodeError,
    Error,
    Event,
    GenericEvent,
    Reply,
    Request,
    generic_event_length,
)


_request_header = struct.Struct(fields.ENDIAN + 'BBH')


class Codec(ABC):
    """Minimal contract for a protocol codec."""

    @abstractmethod
    def encode_request(self, request: Request) -> bytes:
        """Serialize *request* into a complete, padded request frame."""

    @abstractmethod
    def decode_reply(self, request: Request, frame: bytes) -> Reply:
        """Decode a reply *frame* answering *request*."""

    @abstractmethod
    def decode_error(self, frame: bytes) -> Error:
        """Decode an error frame."""

    @abstractmethod
    def decode_event(self, frame: bytes) -> Event:
        """Decode an event frame."""

    @abstractmethod
    def frame_length(self, header: bytes) -> int:
        """ Return the total length in bytes of the inbound frame whose first
            32 bytes are *header*.
        """


class CoreCodec(Codec):
    """ Codec for the core protocol. Event decoders for extensions can be
        added with :func:`register_event`; unregistered event codes decode
        as plain :class:`Event` instances.
    """

    def __init__(self):
        self.events: Dict[int, Callable[[bytes], Event]] = dict()
        self.events[fields.GENERIC_EVENT] = GenericEvent.decode


    def register_event(self, code: int, decoder: Callable[[bytes], Event]) -> None:
        self.events[code & fields.EVENT_CODE_MASK] = decoder


    def encode_request(self, request: Request) -> bytes:

        metabyte, body = request.pack()
        body = bytes(body)
        body += b'\0' * fields.pad(len(body))

        length = _request_header.size + len(body)
        units = length // fields.UNIT

        # The length field is 16 bits. Anything longer would need the
        # BIG-REQUESTS encoding; the writer rejects such frames by size.

        header = _request_header.pack(request.major_opcode, metabyte, min(units, 0xffff))
        return header + body


    def decode_reply(self, request: Request, frame: bytes) -> Reply:

        reply = request.reply
        if reply is None:
            reply = Reply

        try:
            return reply.decode(frame)
        except struct.error as e:
            raise DecodeError('reply to %r is malformed: %s' % (request, e)) from e


    def decode_error(self, frame: bytes) -> Error:
        return Error.decode(frame)


    def decode_event(self, frame: bytes) -> Event:

        code = frame[0] & fields.EVENT_CODE_MASK

        try:
            decoder = self.events[code]
        except KeyError:
            decoder = Event.decode

        try:
            return decoder(frame)
        except struct.error as e:
            raise DecodeError('event %d is malformed: %s' % (code, e)) from e


    def frame_length(self, header: bytes) -> int:

        kind = header[0]

        if kind == fields.REPLY:
            detail, sequence, length = Reply.unpack_header(header)
            return fields.FRAME_SIZE + length * fields.UNIT

        if kind & fields.EVENT_CODE_MASK == fields.GENERIC_EVENT:
            return generic_event_length(header)

        return fields.FRAME_SIZE


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
