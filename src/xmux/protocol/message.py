""" Class representations of X protocol messages, as far as the connection
    core needs to understand them: requests going out, and the three kinds
    of frames coming back (replies, errors and events).

    Replies, errors and events are immutable once decoded. Requests are
    plain containers; the codec turns them into bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple, Type

from . import fields


E = fields.ENDIAN

_reply_header = struct.Struct(E + 'xBHI')
_error = struct.Struct(E + 'xBHIHB')
_event_header = struct.Struct(E + 'BBH')
_generic_event = struct.Struct(E + 'xBHIH')


class DecodeError(ValueError):
    """A frame could not be decoded."""


class Request:
    """ The :class:`Request` is the base class for anything sent to the
        server. Subclasses declare the *opcode* (the major opcode for core
        requests) and, if the server answers with a reply, the *reply* class
        used to decode it; a request with no *reply* class is a void
        request.

        :func:`pack` returns the metabyte (the second header byte, which
        some requests use for data) and the request body following the
        four byte header. The codec handles the header and padding.
    """

    opcode: ClassVar[Optional[int]] = None
    reply: ClassVar[Optional[Type['Reply']]] = None

    @property
    def major_opcode(self) -> int:
        return self.opcode

    @property
    def expects_reply(self) -> bool:
        return self.reply is not None

    def pack(self) -> Tuple[int, bytes]:
        return 0, b''

    def __repr__(self):
        return '%s(opcode=%r)' % (type(self).__name__, self.major_opcode)


class ExtensionRequest(Request):
    """ Extension requests share one major opcode, assigned by the server
        at run time (see :class:`xmux.protocol.requests.QueryExtension`),
        and identify themselves with the *minor_opcode* in the metabyte.
    """

    minor_opcode: ClassVar[int] = 0

    def __init__(self, major_opcode: int):
        self._major_opcode = major_opcode

    @property
    def major_opcode(self) -> int:
        return self._major_opcode

    def pack(self) -> Tuple[int, bytes]:
        return self.minor_opcode, self.pack_body()

    def pack_body(self) -> bytes:
        return b''


@dataclass(frozen=True)
class Reply:
    """ Generic reply. Subclasses add decoded fields and override
        :func:`decode`; this base class keeps the *detail* byte and the
        raw *data* following the eight byte reply header.
    """

    sequence: int

    @staticmethod
    def unpack_header(frame: bytes) -> Tuple[int, int, int]:
        """Return (detail, sequence, length) from a reply frame."""
        return _reply_header.unpack_from(frame, 0)

    @classmethod
    def decode(cls, frame: bytes) -> 'Reply':
        detail, sequence, length = cls.unpack_header(frame)
        return RawReply(sequence, detail, bytes(frame[8:]))


@dataclass(frozen=True)
class RawReply(Reply):
    detail: int = 0
    data: bytes = b''


@dataclass(frozen=True)
class Message:
    """ Base class for everything delivered on the shared message channel.
        The *kind* attribute tags the variant: 'event' or 'error'.
    """

    kind: ClassVar[str] = ''


@dataclass(frozen=True)
class Error(Message):
    """ A server-reported failure of the request with the given sequence
        number. The *sequence* is the 16-bit value from the wire; the
        *full_sequence* is the unwrapped number, filled in by the connection
        when it can be attributed.
    """

    kind: ClassVar[str] = 'error'

    code: int = 0
    sequence: int = 0
    bad_value: int = 0
    minor_opcode: int = 0
    major_opcode: int = 0
    full_sequence: Optional[int] = None

    @classmethod
    def decode(cls, frame: bytes) -> 'Error':
        if len(frame) < fields.FRAME_SIZE:
            raise DecodeError('error frame is %d bytes' % (len(frame)))

        code, sequence, bad_value, minor, major = _error.unpack_from(frame, 0)
        return cls(code, sequence, bad_value, minor, major)

    def __str__(self):
        sequence = self.sequence if self.full_sequence is None else self.full_sequence
        return 'X error %d for request %d.%d (sequence %d, value 0x%x)' % (
            self.code, self.major_opcode, self.minor_opcode, sequence, self.bad_value)


@dataclass(frozen=True)
class Event(Message):
    """ An asynchronous notification. The *code* is the event type with the
        send-event bit removed; *send_event* records whether that bit was
        set. The *data* is the complete frame as received.
    """

    kind: ClassVar[str] = 'event'

    code: int = 0
    send_event: bool = False
    sequence: Optional[int] = None
    data: bytes = b''

    @classmethod
    def decode(cls, frame: bytes) -> 'Event':
        if len(frame) < fields.FRAME_SIZE:
            raise DecodeError('event frame is %d bytes' % (len(frame)))

        raw_code, detail, sequence = _event_header.unpack_from(frame, 0)
        code = raw_code & fields.EVENT_CODE_MASK
        send_event = bool(raw_code & fields.SEND_EVENT_MASK)

        # KeymapNotify uses every byte after the code for key data.

        if code == fields.KEYMAP_NOTIFY:
            sequence = None

        return cls(code, send_event, sequence, bytes(frame))


@dataclass(frozen=True)
class GenericEvent(Event):
    """ Extension event using the generic event layout, which carries the
        extension's major opcode and its own event type, and may be longer
        than 32 bytes.
    """

    extension: int = 0
    event_type: int = 0

    @classmethod
    def decode(cls, frame: bytes) -> 'GenericEvent':
        if len(frame) < fields.FRAME_SIZE:
            raise DecodeError('event frame is %d bytes' % (len(frame)))

        send_event = bool(frame[0] & fields.SEND_EVENT_MASK)
        extension, sequence, length, event_type = _generic_event.unpack_from(frame, 0)

        if len(frame) != fields.FRAME_SIZE + length * fields.UNIT:
            raise DecodeError('generic event length does not match frame')

        return cls(fields.GENERIC_EVENT, send_event, sequence, bytes(frame), extension, event_type)


def generic_event_length(header: bytes) -> int:
    """Return the total size of a generic event from its first eight bytes."""

    extension, sequence, length = _reply_header.unpack_from(header, 0)
    return fields.FRAME_SIZE + length * fields.UNIT


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
