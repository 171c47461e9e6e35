""" A handful of core protocol requests. The connection core itself only
    needs :class:`GetInputFocus` (the cheapest round trip, used by
    :func:`xmux.client.Client.sync`); the others cover the common request
    shapes: void requests, requests with a variable length body, and
    requests answered by a reply. A complete request catalog belongs in a
    separate codec layer.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from . import fields
from .message import Reply, Request


E = fields.ENDIAN


def _string(value):
    if isinstance(value, str):
        value = value.encode('latin-1')
    return value, b'\0' * fields.pad(len(value))


class NoOperation(Request):
    """ Does nothing. The optional *padding* (in four byte units) makes the
        request longer, which is legal and occasionally useful for testing
        request size limits.
    """

    opcode = fields.NO_OPERATION

    def __init__(self, padding=0):
        self.padding = int(padding)

    def pack(self):
        return 0, b'\0' * (self.padding * fields.UNIT)


class MapWindow(Request):

    opcode = 8

    def __init__(self, window):
        self.window = window

    def pack(self):
        return 0, struct.pack(E + 'I', self.window)


@dataclass(frozen=True)
class GetInputFocusReply(Reply):
    revert_to: int
    focus: int

    @classmethod
    def decode(cls, frame):
        revert_to, sequence, length = cls.unpack_header(frame)
        focus, = struct.unpack_from(E + 'I', frame, 8)
        return cls(sequence, revert_to, focus)


class GetInputFocus(Request):

    opcode = fields.GET_INPUT_FOCUS
    reply = GetInputFocusReply


@dataclass(frozen=True)
class InternAtomReply(Reply):
    atom: int

    @classmethod
    def decode(cls, frame):
        detail, sequence, length = cls.unpack_header(frame)
        atom, = struct.unpack_from(E + 'I', frame, 8)
        return cls(sequence, atom)


class InternAtom(Request):

    opcode = 16
    reply = InternAtomReply

    def __init__(self, name, only_if_exists=False):
        self.name = name
        self.only_if_exists = bool(only_if_exists)

    def pack(self):
        name, padding = _string(self.name)
        body = struct.pack(E + 'H2x', len(name)) + name + padding
        return int(self.only_if_exists), body


@dataclass(frozen=True)
class GetAtomNameReply(Reply):
    name: str

    @classmethod
    def decode(cls, frame):
        detail, sequence, length = cls.unpack_header(frame)
        name_length, = struct.unpack_from(E + 'H', frame, 8)
        name = bytes(frame[32:32 + name_length])
        return cls(sequence, name.decode('latin-1'))


class GetAtomName(Request):

    opcode = 17
    reply = GetAtomNameReply

    def __init__(self, atom):
        self.atom = atom

    def pack(self):
        return 0, struct.pack(E + 'I', self.atom)


@dataclass(frozen=True)
class QueryExtensionReply(Reply):
    present: bool
    major_opcode: int
    first_event: int
    first_error: int

    @classmethod
    def decode(cls, frame):
        detail, sequence, length = cls.unpack_header(frame)
        present, major, event, error = struct.unpack_from(E + 'BBBB', frame, 8)
        return cls(sequence, bool(present), major, event, error)


class QueryExtension(Request):
    """ Ask whether the named extension is present, and if so which major
        opcode its requests use and where its events and errors start.
    """

    opcode = 98
    reply = QueryExtensionReply

    def __init__(self, name):
        self.name = name

    def pack(self):
        name, padding = _string(self.name)
        return 0, struct.pack(E + 'H2x', len(name)) + name + padding


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
