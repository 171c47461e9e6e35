import collections
import pytest
import struct
import threading

import xmux
from xmux.protocol import fields
from xmux.transport.base import Transport, TransportError


E = fields.ENDIAN


class ScriptedTransport(Transport):
    """ In-memory stand-in for a connection to an X server. Tests play the
        server by feeding bytes for the client to read; everything the
        client writes is recorded in *written*, one entry per write.
    """

    def __init__(self):
        self.written = list()
        self.write_error = None

        self._chunks = collections.deque()
        self._condition = threading.Condition()
        self._closed = False

    @property
    def is_open(self):
        return not self._closed

    def feed(self, data):
        with self._condition:
            self._chunks.append(bytes(data))
            self._condition.notify_all()

    def feed_eof(self):
        self.feed(b'')

    def fail(self, error=None):
        """ Make the next read raise *error*, a :class:`TransportError` by
            default.
        """

        if error is None:
            error = TransportError('scripted read failure')

        with self._condition:
            self._chunks.append(error)
            self._condition.notify_all()

    def read(self, size):
        with self._condition:
            self._condition.wait_for(lambda: self._chunks or self._closed)

            if not self._chunks:
                return b''

            chunk = self._chunks.popleft()

            if isinstance(chunk, Exception):
                raise chunk

            if len(chunk) > size:
                self._chunks.appendleft(chunk[size:])
                chunk = chunk[:size]

            return chunk

    def write(self, data):
        if self._closed:
            raise TransportError('transport closed')

        if self.write_error is not None:
            raise self.write_error

        self.written.append(bytes(data))

    def close(self):
        with self._condition:
            self._closed = True
            self._condition.notify_all()


# Frame builders for the server side of the conversation.

def padded(data):
    return data + b'\0' * fields.pad(len(data))


def setup_success(base=0x04000000, mask=0x001fffff, maximum_request_length=0xffff,
                  vendor='xmux test server', release=12101004, screens=1):

    vendor = vendor.encode('latin-1')

    body = struct.pack(E + 'IIIIHHBBBBBBBB4x',
        release, base, mask, 256, len(vendor), maximum_request_length,
        screens, 1, 0, 0, 32, 32, 8, 255)

    body += padded(vendor)
    body += struct.pack(E + 'BBB5x', 24, 32, 32)

    for number in range(screens):
        body += struct.pack(E + 'IIIIIHHHHHHIBBBB',
            0x000003ac + number, 0x20, 0xffffff, 0, 0,
            1920, 1080, 508, 286, 1, 1, 0x21, 0, 0, 24, 1)
        body += struct.pack(E + 'BxH4x', 24, 1)
        body += struct.pack(E + 'IBBHIII4x', 0x21, 4, 8, 256, 0xff0000, 0xff00, 0xff)

    header = struct.pack(E + 'BBHHH', fields.SETUP_SUCCESS, 0, 11, 0, len(body) // 4)
    return header + body


def setup_failure(reason, major=11, minor=0):
    reason = reason.encode('latin-1')
    body = padded(reason)
    header = struct.pack(E + 'BBHHH', fields.SETUP_FAILED, len(reason), major, minor, len(body) // 4)
    return header + body


def setup_authenticate(reason):
    body = padded(reason.encode('latin-1'))
    header = struct.pack(E + 'BBHHH', fields.SETUP_AUTHENTICATE, 0, 0, 0, len(body) // 4)
    return header + body


def reply_frame(sequence, detail=0, data=b''):
    """ Build a reply; *data* is everything after the eight byte header, and
        is padded out to the 32 byte minimum.
    """

    data = padded(data)
    if len(data) < 24:
        data += b'\0' * (24 - len(data))

    length = (len(data) - 24) // 4
    header = struct.pack(E + 'BBHI', fields.REPLY, detail, sequence & fields.SEQUENCE_MASK, length)
    return header + data


def error_frame(sequence, code=3, bad_value=0, minor_opcode=0, major_opcode=8):
    frame = struct.pack(E + 'BBHIHB', fields.ERROR, code, sequence & fields.SEQUENCE_MASK,
                        bad_value, minor_opcode, major_opcode)
    return frame + b'\0' * (32 - len(frame))


def event_frame(code, sequence=0, detail=0, send_event=False, payload=b''):
    if send_event:
        code |= fields.SEND_EVENT_MASK

    frame = struct.pack(E + 'BBH', code, detail, sequence & fields.SEQUENCE_MASK) + payload
    return frame + b'\0' * (32 - len(frame))


def generic_event_frame(extension, event_type, sequence=0, extra=b''):
    extra = padded(extra)
    frame = struct.pack(E + 'BBHIH', fields.GENERIC_EVENT, extension,
                        sequence & fields.SEQUENCE_MASK, len(extra) // 4, event_type)
    frame += b'\0' * (32 - len(frame))
    return frame + extra


@pytest.fixture
def transport():
    scripted = ScriptedTransport()
    yield scripted
    scripted.close()


@pytest.fixture
def client(transport):

    transport.feed(setup_success())
    connected = xmux.Client.connect(transport)

    # Forget the setup request; tests only care about request frames.

    transport.written.clear()

    yield connected

    connected.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
