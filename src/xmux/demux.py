""" Inbound half of a connection: a single background thread reads frames
    from the transport, classifies each one by its leading byte, and routes
    it. Replies and errors go to the request waiting on that sequence
    number; events, and errors nobody is waiting for, go onto the shared
    message channel in arrival order.
"""

from __future__ import annotations

import dataclasses
import logging
import struct
import threading
from typing import Callable, Optional

from . import errors
from .channel import MessageChannel
from .pending import CANCELLED, Registry
from .protocol import fields
from .protocol.codec import Codec
from .protocol.message import DecodeError
from .sequence import SequenceTracker
from .transport.base import Transport, TransportError


logger = logging.getLogger(__name__)

_sequence = struct.Struct(fields.ENDIAN + '2xH')


class Demultiplexer:
    """ Background reader for one connection. The *on_fault* callable is
        invoked exactly once when the reader stops, with the connection
        fault responsible, or None if :func:`stop` was called first.
    """

    read_size = 65536

    def __init__(self, transport: Transport, codec: Codec, sequence: SequenceTracker,
                 registry: Registry, channel: MessageChannel,
                 on_fault: Optional[Callable[[Optional[Exception]], None]] = None):

        self.transport = transport
        self.codec = codec
        self.sequence = sequence
        self.registry = registry
        self.channel = channel
        self.on_fault = on_fault

        self.shutdown = False
        self.last_seen = 0
        self._buffer = bytearray()

        self.thread = threading.Thread(target=self.run, name='xmux.demux')
        self.thread.daemon = True


    def start(self):
        self.thread.start()


    def stop(self):
        """ Flag the reader to stop. The reader only notices once its current
            read returns; closing the transport makes sure that happens.
        """

        self.shutdown = True


    def _fill(self, size):
        """ Read from the transport until at least *size* bytes are buffered.
        """

        buffer = self._buffer

        while len(buffer) < size:
            try:
                chunk = self.transport.read(self.read_size)
            except TransportError as e:
                raise errors.TransportReadError(str(e)) from e

            if not chunk:
                if buffer:
                    raise errors.TransportReadError('connection reset by peer with a partial frame buffered')
                raise errors.TransportReadError('server closed the connection')

            buffer += chunk


    def read_frame(self) -> bytes:
        """ Return the next complete frame. Every frame is at least 32 bytes;
            the codec determines the true length of longer ones from the
            first 32.
        """

        self._fill(fields.FRAME_SIZE)

        header = bytes(self._buffer[:fields.FRAME_SIZE])

        try:
            length = self.codec.frame_length(header)
        except (DecodeError, struct.error) as e:
            raise errors.FrameDecodeError('cannot size frame: ' + str(e)) from e

        if length < fields.FRAME_SIZE or length % fields.UNIT:
            raise errors.FrameDecodeError('invalid frame length %d' % (length))

        self._fill(length)

        frame = bytes(self._buffer[:length])
        del self._buffer[:length]
        return frame


    def dispatch(self, frame: bytes) -> None:
        """ Route one complete *frame*.
        """

        kind = frame[0]

        try:
            if kind == fields.ERROR:
                self._error_incoming(frame)
            elif kind == fields.REPLY:
                self._reply_incoming(frame)
            else:
                self._event_incoming(frame)
        except DecodeError as e:
            raise errors.FrameDecodeError(str(e)) from e


    def _observe(self, wire):
        """ Widen the 16-bit *wire* sequence number of an inbound frame, and
            record it as the latest number seen from the server.
        """

        full = self.sequence.widen(wire, self.last_seen)
        self.last_seen = full
        return full


    def _reply_incoming(self, frame):

        wire, = _sequence.unpack_from(frame, 0)
        full, pending = self.registry.claim_oldest(wire)

        if pending is None:
            raise errors.DemultiplexError('reply for sequence %d matches no request' % (wire))

        if full > self.last_seen:
            self.last_seen = full

        self.registry.settle(full)

        if pending is CANCELLED:
            return

        try:
            reply = self.codec.decode_reply(pending.request, frame)
        except Exception as e:
            fault = errors.FrameDecodeError('reply to request %d is malformed: %s' % (full, e))
            pending._resolve(failure=errors.ConnectionClosed(fault))
            raise fault from e

        pending._resolve(reply)


    def _error_incoming(self, frame):

        wire, = _sequence.unpack_from(frame, 0)
        full = self._observe(wire)
        self.registry.settle(full)

        error = self.codec.decode_error(frame)
        error = dataclasses.replace(error, full_sequence=full)

        pending = self.registry.claim(full)

        if pending is CANCELLED:
            return

        if pending is None:
            self.channel.publish(error)
            return

        pending._resolve(failure=errors.RequestError(error))


    def _event_incoming(self, frame):

        event = self.codec.decode_event(frame)

        if event.sequence is not None:
            full = self._observe(event.sequence)
            self.registry.settle(full)

        self.channel.publish(event)


    def run(self):

        fault = None

        try:
            while not self.shutdown:
                frame = self.read_frame()
                self.dispatch(frame)
        except errors.ConnectionFault as e:
            fault = e
        except Exception as e:
            logger.exception('unexpected failure demultiplexing inbound frames')
            fault = errors.FrameDecodeError('unexpected failure: ' + str(e))
            fault.__cause__ = e

        if self.shutdown:
            fault = None
        else:
            logger.debug('connection fault: %s', fault)

        if self.on_fault is not None:
            self.on_fault(fault)


# end of class Demultiplexer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
