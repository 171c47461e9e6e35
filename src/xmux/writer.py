""" Outbound half of a connection: encode requests, number them, and put
    them on the wire one complete frame at a time.
"""

from __future__ import annotations

import threading

from . import errors
from .pending import PendingReply, Registry
from .protocol.codec import Codec
from .protocol.message import Request
from .sequence import SequenceTracker
from .transport.base import Transport, TransportError


class Writer:
    """ Serialize requests into the *transport*. Requests larger than
        *maximum_bytes* are refused before they consume a sequence number.
    """

    def __init__(self, transport: Transport, codec: Codec, sequence: SequenceTracker, registry: Registry, maximum_bytes: int):

        self.transport = transport
        self.codec = codec
        self.sequence = sequence
        self.registry = registry
        self.maximum_bytes = maximum_bytes

        # The lock around the transport is necessary in a multithreaded
        # application; otherwise, if two different threads both write,
        # frames can and will get mixed together. It also keeps sequence
        # numbers in the same order as the frames on the wire.

        self.lock = threading.Lock()


    def send(self, request: Request, checked: bool = False) -> PendingReply:
        """ Send *request*, returning a :class:`PendingReply` correlated
            with its sequence number. Requests expecting a reply, and void
            requests sent with *checked* set, are registered for
            correlation before the frame is written; other void requests get
            a handle that is already resolved.

            Raises :class:`xmux.errors.RequestTooLarge` without consuming a
            sequence number if the encoded frame exceeds the server maximum,
            or :class:`xmux.errors.TransportWriteError` if the write failed,
            in which case the handle has been resolved with a connection
            failure.
        """

        frame = self.codec.encode_request(request)

        if len(frame) > self.maximum_bytes:
            raise errors.RequestTooLarge(len(frame), self.maximum_bytes)

        errors_only = not request.expects_reply
        register = checked or not errors_only

        with self.lock:
            number = self.sequence.next()
            pending = PendingReply(number, request, errors_only)

            if register:
                self.registry.insert(pending)
            else:
                pending._resolve(None)

            try:
                self.transport.write(frame)
            except TransportError as e:
                failure = errors.TransportWriteError('request %d not sent: %s' % (number, e))
                pending._resolve(failure=errors.ConnectionClosed(failure))
                raise failure from e

        return pending


# end of class Writer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
