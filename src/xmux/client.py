""" The :class:`Client` is the public face of a connection. It owns the
    connection information from setup, the sequence counter, the outbound
    writer, and the inbound demultiplexer with its reply registry and
    message channel.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Dict, Iterator, Optional

from . import errors
from . import handshake
from .channel import MessageChannel
from .demux import Demultiplexer
from .pending import PendingReply, Registry
from .protocol.codec import Codec, CoreCodec
from .protocol.message import Message, Reply, Request
from .protocol.requests import GetInputFocus, QueryExtension, QueryExtensionReply
from .protocol.setup import AuthInfo, ConnectionInfo
from .sequence import SequenceTracker
from .transport.base import Transport
from .writer import Writer


logger = logging.getLogger(__name__)


class ClientState(enum.Enum):
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    CLOSED = 'closed'


class Client:
    """ A connection to an X server over an already connected *transport*.
        Instances are normally created with :func:`connect`, which performs
        the setup exchange; the *codec* defaults to
        :class:`xmux.protocol.codec.CoreCodec`.
    """

    def __init__(self, transport: Transport, codec: Optional[Codec] = None):

        if codec is None:
            codec = CoreCodec()

        self.transport = transport
        self.codec = codec

        self._state = ClientState.CONNECTING
        self._state_lock = threading.Lock()
        self._cause: Optional[Exception] = None
        self._info: Optional[ConnectionInfo] = None
        self._extensions: Dict[str, QueryExtensionReply] = dict()
        self._extensions_lock = threading.Lock()
        self.default_screen = 0

        self.sequence = SequenceTracker()
        self.registry = Registry()
        self.channel = MessageChannel()
        self.writer: Optional[Writer] = None
        self.demux: Optional[Demultiplexer] = None


    @classmethod
    def connect(cls, transport: Transport, credential: Optional[AuthInfo] = None, codec: Optional[Codec] = None) -> 'Client':
        """ Perform the setup exchange over *transport* and return a
            connected :class:`Client`. If the setup fails the transport is
            closed and the :class:`xmux.errors.HandshakeError` propagates;
            no client is returned.
        """

        client = cls(transport, codec)
        client._establish(credential)
        return client


    def _establish(self, credential):

        try:
            info = handshake.negotiate(self.transport, credential)
        except errors.HandshakeError as e:
            self._state = ClientState.CLOSED
            self._cause = e
            self.channel.close(e)
            self.transport.close()
            raise

        self._info = info
        self.writer = Writer(self.transport, self.codec, self.sequence, self.registry, info.maximum_request_bytes)
        self.demux = Demultiplexer(self.transport, self.codec, self.sequence, self.registry, self.channel, self._teardown)

        self._state = ClientState.CONNECTED
        self.demux.start()


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def __iter__(self) -> Iterator[Message]:
        """ Yield messages from the channel until the connection closes.
        """

        while True:
            try:
                message = self.wait_message()
            except errors.ConnectionClosed:
                return

            yield message


    @property
    def state(self) -> ClientState:
        return self._state


    @property
    def connection_info(self) -> ConnectionInfo:
        if self._info is None:
            raise errors.ConnectionClosed(self._cause)
        return self._info


    def _check_connected(self):
        if self._state is not ClientState.CONNECTED:
            raise errors.ConnectionClosed(self._cause)


    def send(self, request: Request, checked: bool = False) -> PendingReply:
        """ Send *request* and return its :class:`PendingReply`. Void
            requests are only tracked for errors if *checked* is set;
            otherwise any error they cause arrives on the message channel.

            Raises :class:`xmux.errors.RequestTooLarge` if the request
            exceeds the server maximum (the connection stays usable), and
            :class:`xmux.errors.ConnectionClosed` if the connection is
            closed. A transport failure while writing closes the connection
            and raises :class:`xmux.errors.TransportWriteError`.
        """

        self._check_connected()

        try:
            return self.writer.send(request, checked)
        except (errors.TransportWriteError, errors.SequenceExhausted) as e:
            self._teardown(e)
            raise


    def request(self, request: Request, timeout: Optional[float] = None) -> Optional[Reply]:
        """ Send *request* and wait for its reply. Void requests are sent
            checked and followed by a :func:`sync`; they return None if the
            server processed them without error.
        """

        pending = self.send(request, checked=True)

        if not request.expects_reply:
            self.sync(timeout)

        return pending.wait(timeout)


    def sync(self, timeout: Optional[float] = None) -> None:
        """ Make a round trip to the server. Every checked request sent
            before this call is resolved by the time it returns.
        """

        self.send(GetInputFocus()).wait(timeout)


    def query_extension(self, name: str, timeout: Optional[float] = None) -> QueryExtensionReply:
        """ Return the :class:`QueryExtensionReply` for the extension *name*,
            which provides the major opcode for its requests and the base
            codes for its events and errors. Results are cached; concurrent
            lookups are answered by a single round trip.
        """

        with self._extensions_lock:
            try:
                return self._extensions[name]
            except KeyError:
                pass

            reply = self.send(QueryExtension(name)).wait(timeout)
            self._extensions[name] = reply
            return reply


    def next_message(self) -> Optional[Message]:
        """ Return the next event or unclaimed error without blocking, or
            None if nothing is waiting. Raises
            :class:`xmux.errors.ConnectionClosed` once the connection is
            closed and everything already received has been consumed.
        """

        return self.channel.get(block=False)


    def wait_message(self, timeout: Optional[float] = None) -> Optional[Message]:
        """ Blocking equivalent of :func:`next_message`; returns None if the
            *timeout* expires.
        """

        return self.channel.get(block=True, timeout=timeout)


    def _teardown(self, cause: Optional[Exception]) -> None:

        with self._state_lock:
            if self._state is ClientState.CLOSED:
                return

            self._state = ClientState.CLOSED
            self._cause = cause

        if cause is not None:
            logger.debug('closing connection after fault: %s', cause)

        if self.demux is not None:
            self.demux.stop()

        self.registry.teardown(cause)
        self.channel.close(cause)
        self.transport.close()


    def close(self) -> None:
        """ Close the connection. Every request still waiting resolves with
            :class:`xmux.errors.ConnectionClosed`. Calling this more than
            once is harmless.
        """

        self._teardown(None)

        demux = self.demux
        if demux is not None and demux.thread is not threading.current_thread():
            demux.thread.join(timeout=1)


# end of class Client



def connect(transport: Transport, credential: Optional[AuthInfo] = None, codec: Optional[Codec] = None) -> Client:
    """ Convenience wrapper for :func:`Client.connect`.
    """

    return Client.connect(transport, credential, codec)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
