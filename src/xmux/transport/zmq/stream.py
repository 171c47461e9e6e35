"""ZeroMQ STREAM transport.

A ZeroMQ STREAM socket speaks raw TCP to a peer that knows nothing about
ZeroMQ, such as an X server. Every message on the socket is a two-part
(routing id, data) pair; an empty data part signals that the peer connected
or disconnected.

ZeroMQ sockets are not thread-safe, so a single background thread owns the
socket. Writers hand their data to that thread via a queue and an inproc
PAIR signal; inbound data is handed to readers via a second queue.
"""

from __future__ import annotations

import atexit
import itertools
import queue
import threading
from typing import Optional

import zmq

from ..base import (
    Transport,
    TransportConnectionError,
    TransportError,
    TransportPortError,
    TransportTimeout,
)


zmq_context = zmq.Context()
_instance = itertools.count()


class PendingWrite:
    """Writer-side helper that waits for the I/O thread to send the data."""

    def __init__(self, data: bytes):
        self.data = data
        self.error: Optional[Exception] = None
        self.sent_event = threading.Event()

    def wait(self, timeout: Optional[float]) -> bool:
        return self.sent_event.wait(timeout)

    def _complete(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.sent_event.set()


class ZmqStreamTransport(Transport):
    """ Connect a ZeroMQ STREAM socket to *address* and *port*. The
        constructor blocks for up to :attr:`timeout` seconds waiting for the
        connection to be established.
    """

    timeout = 5.0

    def __init__(self, address: str, port: int):

        self.address = address
        self.port = int(port)

        self.socket = zmq_context.socket(zmq.STREAM)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.setsockopt(zmq.RECONNECT_IVL, -1)

        if ':' in address:
            self.socket.setsockopt(zmq.IPV6, 1)

        self._peer: Optional[bytes] = None
        self._connected = threading.Event()
        self._closed = False
        self._shutdown = False

        self._outbox = queue.SimpleQueue()
        self._inbox = queue.SimpleQueue()
        self._buffer = b''

        internal = 'inproc://xmux.stream:signal:%d' % (next(_instance))
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        try:
            self.socket.connect('tcp://%s:%d' % (address, self.port))
        except zmq.ZMQError as e:
            self._close_sockets()
            raise TransportPortError('cannot connect to %s:%d: %s' % (address, self.port, e)) from e

        self._thread = threading.Thread(target=self.run, daemon=True)
        self._thread.start()

        if not self._connected.wait(self.timeout):
            self.close()
            raise TransportConnectionError(
                'no connection to %s:%d in %.2f sec' % (address, self.port, self.timeout)
            )

    @property
    def is_open(self) -> bool:
        return self._connected.is_set() and not self._closed

    def _signal(self) -> None:
        with self._signal_lock:
            try:
                self._signal_tx.send(b'')
            except zmq.ZMQError as e:
                raise TransportError('transport closed') from e

    def read(self, size: int) -> bytes:

        if not self._buffer:
            item = self._inbox.get()

            if isinstance(item, Exception):
                # Leave the failure in place for any subsequent reads.
                self._inbox.put(item)
                raise item

            if item == b'':
                self._inbox.put(item)
                return b''

            self._buffer = item

        chunk = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return chunk

    def write(self, data: bytes) -> None:

        if self._closed:
            raise TransportError('transport closed')

        pending = PendingWrite(bytes(data))
        self._outbox.put(pending)
        self._signal()

        if not pending.wait(self.timeout):
            raise TransportTimeout('write to %s:%d not sent in %.2f sec' % (self.address, self.port, self.timeout))

        if pending.error is not None:
            raise TransportError('write failed: ' + str(pending.error)) from pending.error

    def close(self) -> None:

        if self._closed:
            return

        self._closed = True
        self._shutdown = True

        if self._thread.is_alive():
            try:
                self._signal()
            except TransportError:
                pass
            self._thread.join(timeout=1)

        # Wake up any reader still waiting on the inbox.

        self._inbox.put(b'')

    def _close_sockets(self) -> None:
        for sock in (self.socket, self._signal_rx, self._signal_tx):
            sock.close(linger=0)

    # --- internal, I/O thread only ---

    def _handle_incoming(self) -> None:
        routing_id, data = self.socket.recv_multipart()

        if self._peer is None:
            # The first message is the connect notification.
            self._peer = routing_id
            self._connected.set()
            if data == b'':
                return

        if data == b'':
            # Peer disconnected.
            self._inbox.put(b'')
            return

        self._inbox.put(data)

    def _handle_outgoing(self) -> None:
        self._signal_rx.recv(flags=zmq.NOBLOCK)

        try:
            pending: PendingWrite = self._outbox.get(block=False)
        except queue.Empty:
            return

        try:
            self.socket.send_multipart((self._peer, pending.data))
        except zmq.ZMQError as e:
            pending._complete(e)
        else:
            pending._complete()

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        try:
            while not self._shutdown:
                for active, _flag in poller.poll(1000):
                    if active == self._signal_rx:
                        self._handle_outgoing()
                    elif active == self.socket:
                        self._handle_incoming()
        except zmq.ZMQError as e:
            self._inbox.put(TransportError('read failed: ' + str(e)))
        finally:
            if self._peer is not None:
                try:
                    self.socket.send_multipart((self._peer, b''))
                except zmq.ZMQError:
                    pass
            self._close_sockets()

            # Release any writer whose data never made it out.

            while True:
                try:
                    pending = self._outbox.get(block=False)
                except queue.Empty:
                    break
                pending._complete(TransportError('transport closed'))


def open_tcp(host: Optional[str], port: int, family=None) -> ZmqStreamTransport:

    if host is None:
        host = '127.0.0.1'

    if ':' in host:
        host = '[' + host + ']'

    return ZmqStreamTransport(host, port)


def open_unix(path: str):
    raise TransportPortError('the zmq transport does not support Unix domain sockets: ' + path)


def _cleanup() -> None:
    try:
        zmq_context.term()
    except Exception:
        pass


atexit.register(_cleanup)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
