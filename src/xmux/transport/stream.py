"""Plain socket transport, over TCP or a Unix domain socket."""

from __future__ import annotations

import socket
import threading
from typing import Optional

from .base import Transport, TransportConnectionError, TransportError


connect_timeout = 5.0


class SocketTransport(Transport):
    """ Wrap an already connected stream :class:`socket.socket`. Reads and
        writes may happen concurrently from different threads; concurrent
        writers must serialize among themselves.
    """

    def __init__(self, sock: socket.socket):
        self.socket = sock
        self.socket.settimeout(None)
        self._closed = False
        self._close_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return not self._closed

    def read(self, size: int) -> bytes:
        try:
            return self.socket.recv(size)
        except OSError as e:
            if self._closed:
                return b''
            raise TransportError('read failed: ' + str(e)) from e

    def write(self, data: bytes) -> None:
        if self._closed:
            raise TransportError('transport closed')

        try:
            self.socket.sendall(data)
        except OSError as e:
            raise TransportError('write failed: ' + str(e)) from e

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        # Shutting down first wakes up a thread blocked in recv().

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

        self.socket.close()


def open_tcp(host: Optional[str], port: int, family: int = socket.AF_UNSPEC) -> SocketTransport:
    """ Connect to *host* (localhost if None) on the given *port*. The
        address *family* restricts the lookup to IPv4 or IPv6 if requested.
    """

    if host is None:
        host = 'localhost'

    try:
        addresses = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
    except OSError as e:
        raise TransportConnectionError('cannot resolve %s: %s' % (host, e)) from e

    last_error = None
    for address_family, kind, protocol, name, address in addresses:
        sock = socket.socket(address_family, kind, protocol)
        sock.settimeout(connect_timeout)
        try:
            sock.connect(address)
        except OSError as e:
            sock.close()
            last_error = e
            continue

        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        return SocketTransport(sock)

    raise TransportConnectionError('cannot connect to %s:%d: %s' % (host, port, last_error))


def open_unix(path: str) -> SocketTransport:
    """Connect to the Unix domain socket at *path*."""

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(connect_timeout)

    try:
        sock.connect(path)
    except OSError as e:
        sock.close()
        raise TransportConnectionError('cannot connect to %s: %s' % (path, e)) from e

    return SocketTransport(sock)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
