""" Display names, and opening a connection to the display they name.

    A display name has the form ``[protocol/][hostname]:display[.screen]``.
    The *protocol* is one of ``tcp``, ``inet``, ``inet6`` or ``unix``; an
    IPv6 *hostname* is written in brackets, and a hostname followed by a
    double colon names a DECnet node, which is recognized but not supported.
    With no hostname (or the hostname ``unix``) the connection uses the
    local Unix domain socket; otherwise TCP port 6000 plus the display
    number.
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from typing import Optional

from . import errors
from . import transport as transports
from .client import Client
from .protocol.codec import Codec
from .protocol.setup import AuthInfo


TCP_PORT = 6000
UNIX_PATH = '/tmp/.X11-unix/X%d'

protocols = ('tcp', 'inet', 'inet6', 'unix')


@dataclass(frozen=True)
class DisplayName:

    display: int
    protocol: Optional[str] = None
    hostname: Optional[str] = None
    screen: Optional[int] = None
    ipv6: bool = False
    decnet: bool = False

    def __str__(self):

        text = ''

        if self.protocol is not None:
            text += self.protocol + '/'

        if self.hostname is not None:
            if self.ipv6:
                text += '[' + self.hostname + ']'
            else:
                text += self.hostname

        if self.decnet:
            text += '::'
        else:
            text += ':'

        text += str(self.display)

        if self.screen is not None:
            text += '.' + str(self.screen)

        return text

    @property
    def is_local(self) -> bool:
        """ True if the display is reached over the local Unix domain socket.
        """

        if self.protocol == 'unix':
            return True

        if self.protocol is None:
            return self.hostname is None or self.hostname == 'unix'

        return False


def _number(text, what, name):
    try:
        value = int(text)
    except ValueError:
        raise errors.DisplayNameError('invalid %s %r in display name %r' % (what, text, name))

    if value < 0:
        raise errors.DisplayNameError('invalid %s %r in display name %r' % (what, text, name))

    return value


def parse(name: str) -> DisplayName:
    """ Parse a display *name* into a :class:`DisplayName`. Raises
        :class:`xmux.errors.DisplayNameError` if it is ill-formatted.
    """

    original = name
    protocol = None
    hostname = None
    screen = None
    ipv6 = False
    decnet = False

    if '/' in name:
        protocol, name = name.split('/', 1)
        if protocol not in protocols:
            raise errors.DisplayNameError('unrecognized protocol %r in display name %r' % (protocol, original))

    if ':' not in name:
        raise errors.DisplayNameError('no display number in display name %r' % (original))

    hostname, name = name.rsplit(':', 1)

    if hostname.endswith(':'):
        hostname = hostname[:-1]
        decnet = True
    elif hostname.startswith('[') and hostname.endswith(']'):
        hostname = hostname[1:-1]
        ipv6 = True
    elif ':' in hostname:
        # Bare IPv6 address, as accepted by Xlib.
        ipv6 = True

    if hostname == '':
        hostname = None

    if '.' in name:
        name, screen = name.rsplit('.', 1)
        screen = _number(screen, 'screen number', original)

    display = _number(name, 'display number', original)

    if protocol == 'inet6':
        ipv6 = True

    return DisplayName(display, protocol, hostname, screen, ipv6, decnet)


def open_transport(display: DisplayName, backend=None):
    """ Open a transport to *display* using the transport *backend* module,
        by default the one selected by the ``XMUX_TRANSPORT`` environment
        variable.
    """

    if backend is None:
        backend = transports.backend

    if display.decnet:
        raise errors.DisplayNameError('DECnet displays are not supported: ' + str(display))

    if display.is_local:
        return backend.open_unix(UNIX_PATH % (display.display))

    hostname = display.hostname
    if hostname == 'unix':
        hostname = None

    if display.protocol == 'inet':
        family = socket.AF_INET
    elif display.ipv6:
        family = socket.AF_INET6
    else:
        family = socket.AF_UNSPEC

    if hostname is None:
        hostname = '::1' if family == socket.AF_INET6 else '127.0.0.1'

    return backend.open_tcp(hostname, TCP_PORT + display.display, family)


def open_display(name: Optional[str] = None, credential: Optional[AuthInfo] = None, codec: Optional[Codec] = None) -> Client:
    """ Connect to the display *name*, by default the one in the ``DISPLAY``
        environment variable, and return a connected :class:`Client`. The
        client's *default_screen* is set from the display name.
    """

    if name is None:
        try:
            name = os.environ['DISPLAY']
        except KeyError:
            raise errors.DisplayNameError('no display name given and DISPLAY is not set')

    display = parse(name)
    transport = open_transport(display)

    client = Client.connect(transport, credential, codec)
    client.default_screen = display.screen or 0
    return client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
