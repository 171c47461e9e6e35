import pytest
import socket
import xmux

from conftest import ScriptedTransport, setup_success
from xmux import display


class RecordingBackend:
    """Transport backend that records what it was asked to open."""

    def __init__(self):
        self.opened = list()

    def open_tcp(self, host, port, family=socket.AF_UNSPEC):
        self.opened.append(('tcp', host, port, family))
        return 'tcp'

    def open_unix(self, path):
        self.opened.append(('unix', path))
        return 'unix'


def test_parse_local():

    name = display.parse(':0')
    assert name.display == 0
    assert name.hostname is None
    assert name.protocol is None
    assert name.screen is None
    assert name.is_local == True
    assert str(name) == ':0'

    name = display.parse(':1.2')
    assert name.display == 1
    assert name.screen == 2
    assert str(name) == ':1.2'

    name = display.parse('unix:0')
    assert name.hostname == 'unix'
    assert name.is_local == True

    name = display.parse('unix/:4')
    assert name.protocol == 'unix'
    assert name.is_local == True


def test_parse_remote():

    name = display.parse('localhost:10.0')
    assert name.hostname == 'localhost'
    assert name.display == 10
    assert name.screen == 0
    assert name.is_local == False
    assert str(name) == 'localhost:10.0'

    name = display.parse('tcp/example.org:3')
    assert name.protocol == 'tcp'
    assert name.hostname == 'example.org'
    assert str(name) == 'tcp/example.org:3'

    name = display.parse('tcp/:0')
    assert name.protocol == 'tcp'
    assert name.hostname is None
    assert name.is_local == False


def test_parse_ipv6():

    name = display.parse('[::1]:0')
    assert name.hostname == '::1'
    assert name.ipv6 == True
    assert str(name) == '[::1]:0'

    name = display.parse('inet6/[fe80::1]:2.1')
    assert name.protocol == 'inet6'
    assert name.hostname == 'fe80::1'
    assert name.display == 2
    assert name.screen == 1

    name = display.parse('::1:0')
    assert name.hostname == '::1'
    assert name.ipv6 == True


def test_parse_decnet():

    name = display.parse('node::0')
    assert name.decnet == True
    assert name.hostname == 'node'
    assert str(name) == 'node::0'


def test_parse_invalid():

    for bad in ('', 'foo', ':', ':x', 'host:', ':-1', ':0.x', 'bogus/:0'):
        with pytest.raises(xmux.errors.DisplayNameError):
            display.parse(bad)

    # Callers that only know about ValueError still catch it.

    with pytest.raises(ValueError):
        display.parse(':zero')


def test_open_transport():

    backend = RecordingBackend()

    display.open_transport(display.parse(':0'), backend)
    display.open_transport(display.parse('unix:5'), backend)
    display.open_transport(display.parse('localhost:10'), backend)
    display.open_transport(display.parse('inet/example.org:1'), backend)
    display.open_transport(display.parse('[::1]:3'), backend)
    display.open_transport(display.parse('tcp/:0'), backend)
    display.open_transport(display.parse('inet6/:1'), backend)

    assert backend.opened == [
        ('unix', '/tmp/.X11-unix/X0'),
        ('unix', '/tmp/.X11-unix/X5'),
        ('tcp', 'localhost', 6010, socket.AF_UNSPEC),
        ('tcp', 'example.org', 6001, socket.AF_INET),
        ('tcp', '::1', 6003, socket.AF_INET6),
        ('tcp', '127.0.0.1', 6000, socket.AF_UNSPEC),
        ('tcp', '::1', 6001, socket.AF_INET6),
    ]


def test_open_transport_decnet():

    with pytest.raises(xmux.errors.DisplayNameError):
        display.open_transport(display.parse('node::0'), RecordingBackend())


def test_open_display(monkeypatch):

    transport = ScriptedTransport()
    transport.feed(setup_success())
    requested = list()

    def open_transport(name):
        requested.append(name)
        return transport

    monkeypatch.setattr(display, 'open_transport', open_transport)
    monkeypatch.setenv('DISPLAY', ':7.2')

    with xmux.open_display() as client:
        assert client.state is xmux.ClientState.CONNECTED
        assert client.default_screen == 2

    assert requested[0].display == 7


def test_open_display_without_name(monkeypatch):

    monkeypatch.delenv('DISPLAY', raising=False)

    with pytest.raises(xmux.errors.DisplayNameError):
        xmux.open_display()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
