import pytest
import xmux

from conftest import ScriptedTransport, setup_success
from xmux import display, info


def test_dump(monkeypatch, capsys):

    transport = ScriptedTransport()
    transport.feed(setup_success(vendor='Dump Test'))

    def open_display(name=None, credential=None, codec=None):
        assert name == ':3'
        return xmux.Client.connect(transport)

    monkeypatch.setattr(display, 'open_display', open_display)

    assert info.main(['--display', ':3']) == 0

    output = capsys.readouterr().out
    decoded = xmux.json.loads(output)

    assert decoded['vendor'] == 'Dump Test'
    assert decoded['protocol_version'] == [11, 0]
    assert decoded['screens'][0]['width_in_pixels'] == 1920
    assert transport.is_open == False


def test_no_display(monkeypatch, capsys):

    monkeypatch.delenv('DISPLAY', raising=False)

    assert info.main([]) == 1
    assert 'DISPLAY' in capsys.readouterr().err


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
