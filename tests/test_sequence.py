import pytest
import struct
import threading
import xmux

from conftest import setup_success
from xmux.protocol import fields, requests
from xmux.sequence import SequenceTracker


def test_counter():

    tracker = SequenceTracker()
    assert tracker.next() == 1
    assert tracker.next() == 2
    assert tracker.last == 2

    tracker = SequenceTracker(last=0xffff)
    assert tracker.next() == 0x10000
    assert tracker.wire(0x10000) == 0
    assert tracker.wire(0x10001) == 1


def test_widen():

    widen = SequenceTracker.widen

    assert widen(5, 5) == 5
    assert widen(7, 5) == 7
    assert widen(3, 5) == 0x10003
    assert widen(0, 0xffff) == 0x10000
    assert widen(0xffff, 0x10000) == 0x1ffff
    assert widen(7, 0x10003) == 0x10007
    assert widen(2, 0x10003) == 0x20002
    assert widen(0x1234, 0x51234) == 0x51234


def test_consecutive(client):
    """ Every request consumes exactly one sequence number, in send order,
        whether or not it expects a reply.
    """

    first = client.sequence.last + 1

    sent = list()
    sent.append(client.send(requests.NoOperation()))
    sent.append(client.send(requests.GetInputFocus()))
    sent.append(client.send(requests.MapWindow(0x04000001)))
    sent.append(client.send(requests.MapWindow(0x04000002), checked=True))
    sent.append(client.send(requests.InternAtom('WM_NAME')))

    numbers = [pending.sequence for pending in sent]
    assert numbers == list(range(first, first + len(sent)))
    assert len(client.transport.written) == len(sent)

    # Unchecked void requests are resolved as soon as they are sent.

    assert sent[0].poll() == True
    assert sent[0].wait() is None
    assert sent[2].poll() == True

    assert sent[1].poll() == False
    assert sent[3].poll() == False
    assert sent[4].poll() == False


def test_too_large(transport):
    """ An oversized request is refused before it is numbered, and the
        connection remains usable.
    """

    transport.feed(setup_success(maximum_request_length=4))

    with xmux.Client.connect(transport) as client:
        transport.written.clear()

        client.send(requests.NoOperation())
        assert client.sequence.last == 1

        with pytest.raises(xmux.errors.RequestTooLarge) as caught:
            client.send(requests.NoOperation(padding=4))

        assert caught.value.length == 20
        assert caught.value.maximum == 16
        assert client.sequence.last == 1
        assert len(transport.written) == 1
        assert client.state is xmux.ClientState.CONNECTED

        pending = client.send(requests.NoOperation(padding=3))
        assert pending.sequence == 2
        assert len(transport.written[-1]) == 16


def test_concurrent_senders(client):
    """ Requests sent from several threads at once reach the wire as whole
        frames, and each one's sequence number is its position on the wire.
    """

    first = client.sequence.last + 1
    numbers = dict()
    lock = threading.Lock()

    def sender(thread):
        for number in range(200):
            name = 'T%d-%d' % (thread, number)
            pending = client.send(requests.InternAtom(name, only_if_exists=True))
            with lock:
                numbers[name] = pending.sequence

    threads = [threading.Thread(target=sender, args=(thread,)) for thread in range(8)]
    for thread in threads:
        thread.start()

    for thread in threads:
        thread.join(timeout=10)

    written = client.transport.written
    assert len(written) == 1600
    assert sorted(numbers.values()) == list(range(first, first + 1600))

    for index, frame in enumerate(written):
        opcode, only_if_exists, length = struct.unpack_from(fields.ENDIAN + 'BBH', frame, 0)
        assert opcode == 16
        assert length * 4 == len(frame)

        name_length, = struct.unpack_from(fields.ENDIAN + 'H', frame, 4)
        name = frame[8:8 + name_length].decode('latin-1')
        assert numbers[name] == first + index


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
