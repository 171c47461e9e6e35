import pytest
import traceback
import xmux

from xmux.pending import CANCELLED, PendingReply, Registry
from xmux.protocol import requests


def make(sequence, void=False):
    if void:
        return PendingReply(sequence, requests.MapWindow(1), errors_only=True)
    return PendingReply(sequence, requests.GetInputFocus())


def test_claim():

    registry = Registry()
    first = make(1)
    registry.insert(first)

    assert 1 in registry
    assert len(registry) == 1

    assert registry.claim(2) is None
    assert registry.claim(1) is first
    assert registry.claim(1) is None
    assert len(registry) == 0


def test_claim_oldest():

    registry = Registry()
    older = make(0x10003)
    newer = make(0x20003)
    registry.insert(older)
    registry.insert(newer)

    assert registry.claim_oldest(3) == (0x10003, older)
    assert registry.claim_oldest(3) == (0x20003, newer)
    assert registry.claim_oldest(3) == (None, None)


def test_claim_oldest_skips_void():
    """ Void requests never get a reply, so a reply is never matched to a
        checked void request sharing its wire value.
    """

    registry = Registry()
    checked = make(0x10003, void=True)
    newer = make(0x20003)
    registry.insert(checked)
    registry.insert(newer)

    assert registry.claim_oldest(3) == (0x20003, newer)
    assert registry.claim(0x10003) is checked


def test_settle():

    registry = Registry()
    checked = [make(number, void=True) for number in (1, 2, 4)]
    for pending in checked:
        registry.insert(pending)

    assert registry.settle(2) == 1
    assert checked[0].poll() == True
    assert checked[1].poll() == False

    # A frame carrying sequence number 2 says nothing about request 2
    # itself; it could still be followed by an error for it.

    assert registry.settle(5) == 2
    assert checked[1].wait() is None
    assert checked[2].wait() is None
    assert len(registry) == 0


def test_cancel():

    registry = Registry()
    pending = make(7)
    registry.insert(pending)

    pending.cancel()
    assert pending.cancelled == True

    with pytest.raises(xmux.errors.RequestCancelled):
        pending.wait(timeout=0)

    # The tombstone still occupies a slot until its frame arrives.

    assert len(registry) == 1
    assert 7 not in registry
    assert registry.claim_oldest(7) == (7, CANCELLED)
    assert len(registry) == 0


def test_cancel_resolved():

    registry = Registry()
    pending = make(7)
    registry.insert(pending)

    registry.claim(7)._resolve('done')
    pending.cancel()

    assert pending.cancelled == False
    assert pending.wait() == 'done'


def test_first_resolution_wins():

    pending = make(1)
    assert pending._resolve('first') == True
    assert pending._resolve('second') == False
    assert pending._resolve(failure=xmux.errors.ConnectionClosed()) == False
    assert pending.wait() == 'first'


def test_repeated_wait():
    """ Waiting again on a failed request raises the same failure, without
        the traceback accumulating frames from every earlier wait.
    """

    pending = make(1)
    pending._resolve(failure=xmux.errors.ConnectionClosed())

    depths = list()
    for attempt in range(3):
        with pytest.raises(xmux.errors.ConnectionClosed) as caught:
            pending.wait(timeout=0)
        depths.append(len(list(traceback.walk_tb(caught.value.__traceback__))))

    assert depths[0] == depths[1] == depths[2]


def test_exhaustion():

    registry = Registry()
    registry.limit = 3

    entries = [make(number) for number in (1, 2, 3)]
    for pending in entries:
        registry.insert(pending)

    entries[0].cancel()

    with pytest.raises(xmux.errors.SequenceExhausted):
        registry.insert(make(4))

    registry.claim(1)
    registry.insert(make(4))
    assert len(registry) == 3


def test_teardown():

    registry = Registry()
    entries = [make(1), make(2, void=True), make(3)]
    for pending in entries:
        registry.insert(pending)

    cause = xmux.errors.TransportReadError('gone')
    assert registry.teardown(cause) == 3
    assert registry.teardown(cause) == 0
    assert len(registry) == 0

    for pending in entries:
        with pytest.raises(xmux.errors.ConnectionClosed) as caught:
            pending.wait(timeout=0)
        assert caught.value.cause is cause

    late = make(4)
    with pytest.raises(xmux.errors.ConnectionClosed):
        registry.insert(late)

    assert late.poll() == True


def test_client_exhaustion(client):
    """ Running out of room for outstanding requests is fatal to the
        connection.
    """

    client.registry.limit = 2

    first = client.send(requests.GetInputFocus())
    second = client.send(requests.GetInputFocus())

    with pytest.raises(xmux.errors.SequenceExhausted):
        client.send(requests.GetInputFocus())

    assert client.state is xmux.ClientState.CLOSED

    for pending in (first, second):
        with pytest.raises(xmux.errors.ConnectionClosed) as caught:
            pending.wait(timeout=2)
        assert isinstance(caught.value.cause, xmux.errors.SequenceExhausted)


def test_write_failure(client):

    pending = client.send(requests.GetInputFocus())
    client.transport.write_error = xmux.errors.TransportError('broken pipe')

    with pytest.raises(xmux.errors.TransportWriteError):
        client.send(requests.GetInputFocus())

    assert client.state is xmux.ClientState.CLOSED

    with pytest.raises(xmux.errors.ConnectionClosed) as caught:
        pending.wait(timeout=2)

    assert isinstance(caught.value.cause, xmux.errors.TransportWriteError)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
