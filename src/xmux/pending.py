""" Reply correlation. A :class:`PendingReply` is handed back to the caller
    for every request sent; the :class:`Registry` tracks the ones still
    waiting on the server, keyed by full sequence number, until the
    demultiplexer (or connection teardown) resolves them.
"""

from __future__ import annotations

import collections
import threading
from typing import Any, Dict, Optional

from . import errors
from .protocol import fields
from .protocol.message import Request


CANCELLED = object()


class PendingReply:
    """ Client-side handle for one request. Each handle is a write-once
        cell: the first call to :func:`_resolve` determines the outcome,
        later calls are ignored.

        :ivar sequence: The full sequence number assigned to the request.
        :ivar request: The request that was sent; its reply class is the
            decode hint for the reply.
        :ivar errors_only: True for a checked void request, which resolves
            to None once the server has demonstrably processed it.
    """

    def __init__(self, sequence: int, request: Request, errors_only: bool = False, registry: Optional['Registry'] = None):

        self.sequence = sequence
        self.request = request
        self.errors_only = errors_only
        self.cancelled = False

        self._registry = registry
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._value: Any = None
        self._failure: Optional[Exception] = None


    def __repr__(self):
        if self._done.is_set():
            state = 'resolved'
        elif self.cancelled:
            state = 'cancelled'
        else:
            state = 'pending'

        return '<PendingReply %d %r %s>' % (self.sequence, self.request, state)


    @property
    def wire_sequence(self) -> int:
        return self.sequence & fields.SEQUENCE_MASK


    def _resolve(self, value: Any = None, failure: Optional[Exception] = None) -> bool:
        """ Store the outcome and release anyone blocked in :func:`wait`.
            Returns False if the handle was already resolved.
        """

        with self._lock:
            if self._done.is_set():
                return False

            self._value = value
            self._failure = failure
            self._done.set()

        return True


    def poll(self) -> bool:
        """ Return True if the request is complete, otherwise return False.
        """

        return self._done.is_set()


    def wait(self, timeout: Optional[float] = None) -> Any:
        """ Block until the request is resolved, and return the decoded
            reply; checked void requests return None. A server error is
            raised as :class:`xmux.errors.RequestError`, a connection failure
            as :class:`xmux.errors.ConnectionClosed`. If the *timeout*
            expires first :class:`xmux.errors.ReplyTimeout` is raised and
            the request remains registered; it is safe to wait again.

            Repeated calls raise the same stored exception instance; its
            traceback starts over each time.
        """

        if not self._done.wait(timeout):
            raise errors.ReplyTimeout('no reply to request %d in %.2f sec' % (self.sequence, timeout))

        if self._failure is not None:
            raise self._failure.with_traceback(None)

        return self._value


    def cancel(self) -> None:
        """ Abandon the request. The handle resolves with
            :class:`xmux.errors.RequestCancelled`, and the reply, if one
            arrives later, is discarded.
        """

        if self._done.is_set():
            return

        if self._registry is not None:
            self._registry.cancel(self)
        else:
            self.cancelled = True
            self._resolve(failure=errors.RequestCancelled('request %d cancelled' % (self.sequence)))


# end of class PendingReply



class Registry:
    """ Table of unresolved requests. The writer inserts, the demultiplexer
        claims, callers cancel, and teardown empties it; every one of those
        runs under the same lock, and an entry leaves the table exactly once.

        Cancelled entries leave a tombstone behind so that the frame which
        eventually arrives for them is recognized and discarded.
    """

    limit = fields.SEQUENCE_MODULUS

    def __init__(self):

        self._lock = threading.Lock()
        self._entries: Dict[int, PendingReply] = dict()
        self._tombstones = set()

        # Full sequence numbers of requests expecting a reply, for each
        # 16-bit wire value, oldest first; this includes tombstones.

        self._by_wire: Dict[int, collections.deque] = dict()

        # Checked void requests (and their tombstones) in send order, for
        # settling once a later sequence number is seen.

        self._checked = collections.deque()

        self._closed = False
        self._cause: Optional[Exception] = None


    def __len__(self):
        return len(self._entries) + len(self._tombstones)


    def __contains__(self, sequence):
        return sequence in self._entries


    def insert(self, pending: PendingReply) -> None:
        """ Register *pending* under its sequence number. Raises
            :class:`xmux.errors.SequenceExhausted` if the table is full, and
            :class:`xmux.errors.ConnectionClosed` (after resolving *pending*)
            if the registry has already been torn down.
        """

        with self._lock:
            if not self._closed:
                if len(self._entries) + len(self._tombstones) >= self.limit:
                    raise errors.SequenceExhausted(
                        '%d requests awaiting resolution; replies are not being drained' % (self.limit)
                    )

                sequence = pending.sequence
                pending._registry = self
                self._entries[sequence] = pending

                if pending.errors_only:
                    self._checked.append(sequence)
                else:
                    wire = sequence & fields.SEQUENCE_MASK
                    try:
                        self._by_wire[wire].append(sequence)
                    except KeyError:
                        self._by_wire[wire] = collections.deque((sequence,))

                return

        failure = errors.ConnectionClosed(self._cause)
        pending._resolve(failure=failure)
        raise failure


    def _unindex(self, sequence):

        wire = sequence & fields.SEQUENCE_MASK

        try:
            numbers = self._by_wire[wire]
        except KeyError:
            return

        try:
            numbers.remove(sequence)
        except ValueError:
            pass

        if not numbers:
            del self._by_wire[wire]


    def _take(self, sequence):
        """ Remove *sequence* from the table. Must be called with the lock
            held. Returns the entry, :data:`CANCELLED` for a tombstone, or
            None if the sequence number is unknown.
        """

        try:
            entry = self._entries.pop(sequence)
        except KeyError:
            if sequence in self._tombstones:
                self._tombstones.discard(sequence)
                entry = CANCELLED
            else:
                return None

        self._unindex(sequence)
        return entry


    def claim_oldest(self, wire: int):
        """ Remove the oldest unresolved request expecting a reply whose
            sequence number has the 16-bit value *wire*. Returns a tuple of
            its full sequence number and the entry, which is
            :data:`CANCELLED` if the request was cancelled; returns
            (None, None) if there is no such request.
        """

        with self._lock:
            try:
                numbers = self._by_wire[wire]
            except KeyError:
                return None, None

            sequence = numbers[0]
            return sequence, self._take(sequence)


    def claim(self, sequence: int):
        """ Remove and return the entry for the full *sequence* number.
            Returns :data:`CANCELLED` if the entry was cancelled, or None if
            no entry was registered for it.
        """

        with self._lock:
            return self._take(sequence)


    def settle(self, sequence: int) -> int:
        """ The server has processed everything before *sequence*: resolve
            any checked void request older than that as successful. Returns
            the number of requests resolved.
        """

        settled = list()

        with self._lock:
            checked = self._checked
            while checked and checked[0] < sequence:
                entry = self._take(checked.popleft())
                if entry is not None and entry is not CANCELLED:
                    settled.append(entry)

        for entry in settled:
            entry._resolve(None)

        return len(settled)


    def cancel(self, pending: PendingReply) -> None:
        """ Remove *pending* from the table, leaving a tombstone in its
            place, and resolve it as cancelled.
        """

        with self._lock:
            sequence = pending.sequence
            if self._entries.get(sequence) is pending:
                del self._entries[sequence]
                self._tombstones.add(sequence)

            pending.cancelled = True

        pending._resolve(failure=errors.RequestCancelled('request %d cancelled' % (pending.sequence)))


    def teardown(self, cause: Optional[Exception] = None) -> int:
        """ Resolve every remaining entry with
            :class:`xmux.errors.ConnectionClosed`, and refuse any further
            insertions. Returns the number of entries resolved.
        """

        with self._lock:
            if self._closed:
                return 0

            self._closed = True
            self._cause = cause
            entries = list(self._entries.values())
            self._entries.clear()
            self._tombstones.clear()
            self._by_wire.clear()
            self._checked.clear()

        for entry in entries:
            entry._resolve(failure=errors.ConnectionClosed(cause))

        return len(entries)


# end of class Registry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
