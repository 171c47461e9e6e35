""" The shared, ordered channel carrying events and unclaimed errors from
    the demultiplexer to any number of consumers. Items come out in exactly
    the order they went in. Closing the channel lets consumers drain what is
    already queued, after which every read raises
    :class:`xmux.errors.ConnectionClosed`.
"""

import collections
import threading

from . import errors


class MessageChannel:

    def __init__(self):

        # A deque and a Condition, rather than a SimpleQueue: closing the
        # channel has to wake every blocked consumer at once.

        self._items = collections.deque()
        self._condition = threading.Condition(threading.Lock())
        self._closed = False
        self._cause = None


    def __len__(self):
        return len(self._items)


    @property
    def closed(self):
        return self._closed


    def publish(self, item):
        """ Append *item* to the channel. Items published after the channel
            is closed are dropped.
        """

        with self._condition:
            if self._closed:
                return False

            self._items.append(item)
            self._condition.notify()

        return True


    def close(self, cause=None):
        """ Close the channel; *cause* is the fault responsible, if any.
            Closing an already closed channel is a no-op.
        """

        with self._condition:
            if self._closed:
                return

            self._closed = True
            self._cause = cause
            self._condition.notify_all()


    def get(self, block=True, timeout=None):
        """ Return the next item. If *block* is False, or the *timeout*
            expires, return None when nothing is available. Raises
            :class:`xmux.errors.ConnectionClosed` once the channel is closed
            and empty.
        """

        with self._condition:
            if block:
                self._condition.wait_for(self._ready, timeout)

            try:
                return self._items.popleft()
            except IndexError:
                pass

            if self._closed:
                raise errors.ConnectionClosed(self._cause)

        return None


    def _ready(self):
        return self._items or self._closed


# end of class MessageChannel


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
