""" Request sequence numbering. Every request sent on a connection consumes
    exactly one sequence number, in send order, whether or not the request
    expects a reply. The server only ever echoes the low 16 bits; the full
    count is kept here so that replies can be attributed unambiguously after
    the wire value wraps around.
"""

import threading

from . import errors
from .protocol import fields


maximum = 2 ** 64


class SequenceTracker:
    """ Hand out full (unwrapped) sequence numbers. The first request sent
        after connection setup is number 1. Callers must invoke :func:`next`
        in the same order the requests reach the wire; the writer does so
        while holding its write lock.
    """

    def __init__(self, last=0):
        self.last = last
        self._lock = threading.Lock()


    def next(self):
        """ Return the next full sequence number and advance the counter.
        """

        with self._lock:
            sequence = self.last + 1

            if sequence >= maximum:
                raise errors.SequenceExhausted('sequence counter exhausted after %d requests' % (self.last))

            self.last = sequence

        return sequence


    @staticmethod
    def wire(sequence):
        """ Return the 16-bit value the server uses for *sequence*.
        """

        return sequence & fields.SEQUENCE_MASK


    @staticmethod
    def widen(wire_sequence, reference):
        """ Return the earliest full sequence number, no earlier than
            *reference*, whose low 16 bits are *wire_sequence*. The server
            handles requests in order, so *reference* is the last full
            number it was seen to use; every request after that one is
            still in flight.
        """

        full = (reference & ~fields.SEQUENCE_MASK) | wire_sequence

        if full < reference:
            full += fields.SEQUENCE_MODULUS

        return full


# end of class SequenceTracker


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
