""" Exception classes raised by the connection core. The taxonomy follows
    how far a fault reaches: handshake faults prevent a connection from
    being established, per-request faults are local to one request, and
    connection faults take down the whole connection along with every
    request still in flight.
"""

from .transport.base import TransportError


class XmuxError(Exception):
    """Base class for all connection-core errors."""


# Setup faults.

class HandshakeError(XmuxError):
    """The connection setup exchange did not produce a connection."""


class HandshakeRejected(HandshakeError):
    """ The server answered the setup request with a failure. The *reason*
        is the server-provided text; *protocol_version* is the (major, minor)
        tuple the server reported, which is usually the interesting part
        when the failure is a version mismatch.
    """

    def __init__(self, reason, protocol_version=None):
        self.reason = reason
        self.protocol_version = protocol_version

        message = 'connection refused by server: ' + repr(reason)
        if protocol_version is not None:
            message += ' (protocol %d.%d)' % tuple(protocol_version)

        HandshakeError.__init__(self, message)


class AuthenticationRequired(HandshakeRejected):
    """The server wants further authentication, which is not supported."""


class HandshakeIoError(HandshakeError):
    """The setup response was truncated, malformed, or never arrived."""


# Per-request faults.

class SendError(XmuxError):
    """A request could not be sent."""


class RequestTooLarge(SendError):

    def __init__(self, length, maximum):
        self.length = length
        self.maximum = maximum
        SendError.__init__(self, 'request is %d bytes, server maximum is %d' % (length, maximum))


class TransportWriteError(SendError, TransportError):
    """The transport failed while writing a request."""


class RequestError(XmuxError):
    """ The server reported an error for a specific request. The decoded
        :class:`xmux.protocol.message.Error` is available as *error*.
    """

    def __init__(self, error):
        self.error = error
        XmuxError.__init__(self, str(error))


class ReplyTimeout(XmuxError):
    """No reply arrived within the requested timeout."""


class RequestCancelled(XmuxError):
    """The caller abandoned the request before it was resolved."""


# Connection faults. Any of these closes the connection.

class ConnectionFault(XmuxError):
    """A fault that is fatal to the whole connection."""


class TransportReadError(ConnectionFault, TransportError):
    """The transport failed while reading, or the server hung up."""


class FrameDecodeError(ConnectionFault):
    """An inbound frame could not be decoded."""


class DemultiplexError(ConnectionFault):
    """An inbound frame does not correspond to any request sent."""


class SequenceExhausted(ConnectionFault):
    """Too many requests are awaiting resolution at once."""


class ConnectionClosed(XmuxError):
    """ The connection is closed; *cause* is the fault that closed it, or
        None if it was closed deliberately.
    """

    def __init__(self, cause=None):
        self.cause = cause

        if cause is None:
            message = 'connection closed'
        else:
            message = 'connection closed: ' + str(cause)

        XmuxError.__init__(self, message)


class DisplayNameError(XmuxError, ValueError):
    """A display name could not be parsed."""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
