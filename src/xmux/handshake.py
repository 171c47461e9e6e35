"""Connection setup negotiation."""

from __future__ import annotations

import logging
from typing import Optional

from . import errors
from .protocol import fields
from .protocol import setup
from .protocol.message import DecodeError
from .protocol.setup import AuthInfo, ConnectionInfo
from .transport.base import Transport, TransportError


logger = logging.getLogger(__name__)


def read_exactly(transport: Transport, size: int) -> bytes:
    """ Read exactly *size* bytes from *transport*. Raises
        :class:`xmux.errors.HandshakeIoError` if the stream ends first.
    """

    chunks = list()
    remaining = size

    while remaining > 0:
        chunk = transport.read(remaining)
        if not chunk:
            raise errors.HandshakeIoError(
                'connection closed during setup, %d of %d bytes read' % (size - remaining, size)
            )

        chunks.append(chunk)
        remaining -= len(chunk)

    return b''.join(chunks)


def negotiate(transport: Transport, credential: Optional[AuthInfo] = None) -> ConnectionInfo:
    """ Perform the one-time setup exchange over a connected *transport*,
        presenting the authorization *credential* if one is provided. Returns
        the :class:`ConnectionInfo` the server sent on success.

        Raises :class:`xmux.errors.HandshakeRejected` if the server refused
        the connection (:class:`xmux.errors.AuthenticationRequired` if it
        asked for further authentication), or
        :class:`xmux.errors.HandshakeIoError` if the response was malformed
        or the transport failed. There is no retry; the caller is
        responsible for closing the transport after a failure.
    """

    try:
        transport.write(setup.encode_request(credential))
        header = read_exactly(transport, fields.SETUP_HEADER_SIZE)
        status, detail, version, length = setup.decode_header(header)
        body = read_exactly(transport, length)
    except TransportError as e:
        raise errors.HandshakeIoError('setup failed: ' + str(e)) from e
    except DecodeError as e:
        raise errors.HandshakeIoError('malformed setup response: ' + str(e)) from e

    try:
        if status == fields.SETUP_SUCCESS:
            info = setup.decode_success(version, body)

        elif status == fields.SETUP_FAILED:
            reason = setup.decode_reason(body, detail)
            raise errors.HandshakeRejected(reason, version)

        elif status == fields.SETUP_AUTHENTICATE:
            reason = setup.decode_reason(body)
            raise errors.AuthenticationRequired(reason)

        else:
            raise errors.HandshakeIoError('unknown setup response status %d' % (status))

    except DecodeError as e:
        raise errors.HandshakeIoError('malformed setup response: ' + str(e)) from e

    logger.debug(
        'connected: protocol %d.%d, vendor %r release %d, %d screen(s), maximum request %d bytes',
        info.protocol_version[0], info.protocol_version[1], info.vendor,
        info.release_number, len(info.screens), info.maximum_request_bytes,
    )

    return info


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
