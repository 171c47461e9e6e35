"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`xmux.protocol` so the protocol layer remains
transport-agnostic: the core only ever sees a connected duplex byte stream.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """An operation on the transport did not complete in time."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportPortError(TransportError):
    """No suitable address or port could be connected."""


class Transport(ABC):
    """Minimal contract for a duplex byte stream."""

    @abstractmethod
    def read(self, size: int) -> bytes:
        """Return up to *size* bytes; an empty result means end of stream."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write all of *data*, or raise :class:`TransportError`."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection/socket."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
