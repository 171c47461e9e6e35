"""Transport layer implementations.

The backend used by :func:`xmux.open_display` is selected with the
``XMUX_TRANSPORT`` environment variable: ``stream`` (the default) for plain
sockets, or ``zmq`` for ZeroMQ STREAM sockets. Each backend module provides
``open_tcp(host, port, family)`` and ``open_unix(path)``.
"""

import os

from .base import (
    Transport,
    TransportError,
    TransportTimeout,
    TransportConnectionError,
    TransportPortError,
)

from . import stream

_BACKEND = os.environ.get("XMUX_TRANSPORT", "stream")

if _BACKEND == "stream":
    backend = stream
elif _BACKEND == "zmq":
    from .zmq import stream as backend
else:
    raise ImportError(f"unknown XMUX_TRANSPORT backend: {_BACKEND!r}")


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
