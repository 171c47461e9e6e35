""" Python client core for the X Window System protocol. This includes the
    connection setup exchange, request sequencing, and the demultiplexing of
    the single inbound byte stream into replies, errors and events.
"""

__version__ = '0.1.0'

# Utility components.

from . import json

# Submodules used by multiple other components.

from . import errors
from . import protocol
from . import transport

# Primary public-facing interfaces.

from .client import Client, ClientState, connect
from .display import open_display
from .pending import PendingReply
from .protocol.setup import AuthInfo, ConnectionInfo

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
