"""
xmux Protocol Layer
===================

This package defines what travels over the wire: the connection setup
exchange, the generic request/reply/error/event frame layouts, and the codec
interface that maps typed messages to and from bytes.

The protocol layer MUST NOT depend on any transport implementation or on
the connection core.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

User Code
    │
    ▼
Client (xmux.client)
    Public send/receive contract
    - send()
    - next_message()
    - close()

    │
    ▼
Connection Core (writer, demux, pending, sequence, handshake)
    Sequencing, correlation, demultiplexing

    │
    ▼
Codec (codec.py)
    Typed messages <-> frames
    - encode_request()
    - decode_reply() / decode_error() / decode_event()
    - frame_length()

    │
    ▼
Message Model (message.py, requests.py, setup.py)
    Immutable protocol data structures

    │
    ▼
Field Vocabulary (fields.py)
    Wire constants

---------------------------------------------------------------------

Below the Protocol Layer (for context)
--------------------------------------

Transport Layer
    Moves bytes
    - plain sockets (TCP, Unix domain)
    - ZeroMQ STREAM sockets (TCP)

---------------------------------------------------------------------
"""

from . import fields
from . import message
from . import setup
from . import codec
from . import requests

from .message import DecodeError, Error, Event, GenericEvent, Message, Reply, RawReply, Request
from .setup import AuthInfo, ConnectionInfo
from .codec import Codec, CoreCodec


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
