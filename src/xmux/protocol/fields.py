"""Protocol constants.

Keep these in one place to avoid magic numbers in frame handling.
"""

import sys

# Core protocol version requested during setup.

PROTOCOL_MAJOR_VERSION = 11
PROTOCOL_MINOR_VERSION = 0

# The client picks the byte order for the whole connection in the setup
# request; the server swaps as needed. Use the native order.

if sys.byteorder == 'little':
    BYTE_ORDER = b'l'
    ENDIAN = '<'
else:
    BYTE_ORDER = b'B'
    ENDIAN = '>'

# Setup response status byte.

SETUP_FAILED = 0
SETUP_SUCCESS = 1
SETUP_AUTHENTICATE = 2

# Leading byte of every server-to-client frame.

ERROR = 0
REPLY = 1

# Events with the high bit set were generated by a SendEvent request.

SEND_EVENT_MASK = 0x80
EVENT_CODE_MASK = 0x7f

# Events that break the fixed 32-byte rule, or omit the sequence number.

KEYMAP_NOTIFY = 11
GENERIC_EVENT = 35

# Sizes, in bytes.

FRAME_SIZE = 32
SETUP_HEADER_SIZE = 8
UNIT = 4

# Sequence numbers are 16 bits on the wire.

SEQUENCE_MODULUS = 0x10000
SEQUENCE_MASK = 0xffff

# X11 request codes used by the connection core itself.

GET_INPUT_FOCUS = 43
NO_OPERATION = 127


def pad(length):
    """ Return the number of bytes required to pad *length* to a multiple
        of four.
    """

    return -length % UNIT


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
