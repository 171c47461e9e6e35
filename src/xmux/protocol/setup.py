"""Connection setup: the setup request, and the connection information the
server returns when it accepts the connection.

The setup exchange happens exactly once per connection, before any request
is sent, and does not consume sequence numbers.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from . import fields
from .message import DecodeError


E = fields.ENDIAN

_request = struct.Struct(E + 'cxHHHH2x')
_header = struct.Struct(E + 'BBHHH')
_success = struct.Struct(E + 'IIIIHHBBBBBBBB4x')
_format = struct.Struct(E + 'BBB5x')
_screen = struct.Struct(E + 'IIIIIHHHHHHIBBBB')
_depth = struct.Struct(E + 'BxH4x')
_visual = struct.Struct(E + 'IBBHIII4x')


@dataclass(frozen=True)
class AuthInfo:
    """Authorization protocol name and data sent with the setup request."""

    name: bytes = b''
    data: bytes = b''


@dataclass(frozen=True)
class Format:
    depth: int
    bits_per_pixel: int
    scanline_pad: int


@dataclass(frozen=True)
class Visual:
    visual_id: int
    visual_class: int
    bits_per_rgb_value: int
    colormap_entries: int
    red_mask: int
    green_mask: int
    blue_mask: int


@dataclass(frozen=True)
class Depth:
    depth: int
    visuals: Tuple[Visual, ...] = ()


@dataclass(frozen=True)
class Screen:
    root: int
    default_colormap: int
    white_pixel: int
    black_pixel: int
    current_input_masks: int
    width_in_pixels: int
    height_in_pixels: int
    width_in_millimeters: int
    height_in_millimeters: int
    min_installed_maps: int
    max_installed_maps: int
    root_visual: int
    backing_stores: int
    save_unders: bool
    root_depth: int
    depths: Tuple[Depth, ...] = ()


@dataclass(frozen=True)
class ConnectionInfo:
    """ Server information established by the setup exchange. The resource
        id base and mask partition the 32-bit id space; clients allocate
        their own resource ids as ``base | (n & mask)``.
    """

    protocol_version: Tuple[int, int]
    release_number: int
    resource_id_base: int
    resource_id_mask: int
    motion_buffer_size: int
    maximum_request_length: int
    image_byte_order: int
    bitmap_format_bit_order: int
    bitmap_format_scanline_unit: int
    bitmap_format_scanline_pad: int
    min_keycode: int
    max_keycode: int
    vendor: str
    formats: Tuple[Format, ...] = ()
    screens: Tuple[Screen, ...] = ()

    @property
    def maximum_request_bytes(self) -> int:
        return self.maximum_request_length * fields.UNIT

    def allocate_id(self, n: int) -> int:
        """Return the resource id for allocator-chosen index *n*."""
        return self.resource_id_base | (n & self.resource_id_mask)


def encode_request(credential: Optional[AuthInfo] = None) -> bytes:
    """Serialize the setup request for the given authorization *credential*."""

    if credential is None:
        credential = AuthInfo()

    name = bytes(credential.name)
    data = bytes(credential.data)

    header = _request.pack(
        fields.BYTE_ORDER,
        fields.PROTOCOL_MAJOR_VERSION,
        fields.PROTOCOL_MINOR_VERSION,
        len(name),
        len(data),
    )

    return b''.join((
        header,
        name, b'\0' * fields.pad(len(name)),
        data, b'\0' * fields.pad(len(data)),
    ))


def decode_header(header: bytes) -> Tuple[int, int, Tuple[int, int], int]:
    """ Unpack the fixed 8-byte prefix of a setup response. Returns a tuple
        of (status, detail byte, protocol version, additional length in
        bytes).
    """

    if len(header) != _header.size:
        raise DecodeError('setup response header is %d bytes, expected %d' % (len(header), _header.size))

    status, detail, major, minor, length = _header.unpack(header)
    return status, detail, (major, minor), length * fields.UNIT


def decode_reason(body: bytes, length: Optional[int] = None) -> str:
    """Decode the text of a failed or authenticate setup response."""

    if length is None:
        reason = body.rstrip(b'\0')
    else:
        if length > len(body):
            raise DecodeError('setup failure reason is truncated')
        reason = body[:length]

    return reason.decode('latin-1')


def decode_success(version: Tuple[int, int], body: bytes) -> ConnectionInfo:
    """ Parse the body of a successful setup response into a
        :class:`ConnectionInfo`. Raises :class:`DecodeError` if the body is
        truncated or violates the resource id invariants.
    """

    try:
        return _decode_success(version, body)
    except struct.error as e:
        raise DecodeError('setup response is truncated: ' + str(e)) from e


def _decode_success(version, body):

    (release, base, mask, motion, vendor_length, maximum_length, screen_count,
        format_count, image_order, bit_order, scanline_unit, scanline_pad,
        min_keycode, max_keycode) = _success.unpack_from(body, 0)

    if mask == 0:
        raise DecodeError('resource id mask is zero')

    if base & mask:
        raise DecodeError('resource id base 0x%08x overlaps mask 0x%08x' % (base, mask))

    offset = _success.size
    end = offset + vendor_length

    if end > len(body):
        raise DecodeError('vendor string is truncated')

    vendor = body[offset:end].decode('latin-1')
    offset = end + fields.pad(vendor_length)

    formats = list()
    for number in range(format_count):
        formats.append(Format(*_format.unpack_from(body, offset)))
        offset += _format.size

    screens = list()
    for number in range(screen_count):
        values = _screen.unpack_from(body, offset)
        offset += _screen.size

        depth_count = values[-1]
        depths = list()

        for depth_number in range(depth_count):
            depth, visual_count = _depth.unpack_from(body, offset)
            offset += _depth.size

            visuals = list()
            for visual_number in range(visual_count):
                visuals.append(Visual(*_visual.unpack_from(body, offset)))
                offset += _visual.size

            depths.append(Depth(depth, tuple(visuals)))

        screen = Screen(*values[:13], bool(values[13]), values[14], tuple(depths))
        screens.append(screen)

    if offset > len(body):
        raise DecodeError('setup response is truncated')

    return ConnectionInfo(
        protocol_version=tuple(version),
        release_number=release,
        resource_id_base=base,
        resource_id_mask=mask,
        motion_buffer_size=motion,
        maximum_request_length=maximum_length,
        image_byte_order=image_order,
        bitmap_format_bit_order=bit_order,
        bitmap_format_scanline_unit=scanline_unit,
        bitmap_format_scanline_pad=scanline_pad,
        min_keycode=min_keycode,
        max_keycode=max_keycode,
        vendor=vendor,
        formats=tuple(formats),
        screens=tuple(screens),
    )


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
