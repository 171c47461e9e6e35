''' JSON encoding for diagnostic output, such as the connection information
    dumped by ``xmux-info``. The most performant available library is used:
    msgspec, then orjson, then the standard :mod:`json` module. Every
    variant of :func:`dumps` returns bytes, and accepts the frozen
    dataclasses of :mod:`xmux.protocol` directly.
'''

import dataclasses

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


def default(value):
    """ Fallback for values the selected library does not handle natively.
        Byte strings (authorization data, raw frames) are rendered as hex.
    """

    if isinstance(value, (bytes, bytearray)):
        return value.hex()

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)

    raise TypeError('cannot encode %s as JSON' % (type(value).__name__))


def _builtin(value):
    """ Recursively convert *value* into types the standard library encoder
        understands.
    """

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)

    if isinstance(value, dict):
        return dict((key, _builtin(item)) for key, item in value.items())

    if isinstance(value, (list, tuple)):
        return [_builtin(item) for item in value]

    if isinstance(value, (bytes, bytearray)):
        return value.hex()

    return value


def json_dumps(value):
    return json.dumps(_builtin(value)).encode()


if msgspec is not None:
    encoder = msgspec.json.Encoder(enc_hook=default)
    decoder = msgspec.json.Decoder()
    loads = decoder.decode

    # msgspec encodes bytes as base64; keep hex for every library.

    def dumps(value):
        return encoder.encode(_builtin(value))

elif orjson is not None:
    loads = orjson.loads

    def dumps(value):
        return orjson.dumps(_builtin(value), default=default)

else:
    dumps = json_dumps
    loads = json.loads


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
