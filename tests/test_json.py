import dataclasses
import json
import xmux

from xmux.protocol import setup


def test_json_encode_and_decode():
    encode_and_decode(json.dumps, json.loads, dump_is_bytes=False)


def test_xmux_encode_and_decode():
    encode_and_decode(xmux.json.dumps, xmux.json.loads)


def encode_and_decode(dumps, loads, dump_is_bytes=True):

    input_dictionary = dict()
    input_dictionary['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['dict'] = {'one': 1, 'two': 2}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = dumps(input_dictionary)

    if dump_is_bytes:
        assert isinstance(encoded, bytes)
    else:
        assert isinstance(encoded, str)

    # Whitespace differs between the libraries xmux.json may select, so
    # only the decoded result is compared.

    decoded = loads(encoded)
    assert decoded == input_dictionary


def test_dataclasses():
    """ Connection information is dumped as nested objects; tuples become
        lists, and byte strings become hex.
    """

    format = setup.Format(24, 32, 32)
    credential = setup.AuthInfo(b'MIT-MAGIC-COOKIE-1', b'\x01\xff')

    decoded = xmux.json.loads(xmux.json.dumps(dict(formats=(format,), credential=credential)))

    assert decoded['formats'] == [dataclasses.asdict(format)]
    assert decoded['credential']['name'] == b'MIT-MAGIC-COOKIE-1'.hex()
    assert decoded['credential']['data'] == '01ff'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
