''' JSON support for the packed form of a stream; see
    :mod:`dbuswire.transport.codec`. The fastest available library provides
    :func:`dumps` and :func:`loads`.

    JSON has no spelling for NaN or the infinities, and the backends
    disagree on what to do with them: orjson writes ``null``, the standard
    module writes bare tokens that are not JSON at all. Doubles are
    therefore passed through :func:`encode_float` before packing, and
    :func:`decode_float` after unpacking, so that every wire double
    survives the trip.
'''

import math

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


class EncodeError(ValueError):
    """ The document holds something that cannot be written as JSON, such
        as a string that is not valid UTF-8.
    """


class DecodeError(ValueError):
    """ The input is not a JSON document.
    """


def _stdlib_dumps(value):
    return json.dumps(value, separators=(',', ':'), allow_nan=False).encode()


# Every 'dumps' returns bytes, matching msgspec and orjson; every 'loads'
# accepts bytes.

if msgspec is not None:
    backend = 'msgspec'
    _dumps = msgspec.json.Encoder().encode
    _loads = msgspec.json.Decoder().decode
    _encode_errors = (TypeError, ValueError, msgspec.EncodeError)
    _decode_errors = (ValueError, msgspec.DecodeError)
elif orjson is not None:
    backend = 'orjson'
    _dumps = orjson.dumps
    _loads = orjson.loads
    _encode_errors = (TypeError, ValueError, orjson.JSONEncodeError)
    _decode_errors = (ValueError, orjson.JSONDecodeError)
else:
    backend = 'json'
    _dumps = _stdlib_dumps
    _loads = json.loads
    _encode_errors = (TypeError, ValueError)
    _decode_errors = (ValueError,)


def dumps(value):
    """ Encode *value* as JSON bytes. Whatever the backend, a value that
        cannot be encoded raises :class:`EncodeError`.
    """

    try:
        return _dumps(value)
    except _encode_errors as e:
        raise EncodeError(str(e)) from e


def loads(value):
    """ Decode JSON *value*, given as bytes or str. Whatever the backend,
        input that is not JSON raises :class:`DecodeError`.
    """

    try:
        return _loads(value)
    except _decode_errors as e:
        raise DecodeError(str(e)) from e


_non_finite = {
    'NaN': math.nan,
    'Infinity': math.inf,
    '-Infinity': -math.inf,
}


def encode_float(value):
    """ Return a JSON-safe form of a double: finite values are unchanged,
        NaN and the infinities become the strings ``'NaN'``,
        ``'Infinity'`` and ``'-Infinity'``.
    """

    value = float(value)

    if math.isfinite(value):
        return value

    if math.isnan(value):
        return 'NaN'

    if value > 0:
        return 'Infinity'

    return '-Infinity'


def decode_float(value):
    """ Reverse :func:`encode_float`. Anything that is not one of its
        strings is returned as-is, and left for the reader to judge.
    """

    if isinstance(value, str):
        return _non_finite.get(value, value)

    return value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
