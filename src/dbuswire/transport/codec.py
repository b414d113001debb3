"""Pack a stream into bytes, and back.

The packed form is a JSON document::

    {"envelope": {...}, "items": [...], "fds": [...]}

Each basic value is packed as ``[code, value]``, an open marker as
``["open", kind, content]`` and a close marker as ``["close"]``. Doubles
go through :func:`dbuswire.json.encode_float`, so NaN and the infinities
survive. Descriptor indices travel with the items; the descriptors
themselves are only meaningful to a transport that can pass them out of
band.

Only the structure of the document is checked on the way in. The values
themselves are checked when they are read from the message, where a bad
value makes the message invalid instead of raising.
"""

from __future__ import annotations

from typing import Iterable, List

from .. import json
from ..container import Container, ContainerEnd, Kind
from ..envelope import Envelope
from ..signature import DOUBLE
from .base import Stream, TransportError


_OPEN = 'open'
_CLOSE = 'close'


def encode_items(items: Iterable) -> List[list]:

    packed = list()

    for item in items:
        if isinstance(item, Container):
            packed.append([_OPEN, item.type.value, str(item.content)])
        elif isinstance(item, ContainerEnd):
            packed.append([_CLOSE])
        else:
            code, value = item
            if code == DOUBLE:
                value = json.encode_float(value)
            packed.append([code, value])

    return packed


def decode_items(packed: Iterable[list]) -> List:
    """Raises ValueError, KeyError, IndexError or TypeError if an entry
    is not one of the three packed forms."""

    items = list()

    for entry in packed:
        tag = entry[0]

        if tag == _OPEN:
            items.append(Container(Kind(entry[1]), entry[2]))
        elif tag == _CLOSE:
            items.append(ContainerEnd())
        elif tag == DOUBLE:
            items.append((tag, json.decode_float(entry[1])))
        elif isinstance(tag, str) and len(tag) == 1:
            items.append((tag, entry[1]))
        else:
            raise ValueError('unknown item tag: %r' % (tag,))

    return items


def pack(stream: Stream) -> bytes:
    """Serialize a stream -> bytes."""

    document = {
        'envelope': stream.envelope.to_dict(),
        'items': encode_items(stream.items()),
        'fds': list(stream.fds),
    }

    try:
        return json.dumps(document)
    except json.EncodeError as e:
        raise TransportError('cannot pack message: %s' % (e)) from e


def unpack(packed: bytes, stream_class=None) -> Stream:
    """Deserialize bytes -> a sealed stream. A document that is not a
    packed stream raises :class:`TransportError`."""

    if stream_class is None:
        from .memory import MemoryStream
        stream_class = MemoryStream

    try:
        document = json.loads(packed)
        envelope = Envelope.from_dict(document.get('envelope', {}))
        fds = list(document.get('fds', ()))
        items = decode_items(document.get('items', ()))
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as e:
        raise TransportError('malformed packed stream: %s' % (e)) from e

    stream = stream_class(envelope)
    stream.fds.extend(fds)

    for item in items:
        stream.append(item)

    stream.seal()
    return stream
