"""In-process transport.

:class:`MemoryStream` is the value sequence behind every message created
without an explicit transport. :class:`LoopbackTransport` delivers sent
messages back to the same process, passing each one through the codec
so that what is received is a faithful, independent copy.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from typing import List, Optional

from ..envelope import Envelope
from . import codec
from .base import Stream, Transport, TransportError, TransportTimeout


logger = logging.getLogger(__name__)


class MemoryStream(Stream):
    """A list-backed :class:`Stream`."""

    def __init__(self, envelope: Optional[Envelope] = None):
        if envelope is None:
            envelope = Envelope()

        self.envelope = envelope
        self.fds: List[int] = []
        self.sealed = False

        self._items: list = []
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._items)

    def append(self, item) -> None:
        if self.sealed:
            raise TransportError('cannot append to a sealed stream')
        self._items.append(item)

    def peek(self):
        try:
            return self._items[self._cursor]
        except IndexError:
            return None

    def next(self):
        item = self._items[self._cursor]
        self._cursor += 1
        return item

    def rewind(self) -> None:
        self._cursor = 0

    def seal(self) -> None:
        self.sealed = True

    def items(self) -> tuple:
        return tuple(self._items)

    @property
    def position(self) -> int:
        return self._cursor


class LoopbackTransport(Transport):
    """Deliver every sent stream to the local receive queue."""

    _names = itertools.count(1)

    def __init__(self, name: Optional[str] = None):
        if name is None:
            name = ':loopback.%d' % (next(self._names))

        self.name = name
        self._serials = itertools.count(1)
        self._serial_lock = threading.Lock()

        try:
            self._inbox = queue.SimpleQueue()
        except AttributeError:
            self._inbox = queue.Queue()

    def _serial_next(self) -> int:
        with self._serial_lock:
            return next(self._serials)

    def allocate(self, envelope: Optional[Envelope] = None) -> MemoryStream:
        return MemoryStream(envelope)

    def send(self, stream: Stream) -> None:
        if not stream.sealed:
            raise TransportError('only sealed streams can be sent')

        envelope = stream.envelope
        envelope.sender = self.name
        envelope.serial = self._serial_next()

        packed = codec.pack(stream)
        logger.debug('%s: sending serial %d, %d bytes', self.name, envelope.serial, len(packed))
        self._inbox.put(packed)

    def recv(self, timeout: Optional[float] = None) -> MemoryStream:
        try:
            packed = self._inbox.get(timeout=timeout)
        except queue.Empty:
            raise TransportTimeout('no message received in %s sec' % (timeout,))

        stream = codec.unpack(packed, MemoryStream)
        logger.debug('%s: received serial %d', self.name, stream.envelope.serial)
        return stream


default = LoopbackTransport(':loopback')
