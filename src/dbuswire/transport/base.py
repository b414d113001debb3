"""Transport interface.

This is the (small) contract a transport must honour so that a
:class:`dbuswire.message.Message` can be built on top of it. The message
layer never touches sockets; everything below the value sequence lives here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..envelope import Envelope


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """No message arrived within the requested time."""


class Stream(ABC):
    """An ordered sequence of typed wire items, plus envelope metadata.

    An item is either a ``(code, value)`` pair for a basic value, a
    :class:`dbuswire.container.Container` open marker, or a
    :class:`dbuswire.container.ContainerEnd` close marker. Items are appended
    while the stream is being written; once sealed, they are consumed through
    a cursor.
    """

    envelope: Envelope
    fds: List[int]
    sealed: bool

    @abstractmethod
    def append(self, item) -> None:
        """Append one item at the write position."""

    @abstractmethod
    def peek(self):
        """Return the item under the cursor, or None at the end of the stream."""

    @abstractmethod
    def next(self):
        """Consume and return the item under the cursor."""

    @abstractmethod
    def rewind(self) -> None:
        """Move the cursor back to the first item."""

    @abstractmethod
    def seal(self) -> None:
        """Finish writing; the stream becomes read-only."""

    @abstractmethod
    def items(self) -> tuple:
        """Return every item in the stream, regardless of the cursor."""

    @property
    def position(self) -> int:
        """The number of items consumed so far."""
        return 0


class Transport(ABC):
    """Minimal contract for moving finished streams between peers."""

    @abstractmethod
    def allocate(self, envelope: Optional[Envelope] = None) -> Stream:
        """Return a new, empty stream for an outgoing message."""

    @abstractmethod
    def send(self, stream: Stream) -> None:
        """Hand a sealed stream to the bus."""

    @abstractmethod
    def recv(self, timeout: Optional[float] = None) -> Stream:
        """Return the next incoming stream, already sealed."""
