"""Transport collaborators for :class:`dbuswire.message.Message`."""

from .base import (
    Stream,
    Transport,
    TransportError,
    TransportTimeout,
)

from . import codec
from . import memory
