""" Envelope metadata for a message. The envelope is owned by the transport;
    a :class:`dbuswire.message.Message` only ever projects it.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Optional


class MessageType(enum.Enum):
    INVALID = 0
    METHOD_CALL = 1
    REPLY = 2
    ERROR = 3
    SIGNAL = 4


@dataclasses.dataclass
class Envelope:
    type: MessageType = MessageType.INVALID
    destination: Optional[str] = None
    sender: Optional[str] = None
    path: Optional[str] = None
    interface: Optional[str] = None
    member: Optional[str] = None
    error_name: Optional[str] = None
    error_message: Optional[str] = None
    serial: int = 0
    reply_serial: int = 0

    def to_dict(self) -> dict:
        fields = dataclasses.asdict(self)
        fields['type'] = self.type.value
        return fields

    @classmethod
    def from_dict(cls, fields: dict) -> Envelope:
        fields = dict(fields)
        fields['type'] = MessageType(fields.get('type', 0))
        return cls(**fields)
