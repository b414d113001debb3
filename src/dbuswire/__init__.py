""" Python implementation of a typed marshalling engine for a signature-typed
    bus wire format. This includes the signature grammar, the streaming
    :class:`Message` codec, and the type-erased :class:`Variant` together
    with the registry used to decode variants of unknown type.
"""

# Utility components.

from . import config
from . import errors
from . import json

# The grammar, and the machinery built on top of it.

from . import signature
from . import container
from . import marshal
from . import variant
from . import registry
from . import transport
from . import message

# Primary public-facing interfaces.

from .container import Container, ContainerEnd
from .envelope import Envelope, MessageType
from .errors import ContractError, MarshalError, StreamError
from .message import Message
from .registry import Registry, default_registry, lookup_type, register_type
from .signature import Array, Byte, Dict, DictEntry, Int16, Int32, Int64, \
                       ObjectPath, Signature, Struct, Tuple, UInt16, UInt32, \
                       UInt64, UnixFD, signature_of
from .variant import Variant

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
