""" The variant type registry: a table mapping a signature to the operations
    table used to decode a variant payload with that signature, for code
    that cannot know the payload type in advance.

    A :class:`Registry` performs no locking. Registration is expected to
    happen during startup, before any messages are decoded; once that is
    done, :func:`Registry.freeze` makes the table read-only, after which
    concurrent lookups from any number of threads are safe. Callers that
    register types after decoding has begun must provide their own
    synchronization.
"""

import logging

from . import config
from . import marshal
from . import signature
from .errors import ContractError
from .signature import Array, Byte, Dict, Int16, Int32, Int64, ObjectPath, \
                       Signature, UInt16, UInt32, UInt64, UnixFD
from .variant import Variant


logger = logging.getLogger(__name__)


class Registry:
    """ A signature-keyed table of operations tables. If *defaults* is True
        the table starts out holding every basic type, plus the handful of
        composite types commonly found inside variants.
    """

    def __init__(self, defaults=False):

        self.frozen = False
        self._types = dict()

        if defaults == True:
            for type in default_types():
                self.register_type(type)


    def __contains__(self, sig):
        return str(sig) in self._types


    def __len__(self):
        return len(self._types)


    def __repr__(self):
        return 'Registry(%s)' % (', '.join(sorted(self._types.keys())))


    def freeze(self):
        """ Finish registration. Any later call to :func:`register_type` is
            a :class:`ContractError`.
        """

        self.frozen = True


    def lookup_type(self, sig):
        """ Return the operations table registered for *sig*, or None if
            there is none. None is an ordinary outcome: it means a variant
            with this signature cannot be decoded.
        """

        return self._types.get(str(sig))


    def register_type(self, type):
        """ Register the operations table for a type expression, keyed by
            its signature, and return the table that ends up registered.

            The type must be in reduced form: its signature, parsed back into
            a type expression, must give the same expression. A flattened
            ``Tuple[...]`` anywhere in the expression violates this; use
            ``Struct[...]`` instead.

            The first registration for a signature wins. Registering a
            different type with the same signature, such as
            ``Array[DictEntry[str, Variant]]`` after ``Dict[str, Variant]``,
            is ignored and the original table is returned.
        """

        if self.frozen:
            raise ContractError('the registry is frozen; no further types can be registered')

        if not signature.is_reduced(type):
            raise ContractError('%r is not in reduced form; remove the redundant tuple from it' % (type,))

        operations = marshal.operations(type)
        sig = operations.signature

        try:
            existing = self._types[sig]
        except KeyError:
            pass
        else:
            if existing is not operations:
                logger.debug("'%s' is already registered as %r, ignoring %r", sig, existing, operations)
            return existing

        self._types[sig] = operations
        logger.debug("registered '%s': %r", sig, operations)
        return operations


    def signatures(self):
        return tuple(self._types.keys())


# end of class Registry



def default_types():
    """ Return the type expressions registered in a default :class:`Registry`.
    """

    types = [
        str,
        Byte,
        bool,
        Int16,
        UInt16,
        Int32,
        UInt32,
        Int64,
        UInt64,
        float,
        ObjectPath,
        Signature,
        UnixFD,
        Variant,
        Array[str],
        Dict[str, Variant],
        Dict[str, str],
    ]

    return types


_default = None


def default_registry():
    """ Return the process-wide :class:`Registry`, creating it on first use.
        Whether it starts out with the default types depends on
        :data:`dbuswire.config.default_types`.
    """

    global _default

    if _default is None:
        _default = Registry(defaults=config.default_types)

    return _default


def register_type(type):
    return default_registry().register_type(type)


def lookup_type(sig):
    return default_registry().lookup_type(sig)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
