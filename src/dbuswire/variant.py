""" The :class:`Variant` is a type-erased box: one value, the signature of
    that value, and the operations table that knows how to copy, encode,
    decode, and display it. The signature and the payload are always set
    together, so the payload never disagrees with the signature.
"""

from . import marshal
from . import signature
from .container import Container, Kind
from .errors import ContractError


class Variant:
    """ Hold a single value of any wire type. The type is inferred from
        *value* unless *type* is given explicitly; a :class:`Variant`
        constructed with no value is empty, with an empty signature.

        Copying a :class:`Variant` copies its payload through the operations
        table, so two variants never share a payload.
    """

    code = signature.VARIANT

    def __init__(self, value=None, type=None):

        self._signature = ''
        self._payload = None
        self._operations = None

        if value is not None or type is not None:
            self.set_data(value, type)


    def __copy__(self):
        return self.copy()


    def __deepcopy__(self, memo):
        return self.copy()


    def __eq__(self, other):

        if not isinstance(other, Variant):
            return NotImplemented

        return self._signature == other._signature and self._payload == other._payload


    __hash__ = None


    def __repr__(self):
        return 'Variant(sig=%s, content=%s)' % (self._signature, self.format())


    __str__ = __repr__


    def copy(self):
        """ Return a new :class:`Variant` with a deep copy of the payload.
        """

        duplicate = Variant()
        operations = self._operations

        if operations is not None:
            duplicate.set_raw_data(operations.copy(self._payload), operations)

        return duplicate


    def data_as(self, type):
        """ Return the payload, which must be of the given *type*. Asking for
            any other type is a :class:`ContractError`; check
            :attr:`signature` first if the type is not known in advance.
        """

        expected = signature.signature_of(type)

        if self._signature != expected:
            raise ContractError("variant holds '%s', not '%s'" % (self._signature, expected))

        return self._payload


    def format(self):
        """ Return the display form of the payload; empty for an empty variant.
        """

        if self._operations is None:
            return ''

        return self._operations.format(self._payload)


    @property
    def operations(self):
        return self._operations


    def set_data(self, value, type=None):

        if isinstance(value, Variant) and type is None:
            if value._operations is None:
                self._signature = ''
                self._payload = None
                self._operations = None
            else:
                self.set_raw_data(value._operations.copy(value._payload), value._operations)
            return

        if type is None:
            type = signature.infer(value)

        operations = marshal.operations(type)
        self.set_raw_data(operations.copy(value), operations)


    def set_raw_data(self, payload, operations):
        """ Store a payload that has already been produced by *operations*,
            as happens when a variant is decoded from a message.
        """

        self._payload = payload
        self._operations = operations

        if operations is None:
            self._signature = ''
        else:
            self._signature = operations.signature


    @property
    def signature(self):
        return self._signature


    def write_to_message(self, message):
        """ Encode the payload, and only the payload, into *message*. The
            enclosing variant container is the caller's responsibility; see
            :func:`dbuswire.message.Message.write`.
        """

        if self._operations is not None:
            self._operations.encode(message, self._payload)


# end of class Variant



class VariantOperations(marshal.Operations):
    """ The operations table for the 'v' type itself. Encoding opens a
        variant container carrying the payload signature, then delegates to
        the payload's own table. Decoding reads that signature first and
        looks up a table for it in the registry of the message; a signature
        with no registered table cannot be decoded.
    """

    signature = signature.VARIANT

    def copy(self, value):

        if isinstance(value, Variant):
            return value.copy()

        return Variant(value)


    def encode(self, message, value):

        if not message:
            return

        if not isinstance(value, Variant):
            value = Variant(value)

        # An empty variant has no signature to announce, and nothing to
        # write; it is skipped entirely.

        if value.operations is None:
            return

        if message.open(Container(Kind.VARIANT, value.signature)):
            value.write_to_message(message)
            if message:
                message.close()


    def decode(self, message):

        if not message:
            return None

        code, contents = message.peek_type()
        operations = None

        if code == signature.VARIANT:
            operations = message.registry.lookup_type(contents)

            if operations is None:
                message.fail("no type registered for variant signature '%s'" % (contents))
                return None

        if not message.enter(Container(Kind.VARIANT, contents)):
            return None

        payload = operations.decode(message)

        if message:
            message.exit()

        if not message:
            return None

        variant = Variant()
        variant.set_raw_data(payload, operations)
        return variant


    def format(self, value):
        return str(value)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
