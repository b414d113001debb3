""" Operations tables: one per distinct type expression, bundling everything
    needed to handle a value of that type without knowing the type at the
    call site. Each table offers four capabilities:

    * :func:`copy`, returning an independent copy of a value, normalized
      to the canonical Python representation of the type;
    * :func:`encode`, writing a value into a :class:`dbuswire.message.Message`;
    * :func:`decode`, reading a value back out of a message;
    * :func:`format`, rendering a value for display.

    Tables are created once, by :func:`operations`, and shared by everyone
    that handles that type; they are never modified after construction.
    Encode and decode never raise for bad data: a failure is recorded on
    the message, which then ignores any further operations.
"""

import threading

from . import signature
from .container import Container, Kind
from .signature import DictEntry


class Operations:
    """ Base class for all operations tables.
    """

    signature = None

    def __repr__(self):
        return '%s(%s)' % (type(self).__name__, self.signature)


    def copy(self, value):
        return value


    def encode(self, message, value):
        raise NotImplementedError('encode() must be implemented by subclasses')


    def decode(self, message):
        raise NotImplementedError('decode() must be implemented by subclasses')


    def format(self, value):
        return str(value)



class BasicOperations(Operations):
    """ Operations for a basic (single character) type. The stream holds the
        plain Python value; decoding wraps it back up in the marker type.
    """

    integers = frozenset('ynqiuxt')

    def __init__(self, type):
        self.type = type
        self.code = signature.signature_of(type)
        self.signature = self.code


    def convert(self, value):
        """ Return *value* as an instance of this table's type. Raises
            TypeError, ValueError, or OverflowError if that is not possible.
        """

        code = self.code

        if code in self.integers or code == signature.UNIX_FD:
            if isinstance(value, float) or isinstance(value, str):
                raise TypeError('expected an integer, got ' + repr(value))
            return self.type(value)

        if code == signature.BOOLEAN:
            if isinstance(value, (str, float)):
                raise TypeError('expected a boolean, got ' + repr(value))
            return bool(value)

        if code == signature.DOUBLE:
            if isinstance(value, str):
                raise TypeError('expected a number, got ' + repr(value))
            return float(value)

        if not isinstance(value, str):
            raise TypeError('expected a string, got ' + repr(value))

        if '\0' in value:
            raise ValueError('strings cannot contain NUL characters')

        # Raises UnicodeEncodeError, a ValueError, for lone surrogates.
        value.encode('utf-8')

        value = self.type(value)

        if code == signature.OBJECT_PATH or code == signature.SIGNATURE:
            if not value.is_valid():
                raise ValueError('invalid %s: %s' % (self.type.__name__, str(value)))

        return value


    def copy(self, value):
        return self.convert(value)


    def encode(self, message, value):

        if not message:
            return

        try:
            value = self.convert(value)
        except (TypeError, ValueError, OverflowError) as e:
            message.fail(str(e))
            return

        code = self.code

        if code == signature.UNIX_FD:
            plain = message._attach_fd(value)
        elif code == signature.BOOLEAN:
            plain = value
        elif code == signature.DOUBLE:
            plain = float(value)
        elif code in self.integers:
            plain = int(value)
        else:
            plain = str(value)

        message._write_basic(code, plain)


    def decode(self, message):

        plain = message._read_basic(self.code)

        if not message:
            return None

        # The stream may come from a peer; a value that does not fit the
        # type code it was sent with fails the message like any mismatch.

        if self.code == signature.UNIX_FD:
            if not isinstance(plain, int) or isinstance(plain, bool):
                message.fail('descriptor index must be an integer, got %r' % (plain,))
                return None
            return message._resolve_fd(plain)

        try:
            return self.convert(plain)
        except (TypeError, ValueError, OverflowError) as e:
            message.fail("bad '%s' value in stream: %s" % (self.code, e))
            return None


    def format(self, value):

        if self.code == signature.OBJECT_PATH or self.code == signature.SIGNATURE:
            return repr(self.type(value))

        return str(value)



class ArrayOperations(Operations):

    def __init__(self, element):
        self.element = element
        self.signature = signature.ARRAY + element.signature
        self.container = Container(Kind.ARRAY, element.signature)


    def copy(self, value):
        element = self.element
        return [element.copy(item) for item in value]


    def encode(self, message, value):

        if not message:
            return

        items = _elements(message, value)

        if items is None or not message.open(self.container):
            return

        element = self.element

        for item in items:
            element.encode(message, item)
            if not message:
                return

        message.close()


    def decode(self, message):

        if not message.enter(self.container):
            return None

        element = self.element
        values = list()

        # The element count is never known up front; keep going until the
        # close marker for this array is next.

        while not message.end():
            item = element.decode(message)
            if not message:
                return None
            values.append(item)

        message.exit()

        if not message:
            return None

        return values


    def format(self, value):
        element = self.element
        return '[' + ', '.join(element.format(item) for item in value) + ']'



class DictEntryOperations(Operations):

    def __init__(self, key, value):
        self.key = key
        self.value = value

        content = key.signature + value.signature
        self.signature = signature.DICT_ENTRY_BEGIN + content + signature.DICT_ENTRY_END
        self.container = Container(Kind.DICT_ENTRY, content)


    def copy(self, entry):
        key, value = entry
        return DictEntry(self.key.copy(key), self.value.copy(value))


    def encode(self, message, entry):

        if not message:
            return

        if isinstance(entry, _text):
            message.fail('a dict entry needs exactly a key and a value, got ' + repr(entry))
            return

        try:
            key, value = entry
        except (TypeError, ValueError):
            message.fail('a dict entry needs exactly a key and a value, got ' + repr(entry))
            return

        if not message.open(self.container):
            return

        self.key.encode(message, key)
        if not message:
            return

        self.value.encode(message, value)
        if not message:
            return

        message.close()


    def decode(self, message):

        if not message.enter(self.container):
            return None

        key = self.key.decode(message)
        if not message:
            return None

        value = self.value.decode(message)
        if not message:
            return None

        message.exit()

        if not message:
            return None

        return DictEntry(key, value)


    def format(self, entry):
        key, value = entry
        return '(%s, %s)' % (self.key.format(key), self.value.format(value))



class DictOperations(Operations):
    """ An array of dict entries, represented in Python as a dictionary.
        Entries are written in the iteration order of the dictionary, and
        read back in stream order.
    """

    def __init__(self, key, value):
        self.entry = DictEntryOperations(key, value)
        self.signature = signature.ARRAY + self.entry.signature
        self.container = Container(Kind.ARRAY, self.entry.signature)


    def copy(self, value):
        key = self.entry.key
        element = self.entry.value
        return dict((key.copy(k), element.copy(v)) for k, v in _pairs(value))


    def encode(self, message, value):

        if not message:
            return

        pairs = _elements(message, _pairs(value))

        if pairs is None or not message.open(self.container):
            return

        entry = self.entry

        for pair in pairs:
            entry.encode(message, pair)
            if not message:
                return

        message.close()


    def decode(self, message):

        if not message.enter(self.container):
            return None

        entry = self.entry
        values = dict()

        while not message.end():
            pair = entry.decode(message)
            if not message:
                return None
            values[pair.key] = pair.value

        message.exit()

        if not message:
            return None

        return values


    def format(self, value):
        entry = self.entry
        return '[' + ', '.join(entry.format(pair) for pair in _pairs(value)) + ']'


def _pairs(value):

    try:
        items = value.items
    except AttributeError:
        return value
    else:
        return items()


# Strings are iterable, but never a valid array, struct, or dict entry.

_text = (str, bytes, bytearray)


def _elements(message, value):
    """ Return an iterator over the elements of an array value, or fail
        *message* and return None if *value* is not a collection.
    """

    if isinstance(value, _text):
        message.fail('expected a collection, got ' + repr(value))
        return None

    try:
        return iter(value)
    except TypeError:
        message.fail('expected a collection, got ' + repr(value))
        return None


def _fields(message, value):
    """ Return the fields of a struct or tuple value as a tuple, or fail
        *message* and return None if *value* is not a sequence.
    """

    if isinstance(value, _text) or isinstance(value, dict):
        message.fail('expected a sequence of fields, got ' + repr(value))
        return None

    try:
        return tuple(value)
    except TypeError:
        message.fail('expected a sequence of fields, got ' + repr(value))
        return None



class StructOperations(Operations):

    def __init__(self, fields):
        self.fields = tuple(fields)

        content = ''.join(field.signature for field in self.fields)
        self.signature = signature.STRUCT_BEGIN + content + signature.STRUCT_END
        self.container = Container(Kind.STRUCT, content)


    def copy(self, value):
        return tuple(field.copy(item) for field, item in zip(self.fields, value))


    def encode(self, message, value):

        if not message:
            return

        value = _fields(message, value)

        if value is None:
            return

        if len(value) != len(self.fields):
            message.fail('%s needs %d fields, got %d' % (self.signature, len(self.fields), len(value)))
            return

        if message.open(self.container):
            marshall(message, self.fields, value)
            if message:
                message.close()


    def decode(self, message):

        if not message.enter(self.container):
            return None

        values = unmarshall(message, self.fields)

        if message:
            message.exit()

        if not message:
            return None

        return values


    def format(self, value):
        fields = self.fields
        return '(' + ', '.join(field.format(item) for field, item in zip(fields, value)) + ')'



class TupleOperations(StructOperations):
    """ A fixed sequence of values with no enclosing container, such as the
        argument list of a method call.
    """

    def __init__(self, fields):
        StructOperations.__init__(self, fields)
        self.signature = str(self.container.content)
        self.container = None


    def encode(self, message, value):

        if not message:
            return

        value = _fields(message, value)

        if value is None:
            return

        if len(value) != len(self.fields):
            message.fail('%d values expected, got %d' % (len(self.fields), len(value)))
            return

        marshall(message, self.fields, value)


    def decode(self, message):
        return unmarshall(message, self.fields)



def marshall(message, fields, values):
    """ Write each value using the operations table at the same position in
        *fields*, in declared order, stopping at the first failure.
    """

    for field, value in zip(fields, values):
        if not message:
            break
        field.encode(message, value)

    return message


def unmarshall(message, fields):
    """ Read one value per operations table in *fields*, in declared order.
        Returns a tuple of the values, or None if any read failed.
    """

    values = list()

    for field in fields:
        if not message:
            return None
        values.append(field.decode(message))

    if not message:
        return None

    return tuple(values)



_cache = dict()
_cache_lock = threading.Lock()


def operations(type):
    """ Return the shared operations table for a type expression, creating
        it on first use.
    """

    type = signature.canonical(type)

    try:
        return _cache[type]
    except KeyError:
        pass

    # Building a table may recurse back into this function for the element
    # or field types; only the final insertion is done under the lock.

    built = _build(type)

    _cache_lock.acquire()

    try:
        table = _cache.setdefault(type, built)
    finally:
        _cache_lock.release()

    return table


def _build(type):

    if isinstance(type, signature.Parametrized):
        origin = type.origin
        args = [operations(arg) for arg in type.args]

        if origin is signature.Array:
            return ArrayOperations(args[0])
        if origin is signature.Dict:
            return DictOperations(args[0], args[1])
        if origin is signature.DictEntry:
            return DictEntryOperations(args[0], args[1])
        if origin is signature.Struct:
            return StructOperations(args)

        return TupleOperations(args)

    if signature.signature_of(type) == signature.VARIANT:
        from .variant import VariantOperations
        return VariantOperations()

    return BasicOperations(type)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
