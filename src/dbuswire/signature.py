""" The wire signature grammar, and the mapping between Python type
    expressions and signature strings. A *type expression* stands in for the
    static type of a value: it is either one of the marker classes defined
    here (:class:`Byte`, :class:`Int32`, :class:`ObjectPath`, etc.), one of
    the builtin types with an obvious wire equivalent (``bool``, ``float``,
    ``str``), or a parametrized container such as ``Array[Int32]`` or
    ``Struct[bool, float]``.

    Everything else in this package consumes the grammar declared here;
    there are no hand-authored composite signatures anywhere else.
"""

import re
import typing

try:
    import numpy
except ImportError:
    numpy = None

from .errors import ContractError


BYTE = 'y'
BOOLEAN = 'b'
INT16 = 'n'
UINT16 = 'q'
INT32 = 'i'
UINT32 = 'u'
INT64 = 'x'
UINT64 = 't'
DOUBLE = 'd'
STRING = 's'
OBJECT_PATH = 'o'
SIGNATURE = 'g'
UNIX_FD = 'h'
ARRAY = 'a'
STRUCT_BEGIN = '('
STRUCT_END = ')'
DICT_ENTRY_BEGIN = '{'
DICT_ENTRY_END = '}'
VARIANT = 'v'

basic_codes = frozenset('ybnqiuxtdsogh')

maximum_length = 255
maximum_depth = 32


class _Integer(int):
    """ Base class for the fixed-width integer markers. Instances are plain
        integers that remember their wire width; construction enforces
        the range of the width.
    """

    code = None
    minimum = None
    maximum = None

    def __new__(cls, value=0):

        value = int.__new__(cls, value)

        if value < cls.minimum or value > cls.maximum:
            raise OverflowError("%d is out of range for %s" % (value, cls.__name__))

        return value


    def __repr__(self):
        return '%s(%d)' % (type(self).__name__, self)


    __str__ = int.__repr__


class Byte(_Integer):
    code = BYTE
    minimum = 0
    maximum = 0xFF

class Int16(_Integer):
    code = INT16
    minimum = -0x8000
    maximum = 0x7FFF

class UInt16(_Integer):
    code = UINT16
    minimum = 0
    maximum = 0xFFFF

class Int32(_Integer):
    code = INT32
    minimum = -0x80000000
    maximum = 0x7FFFFFFF

class UInt32(_Integer):
    code = UINT32
    minimum = 0
    maximum = 0xFFFFFFFF

class Int64(_Integer):
    code = INT64
    minimum = -0x8000000000000000
    maximum = 0x7FFFFFFFFFFFFFFF

class UInt64(_Integer):
    code = UINT64
    minimum = 0
    maximum = 0xFFFFFFFFFFFFFFFF


class UnixFD(int):
    """ A file descriptor handle. The descriptor itself travels out of band;
        the value sequence only ever carries an index into the descriptor
        table of the message.
    """

    code = UNIX_FD

    def __repr__(self):
        return 'UnixFD(%d)' % (self)


    __str__ = int.__repr__


_path_element = re.compile('^[A-Za-z0-9_]+$')


class ObjectPath(str):
    """ An object path, such as ``/org/freedesktop/DBus``. Validity is
        checked when the path is written to a message, not at construction.
    """

    code = OBJECT_PATH

    def __repr__(self):
        return 'ObjectPath(%s)' % (str.__str__(self))


    @property
    def path(self):
        return str(self)


    def is_valid(self):

        if self == '/':
            return True

        if not self.startswith('/') or self.endswith('/'):
            return False

        for element in self[1:].split('/'):
            if _path_element.match(element) is None:
                return False

        return True


class Signature(str):
    """ A signature value, as carried on the wire with the 'g' type code.
    """

    code = SIGNATURE

    def __repr__(self):
        return 'Signature(%s)' % (str.__str__(self))


    @property
    def sig(self):
        return str(self)


    def is_valid(self):
        return is_valid(self)


# The builtin Python types with a direct wire equivalent. A bare int is
# treated as a signed 32-bit integer, which is the usual default for
# untyped integer arguments.

_builtin_codes = {
    bool: BOOLEAN,
    int: INT32,
    float: DOUBLE,
    str: STRING,
}

_markers = {
    BYTE: Byte,
    BOOLEAN: bool,
    INT16: Int16,
    UINT16: UInt16,
    INT32: Int32,
    UINT32: UInt32,
    INT64: Int64,
    UINT64: UInt64,
    DOUBLE: float,
    STRING: str,
    OBJECT_PATH: ObjectPath,
    SIGNATURE: Signature,
    UNIX_FD: UnixFD,
}

if numpy is not None:
    _numpy_aliases = {
        numpy.uint8: Byte,
        numpy.bool_: bool,
        numpy.int16: Int16,
        numpy.uint16: UInt16,
        numpy.int32: Int32,
        numpy.uint32: UInt32,
        numpy.int64: Int64,
        numpy.uint64: UInt64,
        numpy.float64: float,
    }
else:
    _numpy_aliases = dict()



class Parametrized:
    """ A container type expression with its parameters filled in, such as
        ``Array[Int32]``. Instances are interned, so two spellings of the same
        expression are the same object.
    """

    __slots__ = ('origin', 'args')

    _interned = dict()

    def __new__(cls, origin, args):

        key = (origin, args)

        try:
            return cls._interned[key]
        except KeyError:
            pass

        expression = object.__new__(cls)
        expression.origin = origin
        expression.args = args
        cls._interned[key] = expression
        return expression


    def __repr__(self):
        args = ', '.join(_name(arg) for arg in self.args)
        return '%s[%s]' % (self.origin.__name__, args)


def _name(type):

    try:
        return type.__name__
    except AttributeError:
        return repr(type)


class Array:
    """ Type expression for an array: ``Array[T]``. Values are lists.
    """

    code = ARRAY

    def __class_getitem__(cls, element):
        return Parametrized(cls, (canonical(element),))


class Dict:
    """ Type expression for an array of dict entries: ``Dict[K, V]``.
        Values are dictionaries.
    """

    code = ARRAY

    def __class_getitem__(cls, params):
        key, value = params
        return Parametrized(cls, (canonical(key), canonical(value)))


class Struct:
    """ Type expression for a struct: ``Struct[A, B, ...]``. Values are
        tuples holding one field per parameter, in declared order.
    """

    code = STRUCT_BEGIN

    def __class_getitem__(cls, params):

        if not isinstance(params, tuple):
            params = (params,)

        return Parametrized(cls, tuple(canonical(param) for param in params))


class Tuple:
    """ Type expression for a fixed sequence of values written back to back
        without any enclosing container, such as the argument list of a
        method call.
    """

    code = None

    def __class_getitem__(cls, params):

        if not isinstance(params, tuple):
            params = (params,)

        return Parametrized(cls, tuple(canonical(param) for param in params))


class DictEntry(tuple):
    """ A (key, value) pair tagged for dict-entry encoding. As a type
        expression, ``DictEntry[K, V]``; as a value, ``DictEntry(key, value)``.
        Dict entries only ever appear as the elements of an array.
    """

    __slots__ = ()

    code = DICT_ENTRY_BEGIN

    def __new__(cls, key, value):
        return tuple.__new__(cls, (key, value))


    def __class_getitem__(cls, params):
        key, value = params
        return Parametrized(cls, (canonical(key), canonical(value)))


    def __getnewargs__(self):
        return tuple(self)


    def __repr__(self):
        return 'DictEntry(%r, %r)' % (self[0], self[1])


    @property
    def key(self):
        return self[0]


    @property
    def value(self):
        return self[1]


def canonical(type):
    """ Return the canonical spelling of a type expression: builtin aliases
        are replaced with their markers, typing generics (``List[T]``,
        ``list[T]``, ``Dict[K, V]``, ``Tuple[...]``) are replaced with the
        equivalent expressions from this module, and numpy scalar types are
        replaced with the marker of the same width.
    """

    if isinstance(type, Parametrized):
        return type

    if type is int:
        return Int32

    if type in _markers.values():
        return type

    try:
        return _numpy_aliases[type]
    except (KeyError, TypeError):
        pass

    if getattr(type, 'code', None) == VARIANT:
        return type

    origin = typing.get_origin(type)
    args = typing.get_args(type)

    if origin is list and len(args) == 1:
        return Array[args[0]]

    if origin is dict and len(args) == 2:
        return Dict[args]

    if origin is tuple and args and args[-1] is not Ellipsis:
        return Tuple[args]

    raise ContractError('not a wire type expression: ' + repr(type))


def signature_of(type):
    """ Derive the canonical signature for a type expression.
    """

    type = canonical(type)

    if isinstance(type, Parametrized):
        origin = type.origin
        args = [signature_of(arg) for arg in type.args]

        if origin is Array:
            return ARRAY + args[0]
        if origin is Dict:
            return ARRAY + DICT_ENTRY_BEGIN + args[0] + args[1] + DICT_ENTRY_END
        if origin is Struct:
            return STRUCT_BEGIN + ''.join(args) + STRUCT_END
        if origin is DictEntry:
            return DICT_ENTRY_BEGIN + args[0] + args[1] + DICT_ENTRY_END
        if origin is Tuple:
            return ''.join(args)

    if type in _builtin_codes:
        return _builtin_codes[type]

    return type.code


def _complete(signature, start, arrays=0, structs=0):
    """ Return the index just past the single complete type that begins at
        *start* within *signature*. A ValueError is raised for anything that
        is not well formed.
    """

    try:
        code = signature[start]
    except IndexError:
        raise ValueError('truncated signature')

    if code in basic_codes or code == VARIANT:
        return start + 1

    if code == ARRAY:
        arrays += 1
        if arrays > maximum_depth:
            raise ValueError('arrays nested too deeply')

        element = start + 1

        try:
            is_entry = signature[element] == DICT_ENTRY_BEGIN
        except IndexError:
            raise ValueError('array with no element type')

        if is_entry:
            structs += 1
            if structs > maximum_depth:
                raise ValueError('structs nested too deeply')

            key = element + 1

            try:
                key_code = signature[key]
            except IndexError:
                raise ValueError('truncated dict entry')

            if key_code not in basic_codes:
                raise ValueError('dict entry keys must be basic types')

            end = _complete(signature, key + 1, arrays, structs)

            if signature[end:end + 1] != DICT_ENTRY_END:
                raise ValueError('dict entry must hold exactly two types')

            return end + 1

        return _complete(signature, element, arrays, structs)

    if code == STRUCT_BEGIN:
        structs += 1
        if structs > maximum_depth:
            raise ValueError('structs nested too deeply')

        index = start + 1

        if signature[index:index + 1] == STRUCT_END:
            raise ValueError('empty structs are not allowed')

        while signature[index:index + 1] != STRUCT_END:
            index = _complete(signature, index, arrays, structs)

        return index + 1

    if code == DICT_ENTRY_BEGIN:
        raise ValueError('dict entries are only allowed as array elements')

    raise ValueError('unknown type code: ' + repr(code))


def split(signature):
    """ Split a signature into a list of complete types. An invalid signature
        raises ValueError.
    """

    signature = str(signature)

    if len(signature) > maximum_length:
        raise ValueError('signature longer than %d characters' % (maximum_length))

    types = list()
    index = 0

    while index < len(signature):
        end = _complete(signature, index)
        types.append(signature[index:end])
        index = end

    return types


def is_valid(signature):
    """ Return True if *signature* is a well-formed sequence of zero or more
        complete types.
    """

    try:
        split(signature)
    except ValueError:
        return False

    return True


def is_single(signature):
    """ Return True if *signature* is exactly one complete type.
    """

    try:
        types = split(signature)
    except ValueError:
        return False

    return len(types) == 1


def parse(signature):
    """ Return the canonical type expression for a single complete type.
        This is the inverse of :func:`signature_of` for every expression
        in reduced form.
    """

    signature = str(signature)

    if not is_single(signature):
        raise ContractError('not a single complete type: ' + repr(signature))

    return _parse(signature)


def _parse(signature):

    code = signature[0]

    if code in _markers:
        return _markers[code]

    if code == VARIANT:
        # Imported late; the variant module depends on this one.
        from .variant import Variant
        return Variant

    if code == ARRAY:
        return Array[_parse(signature[1:])]

    inner = split(signature[1:-1])
    inner = tuple(_parse(field) for field in inner)

    if code == STRUCT_BEGIN:
        return Struct[inner]

    return DictEntry[inner]


def reduce(type):
    """ Rewrite a type expression into the form that :func:`parse` would
        produce for its signature, without collapsing any flattened tuples.
        A type is in reduced form if ``reduce(type) == parse(signature_of(type))``.
    """

    type = canonical(type)

    if not isinstance(type, Parametrized):
        return type

    args = tuple(reduce(arg) for arg in type.args)

    if type.origin is Dict:
        return Array[DictEntry[args]]

    return Parametrized(type.origin, args)


def is_reduced(type):

    signature = signature_of(type)

    if not is_single(signature):
        return False

    return reduce(type) is parse(signature)


def infer(value):
    """ Derive a type expression from a Python value. Lists and dictionaries
        must be non-empty and homogeneous; tuples become structs.
    """

    if isinstance(value, bool):
        return bool

    code = getattr(value, 'code', None)

    if code is not None and code != DICT_ENTRY_BEGIN:
        if code == VARIANT:
            return type(value)
        return _markers[code]

    if numpy is not None:
        if isinstance(value, numpy.ndarray):
            if value.ndim != 1:
                raise ContractError('only one-dimensional arrays can be marshalled')
            return Array[canonical(value.dtype.type)]

        if isinstance(value, numpy.generic):
            return canonical(type(value))

    if isinstance(value, int):
        return Int32

    if isinstance(value, float):
        return float

    if isinstance(value, str):
        return str

    if isinstance(value, DictEntry):
        return DictEntry[infer(value.key), infer(value.value)]

    if isinstance(value, tuple):
        if len(value) == 0:
            raise ContractError('cannot marshal an empty struct')
        return Struct[tuple(infer(field) for field in value)]

    if isinstance(value, list):
        return Array[_homogeneous(value)]

    if isinstance(value, dict):
        key = _homogeneous(list(value.keys()))
        element = _homogeneous(list(value.values()))
        return Dict[key, element]

    raise ContractError('cannot infer a wire type for ' + repr(value))


def _homogeneous(values):

    if len(values) == 0:
        raise ContractError('cannot infer the element type of an empty container')

    inferred = set(infer(value) for value in values)

    if len(inferred) != 1:
        raise ContractError('mixed element types: ' + repr(sorted(map(_name, inferred))))

    return inferred.pop()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
