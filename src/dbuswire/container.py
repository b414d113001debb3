""" Markers that bracket a composite value in a value sequence. Every
    :class:`Container` opened in a stream is matched by exactly one
    :class:`ContainerEnd`, strictly last-in-first-out.
"""

import enum

from . import signature


class Kind(enum.Enum):
    ARRAY = 'array'
    STRUCT = 'struct'
    DICT_ENTRY = 'dict_entry'
    VARIANT = 'variant'


class Container:
    """ The open marker for a composite value: the *kind* of container and
        the *content* signature of what it holds. The content of an array is
        its element type; the content of a struct or dict entry is the
        concatenation of its fields, without the enclosing brackets; the
        content of a variant is the signature of its payload.
    """

    Type = Kind

    __slots__ = ('type', 'content')

    def __init__(self, type=Kind.ARRAY, content=''):
        self.type = Kind(type)
        self.content = signature.Signature(content)


    def __eq__(self, other):

        if not isinstance(other, Container):
            return NotImplemented

        return self.type == other.type and self.content == other.content


    def __hash__(self):
        return hash((self.type, str(self.content)))


    def __repr__(self):
        return 'Container(%s, %s)' % (self.type.value, str(self.content))


    @property
    def signature(self):
        """ The complete signature of the bracketed value, as it would appear
            in the signature of an enclosing container or of the message.
        """

        content = str(self.content)
        type = self.type

        if type == Kind.ARRAY:
            return signature.ARRAY + content
        if type == Kind.STRUCT:
            return signature.STRUCT_BEGIN + content + signature.STRUCT_END
        if type == Kind.DICT_ENTRY:
            return signature.DICT_ENTRY_BEGIN + content + signature.DICT_ENTRY_END

        return signature.VARIANT


    def fields(self):
        """ Return the list of complete types that must appear, in order,
            inside this container. An array is the exception: its single
            element type repeats any number of times.
        """

        if self.type == Kind.ARRAY or self.type == Kind.VARIANT:
            return [str(self.content)]

        return signature.split(self.content)


class ContainerEnd:
    """ The close marker for the innermost open :class:`Container`.
    """

    __slots__ = ()

    def __eq__(self, other):
        return isinstance(other, ContainerEnd)


    def __hash__(self):
        return hash(ContainerEnd)


    def __repr__(self):
        return 'ContainerEnd()'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
