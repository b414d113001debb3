""" The :class:`Message` is a stream of typed wire values: written in order
    while a message is being built, then sealed, and read back in the same
    order through a cursor. Composite values are bracketed in the stream by
    :class:`dbuswire.container.Container` and
    :class:`dbuswire.container.ContainerEnd` markers.

    A message is either valid or invalid. The first failed read or write
    makes it invalid, and every operation after that point does nothing; a
    caller can chain an entire sequence of reads or writes and check the
    outcome once, at the end::

        message = Message()
        message.write('key').write(5, UInt32).write([1, 2, 3])
        if not message:
            raise message.error

    Invalid input data never raises. Misuse of the API, such as closing a
    container that was never opened, raises a
    :class:`dbuswire.errors.ContractError` immediately.
"""

import logging

from . import marshal
from . import signature
from .container import Container, ContainerEnd, Kind
from .envelope import Envelope, MessageType
from .errors import ContractError, StreamError
from .registry import default_registry
from .transport import memory


logger = logging.getLogger(__name__)

_peek_codes = {
    Kind.ARRAY: signature.ARRAY,
    Kind.STRUCT: signature.STRUCT_BEGIN,
    Kind.DICT_ENTRY: signature.DICT_ENTRY_BEGIN,
    Kind.VARIANT: signature.VARIANT,
}


class _Frame:
    """ Bookkeeping for one open container: which of its fields comes next.
    """

    __slots__ = ('container', 'fields', 'index')

    def __init__(self, container, index=0):
        self.container = container
        self.fields = container.fields()
        self.index = index


class Message:
    """ A typed value stream plus the envelope metadata that goes with it.
        The stream itself is allocated by the *transport*, which defaults to
        the in-process :data:`dbuswire.transport.memory.default`. Variants
        of unknown type are decoded using *registry*, which defaults to the
        process-wide registry.

        :ivar error: The :class:`StreamError` that made this message
                     invalid, or None.
        :ivar transport: The transport that allocated the stream.
    """

    def __init__(self, envelope=None, transport=None, registry=None, stream=None):

        if transport is None:
            transport = memory.default

        if stream is None:
            stream = transport.allocate(envelope)

        self.error = None
        self.transport = transport

        self._frames = list()
        self._registry = registry
        self._stream = stream
        self._write_failed = False


    @classmethod
    def method_call(cls, destination, path, interface, member, **kwargs):
        envelope = Envelope(MessageType.METHOD_CALL, destination=destination,
                            path=path, interface=interface, member=member)
        return cls(envelope, **kwargs)


    @classmethod
    def signal(cls, path, interface, member, **kwargs):
        envelope = Envelope(MessageType.SIGNAL, path=path,
                            interface=interface, member=member)
        return cls(envelope, **kwargs)


    @classmethod
    def receive(cls, transport=None, timeout=None, registry=None):
        """ Block until the *transport* delivers a message, and return it,
            ready to be read. The transport raises
            :class:`dbuswire.transport.TransportTimeout` if nothing arrives
            within *timeout* seconds.
        """

        if transport is None:
            transport = memory.default

        stream = transport.recv(timeout)
        return cls(transport=transport, registry=registry, stream=stream)


    def __bool__(self):
        return self.error is None


    def __copy__(self):
        return self.copy()


    def __lshift__(self, value):
        return self.write(value)


    def __repr__(self):

        if self.error is None:
            state = 'valid'
        else:
            state = 'invalid: ' + self.error.text

        return "Message(%s, sig=%s, %d items, %s)" % (self.type.name, self.signature, self.length, state)


    ### Validity.

    def check(self):
        """ Raise the recorded :class:`StreamError`, if any; otherwise
            return this message.
        """

        if self.error is not None:
            raise self.error

        return self


    def fail(self, text):
        """ Record a failure and make this message invalid. Only the first
            failure is kept. A failure while the message is still being
            written leaves its content incomplete, and cannot be reset.
        """

        if self.error is None:
            self._invalidate(text)

            if not self._stream.sealed:
                self._write_failed = True

        return self


    def _invalidate(self, text):
        self.error = StreamError(text)
        logger.debug('message invalidated: %s', text)


    def reset_error(self):
        """ Clear a failure that happened while reading, so that the message
            can be read again after a :func:`rewind`. A failure that happened
            while writing cannot be undone; the content of the message is
            incomplete.
        """

        if self._write_failed:
            raise ContractError('a message that failed while being written cannot be reset')

        self.error = None


    @property
    def valid(self):
        return self.error is None


    ### Envelope accessors.

    @property
    def envelope(self):
        return self._stream.envelope


    @property
    def type(self):
        return self._stream.envelope.type


    @property
    def is_error(self):
        return self.type == MessageType.ERROR


    @property
    def destination(self):
        return self._stream.envelope.destination


    @destination.setter
    def destination(self, destination):
        self.set_destination(destination)


    def set_destination(self, destination):
        self._stream.envelope.destination = destination


    @property
    def sender(self):
        return self._stream.envelope.sender


    @property
    def path(self):
        return self._stream.envelope.path


    @property
    def interface(self):
        return self._stream.envelope.interface


    @property
    def member(self):
        return self._stream.envelope.member


    @property
    def error_name(self):
        return self._stream.envelope.error_name


    @property
    def error_message(self):
        return self._stream.envelope.error_message


    @property
    def serial(self):
        return self._stream.envelope.serial


    @property
    def reply_serial(self):
        return self._stream.envelope.reply_serial


    @property
    def signature(self):
        """ The signature of the whole message: the concatenated signatures
            of every value at the top level of the stream.
        """

        types = list()
        depth = 0

        for item in self._stream.items():
            if isinstance(item, Container):
                if depth == 0:
                    types.append(item.signature)
                depth += 1
            elif isinstance(item, ContainerEnd):
                depth -= 1
            elif depth == 0:
                types.append(item[0])

        return ''.join(types)


    @property
    def registry(self):

        if self._registry is None:
            return default_registry()

        return self._registry


    @property
    def fds(self):
        return tuple(self._stream.fds)


    @property
    def length(self):
        """ The number of wire items in the stream, counting each container
            marker as one item.
        """

        return len(self._stream.items())


    @property
    def position(self):
        return self._stream.position


    ### Derived messages.

    def copy(self):
        """ Return an independent copy of this message: the same envelope,
            values, and validity, with its own cursor at the start.
        """

        stream = self._stream
        envelope = Envelope(**vars(stream.envelope))
        duplicate_stream = self.transport.allocate(envelope)
        duplicate_stream.fds.extend(stream.fds)

        for item in stream.items():
            duplicate_stream.append(item)

        if stream.sealed:
            duplicate_stream.seal()

        duplicate = Message(transport=self.transport, registry=self._registry, stream=duplicate_stream)
        duplicate.error = self.error
        duplicate._write_failed = self._write_failed

        if not stream.sealed:
            for frame in self._frames:
                duplicate._frames.append(_Frame(frame.container, frame.index))

        return duplicate


    def create_reply(self):
        """ Return an empty method reply, addressed to the sender of this
            message.
        """

        envelope = Envelope(MessageType.REPLY, destination=self.sender,
                            reply_serial=self.serial)
        return Message(envelope, self.transport, self._registry)


    def create_error(self, name, text=None):
        """ Return an error reply, addressed to the sender of this message.
            The error *text*, if any, is also the sole value of the reply.
        """

        envelope = Envelope(MessageType.ERROR, destination=self.sender,
                            reply_serial=self.serial, error_name=name,
                            error_message=text)
        error = Message(envelope, self.transport, self._registry)

        if text is not None:
            error.write(text, str)

        return error


    def send(self):
        """ Seal this message and hand it to the transport. An invalid
            message is never sent; its :class:`StreamError` is raised instead.
        """

        self.check()
        self.rewind()
        self.transport.send(self._stream)
        return self


    ### Cursor.

    def end(self):
        """ Return True if the cursor is at the close of the innermost open
            container, or at the end of the message. A message that is still
            being written, or that is invalid, is always at its end.
        """

        if self.error is not None or not self._stream.sealed:
            return True

        item = self._stream.peek()
        return item is None or isinstance(item, ContainerEnd)


    def peek_type(self):
        """ Return the type code of the next value and, for a container, the
            content signature, without consuming anything. At the end of a
            container the code is an empty string.
        """

        if not self._stream.sealed:
            return ('', '')

        item = self._stream.peek()

        if item is None or isinstance(item, ContainerEnd):
            return ('', '')

        if isinstance(item, Container):
            return (_peek_codes[item.type], str(item.content))

        return (item[0], '')


    def rewind(self):
        """ Move the cursor back to the first value. A message that is still
            being written is sealed first, and accepts no further writes.
            The validity of the message is not changed.
        """

        stream = self._stream

        if not stream.sealed:
            if self._frames and not self._write_failed:
                raise ContractError('%d container(s) still open: %r' % (len(self._frames), self._frames[-1].container))
            stream.seal()

        stream.rewind()
        self._frames = list()
        return self


    ### Reading and writing values.

    def read(self, type):
        """ Read and return one value of the given *type*. Returns None if
            the message is, or becomes, invalid.

            Passing a :class:`Container` enters that container, and passing
            :class:`ContainerEnd` exits the innermost one; either returns
            this message rather than a value.
        """

        if isinstance(type, Container):
            return self.enter(type)

        if type is ContainerEnd or isinstance(type, ContainerEnd):
            return self.exit()

        if self.error is not None:
            return None

        return marshal.operations(type).decode(self)


    def write(self, value, type=None):
        """ Write one *value*, treating it as the given *type*; if no type
            is given, it is inferred from the value. Returns this message.

            Passing a :class:`Container` opens that container, and passing
            a :class:`ContainerEnd` closes the innermost one.
        """

        if isinstance(value, Container):
            return self.open(value)

        if isinstance(value, ContainerEnd):
            return self.close()

        if self.error is not None:
            return self

        if type is None:
            type = signature.infer(value)

        marshal.operations(type).encode(self, value)
        return self


    ### Containers.

    def open(self, container):
        """ Begin writing a composite value.
        """

        if not self._writable():
            return self

        if not _is_container_valid(container):
            return self.fail('invalid signature for %r' % (container,))

        if not self._expect(container.signature):
            return self

        self._stream.append(container)
        self._frames.append(_Frame(container))
        return self


    def close(self):
        """ Finish writing the innermost open composite value.
        """

        if not self._writable():
            return self

        if not self._frames:
            raise ContractError('no open container to close')

        frame = self._frames[-1]
        container = frame.container

        if container.type != Kind.ARRAY and frame.index != len(frame.fields):
            return self.fail('%r closed after %d of %d values' % (container, frame.index, len(frame.fields)))

        self._frames.pop()
        self._stream.append(ContainerEnd())
        return self


    def enter(self, container):
        """ Begin reading a composite value, which must match *container*
            exactly.
        """

        if not self._readable():
            return self

        item = self._stream.peek()

        if item is None or isinstance(item, ContainerEnd):
            return self.fail('expected %r, found the end of %s' % (container, self._where()))

        if item != container:
            return self.fail('expected %r, found %r' % (container, _describe(item)))

        self._stream.next()
        self._frames.append(_Frame(container))
        return self


    def exit(self):
        """ Finish reading the innermost open composite value. Any unread
            elements of an array are skipped; unread fields of any other
            container are a failure.
        """

        if not self._readable():
            return self

        if not self._frames:
            raise ContractError('no open container to exit')

        stream = self._stream
        container = self._frames[-1].container

        if container.type == Kind.ARRAY:
            depth = 0

            while True:
                item = stream.peek()

                if item is None:
                    return self.fail('%r has no close marker' % (container,))

                if isinstance(item, ContainerEnd):
                    if depth == 0:
                        break
                    depth -= 1
                elif isinstance(item, Container):
                    depth += 1

                stream.next()

        elif not isinstance(stream.peek(), ContainerEnd):
            return self.fail('%r has unread content' % (container,))

        stream.next()
        self._frames.pop()
        return self


    ### Basic values; the operations tables call these.

    def _write_basic(self, code, value):

        if not self._writable():
            return self

        if not self._expect(code):
            return self

        self._stream.append((code, value))
        return self


    def _read_basic(self, code):

        if not self._readable():
            return None

        item = self._stream.peek()

        if item is None or isinstance(item, ContainerEnd):
            self.fail("expected '%s', found the end of %s" % (code, self._where()))
            return None

        if isinstance(item, Container) or item[0] != code:
            self.fail("expected '%s', found '%s'" % (code, _describe(item)))
            return None

        self._stream.next()
        return item[1]


    def _attach_fd(self, fd):
        fds = self._stream.fds
        fds.append(int(fd))
        return len(fds) - 1


    def _resolve_fd(self, index):

        fds = self._stream.fds

        if index < 0 or index >= len(fds):
            self.fail('descriptor index %d is out of range' % (index))
            return None

        try:
            return signature.UnixFD(fds[index])
        except (TypeError, ValueError):
            self.fail('bad descriptor at index %d: %r' % (index, fds[index]))
            return None


    def _expect(self, sig):
        """ Check a complete type that is about to be written against the
            innermost open container, and advance past it.
        """

        if not self._frames:
            if sig.startswith(signature.DICT_ENTRY_BEGIN):
                self.fail('dict entries can only be written inside an array')
                return False
            return True

        frame = self._frames[-1]

        if frame.container.type == Kind.ARRAY:
            expected = frame.fields[0]
        elif frame.index < len(frame.fields):
            expected = frame.fields[frame.index]
            frame.index += 1
        else:
            self.fail("%r is already complete, cannot add '%s'" % (frame.container, sig))
            return False

        if sig != expected:
            self.fail("%r expects '%s', not '%s'" % (frame.container, expected, sig))
            return False

        return True


    def _readable(self):

        if self.error is not None:
            return False

        if not self._stream.sealed:
            # Reading too early does not damage what was written.
            self._invalidate('message is still being written; rewind() it before reading')
            return False

        return True


    def _where(self):

        if self._frames:
            return repr(self._frames[-1].container)

        return 'the message'


    def _writable(self):

        if self.error is not None:
            return False

        if self._stream.sealed:
            self.fail('message is sealed; no further values can be written')
            self._write_failed = True
            return False

        return True


# end of class Message



def _describe(item):

    if isinstance(item, Container):
        return repr(item)

    return item[0]


def _is_container_valid(container):

    kind = container.type
    content = str(container.content)

    if kind == Kind.VARIANT:
        return signature.is_single(content)

    if kind == Kind.DICT_ENTRY:
        return signature.is_single(signature.ARRAY + container.signature)

    if kind == Kind.ARRAY:
        # Dict entries only parse as array elements.
        return signature.is_single(container.signature)

    return content != '' and signature.is_single(container.signature)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
