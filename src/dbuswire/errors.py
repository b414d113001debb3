""" Exception classes. There are two families of failure in this package:
    a :class:`ContractError` is a programming error and is raised on the
    spot, while a :class:`StreamError` is recorded on the
    :class:`dbuswire.message.Message` that failed, and is only raised if
    the caller asks for it via :func:`dbuswire.message.Message.check`.
"""


class MarshalError(Exception):
    """ Base class for all errors raised by this package.
    """


class ContractError(MarshalError):
    """ The caller broke a rule that cannot be recovered from at runtime:
        an unbalanced container, a :func:`dbuswire.variant.Variant.data_as`
        request for the wrong type, registration of a type that is not in
        reduced form, and so on.
    """


class StreamError(MarshalError):
    """ A read or write against a message failed. The *name* follows the
        bus convention for error names, so that the failure can be relayed
        to a remote caller as-is.
    """

    invalid_args = 'org.freedesktop.DBus.Error.InvalidArgs'

    def __init__(self, text, name=None):

        if name is None:
            name = self.invalid_args

        MarshalError.__init__(self, text)
        self.name = name
        self.text = text


    def __repr__(self):
        return 'StreamError(%r, %r)' % (self.name, self.text)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
