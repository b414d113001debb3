import copy

import numpy
import pytest

import dbuswire
from dbuswire import Container, ContainerEnd, Message, Variant
from dbuswire.container import Kind
from dbuswire.signature import Array, Byte, Dict, DictEntry, Int16, Int32, \
                               ObjectPath, Signature, Struct, Tuple, \
                               UInt32, UnixFD


def test_int32():

    message = Message()
    message.write(42)

    assert message.signature == 'i'

    message.rewind()
    value = message.read(Int32)

    assert value == 42
    assert isinstance(value, Int32)
    assert bool(message) == True


def test_string_array_keeps_order():

    message = Message()
    message.write(['a', 'b'])

    assert message.signature == 'as'

    message.rewind()
    assert message.read(Array[str]) == ['a', 'b']


def test_dict_entry():

    operations = dbuswire.marshal.operations(DictEntry[str, Int32])
    assert operations.signature == '{si}'

    message = Message()
    message.write([DictEntry('k', 5)])

    assert message.signature == 'a{si}'

    message.rewind()
    message.enter(Container(Kind.ARRAY, '{si}'))
    entry = message.read(DictEntry[str, Int32])
    message.exit()

    assert entry == ('k', 5)
    assert isinstance(entry, DictEntry)
    assert message.valid


def test_dict_entry_outside_array():

    message = Message()
    message.write(DictEntry('k', 5))

    assert bool(message) == False
    assert 'inside an array' in message.error.text
    assert message.length == 0


def test_variant():

    message = Message()
    message.write(Variant(UInt32(7)))

    assert message.signature == 'v'

    message.rewind()
    variant = message.read(Variant)

    assert variant.signature == 'u'
    assert str(variant) == 'Variant(sig=u, content=7)'
    assert variant.data_as(UInt32) == 7


def test_unregistered_variant():

    message = Message(registry=dbuswire.Registry())
    message.write(Variant(UInt32(7)))
    message.rewind()

    assert message.read(Variant) is None
    assert bool(message) == False
    assert "'u'" in message.error.text


def test_struct():

    message = Message()
    message.write((True, 2.5))

    assert message.signature == '(bd)'

    message.rewind()
    assert message.read(Struct[bool, float]) == (True, 2.5)


def test_dict():

    message = Message()
    message.write({'a': 1, 'b': 2})

    assert message.signature == 'a{si}'

    message.rewind()
    assert message.read(Dict[str, Int32]) == {'a': 1, 'b': 2}


def test_dict_of_variants():

    properties = {'name': Variant('box'), 'size': Variant(UInt32(3))}

    message = Message()
    message.write(properties)

    assert message.signature == 'a{sv}'

    message.rewind()
    decoded = message.read(Dict[str, Variant])

    assert decoded == properties
    assert decoded['size'].signature == 'u'


def test_flattened_tuple():

    message = Message()
    message.write((5, 'x'), Tuple[Int32, str])

    assert message.signature == 'is'
    assert message.length == 2

    message.rewind()
    assert message.read(Tuple[Int32, str]) == (5, 'x')


def test_chained_writes():

    message = Message()
    message << 1 << 'a' << [2.5]

    assert message.signature == 'isad'

    message.rewind()
    assert message.read(Int32) == 1
    assert message.read(str) == 'a'
    assert message.read(Array[float]) == [2.5]
    assert message.end() == True


def test_sticky_failure():

    message = Message()
    message.write('abc', Int32)

    assert bool(message) == False
    error = message.error

    message.write(5)
    message.write('more')
    message.open(Container(Kind.ARRAY, 'i'))

    assert message.error is error
    assert message.length == 0
    assert message.signature == ''

    with pytest.raises(dbuswire.StreamError):
        message.check()

    # Failed writes cannot be undone.

    with pytest.raises(dbuswire.ContractError):
        message.reset_error()

    # Sealing an incomplete message is allowed once it has failed.

    message.rewind()
    assert message.read(Int32) is None


def test_rejected_values():

    rejected = (
        ('abc', Int32),
        (1.5, Int32),
        (300, Byte),
        (-1, UInt32),
        ('yes', bool),
        ('1.5', float),
        (5, str),
        ('nul\0', str),
        ('relative/path', ObjectPath),
        ('a{', Signature),
        ('\ud800', str),
        (5, Array[Int32]),
        ('ab', Array[str]),
        (b'ab', Array[Byte]),
        (5, Struct[Int32]),
        ('a', Struct[str]),
        ({'a': 1}, Struct[str]),
        (5, Dict[str, Int32]),
        ('ab', Dict[str, str]),
        (['ab'], Array[DictEntry[str, str]]),
        (5, Tuple[Int32]),
    )

    for value, type in rejected:
        message = Message()
        message.write(value, type)
        assert bool(message) == False, (value, type)


def test_strings_are_not_arrays():

    message = Message()
    message.write('ab', Array[str])

    assert bool(message) == False
    assert message.length == 0
    assert message.signature == ''


def test_text_must_be_utf8():

    message = Message()
    message.write('ok \u00e9')
    message.write('lone \udc80 surrogate')

    assert bool(message) == False
    assert message.length == 1


def test_object_path_and_signature():

    message = Message()
    message.write(ObjectPath('/org/example'))
    message.write(Signature('a{sv}'))

    assert message.signature == 'og'

    message.rewind()
    path = message.read(ObjectPath)
    sig = message.read(Signature)

    assert isinstance(path, ObjectPath)
    assert path == '/org/example'
    assert isinstance(sig, Signature)
    assert sig == 'a{sv}'


def test_write_mismatch_inside_container():

    message = Message()
    message.open(Container(Kind.STRUCT, 'is'))
    message.write('x')

    assert bool(message) == False
    assert 'expects' in message.error.text


def test_incomplete_struct():

    message = Message()
    message.open(Container(Kind.STRUCT, 'is'))
    message.write(5)
    message.close()

    assert bool(message) == False

    message = Message()
    message.open(Container(Kind.STRUCT, 'i'))
    message.write(5)
    message.write(6)

    assert bool(message) == False


def test_invalid_container():

    for container in (Container(Kind.STRUCT, ''), Container(Kind.VARIANT, 'is'), Container(Kind.ARRAY, 'a')):
        message = Message()
        message.open(container)
        assert bool(message) == False, container


def test_explicit_containers():

    message = Message()
    message.open(Container(Kind.ARRAY, '(ib)'))
    message.open(Container(Kind.STRUCT, 'ib'))
    message.write(1).write(True)
    message.close()
    message.close()

    assert message.signature == 'a(ib)'

    message.rewind()
    message.read(Container(Kind.ARRAY, '(ib)'))
    message.read(Container(Kind.STRUCT, 'ib'))

    assert message.read(Int32) == 1
    assert message.read(bool) == True
    assert message.end() == True

    message.read(ContainerEnd)
    assert message.end() == True

    message.read(ContainerEnd())
    assert message.end() == True
    assert message.valid


def test_contract_violations():

    with pytest.raises(dbuswire.ContractError):
        Message().close()

    message = Message()
    message.write(1)
    message.rewind()

    with pytest.raises(dbuswire.ContractError):
        message.exit()

    message = Message()
    message.open(Container(Kind.ARRAY, 'i'))

    with pytest.raises(dbuswire.ContractError):
        message.rewind()

    with pytest.raises(dbuswire.ContractError):
        Message().write([])

    with pytest.raises(dbuswire.ContractError):
        Message().write(object())


def test_read_mismatch():

    message = Message()
    message.write(5)
    message.rewind()

    assert message.read(str) is None
    assert bool(message) == False
    assert message.error.text == "expected 's', found 'i'"
    assert message.error.name == dbuswire.StreamError.invalid_args

    # A failure while reading can be cleared, and the message read again.

    message.reset_error()
    message.rewind()

    assert message.read(Int32) == 5


def test_read_past_end():

    message = Message()
    message.write(5)
    message.rewind()

    assert message.read(Int32) == 5
    assert message.read(Int32) is None
    assert 'end of the message' in message.error.text


def test_read_before_rewind():

    message = Message()
    message.write(5)

    assert message.read(Int32) is None
    assert 'rewind' in message.error.text

    # The written content is intact, so the failure can be cleared.

    message.reset_error()
    message.rewind()

    assert message.read(Int32) == 5


def test_write_after_rewind():

    message = Message()
    message.write(5)
    message.rewind()
    message.write(6)

    assert bool(message) == False
    assert 'sealed' in message.error.text
    assert message.length == 1


def test_array_exit_skips_elements():

    message = Message()
    message.write([[1], [2, 3]])
    message.write('after')

    assert message.signature == 'aais'

    message.rewind()
    message.enter(Container(Kind.ARRAY, 'ai'))

    assert message.read(Array[Int32]) == [1]

    message.exit()

    assert message.read(str) == 'after'
    assert message.valid


def test_struct_exit_with_unread_fields():

    message = Message()
    message.write((1, 'a'))
    message.rewind()

    message.enter(Container(Kind.STRUCT, 'is'))
    message.read(Int32)
    message.exit()

    assert bool(message) == False
    assert 'unread' in message.error.text


def test_enter_mismatch():

    message = Message()
    message.write([1])
    message.rewind()
    message.enter(Container(Kind.ARRAY, 's'))

    assert bool(message) == False


def test_peek_type():

    message = Message()
    message.write([1])
    message.write((True, 1.0))
    message.write(Variant(1))

    assert message.peek_type() == ('', '')

    message.rewind()

    assert message.peek_type() == ('a', 'i')
    message.read(Array[Int32])
    assert message.peek_type() == ('(', 'bd')
    message.read(Struct[bool, float])
    assert message.peek_type() == ('v', 'i')
    message.read(Variant)
    assert message.peek_type() == ('', '')


def test_unix_fd():

    message = Message()
    message.write(UnixFD(7))
    message.write(UnixFD(9))

    assert message.signature == 'hh'
    assert message.fds == (7, 9)

    message.rewind()
    first = message.read(UnixFD)
    second = message.read(UnixFD)

    assert isinstance(first, UnixFD)
    assert first == 7
    assert second == 9


def test_numpy_values():

    message = Message()
    message.write(numpy.array([1, 2, 3], dtype=numpy.int16))
    message.write(numpy.uint8(4))
    message.write(numpy.float64(0.5))

    assert message.signature == 'anyd'

    message.rewind()

    assert message.read(Array[Int16]) == [1, 2, 3]
    assert message.read(Byte) == 4
    assert message.read(float) == 0.5


def test_empty_variant_is_skipped():

    message = Message()
    message.write(Variant())

    assert message.valid
    assert message.length == 0


def test_copy():

    message = Message()
    message.write(1).write('a')

    duplicate = message.copy()
    duplicate.write(2)

    assert message.length == 2
    assert duplicate.length == 3

    message.rewind()
    assert message.read(Int32) == 1

    duplicate = copy.copy(message)

    assert duplicate.position == 0
    assert duplicate.read(Int32) == 1
    assert duplicate.read(str) == 'a'


def test_copy_keeps_open_containers():

    message = Message()
    message.open(Container(Kind.STRUCT, 'is'))
    message.write(1)

    duplicate = message.copy()
    duplicate.write('x').close()

    assert duplicate.valid
    assert duplicate.signature == '(is)'


def test_copy_keeps_failure():

    message = Message()
    message.write('x', Int32)

    duplicate = message.copy()

    assert bool(duplicate) == False
    assert duplicate.error is message.error


def test_envelope():

    message = Message.method_call('org.example.Service', '/org/example', 'org.example.Iface', 'Ping')

    assert message.type == dbuswire.MessageType.METHOD_CALL
    assert message.destination == 'org.example.Service'
    assert message.path == '/org/example'
    assert message.interface == 'org.example.Iface'
    assert message.member == 'Ping'
    assert message.is_error == False

    message.set_destination('org.example.Other')
    assert message.destination == 'org.example.Other'

    signal = Message.signal('/org/example', 'org.example.Iface', 'Changed')
    assert signal.type == dbuswire.MessageType.SIGNAL
    assert signal.destination is None


def test_repr():

    message = Message()
    assert repr(message) == 'Message(INVALID, sig=, 0 items, valid)'

    message.write([5])
    assert repr(message) == 'Message(INVALID, sig=ai, 3 items, valid)'

    message.write('x', Int32)
    assert repr(message).startswith('Message(INVALID, sig=ai, 3 items, invalid: ')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
