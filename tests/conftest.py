import pytest

import dbuswire
from dbuswire.transport.memory import LoopbackTransport


@pytest.fixture
def registry():
    """ A private registry holding the default types, so that tests which
        register additional types do not leak them into each other.
    """

    return dbuswire.Registry(defaults=True)


@pytest.fixture
def loopback():
    return LoopbackTransport()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
