""" Runtime settings. These are read from the environment the first time this
    module is imported; changes to the environment after that point are
    ignored unless :func:`reload` is called.

    ``DBUSWIRE_LOG_LEVEL``
        Level used by :func:`setup_logging`; defaults to ``WARNING``.

    ``DBUSWIRE_DEFAULT_TYPES``
        Whether the default :class:`dbuswire.registry.Registry` starts out
        populated with the standard variant payload types. Defaults to true.
"""

import logging
import os
import sys


untruths = set(('', '0', 'false', 'f', 'no', 'n', 'off', 'disable'))

log_level = 'WARNING'
default_types = True

_log_format = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'


def reload():
    """ Re-read the settings from the environment.
    """

    global log_level
    global default_types

    log_level = os.environ.get('DBUSWIRE_LOG_LEVEL', 'WARNING').upper()

    try:
        enabled = os.environ['DBUSWIRE_DEFAULT_TYPES']
    except KeyError:
        default_types = True
    else:
        default_types = enabled.strip().lower() not in untruths


def setup_logging(level=None):
    """ Attach a console handler to the package logger. The library never
        does this on its own; it is intended for command-line use and for
        debugging. If *level* is None the configured ``log_level`` is used.
    """

    if level is None:
        level = log_level

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger('dbuswire')
    logger.setLevel(level)

    for handler in logger.handlers:
        if getattr(handler, '_dbuswire', False):
            return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_log_format, datefmt='%Y-%m-%d %H:%M:%S'))
    handler._dbuswire = True
    logger.addHandler(handler)

    return logger


reload()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
