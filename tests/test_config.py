import logging

from dbuswire import config


def test_defaults(monkeypatch):

    monkeypatch.delenv('DBUSWIRE_LOG_LEVEL', raising=False)
    monkeypatch.delenv('DBUSWIRE_DEFAULT_TYPES', raising=False)
    config.reload()

    assert config.log_level == 'WARNING'
    assert config.default_types == True


def test_environment(monkeypatch):

    monkeypatch.setenv('DBUSWIRE_LOG_LEVEL', 'debug')
    monkeypatch.setenv('DBUSWIRE_DEFAULT_TYPES', 'off')
    config.reload()

    try:
        assert config.log_level == 'DEBUG'
        assert config.default_types == False
    finally:
        monkeypatch.undo()
        config.reload()


def test_setup_logging():

    logger = config.setup_logging('INFO')

    try:
        assert logger is logging.getLogger('dbuswire')
        assert logger.level == logging.INFO

        handlers = [handler for handler in logger.handlers if getattr(handler, '_dbuswire', False)]
        assert len(handlers) == 1

        # Calling it again does not attach a second handler.

        config.setup_logging(logging.DEBUG)
        handlers = [handler for handler in logger.handlers if getattr(handler, '_dbuswire', False)]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG

    finally:
        for handler in list(logger.handlers):
            if getattr(handler, '_dbuswire', False):
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
