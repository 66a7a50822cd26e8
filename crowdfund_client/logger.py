import logging

from colorlog import ColoredFormatter, StreamHandler

from crowdfund_client import config

formatter = ColoredFormatter(
    '%(log_color)s%(levelname)s%(reset)s:%(asctime)s:%(purple)s%(name)s%(reset)s:%(log_color)s%(message)s%(reset)s',
    reset=True,
    log_colors={
        'DEBUG':    'cyan',
        'INFO':     'green',
        'WARNING':  'yellow',
        'ERROR':    'red',
        'CRITICAL': 'red,bg_white',
    },
    style='%'
)


def setup_logging(level=None):
    """Attach the coloured console handler to the package logger (once)."""
    logger = logging.getLogger('crowdfund_client')
    logger.setLevel(level or config.LOG_LEVEL)
    if not any(getattr(h, '_crowdfund', False) for h in logger.handlers):
        handler = StreamHandler()
        handler.setFormatter(formatter)
        handler._crowdfund = True
        logger.addHandler(handler)
    # one line per record, the root logger stays untouched
    logger.propagate = False
    return logger
