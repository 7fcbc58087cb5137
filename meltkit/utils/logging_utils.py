"""Logging setup"""

import logging
import sys

HANDLER_NAME = 'meltkit'


def setup_logging(level=logging.INFO, log_file=None):
    """Configure the root logger with a console and an optional file handler"""

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # drop the handlers of an earlier call
    for handler in list(root_logger.handlers):
        if getattr(handler, 'name', None) and handler.name.startswith(HANDLER_NAME):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    console_handler.name = f"{HANDLER_NAME}.console"
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        file_handler.name = f"{HANDLER_NAME}.file"
        root_logger.addHandler(file_handler)

    # third-party loggers stay quiet
    logging.getLogger('openpyxl').setLevel(logging.WARNING)

    return root_logger
