import logging
import sys


class Logger:
    """
    Builds named loggers that write either to a file or, without one, to stderr
    """
    def __init__(self, fmt: str = '%(asctime)s %(levelname)s %(name)s %(message)s'):
        self.formatter = logging.Formatter(fmt)

    def get(self, log_file: str | None, name: str, level: str = 'INFO') -> logging.Logger:
        logger = logging.getLogger(name)
        if not logger.handlers:
            if log_file:
                handler = logging.FileHandler(log_file, mode='a')
            else:
                handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(self.formatter)
            logger.addHandler(handler)
            logger.setLevel(level)
        return logger
