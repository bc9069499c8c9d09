import functools
import logging
import os
import sys

from src.config import config_instance


class AppLogger:
    def __init__(self, name: str, is_file_logger: bool = False, log_level: int | str = logging.INFO):
        logger_name = name if name else config_instance().APP_NAME
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(level=log_level)

        if is_file_logger:
            os.makedirs('logs', exist_ok=True)
            handler = logging.FileHandler(f'logs/{config_instance().LOGGING.filename}')
        else:
            handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        self.logger.addHandler(handler)


@functools.lru_cache
def init_logger(name: str = "form-relay"):
    """
        returns a configured logger, one handler per logger name
    :param name:
    :return:
    """
    _logging = config_instance().LOGGING
    logger = AppLogger(name=name, is_file_logger=_logging.LOG_TO_FILE, log_level=_logging.level.upper())
    return logger.logger
