import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Map string log levels to constants
log_level_map = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}


def setup_logging(log_level='INFO', log_file=None):
    """
    Set up structured logging for the application.

    Args:
        log_level: Level name or logging constant (default: INFO)
        log_file: Path to log file (optional, defaults to console only)
    """
    if isinstance(log_level, str):
        log_level = log_level_map.get(log_level.upper(), logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Replace only the handlers installed by a previous call
    for handler in list(root_logger.handlers):
        if getattr(handler, '_learnhub_handler', False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler._learnhub_handler = True
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler._learnhub_handler = True
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name):
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


# Pre-configured logger instances
app_logger = get_logger('app')
db_logger = get_logger('database')
security_logger = get_logger('security')
enrollment_logger = get_logger('enrollment')


def _with_data(message, kwargs):
    if kwargs:
        return f"{message} | Data: {kwargs}"
    return message


def log_info(logger, message, **kwargs):
    """Log an info message with optional structured data."""
    logger.info(_with_data(message, kwargs))


def log_warning(logger, message, **kwargs):
    """Log a warning message with optional structured data."""
    logger.warning(_with_data(message, kwargs))


def log_error(logger, message, **kwargs):
    """Log an error message with optional structured data."""
    logger.error(_with_data(message, kwargs))


def log_exception(logger, message, **kwargs):
    """Log an error message together with the active exception's traceback."""
    logger.exception(_with_data(message, kwargs))
