from enum import Enum
import logging
import sys

_logger = logging.getLogger("texref")

class LogLevel(Enum):
    """
    An enumeration which represents the log levels.

    Attributes:
        VERBOSE (`int`): All possible logs are printed, including per-sample evaluation traces.
        INFO (`int`): Batch summaries are printed as well. Useful when debugging a conformance run.
        WARNING (`int`): Only warnings (every sample mismatch) and errors are printed. Default log level.
        ERROR (`int`): Only errors are printed. Useful for muting mismatch reports you *know* are expected.
    """
    VERBOSE = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

__initilized_instance: bool = False

def is_initialized() -> bool:
    """
    A function which checks if the texref logging has been initialized.

    Returns:
        `bool`: A flag indicating whether texref has been initialized.
    """

    global __initilized_instance

    return __initilized_instance

def initialize(log_level: LogLevel = LogLevel.WARNING, stream: object = None):
    """
    A function which initializes texref logging. Calling it more than once only
    changes the log level.

    Args:
        log_level (`LogLevel`): The log level, which is one of the following:
            LogLevel.VERBOSE
            LogLevel.INFO
            LogLevel.WARNING
            LogLevel.ERROR
        stream (`object`): The stream the log handler writes to. Defaults to stderr.
    """

    set_log_level(log_level)
    _install_handler(stream)

def _install_handler(stream: object = None):
    global __initilized_instance

    if __initilized_instance:
        return

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s %(filename)s:%(lineno)d] %(message)s"))

    _logger.addHandler(handler)
    _logger.propagate = False

    __initilized_instance = True

def set_log_level(level: LogLevel):
    _logger.setLevel(level.value)

def log(text: str, end: str = '\n', level: LogLevel = LogLevel.ERROR, stack_offset: int = 1):
    """
    A function which logs a message at the specified log level. The record
    carries the file and line of the caller `stack_offset` frames up.

    Args:
        text (`str`): The message to log.
        end (`str`): Appended to the message, trailing newlines are stripped by the handler.
        level (`LogLevel`): The log level.
        stack_offset (`int`): How many frames above this function the reported caller is.
    """

    _install_handler()

    if not _logger.isEnabledFor(level.value):
        return

    _logger.log(level.value, (text + end).rstrip('\n'), stacklevel=stack_offset + 1)

def log_error(text: str, end: str = '\n'):
    """
    A function which logs an error message.

    Args:
        text (`str`): The message to log.
    """

    log(text, end, LogLevel.ERROR, 2)

def log_warning(text: str, end: str = '\n'):
    """
    A function which logs a warning message.

    Args:
        text (`str`): The message to log.
    """

    log(text, end, LogLevel.WARNING, 2)

def log_info(text: str, end: str = '\n'):
    """
    A function which logs an info message.

    Args:
        text (`str`): The message to log.
    """

    log(text, end, LogLevel.INFO, 2)

def log_verbose(text: str, end: str = '\n'):
    """
    A function which logs a verbose message.

    Args:
        text (`str`): The message to log.
    """

    log(text, end, LogLevel.VERBOSE, 2)

def is_log_enabled(level: LogLevel) -> bool:
    return _logger.isEnabledFor(level.value)
