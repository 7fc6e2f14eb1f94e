"""
Logging configuration for topicfeed
Coloured console output with bound context fields (source=..., topic=...)
"""

import functools
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import colorama
from colorama import Fore, Style

# Initialize colorama for Windows support
colorama.init()

LOG_COLORS = {
    'DEBUG': Fore.CYAN,
    'INFO': Fore.GREEN,
    'WARNING': Fore.YELLOW,
    'ERROR': Fore.RED,
    'CRITICAL': Fore.MAGENTA
}

CONSOLE_FORMAT = "%(timestamp)s [%(levelname)s] %(name)s: %(message)s%(context_str)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s%(context_str)s"

def render_context(context: Optional[Dict[str, Any]]) -> str:
    """' [source=coingecko topic=crypto]' or '' when there is no context"""
    if not context:
        return ""
    return " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"

class ContextFormatter(logging.Formatter):
    """Formatter that appends the record's bound context"""

    def format(self, record):
        record.context_str = render_context(getattr(record, 'context', None))
        record.timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        return super().format(record)

class ColoredFormatter(ContextFormatter):
    """Context formatter with level/name colours on a terminal"""

    def __init__(self, fmt=None, datefmt=None, use_colors=True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record):
        if self.use_colors and record.levelname in LOG_COLORS:
            # Colour a copy so other handlers see the plain record
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{LOG_COLORS[record.levelname]}{record.levelname}{Style.RESET_ALL}"
            record.name = f"{Fore.BLUE}{record.name}{Style.RESET_ALL}"

        return super().format(record)

class StructuredLogger:
    """Wrapper for structured logging with context"""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.context = dict(context or {})

    def add_context(self, **kwargs):
        """Add persistent context to all log messages"""
        self.context.update(kwargs)

    def clear_context(self):
        self.context = {}

    def bind(self, **kwargs) -> 'StructuredLogger':
        """New logger on the same channel with extra context"""
        return StructuredLogger(self.logger, {**self.context, **kwargs})

    def _log(self, level, msg, *args, **kwargs):
        extra = dict(kwargs.get('extra') or {})
        if self.context:
            extra['context'] = {**self.context, **extra.get('context', {})}
        kwargs['extra'] = extra
        getattr(self.logger, level)(msg, *args, **kwargs)

    def debug(self, msg, *args, **kwargs):
        self._log('debug', msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._log('info', msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._log('warning', msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._log('error', msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self._log('critical', msg, *args, **kwargs)

def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    use_colors: bool = True
) -> StructuredLogger:
    """
    Set up a logger with console and optional file output

    Args:
        name: Logger name (usually __name__)
        level: Log level; defaults to the configured LOG_LEVEL
        log_file: Optional file path for logging
        use_colors: Whether to use colored output

    Returns:
        StructuredLogger instance
    """
    from ..config.settings import get_config

    if level is None:
        level = get_config().system.log_level

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, use_colors=use_colors))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setFormatter(ContextFormatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return StructuredLogger(logger)

def get_logger(name: str) -> StructuredLogger:
    return setup_logger(name)

def log_async_performance(logger: Optional[StructuredLogger] = None):
    """Decorator to log how long a coroutine took"""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            nonlocal logger
            if logger is None:
                logger = get_logger(func.__module__)

            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                elapsed_ms = int((time.time() - start_time) * 1000)
                logger.error(
                    f"Failed async {func.__name__} after {elapsed_ms}ms: {e}",
                    extra={'duration_ms': elapsed_ms},
                    exc_info=True
                )
                raise

            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.debug(f"Completed async {func.__name__} in {elapsed_ms}ms", extra={'duration_ms': elapsed_ms})
            return result

        return wrapper
    return decorator
