import logging
from pathlib import Path
from typing import Optional

LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE = LOG_DIR / "autotranslator.log"

# Between INFO and WARNING, used for completed provider calls and entries
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Log mode and file target chosen by configure_logging()
_log_mode_cache = None
_log_file: Optional[Path] = None


def _get_log_mode() -> str:
    """Get the active log mode ('off', 'info' or 'debug')."""
    if _log_mode_cache is not None:
        return _log_mode_cache
    return 'info'


def _level_for_mode(log_mode: str) -> int:
    if log_mode == 'debug':
        return logging.DEBUG
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1
    return logging.INFO


def _apply_mode(logger: logging.Logger, log_mode: str) -> None:
    """Bring a logger's level and handlers in line with the log mode."""
    level = _level_for_mode(log_mode)
    log_format = logging.Formatter(LOG_FORMAT)
    logger.setLevel(level)

    has_file_handler = any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    has_console_handler = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )

    if _log_file is not None and log_mode != 'off' and not has_file_handler:
        _log_file.parent.mkdir(parents=True, exist_ok=True)
        f_handler = logging.FileHandler(_log_file, encoding='utf-8')
        f_handler.setLevel(logging.DEBUG)
        f_handler.setFormatter(log_format)
        logger.addHandler(f_handler)
    elif (_log_file is None or log_mode == 'off') and has_file_handler:
        handlers_to_remove = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        for handler in handlers_to_remove:
            handler.close()
            logger.removeHandler(handler)

    if not has_console_handler:
        c_handler = logging.StreamHandler()
        c_handler.setFormatter(log_format)
        logger.addHandler(c_handler)

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def configure_logging(log_mode: str = 'info', log_to_file: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Set the log mode for every logger created through get_logger().

    Args:
        log_mode: 'off', 'info' or 'debug'
        log_to_file: Also write to a log file (LOG_FILE unless log_file is given)
        log_file: Explicit log file path
    """
    global _log_mode_cache, _log_file
    _log_mode_cache = log_mode
    _log_file = (log_file or LOG_FILE) if log_to_file else None

    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        if not logger_name.startswith('autotranslator'):
            continue
        logger = logging.getLogger(logger_name)
        if logger.handlers:
            _apply_mode(logger, log_mode)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    _apply_mode(logger, _get_log_mode())
    return logger


def log_success(logger: logging.Logger, message: str, *args) -> None:
    """Log a message at SUCCESS level."""
    logger.log(SUCCESS, message, *args)
