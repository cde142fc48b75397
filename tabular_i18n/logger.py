import logging
from pathlib import Path

LOG_DIR = Path.cwd() / "logs"
LOG_FILE = LOG_DIR / "app.log"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Loggers handed out by get_logger, so set_log_mode can re-level them
_managed_loggers = set()

_log_mode = 'info'


def _level_for_mode(log_mode: str) -> int:
    if log_mode == 'debug':
        return logging.DEBUG
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1
    return logging.INFO


def _apply_mode(logger: logging.Logger, log_mode: str) -> None:
    """Set levels and add/remove the file handler for one logger."""
    target_level = _level_for_mode(log_mode)
    logger.setLevel(target_level)
    log_format = logging.Formatter(LOG_FORMAT)

    has_file_handler = any(isinstance(h, logging.FileHandler) for h in logger.handlers)

    # The file handler is only kept in debug mode
    if log_mode == 'debug' and not has_file_handler:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        f_handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
        f_handler.setLevel(logging.DEBUG)
        f_handler.setFormatter(log_format)
        logger.addHandler(f_handler)
    elif log_mode != 'debug' and has_file_handler:
        handlers_to_remove = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        for handler in handlers_to_remove:
            handler.close()
            logger.removeHandler(handler)

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(target_level)


def set_log_mode(log_mode: str) -> None:
    """Switch the log mode ('off', 'info', 'debug') for every managed logger."""
    global _log_mode
    if log_mode not in ('off', 'info', 'debug'):
        raise ValueError(f"Unknown log mode: {log_mode}")
    _log_mode = log_mode

    for name in list(_managed_loggers):
        _apply_mode(logging.getLogger(name), log_mode)


def get_log_mode() -> str:
    return _log_mode


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if logger already configured
    if name in _managed_loggers:
        return logger

    c_handler = logging.StreamHandler()
    c_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(c_handler)

    _managed_loggers.add(name)
    _apply_mode(logger, _log_mode)
    return logger
