"""
日志模块
"""
import logging
import os
import sys
import threading


_invocation_ctx = threading.local()

# Log level mapping from string to logging constant
LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(invocation)s] %(message)s"


def get_log_level_from_env() -> int:
    """Get log level from environment variable AVMETA_LOG_LEVEL or LOG_LEVEL."""
    level_str = os.environ.get("AVMETA_LOG_LEVEL") or os.environ.get("LOG_LEVEL") or "INFO"
    return LOG_LEVEL_MAP.get(level_str.upper(), logging.INFO)


def set_invocation_id(invocation_id: str | None) -> None:
    """Tag the current thread's log records, e.g. with ``HEYZO:0841``."""
    if invocation_id is None:
        clear_invocation_id()
        return
    _invocation_ctx.invocation_id = str(invocation_id)


def clear_invocation_id() -> None:
    if hasattr(_invocation_ctx, "invocation_id"):
        delattr(_invocation_ctx, "invocation_id")


def get_invocation_id() -> str:
    return getattr(_invocation_ctx, "invocation_id", "-")


class InjectInvocationFilter(logging.Filter):
    """Injects the thread-local invocation id into LogRecord, defaulting to '-'"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.invocation = get_invocation_id()
        return True


def setup_logger(name="avmeta", level=None, log_file=None):
    """配置并返回日志记录器

    Args:
        name: Logger name
        level: Log level (if None, read from environment variable)
        log_file: Log file path (if None, AVMETA_LOG_FILE; no file logging when unset)
    """
    if level is None:
        level = get_log_level_from_env()

    if log_file is None:
        log_file = os.environ.get("AVMETA_LOG_FILE") or None

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not any(isinstance(f, InjectInvocationFilter) for f in logger.filters):
        logger.addFilter(InjectInvocationFilter())

    # 防止重复添加处理器
    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # 控制台处理器 (stderr: stdout carries CLI output)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()
