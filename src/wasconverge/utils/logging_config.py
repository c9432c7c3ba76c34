"""Logging configuration for wasconverge.

Provides configurable logging with:
- File-based logging with rotation
- Console output for real-time debugging
- Performance timing for document parsing and tool invocations

Environment Variables:
    WASCONVERGE_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    WASCONVERGE_LOG_FILE: Path to log file (default: ~/.wasconverge/wasconverge.log)
    WASCONVERGE_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    WASCONVERGE_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from wasconverge.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("run_script")
    def run_script(self, script, user):
        ...

    with timed_section("reconcile", subject="keystore/CellDefaultKeyStore"):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("wasconverge.perf")
main_logger = logging.getLogger("wasconverge")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("WASCONVERGE_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".wasconverge" / "wasconverge.log"
    path_str = os.environ.get("WASCONVERGE_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging(level: Optional[int] = None) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects WASCONVERGE_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for timing metrics

    Args:
        level: Console level overriding the environment (e.g. from -v)
    """
    log_level = level if level is not None else get_log_level()
    log_file = get_log_file()
    max_size_mb = int(os.environ.get("WASCONVERGE_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("WASCONVERGE_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-40s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "wasconverge-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    main_logger.addHandler(console_handler)
    main_logger.addHandler(file_handler)

    # Perf lines go to their own file only
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False
    perf_logger.addHandler(perf_handler)

    main_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")
    main_logger.debug(f"Performance logging to: {perf_log_file}")


def _format(operation: str, subject: Optional[str], elapsed: float, status: str) -> str:
    return f"{operation:20s} | {subject or 'N/A':30s} | {elapsed:8.2f}ms | {status}"


def timed(operation: str, subject: Optional[str] = None):
    """Decorator to log execution time of a function.

    Args:
        operation: Name of the operation (e.g., "parse_document", "run_script")
        subject: Optional label (inferred from self.profile_id when omitted)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            label = subject
            if label is None and args:
                label = getattr(args[0], "profile_id", None)

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(_format(operation, label, elapsed, f"FAIL: {e}"))
                raise
            elapsed = (time.perf_counter() - start) * 1000
            perf_logger.info(_format(operation, label, elapsed, "OK"))
            return result

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, subject: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Args:
        operation: Name of the operation
        subject: Resource or profile label
        **extra: Additional context to log
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = _format(operation, subject, elapsed, f"FAIL: {e}")
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise

    elapsed = (time.perf_counter() - start) * 1000
    msg = _format(operation, subject, elapsed, "OK")
    if extra_str:
        msg += f" | {extra_str}"
    perf_logger.info(msg)
