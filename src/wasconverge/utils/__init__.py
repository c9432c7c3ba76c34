"""Utility modules for logging and connection retry."""
from .connection import RETRYABLE_EXCEPTIONS, is_transient, with_retry
from .logging_config import (
    setup_logging,
    timed,
    timed_section,
    perf_logger,
)

__all__ = [
    "RETRYABLE_EXCEPTIONS",
    "is_transient",
    "with_retry",
    "setup_logging",
    "timed",
    "timed_section",
    "perf_logger",
]
