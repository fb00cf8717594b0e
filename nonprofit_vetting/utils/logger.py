"""
Logging for vetting runs.

One line per event, pipe-separated, with millisecond timestamps:

    2025-06-15 10:42:07,315 | INFO     | vetting_service.py:142 | Completed Tier 1 evaluation [ein=95-3135649 ...]

Structured values are appended as a ``[key=value ...]`` suffix. Warnings and
errors are also kept in memory so a caller can report them after a batch.
Everything goes to stderr; stdout is reserved for command output.
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"

# Library loggers that should share the root handler
EXTERNAL_LOGGERS = ("urllib3", "requests")


class MillisecondsFormatter(logging.Formatter):
    """asctime as ``YYYY-MM-DD HH:MM:SS,mmm``."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s,%03d"


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def _with_fields(message: str, fields: dict[str, Any]) -> str:
    if not fields:
        return message
    return f"{message} [{' '.join(f'{k}={v}' for k, v in fields.items())}]"


class PipelineLogger:
    """
    Named logger with structured suffixes and warning/error tracking.

    Args:
        name: Underlying ``logging`` logger name
        log_level: Console level (DEBUG, INFO, WARNING, ERROR)
        log_file: File name to also log to, at DEBUG
        log_dir: Directory for ``log_file`` (default ``./logs``)
    """

    def __init__(
        self,
        name: str = "nonprofit_vetting",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
    ):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if log_file else _level(log_level))
        self.logger.propagate = False
        self.logger.handlers.clear()

        formatter = MillisecondsFormatter(LOG_FORMAT)

        console = logging.StreamHandler(sys.stderr)
        console.setLevel(_level(log_level))
        console.setFormatter(formatter)
        self.logger.addHandler(console)

        self.log_path: Optional[Path] = None
        if log_file:
            log_dir = log_dir or Path.cwd() / "logs"
            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_path = log_dir / log_file

            file_handler = logging.FileHandler(self.log_path)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        self.errors: list[dict[str, Any]] = []
        self.warnings: list[dict[str, Any]] = []

        if self.log_path:
            self.info(f"Logging to file: {self.log_path}")

    def _track(self, bucket: list, message: str, **extra):
        bucket.append({"message": message, "timestamp": datetime.now().isoformat(), **extra})

    def debug(self, message: str, **fields):
        self.logger.debug(_with_fields(message, fields), stacklevel=2)

    def info(self, message: str, **fields):
        self.logger.info(_with_fields(message, fields), stacklevel=2)

    def warning(self, message: str, **fields):
        """Log and remember a warning."""
        line = _with_fields(message, fields)
        self.logger.warning(line, stacklevel=2)
        self._track(self.warnings, line, data=fields)

    def error(self, message: str, exception: Optional[Exception] = None, **fields):
        """Log and remember an error; the traceback is attached when an exception is given."""
        if exception is not None:
            message = f"{message} | Exception: {exception}"
        line = _with_fields(message, fields)
        self.logger.error(line, exc_info=exception, stacklevel=2)
        self._track(
            self.errors,
            line,
            exception=str(exception) if exception is not None else None,
            data=fields,
        )

    def log_data_source_fetch(self, ein: str, source: str, success: bool, error: Optional[str] = None):
        """One line per provider lookup; failures count as warnings."""
        if success:
            self.logger.debug(_with_fields(f"Fetched {source} data", {"ein": ein}), stacklevel=2)
            return
        line = _with_fields(f"Failed to fetch {source} data", {"ein": ein, "error": error})
        self.logger.warning(line, stacklevel=2)
        self._track(self.warnings, line, data={"ein": ein, "source": source, "error": error})

    def log_evaluation_complete(
        self,
        ein: str,
        recommendation: str,
        score: int,
        red_flags: int,
        sector: Optional[str] = None,
    ):
        fields = {
            "ein": ein,
            "recommendation": recommendation,
            "score": score,
            "red_flags": red_flags,
            "sector": sector or "-",
        }
        self.logger.info(_with_fields("Completed Tier 1 evaluation", fields), stacklevel=2)

    @contextmanager
    def time_operation(self, ein: str, operation: str):
        """
        Log how long a block took. Failures are logged as errors and re-raised.

            with logger.time_operation("95-3135649", "check_tier1"):
                ...
        """
        started = time.perf_counter()
        self.debug(f"Starting {operation}", ein=ein)
        try:
            yield
        except Exception as e:
            elapsed = round(time.perf_counter() - started, 2)
            self.error(f"Failed {operation}", exception=e, ein=ein, duration_seconds=elapsed)
            raise
        elapsed = round(time.perf_counter() - started, 2)
        self.debug(f"Completed {operation}", ein=ein, duration_seconds=elapsed)

    def get_error_summary(self) -> dict[str, Any]:
        return {
            "total_errors": len(self.errors),
            "total_warnings": len(self.warnings),
            "errors": self.errors,
            "warnings": self.warnings,
        }

    def clear_tracking(self):
        self.errors = []
        self.warnings = []


_default_logger: Optional[PipelineLogger] = None


def get_logger(
    name: str = "nonprofit_vetting",
    log_level: str = "INFO",
    log_file: Optional[str] = None,
) -> PipelineLogger:
    """Process-wide logger; arguments only apply to the first call."""
    global _default_logger
    if _default_logger is None:
        _default_logger = PipelineLogger(name=name, log_level=log_level, log_file=log_file)
    return _default_logger


def configure_global_logging(log_level: str = "INFO"):
    """
    Route the root logger (and so every ``logging.getLogger(__name__)``
    module logger) through one stderr handler in the same format.
    """
    level = _level(log_level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(MillisecondsFormatter(LOG_FORMAT))
    root.addHandler(handler)

    for name in EXTERNAL_LOGGERS:
        lib_logger = logging.getLogger(name)
        lib_logger.handlers.clear()
        lib_logger.propagate = True
        # urllib3 logs every connection at DEBUG
        lib_logger.setLevel(max(level, logging.INFO))
