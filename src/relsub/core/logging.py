"""
Logging for relsub.

Thin wrapper over loguru with a plain format and one shared file sink.
"""

import os
import sys
import time
from pathlib import Path
from typing import Optional, Union
from contextlib import contextmanager
from loguru import logger as loguru_logger


LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[component]} | {message}"
CONSOLE_FORMAT = "<level>{level: <8}</level> | {message}"


class AsyncLogger:
    """
    Component logger with flat format.

    Format: timestamp | level | component | message
    Messages are loguru templates: keyword context fills `{placeholders}`.
    """

    # Sinks shared by every instance
    _console_id: Optional[int] = None
    _file_id: Optional[int] = None

    def __init__(self, component: str, debug_mode: bool = False):
        self.component = component
        self.debug_mode = debug_mode

    @classmethod
    def configure(
        cls,
        level: str = "INFO",
        log_file: Optional[Union[str, Path]] = None,
        rotation_size_mb: int = 10,
    ) -> None:
        """
        Replace the console sink and optionally add the file sink.

        The file sink is enqueued so writes never block matching, rotates at
        `rotation_size_mb` and compresses old files.
        """
        if cls._console_id is None:
            # Drop loguru's default stderr handler once
            try:
                loguru_logger.remove(0)
            except ValueError:
                pass
        else:
            loguru_logger.remove(cls._console_id)

        # Resolve sys.stderr per message so redirected streams are honoured
        cls._console_id = loguru_logger.add(
            lambda message: sys.stderr.write(message), level=level.upper(), format=CONSOLE_FORMAT
        )

        if log_file and cls._file_id is None:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            cls._file_id = loguru_logger.add(
                str(log_file),
                level="DEBUG",
                format=LOG_FORMAT,
                rotation=f"{rotation_size_mb} MB",
                compression="zip",
                enqueue=True,
            )

    def log(self, level: str, message: str, **context):
        """Log through loguru, bound to this component."""
        loguru_logger.bind(component=self.component).log(level, message, **context)

    def debug(self, message: str, **context):
        """Log nivel DEBUG."""
        self.log("DEBUG", message, **context)

    def info(self, message: str, **context):
        """Log nivel INFO."""
        self.log("INFO", message, **context)

    def warning(self, message: str, **context):
        """Log nivel WARNING."""
        self.log("WARNING", message, **context)

    def error(self, message: str, include_trace: Optional[bool] = None, **context):
        """
        Log nivel ERROR con stack trace opcional.

        Args:
            message: Error message template
            include_trace: Whether to attach the current traceback (None = debug_mode)
            **context: Template values and extra context
        """
        should_include_trace = include_trace if include_trace is not None else self.debug_mode

        if should_include_trace:
            loguru_logger.bind(component=self.component).opt(exception=True).error(
                message, **context
            )
            return

        self.log("ERROR", message, **context)


class PerformanceLogger:
    """
    Logger for phase timings.

    Records the duration of each measured block at DEBUG level.
    """

    def __init__(self):
        self.logger = AsyncLogger("performance")

    @contextmanager
    def measure(self, operation: str, **context):
        """
        Context manager to time an operation.

        Usage:
        ```
        with perf_logger.measure("load_stated", path=path):
            registry = reader.load(path)
        ```
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            self.logger.debug(
                "Operation {operation} completed in {duration_ms:.1f} ms",
                operation=operation,
                duration_ms=duration * 1000,
                **context,
            )


def _get_debug_mode() -> bool:
    """Debug mode comes from the environment only."""
    return os.getenv("RELSUB_DEBUG", "false").lower() == "true"


logger = AsyncLogger("relsub", debug_mode=_get_debug_mode())
perf_logger = PerformanceLogger()
