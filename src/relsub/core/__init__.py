"""
relsub core module.

Exports configuration, logging, errors and tracing.
"""

# Configuration
from relsub.core.config import Settings, ConfigValidator, CONFIG_FILE_NAME, RF2_COLUMNS

# Exceptions
from relsub.core.exceptions import (
    RelsubError,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    InputFileError,
    OutputFileError,
    RF2FormatError,
    HierarchyError,
    EffectiveTimeError,
    ReplacementStateError,
)

# Logging
from relsub.core.logging import AsyncLogger, PerformanceLogger, logger, perf_logger

# Tracing
from relsub.core.tracing import LocalTracer, tracer

# Utilities
from relsub.core.utils import extract_effective_time

__all__ = [
    # Configuration
    "Settings",
    "ConfigValidator",
    "CONFIG_FILE_NAME",
    "RF2_COLUMNS",
    # Exceptions
    "RelsubError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "InputFileError",
    "OutputFileError",
    "RF2FormatError",
    "HierarchyError",
    "EffectiveTimeError",
    "ReplacementStateError",
    # Logging
    "AsyncLogger",
    "PerformanceLogger",
    "logger",
    "perf_logger",
    # Tracing
    "LocalTracer",
    "tracer",
    # Utilities
    "extract_effective_time",
]
