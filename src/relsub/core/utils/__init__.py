"""
Shared utilities.
"""

from relsub.core.utils.datetime_utils import (
    DEFAULT_EFFECTIVE_TIME_PATTERN,
    extract_effective_time,
    format_iso,
    utc_now,
)

__all__ = ["DEFAULT_EFFECTIVE_TIME_PATTERN", "extract_effective_time", "format_iso", "utc_now"]
