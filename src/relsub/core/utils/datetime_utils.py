"""
Datetime utilities for relsub.

All timestamps are UTC. RF2 effective times are 8-digit `YYYYMMDD` strings
and are carried as text; they are only extracted, never arithmetically used.
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Pattern, Union

DEFAULT_EFFECTIVE_TIME_PATTERN = r"[0-9]{8}"


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime as ISO 8601 with 'Z' suffix.

    Naive datetimes are assumed to be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def extract_effective_time(
    path: Union[str, Path], pattern: Optional[Union[str, Pattern[str]]] = None
) -> str:
    """
    Extract the release effective time from an output file path.

    The first run matching `pattern` (default: eight digits) anywhere in the
    path wins, so directory names count as well as the file name.

    Examples:
        >>> extract_effective_time("out/sct2_Relationship_Delta_INT_20230131.txt")
        '20230131'

    Raises:
        EffectiveTimeError: If the path contains no match
    """
    # Imported here: exceptions depends on this module
    from relsub.core.exceptions import EffectiveTimeError

    regex = re.compile(pattern or DEFAULT_EFFECTIVE_TIME_PATTERN)
    match = regex.search(str(path))
    if match is None:
        error = EffectiveTimeError(
            f"Unable to parse effective time from {path}",
            context={"path": str(path), "pattern": regex.pattern},
        )
        error.add_suggestion("Name the output file after its release, e.g. *_20230131.txt")
        raise error
    return match.group()
