"""
Local tracing.

Spans time the load, match and emit phases of a run. Nothing is exported;
spans only end up in the debug log.
"""

import secrets
import time
from contextlib import contextmanager
from typing import Dict, Any, Optional, Iterator

from relsub.core.logging import AsyncLogger


class LocalTracer:
    """
    Simple local tracing system.

    Individual spans with duration and attributes, useful for answering
    "which phase of the run is slow" on a full release.
    """

    def __init__(self, service_name: str = "relsub") -> None:
        self.service_name = service_name
        self.logger = AsyncLogger("tracing")
        self.completed: Dict[str, float] = {}

    @contextmanager
    def span(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[None]:
        """
        Creates a span to measure operation.

        Usage:
        ```
        with tracer.span("load", {"view": "stated"}):
            registry = reader.load(path)
        ```
        """
        span_id = secrets.token_hex(8)
        start = time.perf_counter()

        try:
            yield
        finally:
            duration = time.perf_counter() - start
            self.completed[name] = duration * 1000
            self.logger.debug(
                "Span completed: {span} ({duration_ms:.1f} ms, span_id={span_id})",
                span=name,
                span_id=span_id,
                duration_ms=duration * 1000,
                **(attributes or {}),
            )


tracer = LocalTracer()
