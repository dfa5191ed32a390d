"""Timing helpers for lightweight observability."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


@contextmanager
def time_block(
    name: str,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
    extra: dict[str, Any] | None = None,
) -> Iterator[None]:
    log = logger or logging.getLogger(__name__)
    start = time.perf_counter()
    try:
        yield
    finally:
        dur_ms = (time.perf_counter() - start) * 1000
        fields: dict[str, Any] = {"event": "timing", "duration_ms": round(dur_ms, 1)}
        if extra:
            fields.update(extra)
        log.log(level, "%s took %.1fms", name, dur_ms, extra=fields)
