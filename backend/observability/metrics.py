"""
Timing helpers for observability.

- Durations use monotonic time (immune to clock changes)
- One measurement = one METRIC_TIMER log event
- Prefer the `timed()` context manager so timers cannot leak
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event


@contextmanager
def timed(
    name: str,
    *,
    room_name: str | None = None,
    attempt: int | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Measure the enclosed block and emit one metric event.

    The yielded dict is merged into the event, so the block can record its
    outcome:

        with timed("handshake", room_name=cfg.room_name) as m:
            await transport.connect(url, token)
            m["outcome"] = "ok"

    Exceptions inside the block propagate; the metric is still emitted.
    """
    extra: dict[str, Any] = {}
    start_ns = time.monotonic_ns()
    try:
        yield extra
    finally:
        duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        log_event({
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": duration_ms,
            "room_name": room_name,
            "attempt": attempt,
            "details": {**(details or {}), **extra},
        })
