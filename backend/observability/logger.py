"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- Credentials never reach the output: sensitive keys are redacted
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Callable, Mapping


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def _discard(line: str) -> None:  # pylint: disable=unused-argument
    return None


_print: Callable[[str], None] = _stdout_print

REDACTED = "[REDACTED]"
_SENSITIVE_KEYS = frozenset({"token", "api_secret", "authorization"})


def configure(*, enabled: bool) -> None:
    """Route log output to stdout, or drop it entirely (ENABLE_JSON_LOGS=0)."""
    global _print  # pylint: disable=global-statement
    _print = _stdout_print if enabled else _discard


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in _SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    return value


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event.

    The caller supplies event_type and context (room_name, attempt, ...).
    ts_ms is filled in when missing.

    Never raises.
    """
    payload = _redact(event)
    payload.setdefault("ts_ms", time.time_ns() // 1_000_000)

    try:
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash the caller
        fallback: dict[str, Any] = {
            "ts_ms": payload.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(payload),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
