from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

Enable with the CLI --explain flag to emit terse one-line JSON at milestones:
quiz built, tier selected, click graded, heatmap built.
"""

import json
from typing import Any, Dict

_ENABLED = False


def enable(flag: bool = True) -> None:
    global _ENABLED
    _ENABLED = bool(flag)


def enabled() -> bool:
    return _ENABLED


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    data = payload or {}
    # default=str covers datetimes and sets
    print(f"[EXPLAIN] {event} :: {json.dumps(data, separators=(',', ':'), default=str)}")
