from __future__ import annotations
import time
from typing import Any, Callable, Tuple


def timed(fn: Callable[..., Any], *args: Any) -> Tuple[Any, float]:
    """Call ``fn(*args)`` and return ``(result, elapsed_seconds)``."""
    t0 = time.perf_counter()
    result = fn(*args)
    return result, time.perf_counter() - t0
