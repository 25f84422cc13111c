from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Protocol

log = logging.getLogger(__name__)

DEFAULT_PERIOD_S = 0.02


class Tickable(Protocol):
    def tick(self) -> Any: ...


def run_periodic(
    unit: Tickable,
    period_s: float = DEFAULT_PERIOD_S,
    ticks: int = 1,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Any]:
    """
    Call unit.tick() `ticks` times, one per period. Ticks never overlap: an
    overrun is logged and the schedule restarts from the next period boundary
    instead of firing catch-up ticks back to back.
    """
    if period_s <= 0:
        raise ValueError(f"period_s must be > 0, got {period_s}")

    results = []
    next_t = clock()
    for i in range(ticks):
        results.append(unit.tick())
        next_t += period_s
        now = clock()
        if now > next_t:
            log.warning("loop overrun on tick %d: %.1f ms late", i, (now - next_t) * 1e3)
            missed = int((now - next_t) // period_s) + 1
            next_t += missed * period_s
        sleep(next_t - now)
    return results
