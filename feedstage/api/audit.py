"""Per-request audit lines with elapsed time."""

import logging
import time
from typing import Any

logger = logging.getLogger("feedstage.audit")


class Stopwatch:
    def __init__(self) -> None:
        self._started = time.perf_counter()

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._started) * 1000)


def log_audit(tag: str, username: str, stopwatch: Stopwatch, **fields: Any) -> None:
    """Emit one INFO line, e.g. `eventType=queue-update username=me elapsedMs=3 id=1`."""
    details = "".join(f" {name}={value}" for name, value in fields.items())
    logger.info(
        "eventType=%s username=%s elapsedMs=%d%s", tag, username, stopwatch.elapsed_ms, details
    )
