from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class Timer:
    start: float = field(default_factory=time.monotonic)

    def ms(self) -> int:
        return int((time.monotonic() - self.start) * 1000)


@contextmanager
def timed(logger: logging.Logger, event: str, **fields: Any) -> Iterator[Timer]:
    """Log ``event`` with ``duration_ms`` and ``ok`` when the block exits."""
    t = Timer()
    ok = False
    try:
        yield t
        ok = True
    finally:
        logger.info(event, extra={"extra": {**fields, "ok": ok, "duration_ms": t.ms()}})
