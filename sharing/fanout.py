from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Sequence, TypeVar

log = logging.getLogger("metrofav.sharing.fanout")

K = TypeVar("K")
V = TypeVar("V")

SKIP = "skip"
ABORT = "abort"


@dataclass
class FanoutResult(Generic[K, V]):
    values: Dict[K, V] = field(default_factory=dict)
    failed: List[K] = field(default_factory=list)


def fan_out(
    keys: Sequence[K],
    fn: Callable[[K], V],
    *,
    max_workers: int,
    on_error: str = SKIP,
    label: str = "fanout",
) -> FanoutResult[K, V]:
    """Run ``fn`` for every key with at most ``max_workers`` in flight.

    ``values`` preserves the order of ``keys``. With ``on_error="skip"`` a
    failing key is recorded in ``failed`` and the batch continues; with
    ``"abort"`` the first error (in key order) is re-raised.
    """
    if on_error not in (SKIP, ABORT):
        raise ValueError(f"unknown error policy: {on_error}")

    out: FanoutResult[K, V] = FanoutResult()
    if not keys:
        return out

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(keys)))) as pool:
        futures = [(k, pool.submit(fn, k)) for k in keys]
        for k, fut in futures:
            try:
                out.values[k] = fut.result()
            except Exception as e:
                if on_error == ABORT:
                    raise
                out.failed.append(k)
                log.warning(
                    f"{label}_item_failed",
                    extra={"extra": {"key": str(k), "error_type": type(e).__name__, "message": str(e)}},
                )
    return out
