"""Common time utilities."""

from __future__ import annotations

import time
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

type Clock = cabc.Callable[[], float]
type Sleeper = cabc.Callable[[float], cabc.Awaitable[None]]


def monotonic() -> float:
    """Return monotonic seconds for deadline arithmetic."""
    return time.monotonic()
