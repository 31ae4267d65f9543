"""Time sources for expiry bookkeeping.

The store asks a Clock for the current time instead of calling ``time``
directly, so tests can drive expiry without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        ...


class SystemClock:
    # Wall-clock seconds since the epoch
    def now(self) -> float:
        return time.time()
