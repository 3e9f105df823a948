"""
auth/clock.py -- Injectable time source for the auth services.

Every expiry decision in auth/ (token validity, OAuth state TTL) reads the
time through a Clock rather than calling time.time() directly, so tests can
hand in a fake clock and move it forward by hours without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Callable returning seconds since the UNIX epoch."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    return time.time()
