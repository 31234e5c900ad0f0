"""Summary: Rate-limit gates for sequential AI batches.

Importance: Keeps batch processing under the completion service's requests-per-minute cap.
Alternatives: Use a token-bucket limiter shared across workers.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable


class RateGate(ABC):
    """Summary: Policy object consulted before each rate-limited call.

    Importance: Lets the batch algorithm stay unchanged when the delay policy changes.
    Alternatives: Hardcode a sleep inside the processing loop.
    """

    @abstractmethod
    def wait(self) -> float:
        """Block until the next call may proceed; return the seconds slept."""


class NoDelayGate(RateGate):
    """Gate that never waits."""

    def wait(self) -> float:
        return 0.0


class FixedIntervalGate(RateGate):
    """Summary: Enforces a minimum interval between successive calls.

    Importance: A 6.5 second interval stays under a ten requests per minute ceiling.
    Alternatives: Sleep a fixed amount after every call regardless of elapsed time.
    """

    def __init__(
        self,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be non-negative")
        self._interval = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None

    def wait(self) -> float:
        now = self._clock()
        slept = 0.0
        if self._last is not None:
            remaining = self._interval - (now - self._last)
            if remaining > 0:
                self._sleep(remaining)
                slept = remaining
                now = self._clock()
        self._last = now
        return slept


def build_gate(delay_seconds: float) -> RateGate:
    if delay_seconds > 0:
        return FixedIntervalGate(delay_seconds)
    return NoDelayGate()
