"""Summary: Tests for rate-limit gates.

Importance: Ensures batch processing respects the configured request spacing.
Alternatives: Measure wall-clock time in slow integration tests.
"""

from __future__ import annotations

import pytest

from inboxagent.throttle import FixedIntervalGate, NoDelayGate, build_gate


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_fixed_interval_gate_spaces_calls() -> None:
    """Summary: Verify the gate sleeps only for the remaining interval.

    Importance: Time already spent on the previous call counts toward the gap.
    Alternatives: Sleep the full interval after every call.
    """

    clock = _FakeClock()
    gate = FixedIntervalGate(6.5, clock=clock, sleep=clock.sleep)
    assert gate.wait() == 0.0
    clock.now += 2.0
    assert gate.wait() == pytest.approx(4.5)
    clock.now += 10.0
    assert gate.wait() == 0.0
    assert clock.sleeps == [pytest.approx(4.5)]


def test_fixed_interval_gate_rejects_negative_interval() -> None:
    with pytest.raises(ValueError):
        FixedIntervalGate(-1)


def test_build_gate_picks_policy() -> None:
    assert isinstance(build_gate(0), NoDelayGate)
    assert isinstance(build_gate(6.5), FixedIntervalGate)
    assert NoDelayGate().wait() == 0.0
