import logging

import pytest

from diffdrive_odom.scheduler import run_periodic


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, s):
        self.sleeps.append(s)
        self.now += s


class Unit:
    def __init__(self, clock, cost):
        self.clock = clock
        self.cost = cost
        self.started = []

    def tick(self):
        self.started.append(self.clock.now)
        self.clock.now += self.cost
        return len(self.started)


def test_ticks_on_fixed_period():
    clock = FakeClock()
    unit = Unit(clock, cost=0.005)
    out = run_periodic(unit, 0.02, ticks=4, clock=clock, sleep=clock.sleep)
    assert out == [1, 2, 3, 4]
    assert unit.started == pytest.approx([0.0, 0.02, 0.04, 0.06])
    assert clock.sleeps == pytest.approx([0.015] * 4)


def test_overrun_is_logged_and_ticks_do_not_overlap(caplog):
    clock = FakeClock()
    unit = Unit(clock, cost=0.05)
    with caplog.at_level(logging.WARNING):
        run_periodic(unit, 0.02, ticks=3, clock=clock, sleep=clock.sleep)
    assert "overrun" in caplog.text
    assert all(s >= 0 for s in clock.sleeps)
    for a, b in zip(unit.started, unit.started[1:]):
        assert b - a >= 0.05


def test_period_must_be_positive():
    with pytest.raises(ValueError):
        run_periodic(Unit(FakeClock(), 0.0), 0.0)
