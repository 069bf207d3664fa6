"""
Clock Test Suite
"""

import os
import sys
import time

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from stakepool.clock import Clock, ManualClock, SystemClock
from stakepool.exceptions import ClockError


class TestSystemClock:

    def test_returns_whole_seconds(self):
        now = SystemClock().now()
        assert isinstance(now, int)
        assert abs(now - time.time()) < 5

    def test_satisfies_protocol(self):
        assert isinstance(SystemClock(), Clock)


class TestManualClock:

    def test_starts_at_given_time(self):
        assert ManualClock(42).now() == 42
        assert ManualClock().now() == 0

    def test_now_is_stable(self):
        c = ManualClock(10)
        assert c.now() == c.now() == 10

    def test_advance(self):
        c = ManualClock(10)
        assert c.advance(5) == 15
        assert c.advance(0) == 15
        assert c.now() == 15

    def test_set(self):
        c = ManualClock(10)
        assert c.set(100) == 100
        assert c.set(100) == 100

    def test_cannot_go_backwards(self):
        c = ManualClock(10)
        with pytest.raises(ClockError):
            c.advance(-1)
        with pytest.raises(ClockError):
            c.set(9)
        assert c.now() == 10

    def test_negative_start_raises(self):
        with pytest.raises(ClockError):
            ManualClock(-1)

    def test_satisfies_protocol(self):
        assert isinstance(ManualClock(), Clock)
