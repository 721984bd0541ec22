from __future__ import annotations

import pytest

from common.tempo import TempoTapper


@pytest.mark.smoke
def test_first_tap_returns_none_then_bpm() -> None:
    t = TempoTapper()
    assert t.tap(0.0) is None
    assert t.tap(0.5) == 120


def test_averages_recent_intervals() -> None:
    t = TempoTapper(max_intervals=4)
    bpm = None
    for ts in (0.0, 0.5, 1.0, 1.6, 2.1):
        bpm = t.tap(ts)
    # 2.1 / 4 = 0.525 s → 114.3
    assert bpm == 114
    assert t.tap_count == 5
    t.tap(2.6)
    assert t.tap_count == 5  # 直近の間隔だけ保持


def test_long_gap_restarts_measurement() -> None:
    t = TempoTapper(reset_after=2.0)
    t.tap(0.0)
    t.tap(1.0)
    assert t.tap(5.0) is None
    assert t.tap_count == 1
    assert t.tap(5.75) == 80


def test_non_increasing_time_restarts_measurement() -> None:
    t = TempoTapper()
    t.tap(3.0)
    assert t.tap(3.0) is None
    assert t.tap(2.0) is None


def test_reset_and_bad_arguments() -> None:
    t = TempoTapper()
    t.tap(0.0)
    t.reset()
    assert t.tap_count == 0
    with pytest.raises(ValueError):
        TempoTapper(reset_after=0.0)
    with pytest.raises(ValueError):
        TempoTapper(max_intervals=0)
