from __future__ import annotations

import math

import pytest

from engine.drum.drummer import (
    CHANGE,
    HAT,
    KICK,
    MAX_BPM,
    MIN_BPM,
    SNARE,
    Drummer,
    clamp_bpm,
)


def _record(drummer: Drummer) -> list[str]:
    events: list[str] = []
    for name in (KICK, SNARE, HAT, CHANGE):
        drummer.on(name, lambda name=name: events.append(name))
    return events


@pytest.mark.parametrize(
    "raw, expected",
    [(80, 80), (79.6, 80), (10, MIN_BPM), (1000, MAX_BPM), (30, 30), (300, 300)],
)
def test_clamp_bpm(raw: float, expected: int) -> None:
    assert clamp_bpm(raw) == expected


@pytest.mark.smoke
def test_play_emits_first_step_immediately() -> None:
    d = Drummer(120)
    events = _record(d)
    d.play()
    assert d.is_playing
    assert events == [KICK, HAT, CHANGE]
    assert d.step == 1


def test_step_seconds_is_eighth_note() -> None:
    assert math.isclose(Drummer(120).step_seconds, 0.25)
    assert math.isclose(Drummer(60).step_seconds, 0.5)


def test_one_bar_pattern() -> None:
    d = Drummer(120)
    d.play()
    hits: list[tuple[int, str]] = []
    for name in (KICK, SNARE, HAT):
        d.on(name, lambda name=name: hits.append((d.step, name)))
    # step 1..7 を鳴らしてから 0 に戻る
    for _ in range(8):
        d.tick(0.25)
    kicks = [s for s, n in hits if n == KICK]
    snares = [s for s, n in hits if n == SNARE]
    hats = [s for s, n in hits if n == HAT]
    # `d.step` は発火後（次のステップ）を指すので 1 ずれる
    assert kicks == [5, 1]
    assert snares == [3, 7]
    assert len(hats) == 8


def test_tick_fires_every_crossed_boundary() -> None:
    d = Drummer(120)
    d.play()
    hats: list[int] = []
    d.on(HAT, lambda: hats.append(1))
    d.tick(1.0)  # 4 ステップ分
    assert len(hats) == 4
    assert d.step == 5


def test_tick_is_noop_when_stopped_or_non_positive() -> None:
    d = Drummer(120)
    events = _record(d)
    d.tick(10.0)
    assert events == []
    d.play()
    events.clear()
    d.tick(0.0)
    d.tick(-1.0)
    assert events == []


def test_stop_and_toggle_emit_change() -> None:
    d = Drummer()
    events = _record(d)
    d.stop()  # 停止中の stop は何もしない
    assert events == []
    d.toggle()
    assert d.is_playing
    events.clear()
    d.toggle()
    assert not d.is_playing
    assert events == [CHANGE]


def test_play_while_playing_does_not_restart_bar() -> None:
    d = Drummer(120)
    d.play()
    d.tick(0.25)
    step = d.step
    events = _record(d)
    d.play(100)
    assert d.step == step
    assert d.bpm == 100
    assert events == [CHANGE]


def test_set_tempo_clamps_and_emits_only_on_change() -> None:
    d = Drummer(80)
    events = _record(d)
    d.set_tempo(80.2)
    assert events == []
    d.set_tempo(5000)
    assert d.bpm == MAX_BPM
    assert events == [CHANGE]


def test_unsubscribe_and_unknown_event() -> None:
    d = Drummer()
    hits: list[int] = []
    off = d.on(KICK, lambda: hits.append(1))
    off()
    off()  # 2 回目も安全
    d.play()
    assert hits == []
    with pytest.raises(ValueError):
        d.on("cowbell", lambda: None)


def test_listener_exception_does_not_block_others(caplog) -> None:
    d = Drummer()
    hits: list[int] = []

    def bad() -> None:
        raise RuntimeError("listener failed")

    d.on(KICK, bad)
    d.on(KICK, lambda: hits.append(1))
    with caplog.at_level("ERROR"):
        d.play()
    assert hits == [1]
    assert "drummer listener" in caplog.text
