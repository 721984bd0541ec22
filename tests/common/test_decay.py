from __future__ import annotations

import math

import pytest

from common.decay import (
    DecayParameters,
    DecaySequence,
    InvalidParameterError,
    termination_bound_ms,
)


@pytest.mark.smoke
def test_half_life_single_jump() -> None:
    seq = DecaySequence.start(220.0, 0.8, 1000.0)
    value, done = seq.resume(1220.0)
    assert not done
    assert math.isclose(value, 0.4, rel_tol=1e-9)


@pytest.mark.smoke
def test_scenario_220ms_half_life() -> None:
    seq = DecaySequence.start(220.0, 1.0, 0.0)
    v1, d1 = seq.resume(220.0)
    v2, d2 = seq.resume(440.0)
    v3, d3 = seq.resume(2200.0)
    assert math.isclose(v1, 0.5, rel_tol=1e-9) and not d1
    assert math.isclose(v2, 0.25, rel_tol=1e-9) and not d2
    # 10 半減期で 1/1024 < 0.001 → 終了、終端値は厳密に 0
    assert d3 is True
    assert v3 == 0.0
    assert seq.done and seq.value == 0.0


def test_monotonic_non_increasing_for_non_decreasing_times() -> None:
    seq = DecaySequence.start(120.0, 1.0, 0.0)
    prev = seq.value
    for t in (0.0, 5.0, 5.0, 16.7, 33.3, 50.0, 120.0, 121.0):
        v, done = seq.resume(t)
        assert v <= prev
        prev = v
        if done:
            break


def test_backward_clock_never_increases_and_never_raises() -> None:
    seq = DecaySequence.start(200.0, 1.0, 100.0)
    v1, _ = seq.resume(300.0)
    v2, done = seq.resume(150.0)  # 逆行
    assert not done
    assert v2 <= v1
    assert math.isclose(v2, v1, rel_tol=0.0, abs_tol=0.0)
    assert seq.last_sample_time_ms == 150.0


def test_resume_after_termination_stays_done() -> None:
    seq = DecaySequence.start(10.0, 1.0, 0.0)
    assert seq.resume(1000.0) == (0.0, True)
    assert seq.resume(2000.0) == (0.0, True)
    assert seq.resume(0.0) == (0.0, True)


def test_start_value_at_or_below_epsilon_is_born_done() -> None:
    seq = DecaySequence.start(100.0, 0.001, 0.0)
    assert seq.done
    assert seq.resume(1.0) == (0.0, True)


def test_custom_epsilon_controls_termination() -> None:
    seq = DecaySequence.start(100.0, 1.0, 0.0, epsilon=0.3)
    v, done = seq.resume(100.0)  # 0.5
    assert not done and math.isclose(v, 0.5)
    v, done = seq.resume(200.0)  # 0.25 <= 0.3
    assert done and v == 0.0


@pytest.mark.parametrize("bad", [0.0, -1.0, float("nan"), float("inf"), "abc", None])
def test_invalid_half_life_fails_at_construction(bad) -> None:
    with pytest.raises(InvalidParameterError):
        DecayParameters(bad, 1.0, 0.0)  # type: ignore[arg-type]


def test_invalid_start_value_and_epsilon() -> None:
    with pytest.raises(InvalidParameterError):
        DecayParameters(100.0, -0.1, 0.0)
    with pytest.raises(InvalidParameterError):
        DecayParameters(100.0, float("nan"), 0.0)
    with pytest.raises(InvalidParameterError):
        DecaySequence(DecayParameters(100.0, 1.0, 0.0), epsilon=0.0)
    # ValueError としても捕まえられる
    with pytest.raises(ValueError):
        DecaySequence.start(0.0, 1.0, 0.0)


def test_parameters_are_immutable() -> None:
    p = DecayParameters(100, 1, 0)
    assert isinstance(p.half_life_ms, float)
    with pytest.raises(AttributeError):
        p.half_life_ms = 5.0  # type: ignore[misc]


def test_termination_bound_is_respected() -> None:
    h, a, eps = 220.0, 1.0, 0.001
    bound = termination_bound_ms(h, a, eps)
    assert bound == math.ceil(h * math.log2(a / eps))
    seq = DecaySequence.start(h, a, 0.0, epsilon=eps)
    # 1 フレーム手前ではまだ生きている
    v, done = seq.resume(bound - 16.0)
    assert not done and v > eps
    v, done = seq.resume(float(bound))
    assert done and v == 0.0


def test_termination_bound_zero_when_already_quiet() -> None:
    assert termination_bound_ms(100.0, 0.0005, 0.001) == 0
