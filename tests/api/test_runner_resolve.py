from __future__ import annotations

import pytest

from api.drum_machine import build_headless
from api.drum_runner.utils import (
    resolve_bpm,
    resolve_epsilon,
    resolve_fps,
    resolve_half_lives,
)
from common import settings
from common.decay import InvalidParameterError
from util.utils import drum_machine_section


def test_resolve_fps_priority() -> None:
    assert resolve_fps(24, cfg={"fps": 30}) == 24
    assert resolve_fps(None, cfg={"fps": 30}) == 30
    assert resolve_fps(0, cfg={}) == 1
    assert resolve_fps(None, cfg={"fps": "fast"}) == settings.get().FPS
    assert resolve_fps(None, cfg={}) == settings.get().FPS


def test_resolve_bpm_falls_back_on_bad_values() -> None:
    assert resolve_bpm(140, cfg={"bpm": 90}) == 140.0
    assert resolve_bpm(None, cfg={"bpm": 90}) == 90.0
    default = float(settings.get().BPM)
    assert resolve_bpm(None, cfg={"bpm": "x"}) == default
    assert resolve_bpm(-3, cfg={}) == default
    assert resolve_bpm(float("nan"), cfg={}) == default


def test_resolve_epsilon_explicit_is_strict() -> None:
    assert resolve_epsilon(0.01, cfg={"epsilon": 0.5}) == 0.01
    with pytest.raises(InvalidParameterError):
        resolve_epsilon(0.0, cfg={})


def test_resolve_epsilon_config_is_fail_soft(caplog) -> None:
    assert resolve_epsilon(None, cfg={"epsilon": 0.02}) == 0.02
    with caplog.at_level("WARNING"):
        got = resolve_epsilon(None, cfg={"epsilon": -1})
    assert got == settings.get().ENVELOPE_EPSILON
    assert "invalid epsilon" in caplog.text


def test_resolve_half_lives_merges_config_and_explicit() -> None:
    cfg = {"half_life_ms": {"kick": 300, "snare": "bad", "cowbell": 10}}
    got = resolve_half_lives({"hat": 90}, cfg=cfg)
    assert got == {"kick": 300.0, "snare": 280.0, "hat": 90.0}
    with pytest.raises(InvalidParameterError):
        resolve_half_lives({"kick": 0}, cfg={})


@pytest.fixture()
def drm_env(monkeypatch):
    monkeypatch.setenv("DRM_FPS", "48")
    monkeypatch.setenv("DRM_BPM", "120")
    monkeypatch.setenv("DRM_ENVELOPE_EPSILON", "0.005")
    settings.reload_from_env()
    yield
    monkeypatch.undo()
    settings.reload_from_env()


@pytest.mark.integration
# What this tests
# - DRM_* set in the environment outrank the shipped configs/default.yaml (read via load_config).
def test_env_outranks_shipped_config(drm_env) -> None:
    assert drum_machine_section().get("fps") == 60  # YAML にも値がある
    assert resolve_fps(None) == 48
    assert resolve_bpm(None) == 120.0
    assert resolve_epsilon(None) == 0.005


@pytest.mark.integration
def test_env_reaches_headless_machine(drm_env) -> None:
    machine = build_headless()
    try:
        assert machine.fps == 48
        assert machine.drummer.bpm == 120
        assert machine.equalizer.scheduler.epsilon == 0.005
    finally:
        machine.close()


def test_explicit_argument_outranks_env(drm_env) -> None:
    assert resolve_fps(30) == 30
    assert resolve_bpm(90) == 90.0
    assert resolve_epsilon(0.01) == 0.01


def test_invalid_env_falls_through_to_config(monkeypatch) -> None:
    monkeypatch.setenv("DRM_FPS", "fast")
    monkeypatch.setenv("DRM_ENVELOPE_EPSILON", "-1")
    settings.reload_from_env()
    try:
        assert not settings.overridden("DRM_FPS")
        assert resolve_fps(None, cfg={"fps": 30}) == 30
        assert resolve_epsilon(None, cfg={"epsilon": 0.02}) == 0.02
    finally:
        monkeypatch.undo()
        settings.reload_from_env()
