from __future__ import annotations

import pytest

from util.utils import drum_machine_section, load_config


@pytest.mark.integration
# What this tests
# - load_config reads the shipped configs/default.yaml (drum_machine section present).
def test_shipped_default_config_has_drum_machine_section():
    cfg = load_config()
    section = drum_machine_section(cfg)
    assert section.get("fps") == 60
    assert set(section.get("half_life_ms", {})) == {"kick", "snare", "hat"}
