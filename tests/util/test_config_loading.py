from __future__ import annotations

from pathlib import Path

from util.utils import _find_project_root, drum_machine_section, load_config


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_root_config_overrides_top_level_keys(tmp_path: Path) -> None:
    _write(tmp_path / "configs" / "default.yaml", "drum_machine:\n  fps: 60\n  bpm: 80\nother: 1\n")
    _write(tmp_path / "config.yaml", "drum_machine:\n  bpm: 120\n")
    cfg = load_config(tmp_path)
    # トップレベル単位の上書き（ネストはマージしない）
    assert cfg["drum_machine"] == {"bpm": 120}
    assert cfg["other"] == 1


def test_missing_or_broken_yaml_is_fail_soft(tmp_path: Path) -> None:
    assert load_config(tmp_path) == {}
    _write(tmp_path / "configs" / "default.yaml", "drum_machine: [unclosed\n")
    assert load_config(tmp_path) == {}
    _write(tmp_path / "configs" / "default.yaml", "- just\n- a list\n")
    assert load_config(tmp_path) == {}


def test_drum_machine_section_shapes() -> None:
    assert drum_machine_section({"drum_machine": {"fps": 30}}) == {"fps": 30}
    assert drum_machine_section({"drum_machine": "oops"}) == {}
    assert drum_machine_section({}) == {}


def test_find_project_root_detects_configs_dir(tmp_path: Path) -> None:
    (tmp_path / "configs").mkdir()
    start = tmp_path / "src" / "util"
    start.mkdir(parents=True)
    assert _find_project_root(start) == tmp_path.resolve()


def test_find_project_root_fallback(tmp_path: Path) -> None:
    # 上流に .git/pyproject.toml/configs が無い構造では start.parent.parent を返す
    start = tmp_path / "a" / "b"
    start.mkdir(parents=True)
    assert _find_project_root(start) == start.resolve().parent.parent
