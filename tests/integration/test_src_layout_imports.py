from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest


@pytest.mark.integration
# What this tests
# - `import api` resolves from src/ alone (no repo-root/CWD quirks) and exposes the public API.
# - Importing the API does not pull in any GUI toolkit. Runs in a subprocess
#   to avoid polluting the parent interpreter's sys.modules.
def test_api_import_from_src_is_headless():
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"

    script = (
        "import sys, importlib\n"
        "from pathlib import Path\n"
        f"src = Path(r'{str(src_dir)}')\n"
        f"repo = Path(r'{str(repo_root)}')\n"
        "sys.path[:] = [str(src)] + [p for p in sys.path if Path(p).resolve() != repo.resolve()]\n"
        "m = importlib.import_module('api')\n"
        "assert hasattr(m, 'create_envelope_scheduler') and hasattr(m, 'run')\n"
        "assert 'pyglet' not in sys.modules and 'dearpygui' not in sys.modules\n"
    )

    proc = subprocess.run([sys.executable, "-c", script], capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
