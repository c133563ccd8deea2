"""
conftest.py - shared fixtures

The tools under scripts/tools are flat scripts, not a package; put that
folder on sys.path so tests import them directly.
"""
import sys
from pathlib import Path

_TOOLS_DIR = str(Path(__file__).resolve().parent.parent / "scripts" / "tools")
if _TOOLS_DIR not in sys.path:
    sys.path.insert(0, _TOOLS_DIR)

from datetime import datetime

import pytest


@pytest.fixture
def fixed_time():
    return datetime(2026, 10, 19, 17, 26, 0)


@pytest.fixture
def jni_dir(tmp_path: Path) -> Path:
    """Empty JNI folder inside a project root (tmp_path)"""
    path = tmp_path / "app" / "src" / "main" / "jni"
    path.mkdir(parents=True)
    return path
