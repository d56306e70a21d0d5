"""Shared pytest configuration for the refactor prompt test suite."""

import sys
from pathlib import Path

SRC_PATH = Path(__file__).resolve().parents[1] / "src"


def _add_src_to_path() -> None:
    if str(SRC_PATH) not in sys.path:
        sys.path.insert(0, str(SRC_PATH))


_add_src_to_path()
