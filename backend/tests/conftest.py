"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap: import paths for the backend package and a fixed
    local timezone so kickoff rendering and day bounds are deterministic.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]
_TESTS_DIR = _THIS_FILE.parent

for candidate in (str(_BACKEND_DIR), str(_TESTS_DIR)):
    if candidate not in sys.path:
        sys.path.insert(0, candidate)

from matchdesk.config import settings  # noqa: E402


@pytest.fixture(autouse=True)
def _utc_local_timezone(monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_TIMEZONE", "UTC", raising=False)
