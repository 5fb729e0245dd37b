"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

SECTIONED_NOTE = (
    "# Intro\n"
    "Preface text.\n"
    "## Details\n"
    "first point here\n"
    "second point here\n"
    "# Outro\n"
    "done\n"
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("EMBEDREF_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EMBEDREF_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("EMBEDREF_SETTINGS_PATH", str(tmp_path / "settings.json"))


@pytest.fixture
def sectioned_note() -> str:
    return SECTIONED_NOTE
