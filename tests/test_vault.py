"""Tests for vault link text."""

from __future__ import annotations

from pathlib import Path

import pytest

from embedref.services.vault import Vault


@pytest.fixture()
def vault_root(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    for relative in ("notes/a.md", "other/a.md", "b.md", ".obsidian/b.md", "img.png"):
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("x", encoding="utf-8")
    return root


def test_unique_names_drop_folders_and_extension(vault_root: Path) -> None:
    vault = Vault(vault_root)

    assert vault.link_text(vault_root / "b.md") == "b"
    assert vault.link_text(vault_root / "img.png") == "img.png"


def test_duplicate_names_use_relative_paths(vault_root: Path) -> None:
    vault = Vault(vault_root)

    assert vault.link_text(vault_root / "notes" / "a.md") == "notes/a"
    assert vault.link_text("other/a.md") == "other/a"


def test_hidden_files_are_not_indexed(vault_root: Path) -> None:
    files = {path.as_posix() for path in Vault(vault_root).files}

    assert ".obsidian/b.md" not in files
    assert "b.md" in files


def test_explicit_file_listing(tmp_path: Path) -> None:
    vault = Vault(tmp_path, files=["x/one.md", "y/one.md", "two.markdown"])

    assert vault.link_text("x/one.md") == "x/one"
    assert vault.link_text("two.markdown") == "two"


def test_paths_outside_the_vault_are_rejected(vault_root: Path, tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        Vault(vault_root).link_text(tmp_path / "elsewhere.md")
