"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from embedref.documents.embed import DisplayMode
from embedref.services.settings import CopySettings, SettingsStore, default_settings_path


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    assert store.load() == CopySettings()


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"
    original = CopySettings(
        default_display=DisplayMode.CALLOUT,
        default_show={"author": True},
        show_mobile_button=True,
        compact_ranges=True,
        compact_min_length=20,
    )

    SettingsStore(path).save(original)
    payload = json.loads(path.read_text(encoding="utf-8"))
    reloaded = SettingsStore(path).load()

    assert payload["version"] == 1
    assert payload["default_display"] == "callout"
    assert not path.with_suffix(".tmp").exists()
    assert reloaded == original


def test_invalid_json_falls_back_to_defaults(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    caplog.set_level(logging.WARNING, logger="embedref.services.settings")

    assert SettingsStore(path).load() == CopySettings()
    assert "not valid JSON" in caplog.text


def test_unexpected_payload_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(["list"]), encoding="utf-8")
    assert SettingsStore(path).load() == CopySettings()

    path.write_text(json.dumps({"default_display": "fancy", "unknown": 1}), encoding="utf-8")
    assert SettingsStore(path).load() == CopySettings()


def test_unknown_fields_are_dropped(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"compact_ranges": True, "theme": "dark"}), encoding="utf-8")

    assert SettingsStore(path).load() == CopySettings(compact_ranges=True)


def test_env_overrides_take_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(CopySettings(default_show={"author": True}))
    monkeypatch.setenv("EMBEDREF_DEFAULT_DISPLAY", "quote")
    monkeypatch.setenv("EMBEDREF_COMPACT_RANGES", "yes")
    monkeypatch.setenv("EMBEDREF_COMPACT_MIN_LENGTH", "12")
    monkeypatch.setenv("EMBEDREF_SHOW_TITLE", "1")

    settings = SettingsStore(path).load()

    assert settings.default_display is DisplayMode.QUOTE
    assert settings.compact_ranges is True
    assert settings.compact_min_length == 12
    assert settings.default_show == {"author": True, "title": True}


def test_invalid_env_overrides_are_ignored(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.WARNING, logger="embedref.services.settings")
    monkeypatch.setenv("EMBEDREF_COMPACT_MIN_LENGTH", "many")
    monkeypatch.setenv("EMBEDREF_DEFAULT_DISPLAY", "fancy")

    settings = SettingsStore(tmp_path / "settings.json").load()

    assert settings == CopySettings()
    assert "not a valid integer" in caplog.text
    assert "Ignoring invalid environment overrides" in caplog.text


def test_cli_overrides_merge_display_options(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(CopySettings(default_show={"author": True}))

    settings = SettingsStore(path).load(overrides={"default_show": {"title": True}, "unknown": 3})

    assert settings.default_show == {"author": True, "title": True}


def test_settings_validate_fields() -> None:
    assert CopySettings(default_display="Inline").default_display is DisplayMode.INLINE
    with pytest.raises(ValueError):
        CopySettings(default_display="fancy")
    with pytest.raises(ValueError):
        CopySettings(default_show={"bad name": True})


def test_default_path_honours_environment(tmp_path: Path) -> None:
    assert default_settings_path() == tmp_path / "settings.json"
    assert SettingsStore().path == tmp_path / "settings.json"
