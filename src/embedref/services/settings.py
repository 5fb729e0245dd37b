"""Copy settings dataclass and its JSON persistence."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..documents.embed import DisplayMode, coerce_display, resolve_show

__all__ = ["CopySettings", "SettingsStore", "default_settings_path"]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".embedref"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_PATH_ENV = "EMBEDREF_SETTINGS_PATH"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "EMBEDREF_DEFAULT_DISPLAY": "default_display",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "EMBEDREF_SHOW_MOBILE_BUTTON": "show_mobile_button",
    "EMBEDREF_COMPACT_RANGES": "compact_ranges",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "EMBEDREF_COMPACT_MIN_LENGTH": "compact_min_length",
}
_SHOW_ENV_OVERRIDES: Mapping[str, str] = {
    "EMBEDREF_SHOW_AUTHOR": "author",
    "EMBEDREF_SHOW_TITLE": "title",
}
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(slots=True)
class CopySettings:
    """User-configurable defaults applied when copying a reference."""

    default_display: DisplayMode | None = None
    default_show: dict[str, bool] = field(default_factory=dict)
    show_mobile_button: bool = False
    compact_ranges: bool = False
    compact_min_length: int = 80

    def __post_init__(self) -> None:
        self.default_display = coerce_display(self.default_display)
        self.default_show = {str(name): bool(value) for name, value in (self.default_show or {}).items()}
        resolve_show(self.default_show)

    def to_payload(self) -> Dict[str, Any]:
        data = asdict(self)
        data["default_display"] = self.default_display.value if self.default_display else None
        return data


def default_settings_path() -> Path:
    env_override = os.environ.get(_SETTINGS_PATH_ENV)
    return Path(env_override).expanduser() if env_override else _DEFAULT_SETTINGS_PATH


class SettingsStore:
    """Persistence adapter for :class:`CopySettings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> CopySettings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = CopySettings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = CopySettings(**data)
            except (TypeError, ValueError) as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = CopySettings()
            if payload.get("version") != _SETTINGS_VERSION:
                LOGGER.debug("Settings file %s uses version %s", self._path, payload.get("version"))

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")
        return self._apply_env_overrides(settings)

    def save(self, settings: CopySettings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = settings.to_payload()
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            payload = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: CopySettings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> CopySettings:
        allowed = {item.name for item in fields(CopySettings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        show_override = filtered.get("default_show")
        if isinstance(show_override, Mapping):
            merged_show = dict(settings.default_show or {})
            merged_show.update(show_override)
            filtered["default_show"] = merged_show
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: CopySettings) -> CopySettings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        show: Dict[str, bool] = {}
        for env_name, option in _SHOW_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                show[option] = value.strip().lower() in _TRUE_VALUES
        if show:
            overrides["default_show"] = show
        if overrides:
            try:
                settings = self._apply_overrides(settings, overrides, source="environment")
            except ValueError as exc:
                LOGGER.warning("Ignoring invalid environment overrides: %s", exc)
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(CopySettings)}
    return {key: value for key, value in payload.items() if key in allowed}
