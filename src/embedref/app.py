"""Command line entry point for building and resolving embed references."""

from __future__ import annotations

import argparse
import json
import logging
import os
import re
import sys
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .core.errors import RangeNotFoundError, ReferenceParseError
from .core.positions import EditorPosition
from .documents.embed import display_choices
from .documents.markdown import MarkdownOutline
from .services.builder import SelectedSpan, build_embed
from .services.resolver import resolve_reference
from .services.settings import CopySettings, SettingsStore
from .services.vault import Vault
from .utils import file_io
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)
_RANGE_PATTERN = re.compile(r"^\s*(\d+):(\d+)\s*-\s*(\d+):(\d+)\s*$")


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Configure logging for the command line tools."""

    level = logging.DEBUG if debug else logging.WARNING
    logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> CopySettings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return CopySettings()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``embedref`` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(_env_flag("EMBEDREF_DEBUG", default=False))

    settings_path = args.settings_path or os.environ.get("EMBEDREF_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=store, overrides=cli_overrides or None)
    try:
        return args.handler(args, settings, store, cli_overrides)
    except (ReferenceParseError, RangeNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        _LOGGER.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="embedref",
        description="Build portable references to spans of a note and resolve them again.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.embedref/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    copy = commands.add_parser("copy", help="Print a reference for one or more selected ranges.")
    copy.add_argument("file", type=Path, help="Note containing the selection.")
    copy.add_argument(
        "--range",
        dest="ranges",
        metavar="L:C-L:C",
        action="append",
        required=True,
        help="Zero-based selection range (repeatable for multi-selections).",
    )
    copy.add_argument("--vault", type=Path, help="Vault root used to compute the link text.")
    copy.add_argument("--display", choices=list(display_choices()), help="Display mode for this reference.")
    copy.add_argument("--show", action="append", default=[], metavar="NAME", help="Enable a display option.")
    copy.add_argument("--hide", action="append", default=[], metavar="NAME", help="Disable a display option.")
    copy.add_argument(
        "--no-structure",
        action="store_true",
        help="Do not scope the reference to the enclosing heading or block.",
    )
    copy.set_defaults(handler=_run_copy)

    resolve = commands.add_parser("resolve", help="Print the text a reference points at.")
    resolve.add_argument("reference", help="Serialized reference.")
    resolve.add_argument("file", type=Path, help="Note the reference points into.")
    resolve.set_defaults(handler=_run_resolve)

    outline = commands.add_parser("outline", help="Print the headings, block ids and frontmatter of a note.")
    outline.add_argument("file", type=Path)
    outline.set_defaults(handler=_run_outline)

    dump = commands.add_parser("settings", help="Print the effective settings and exit.")
    dump.set_defaults(handler=_run_settings)
    return parser


def _run_copy(
    args: argparse.Namespace,
    settings: CopySettings,
    store: SettingsStore,
    overrides: Mapping[str, Any],
    *,
    stream: TextIO | None = None,
) -> int:
    destination = stream or sys.stdout
    text = file_io.read_text(args.file)
    selection = [_parse_span(item) for item in args.ranges]

    show = dict(settings.default_show)
    show.update({name: True for name in args.show})
    show.update({name: False for name in args.hide})
    settings = replace(settings, default_show=show, default_display=args.display or settings.default_display)

    document_id = _document_id(args.file, args.vault)
    structure = None if args.no_structure else MarkdownOutline(text)
    reference = build_embed(settings, text, selection, document_id=document_id, structure=structure)
    destination.write(reference + "\n")
    return 0


def _run_resolve(
    args: argparse.Namespace,
    settings: CopySettings,
    store: SettingsStore,
    overrides: Mapping[str, Any],
    *,
    stream: TextIO | None = None,
) -> int:
    destination = stream or sys.stdout
    text = file_io.read_text(args.file)
    resolved = resolve_reference(args.reference, text, structure=MarkdownOutline(text))
    destination.write(resolved.text + "\n")
    return 0


def _run_outline(
    args: argparse.Namespace,
    settings: CopySettings,
    store: SettingsStore,
    overrides: Mapping[str, Any],
    *,
    stream: TextIO | None = None,
) -> int:
    destination = stream or sys.stdout
    outline = MarkdownOutline(file_io.read_text(args.file))
    payload = {
        "headings": [
            {"level": heading.level, "text": heading.text, "subpath": heading.subpath_text, "line": heading.line}
            for heading in outline.headings
        ],
        "blocks": [
            {"id": block.block_id, "start_line": block.start_line, "end_line": block.end_line}
            for block in outline.blocks
        ],
        "frontmatter": outline.frontmatter,
    }
    json.dump(payload, destination, indent=2, default=str)
    destination.write("\n")
    return 0


def _run_settings(
    args: argparse.Namespace,
    settings: CopySettings,
    store: SettingsStore,
    overrides: Mapping[str, Any],
    *,
    stream: TextIO | None = None,
) -> int:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    json.dump({"settings": settings.to_payload(), "meta": metadata}, destination, indent=2)
    destination.write("\n")
    return 0


def _parse_span(value: str) -> SelectedSpan:
    match = _RANGE_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Range {value!r} must use L:C-L:C syntax")
    start_line, start_ch, end_line, end_ch = (int(group) for group in match.groups())
    return SelectedSpan(start=EditorPosition(start_line, start_ch), end=EditorPosition(end_line, end_ch))


def _document_id(path: Path, vault_root: Path | None) -> str:
    if vault_root is not None:
        return Vault(vault_root).link_text(path)
    if file_io.is_markdown_path(path):
        return path.stem
    return path.name


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = CopySettings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(CopySettings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    # surface field validation (display modes, option names) as usage errors
    replace(CopySettings(), **overrides)
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is dict:
        try:
            payload = json.loads(normalized or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Dict overrides must be valid JSON objects") from exc
        if not isinstance(payload, dict):
            raise ValueError("Dict overrides must be valid JSON objects")
        return payload
    if normalized.lower() in {"none", "null", ""}:
        return None
    if isinstance(target, type) and issubclass(target, Enum):
        choices = ", ".join(str(member.value) for member in target)
        try:
            return target(normalized.lower())
        except ValueError as exc:
            raise ValueError(f"Expected one of: {choices}") from exc
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    if origin in {list, dict}:
        return origin
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if not args:
        return origin
    return args[0]


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("EMBEDREF_"))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
