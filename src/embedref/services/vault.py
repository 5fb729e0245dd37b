"""Link text for notes inside a vault directory."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path, PurePosixPath
from typing import Iterable

LOGGER = logging.getLogger(__name__)

_MARKDOWN_SUFFIXES = {".md", ".markdown"}


class Vault:
    """Directory of notes used to compute the shortest unambiguous link text."""

    def __init__(self, root: Path | str, files: Iterable[Path | str] | None = None) -> None:
        self._root = Path(root).expanduser().resolve()
        if files is None:
            relative = [
                PurePosixPath(path.relative_to(self._root).as_posix())
                for path in sorted(self._root.rglob("*"))
                if path.is_file() and not _is_hidden(path.relative_to(self._root))
            ]
        else:
            relative = [PurePosixPath(Path(item).as_posix()) for item in files]
        self._files = tuple(relative)
        self._name_counts = Counter(_link_name(path) for path in self._files)
        LOGGER.debug("Indexed vault %s with %d files", self._root, len(self._files))

    @property
    def root(self) -> Path:
        return self._root

    @property
    def files(self) -> tuple[PurePosixPath, ...]:
        return self._files

    def link_text(self, path: Path | str) -> str:
        """Return the file name when unique in the vault, else the vault-relative path.

        Markdown extensions are omitted; other files keep theirs.
        """

        relative = self._relative(path)
        name = _link_name(relative)
        if self._name_counts.get(name, 0) <= 1:
            return name
        return _strip_markdown_suffix(relative).as_posix()

    def _relative(self, path: Path | str) -> PurePosixPath:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self._root / candidate
        resolved = candidate.resolve()
        try:
            return PurePosixPath(resolved.relative_to(self._root).as_posix())
        except ValueError as exc:
            raise ValueError(f"{path} is not inside the vault {self._root}") from exc


def _strip_markdown_suffix(path: PurePosixPath) -> PurePosixPath:
    if path.suffix.lower() in _MARKDOWN_SUFFIXES:
        return path.with_suffix("")
    return path


def _link_name(path: PurePosixPath) -> str:
    return _strip_markdown_suffix(path).name


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts)


__all__ = ["Vault"]
