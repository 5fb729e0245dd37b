"""Service layer: reference building, resolving, settings and vault links."""

from .builder import SelectedSpan, best_range, build_embed, build_reference
from .resolver import ResolvedEmbed, locate_range, resolve_reference
from .settings import CopySettings, SettingsStore
from .vault import Vault

__all__ = [
    "CopySettings",
    "ResolvedEmbed",
    "SelectedSpan",
    "SettingsStore",
    "Vault",
    "best_range",
    "build_embed",
    "build_reference",
    "locate_range",
    "resolve_reference",
]
