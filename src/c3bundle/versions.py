"""Schema-version dispatch: the single table of per-category version quirks.

Revisions touched each category at different times, so every category keeps
its own ordered table. Entries are matched most-specific first (explicit
version sets); a version no entry names resolves to the newest entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Encoding(str, Enum):
    BINARY = "binary"
    TEXT = "text"


class Category(str, Enum):
    MESH = "mesh"
    MATERIAL = "material"
    NODE = "node"
    SKIN = "skin"
    ANIMATION = "animation"


class Strategy(str, Enum):
    # mesh
    MESH_BINARY_SINGLE = "mesh_binary_single"
    MESH_BINARY_COMPUTED_AABB = "mesh_binary_computed_aabb"
    MESH_BINARY_STORED_AABB = "mesh_binary_stored_aabb"
    MESH_BINARY_WIDE_INDEX = "mesh_binary_wide_index"
    MESH_TEXT_LEGACY = "mesh_text_legacy"
    MESH_TEXT_CURRENT = "mesh_text_current"
    MESH_TEXT_WIDE_INDEX = "mesh_text_wide_index"
    # material
    MATERIAL_BINARY_SINGLE_TEXTURE = "material_binary_single_texture"
    MATERIAL_BINARY_TEXTURE_LIST = "material_binary_texture_list"
    MATERIAL_BINARY_FULL = "material_binary_full"
    MATERIAL_TEXT_BASE = "material_text_base"
    MATERIAL_TEXT_TEXTURE_NAMES = "material_text_texture_names"
    MATERIAL_TEXT_FULL = "material_text_full"
    # node
    NODE_FROM_SKIN = "node_from_skin"
    NODE_IDENTITY_RESET = "node_identity_reset"
    NODE_VERBATIM = "node_verbatim"
    # skin
    SKIN_BINARY = "skin_binary"
    SKIN_TEXT = "skin_text"
    # animation
    ANIMATION_BINARY_SINGLE = "animation_binary_single"
    ANIMATION_BINARY_COUNTED = "animation_binary_counted"
    ANIMATION_BINARY_COUNTED_MASKED = "animation_binary_counted_masked"
    ANIMATION_BINARY_BY_ID = "animation_binary_by_id"
    ANIMATION_TEXT_LEGACY = "animation_text_legacy"
    ANIMATION_TEXT_CURRENT = "animation_text_current"


@dataclass(frozen=True)
class StrategyEntry:
    versions: frozenset[str]
    strategy: Strategy


def _entry(strategy: Strategy, *versions: str) -> StrategyEntry:
    return StrategyEntry(versions=frozenset(versions), strategy=strategy)


# Oldest first; the last entry of each table is the newest layout.
_TABLES: dict[tuple[Category, Encoding], tuple[StrategyEntry, ...]] = {
    (Category.MESH, Encoding.BINARY): (
        _entry(Strategy.MESH_BINARY_SINGLE, "0.1", "0.2"),
        _entry(Strategy.MESH_BINARY_COMPUTED_AABB, "0.3", "0.4", "0.5"),
        _entry(Strategy.MESH_BINARY_STORED_AABB, "0.6", "0.7", "0.8"),
        _entry(Strategy.MESH_BINARY_WIDE_INDEX, "0.9"),
    ),
    (Category.MESH, Encoding.TEXT): (
        _entry(Strategy.MESH_TEXT_LEGACY, "1.2", "0.2"),
        _entry(Strategy.MESH_TEXT_CURRENT, "0.3", "0.4", "0.5", "0.6", "0.7", "0.8"),
        _entry(Strategy.MESH_TEXT_WIDE_INDEX, "0.9"),
    ),
    (Category.MATERIAL, Encoding.BINARY): (
        _entry(Strategy.MATERIAL_BINARY_SINGLE_TEXTURE, "0.1"),
        _entry(Strategy.MATERIAL_BINARY_TEXTURE_LIST, "0.2"),
        _entry(Strategy.MATERIAL_BINARY_FULL, "0.3", "0.4", "0.5", "0.6", "0.7", "0.8"),
    ),
    (Category.MATERIAL, Encoding.TEXT): (
        _entry(Strategy.MATERIAL_TEXT_BASE, "1.2"),
        _entry(Strategy.MATERIAL_TEXT_TEXTURE_NAMES, "0.2"),
        _entry(Strategy.MATERIAL_TEXT_FULL, "0.3", "0.4", "0.5", "0.6", "0.7", "0.8"),
    ),
    (Category.NODE, Encoding.BINARY): (
        _entry(Strategy.NODE_FROM_SKIN, "0.1", "0.2"),
        _entry(Strategy.NODE_IDENTITY_RESET, "0.3", "0.4", "0.5", "0.6"),
        _entry(Strategy.NODE_VERBATIM, "0.7", "0.8"),
    ),
    (Category.NODE, Encoding.TEXT): (
        _entry(Strategy.NODE_FROM_SKIN, "1.2", "0.1", "0.2"),
        _entry(Strategy.NODE_IDENTITY_RESET, "0.3", "0.4", "0.5", "0.6"),
        _entry(Strategy.NODE_VERBATIM, "0.7", "0.8"),
    ),
    (Category.SKIN, Encoding.BINARY): (
        _entry(Strategy.SKIN_BINARY, "0.1", "0.2", "0.3", "0.4", "0.5", "0.6", "0.7", "0.8"),
    ),
    (Category.SKIN, Encoding.TEXT): (
        _entry(Strategy.SKIN_TEXT, "1.2", "0.1", "0.2", "0.3", "0.4", "0.5", "0.6", "0.7", "0.8"),
    ),
    (Category.ANIMATION, Encoding.BINARY): (
        _entry(Strategy.ANIMATION_BINARY_SINGLE, "0.1", "0.2"),
        _entry(Strategy.ANIMATION_BINARY_COUNTED, "0.3"),
        _entry(Strategy.ANIMATION_BINARY_COUNTED_MASKED, "0.4"),
        _entry(Strategy.ANIMATION_BINARY_BY_ID, "0.5", "0.6", "0.7", "0.8"),
    ),
    (Category.ANIMATION, Encoding.TEXT): (
        _entry(Strategy.ANIMATION_TEXT_LEGACY, "1.2", "0.2"),
        _entry(Strategy.ANIMATION_TEXT_CURRENT, "0.3", "0.4", "0.5", "0.6", "0.7", "0.8"),
    ),
}


def resolve(category: Category, version: str, encoding: Encoding) -> Strategy:
    """Return the decode strategy for a category at a schema version."""
    entries = _TABLES[(Category(category), Encoding(encoding))]
    for entry in entries:
        if version in entry.versions:
            return entry.strategy
    return entries[-1].strategy


def known_versions(encoding: Encoding) -> frozenset[str]:
    """Every version named explicitly by any category table of ``encoding``."""
    names: set[str] = set()
    for (_category, enc), entries in _TABLES.items():
        if enc == encoding:
            for entry in entries:
                names.update(entry.versions)
    return frozenset(names)


def is_known_version(version: str, encoding: Encoding) -> bool:
    return version in known_versions(encoding)
