"""
Agent Compiler - Unit Store Indexer
===================================

Scans a content root and maps each unit's identifier to its storage path.

A unit is any directory holding a SKILL.md file:

    skills/
        methodology/
            universal/
                core-principles/
                    SKILL.md        ← frontmatter `name: core-principles`
                    metadata.yaml
        frontend/
            react/
                SKILL.md            ← frontmatter `name: react @vince`
                metadata.yaml

yields `methodology/universal/core-principles` and `frontend/react @vince`.
Only frontmatter headers are read; bodies are left to the loader.
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from agent_compiler.errors import IndexingError
from agent_compiler.parser import UNIT_FILE, read_frontmatter

logger = logging.getLogger(__name__)


class UnitIndex(Mapping):
    """
    Read-only mapping of unit identifier → storage path.

    Iteration follows scan order, which is the order directory references
    expand in. Storage paths are POSIX paths relative to `content_root`.
    """

    def __init__(self, content_root: Union[str, Path], entries: Optional[Dict[str, str]] = None):
        self.content_root = Path(content_root)
        self._entries: Dict[str, str] = dict(entries or {})

    def __getitem__(self, identifier: str) -> str:
        return self._entries[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"UnitIndex({str(self.content_root)!r}, {len(self)} units)"

    def location(self, identifier: str) -> Path:
        """Absolute directory of a unit."""
        return self.content_root / self._entries[identifier]


def derive_identifier(relative_dir: str, declared_name: Optional[str]) -> str:
    """
    Build a unit identifier from its directory and declared name.

    A declared name containing "/" is already fully qualified. Otherwise it
    replaces the last path segment. Without a declared name the relative
    directory is the identifier.
    """
    if not declared_name:
        return relative_dir
    if "/" in declared_name:
        return declared_name
    parent = relative_dir.rpartition("/")[0]
    return f"{parent}/{declared_name}" if parent else declared_name


def build_index(content_root: Union[str, Path]) -> UnitIndex:
    """
    Walk the content root once and register every unit directory.

    Raises:
        IndexingError: two distinct directories produce the same identifier.
    """
    root = Path(content_root)
    entries: Dict[str, str] = {}

    if not root.is_dir():
        logger.warning(f"[UnitIndexer] Content root not found: {root}")
        return UnitIndex(root, entries)

    logger.info(f"[UnitIndexer] Scanning {root}")
    for unit_dir in _walk(root):
        relative = unit_dir.relative_to(root).as_posix()
        identifier = derive_identifier(relative, _declared_name(unit_dir / UNIT_FILE))

        existing = entries.get(identifier)
        if existing is not None and existing != relative:
            raise IndexingError(identifier, existing, relative)

        entries[identifier] = relative
        logger.debug(f"[UnitIndexer]   Unit indexed: {identifier} ({relative})")

    logger.info(f"[UnitIndexer] Indexed {len(entries)} units")
    return UnitIndex(root, entries)


def _walk(directory: Path) -> Iterator[Path]:
    """Yield unit directories below `directory` in sorted, depth-first order."""
    for child in sorted(directory.iterdir()):
        if not child.is_dir() or child.name.startswith("."):
            continue
        if (child / UNIT_FILE).is_file():
            yield child
        yield from _walk(child)


def _declared_name(unit_file: Path) -> Optional[str]:
    try:
        frontmatter = read_frontmatter(unit_file)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"[UnitIndexer] Could not read {unit_file}: {e}")
        return None
    name = frontmatter.get("name")
    if name is None:
        return None
    name = str(name).strip()
    return name or None
