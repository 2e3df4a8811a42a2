"""
Agent Compiler - Unit Loader
============================

Reads a unit's SKILL.md body and its metadata.yaml into a Unit record.
"""

import logging
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from agent_compiler.errors import LoadError
from agent_compiler.indexer import UnitIndex
from agent_compiler.models import Unit, UnitMetadata
from agent_compiler.parser import METADATA_FILE, UNIT_FILE, parse_frontmatter, read_yaml

logger = logging.getLogger(__name__)


def load_unit(
    identifier: str,
    storage_path: str,
    content_root: Union[str, Path],
) -> Unit:
    """
    Load one unit from `<content_root>/<storage_path>`.

    Raises:
        LoadError: a file is missing or unreadable, or the metadata does not
            have the expected shape.
    """
    unit_dir = Path(content_root) / storage_path
    unit_file = unit_dir / UNIT_FILE
    metadata_file = unit_dir / METADATA_FILE

    for required in (unit_file, metadata_file):
        if not required.is_file():
            raise LoadError(identifier, str(required), "file not found")

    try:
        content = unit_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(identifier, str(unit_file), str(e)) from e
    frontmatter, body = parse_frontmatter(content, str(unit_file))

    try:
        data = read_yaml(metadata_file)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise LoadError(identifier, str(metadata_file), str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise LoadError(
            identifier,
            str(metadata_file),
            f"expected a mapping, got {type(data).__name__}",
        )

    try:
        metadata = UnitMetadata.model_validate(data)
    except ValidationError as e:
        raise LoadError(identifier, str(metadata_file), str(e)) from e

    description = frontmatter.get("description") or metadata.description
    unit = Unit(
        identifier=identifier,
        storage_path=storage_path,
        name=str(frontmatter.get("name") or unit_dir.name),
        description=str(description).strip() if description else None,
        body=body.strip(),
        metadata=metadata,
    )
    logger.debug(f"[UnitLoader] Loaded {identifier} (v{metadata.version or '?'})")
    return unit


class UnitLoader:
    """Loads units addressed through a UnitIndex."""

    def __init__(self, index: UnitIndex):
        self.index = index

    def load(self, identifier: str) -> Unit:
        if identifier not in self.index:
            raise LoadError(identifier, "", "identifier is not indexed")
        return load_unit(identifier, self.index[identifier], self.index.content_root)
