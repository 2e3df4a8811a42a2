"""
Agent Compiler - Unit File Parsing
==================================

A unit is described by two files in its directory:

    SKILL.md        ← optional YAML header between "---" lines, then the body
    metadata.yaml   ← category, version, tags, usage

The indexer only needs the header of SKILL.md, the loader needs both parts.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

UNIT_FILE = "SKILL.md"
METADATA_FILE = "metadata.yaml"
HEADER_DELIMITER = "---"


def _load_mapping(text: str, source: str) -> Optional[Dict[str, Any]]:
    """Parse a YAML header; None when it is not a usable mapping."""
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        logger.warning(f"[Parser] Ignoring malformed header in {source}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"[Parser] Ignoring header in {source}: expected a mapping, got {type(data).__name__}")
        return None
    return data


def _collect_header(lines: Iterable[str]) -> Tuple[Optional[List[str]], int]:
    """
    Gather the header lines that follow an opening delimiter.

    Returns (header_lines, consumed) where consumed counts the header lines
    plus the closing delimiter, or (None, 0) when the header never closes.
    """
    header: List[str] = []
    for line in lines:
        if line.strip() == HEADER_DELIMITER:
            return header, len(header) + 1
        header.append(line)
    return None, 0


def parse_frontmatter(content: str, source: str = "<text>") -> Tuple[Dict[str, Any], str]:
    """
    Split SKILL.md text into its header mapping and its body.

    Text without a header, with an unterminated header or with a header that
    is not a YAML mapping comes back whole, paired with an empty mapping.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != HEADER_DELIMITER:
        return {}, content

    header, consumed = _collect_header(lines[1:])
    if header is None:
        return {}, content
    mapping = _load_mapping("".join(header), source)
    if mapping is None:
        return {}, content
    return mapping, "".join(lines[1 + consumed:])


def read_frontmatter(file_path: Path) -> Dict[str, Any]:
    """
    Read the SKILL.md header without touching the body.

    Reading stops at the closing delimiter.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        if f.readline().strip() != HEADER_DELIMITER:
            return {}
        header, _ = _collect_header(f)
    if header is None:
        logger.warning(f"[Parser] Unterminated header in {file_path}")
        return {}
    return _load_mapping("".join(header), str(file_path)) or {}


def read_yaml(path: Path) -> Any:
    """Read and parse a YAML file. Errors propagate to the caller."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)
