"""
Agent Compiler - Reference Resolver
===================================

Expands an agent's skill references into an ordered list of unit identifiers.

Reference syntax:
    category/name             → exact unit
    category/name @owner      → exact unit with an owner qualifier
    category                  → every unit below category/
    category/subcategory      → every unit below category/subcategory/

An exact identifier always wins over the directory interpretation. Directory
matching is segment-aligned: "methodology/universal" covers
"methodology/universal/x" but never "methodology/universal2/x".
"""

import logging
from typing import Iterable, List, Mapping, Optional, Union

from agent_compiler.models import (
    ClassifiedRef,
    DirectoryRef,
    ExactRef,
    Reference,
    ResolutionResult,
)

logger = logging.getLogger(__name__)


def classify(reference: Reference, index: Mapping[str, str]) -> Optional[ClassifiedRef]:
    """
    Decide once whether a reference is exact or a directory prefix.

    Returns None when the reference matches nothing in the index.
    """
    raw = reference.raw
    if raw in index:
        return ExactRef(reference=reference, identifier=raw)

    prefix = raw.rstrip("/")
    if not prefix:
        return None
    needle = prefix + "/"
    matches = [identifier for identifier in index if identifier.startswith(needle)]
    if matches:
        return DirectoryRef(reference=reference, prefix=prefix, identifiers=matches)
    return None


def resolve(
    references: Iterable[Union[str, Reference]],
    index: Mapping[str, str],
) -> ResolutionResult:
    """
    Resolve references against the index.

    Identifiers keep the position of their first occurrence across the whole
    list; later duplicates are dropped. Unmatched references are collected
    and never abort resolution.
    """
    result = ResolutionResult()
    seen = set()

    for entry in references:
        reference = Reference.parse(entry)
        classified = classify(reference, index)

        if classified is None:
            logger.warning(f"[Resolver] Unresolved reference: {reference.raw}")
            result.unresolved.append(reference)
            continue

        added = 0
        for identifier in classified.identifiers:
            if identifier in seen:
                continue
            seen.add(identifier)
            result.resolved.append(identifier)
            if reference.usage:
                result.usage[identifier] = reference.usage
            added += 1

        logger.debug(
            f"[Resolver] {reference.raw} ({classified.kind.value}) → "
            f"{len(classified.identifiers)} units, {added} new"
        )

    return result
