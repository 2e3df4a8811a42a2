"""
Agent Compiler - Renderer
=========================

Turns a CompiledDocument into the final Markdown text:

    ---
    name: <agent>
    description: ...
    model: ...          (only when set)
    tools: Read, Write, ...
    ---

    <section>

    <section>

Fixed sections may reference agent fields with ${agent.field}. Unknown
references are left untouched. Unit bodies are emitted verbatim.
"""

import logging
import re
from typing import Any, Dict

import yaml

from agent_compiler.models import CompiledDocument, Section, SectionKind

logger = logging.getLogger(__name__)

# Pattern for variable references: ${path.to.value}
VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def render(document: CompiledDocument) -> str:
    """Render a document to text. Pure: same document, same text."""
    context = {"agent": document.agent.model_dump()}
    blocks = [_frontmatter(document)]
    for section in document.sections:
        text = _render_section(section, context)
        if text:
            blocks.append(text)
    return "\n\n".join(blocks) + "\n"


def resolve_reference(reference: str, context: Dict[str, Any]) -> Any:
    """
    Resolve a variable reference like ${agent.title} against the context.

    Returns None when any part of the path is missing.
    """
    path = reference
    if path.startswith("${") and path.endswith("}"):
        path = path[2:-1]

    current: Any = context
    for part in path.strip().split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            logger.debug(f"[Renderer] Cannot resolve reference: {reference}")
            return None
    return current


def interpolate(text: str, context: Dict[str, Any]) -> str:
    """Replace all ${...} patterns in a string with resolved values."""
    def replace_match(match):
        ref = match.group(0)
        value = resolve_reference(ref, context)
        if value is None:
            return ref
        if isinstance(value, list):
            return ", ".join(str(v) for v in value)
        return str(value)

    return VAR_PATTERN.sub(replace_match, text)


def _frontmatter(document: CompiledDocument) -> str:
    agent = document.agent
    header: Dict[str, Any] = {"name": agent.name, "description": agent.description}
    if agent.model:
        header["model"] = agent.model
    header["tools"] = ", ".join(agent.tools)
    dumped = yaml.safe_dump(
        header, sort_keys=False, allow_unicode=True, default_flow_style=False, width=1000
    )
    return f"---\n{dumped}---"


def _render_section(section: Section, context: Dict[str, Any]) -> str:
    content = section.content.strip()
    if not content:
        return ""
    if section.interpolate and section.kind == SectionKind.FIXED:
        content = interpolate(content, context)
    if section.tag:
        if section.kind == SectionKind.UNIT:
            opening = f'<{section.tag} id="{section.name}">'
        else:
            opening = f"<{section.tag}>"
        return f"{opening}\n\n{content}\n\n</{section.tag}>"
    return content
