"""
Agent Compiler - Composition Assembler
======================================

Merges fixed agent sections with loaded unit bodies into one ordered
CompiledDocument:

    1. fixed sections anchored before all units, in predefined order
    2. one section per unit, in resolved order
    3. fixed sections anchored after all units, in predefined order

The assembler never reorders units and never places a fixed section between
two units. Output depends only on its inputs.
"""

from typing import Dict, Iterable, List, Optional

from agent_compiler.models import (
    AgentHeader,
    CompiledDocument,
    FixedSections,
    Section,
    SectionAnchor,
    SectionKind,
    Unit,
)

UNIT_SECTION_TAG = "preloaded_skill"
SKILLS_SECTION = "skills"


def unit_section(unit: Unit) -> Section:
    """Wrap a unit body as a document section."""
    return Section(
        name=unit.identifier,
        kind=SectionKind.UNIT,
        content=unit.body,
        tag=UNIT_SECTION_TAG,
    )


def assemble(
    units: Iterable[Unit],
    fixed_sections: FixedSections,
    agent: AgentHeader,
) -> CompiledDocument:
    """Build the document: preamble, unit bodies, closing."""
    sections: List[Section] = []
    sections.extend(s.model_copy() for s in fixed_sections.preamble)
    sections.extend(unit_section(unit) for unit in units)
    sections.extend(s.model_copy() for s in fixed_sections.closing)
    return CompiledDocument(agent=agent.model_copy(), sections=sections)


def build_skills_declaration(
    precompiled: List[Unit],
    dynamic: List[Unit],
    usage: Optional[Dict[str, str]] = None,
) -> Section:
    """
    Declare which skills are bundled into the document and which ones the
    agent may invoke on demand.
    """
    usage = usage or {}
    lines: List[str] = []

    lines.append("## Preloaded Skills")
    lines.append("")
    if precompiled:
        lines.append("The following skills are bundled below and always available:")
        lines.append("")
        for unit in precompiled:
            lines.append(_describe(unit))
    else:
        lines.append("_No skills are preloaded._")

    if dynamic:
        lines.append("")
        lines.append("## Dynamic Skills")
        lines.append("")
        lines.append("Invoke these skills when their usage applies:")
        lines.append("")
        for unit in dynamic:
            lines.append(_describe(unit))
            when = usage.get(unit.identifier) or unit.usage
            if when:
                lines.append(f"  - Use when: {when.strip()}")

    return Section(
        name=SKILLS_SECTION,
        anchor=SectionAnchor.BEFORE_UNITS,
        content="\n".join(lines),
        tag="skills",
    )


def _describe(unit: Unit) -> str:
    if unit.description:
        return f"- **{unit.identifier}**: {unit.description}"
    return f"- **{unit.identifier}**"
