"""
Tests for the Composition Assembler
===================================
"""

from agent_compiler.assembler import assemble, build_skills_declaration
from agent_compiler.models import (
    AgentHeader,
    FixedSections,
    Section,
    SectionAnchor,
    SectionKind,
    Unit,
    UnitMetadata,
)


def make_unit(identifier: str, description: str = None, usage: str = None) -> Unit:
    return Unit(
        identifier=identifier,
        storage_path=identifier,
        name=identifier.rsplit("/", 1)[-1],
        description=description,
        body=f"BODY-{identifier}",
        metadata=UnitMetadata(usage=usage),
    )


HEADER = AgentHeader(name="tester", title="Tester", tools=["Read"])


class TestAssemble:
    """Tests for section ordering."""

    def test_preamble_units_closing(self):
        fixed = FixedSections(sections=[
            Section(name="P"),
            Section(name="C", anchor=SectionAnchor.AFTER_UNITS),
        ])
        units = [make_unit("X"), make_unit("Y"), make_unit("Z")]
        document = assemble(units, fixed, HEADER)
        assert document.section_names == ["P", "X", "Y", "Z", "C"]

    def test_fixed_order_within_anchor_is_kept(self):
        fixed = FixedSections(sections=[
            Section(name="closing-1", anchor=SectionAnchor.AFTER_UNITS),
            Section(name="intro"),
            Section(name="closing-2", anchor=SectionAnchor.AFTER_UNITS),
            Section(name="workflow"),
        ])
        document = assemble([make_unit("X")], fixed, HEADER)
        assert document.section_names == ["intro", "workflow", "X", "closing-1", "closing-2"]

    def test_unit_sections(self):
        document = assemble([make_unit("a/b")], FixedSections(), HEADER)
        section = document.sections[0]
        assert section.kind == SectionKind.UNIT
        assert section.content == "BODY-a/b"
        assert section.interpolate is False

    def test_no_units(self):
        fixed = FixedSections(sections=[Section(name="P")])
        assert assemble([], fixed, HEADER).section_names == ["P"]

    def test_idempotent(self):
        fixed = FixedSections(sections=[
            Section(name="P", content="pre"),
            Section(name="C", content="post", anchor=SectionAnchor.AFTER_UNITS),
        ])
        units = [make_unit("X"), make_unit("Y")]
        first = assemble(units, fixed, HEADER)
        second = assemble(units, fixed, HEADER)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_inputs_are_not_shared(self):
        fixed = FixedSections(sections=[Section(name="P", content="pre")])
        document = assemble([], fixed, HEADER)
        document.sections[0].content = "changed"
        assert fixed.sections[0].content == "pre"


class TestSkillsDeclaration:
    """Tests for the preloaded-content declaration section."""

    def test_lists_bundled_and_dynamic(self):
        section = build_skills_declaration(
            [make_unit("methodology/core", description="Core rules")],
            [make_unit("frontend/testing @vince", usage="when writing tests")],
        )
        assert section.anchor == SectionAnchor.BEFORE_UNITS
        assert "- **methodology/core**: Core rules" in section.content
        assert "- **frontend/testing @vince**" in section.content
        assert "Use when: when writing tests" in section.content
        assert section.content.index("methodology/core") < section.content.index("Dynamic Skills")

    def test_usage_override(self):
        section = build_skills_declaration(
            [],
            [make_unit("a/b", usage="default usage")],
            usage={"a/b": "override usage"},
        )
        assert "override usage" in section.content
        assert "default usage" not in section.content

    def test_nothing_preloaded(self):
        section = build_skills_declaration([], [])
        assert "_No skills are preloaded._" in section.content
        assert "Dynamic Skills" not in section.content
