"""
Tests for the Renderer
======================
"""

import yaml

from agent_compiler.models import (
    AgentHeader,
    CompiledDocument,
    Section,
    SectionKind,
)
from agent_compiler.renderer import interpolate, render, resolve_reference


def make_document(**agent_fields) -> CompiledDocument:
    fields = {"name": "tester", "title": "Test Agent", "description": "Tests: things", "tools": ["Read", "Write"]}
    fields.update(agent_fields)
    return CompiledDocument(
        agent=AgentHeader(**fields),
        sections=[
            Section(name="intro", content="You are the ${agent.title}.", interpolate=True),
            Section(name="a/b", kind=SectionKind.UNIT, content="const x = `${value}`;", tag="preloaded_skill"),
            Section(name="reminders", content="Remember.", tag="critical_reminders"),
        ],
    )


class TestRender:
    """Tests for render()."""

    def test_frontmatter(self):
        text = render(make_document(model="opus"))
        assert text.startswith("---\n")
        header = yaml.safe_load(text.split("---\n")[1])
        assert header == {
            "name": "tester",
            "description": "Tests: things",
            "model": "opus",
            "tools": "Read, Write",
        }

    def test_model_omitted_when_unset(self):
        header = yaml.safe_load(render(make_document()).split("---\n")[1])
        assert "model" not in header

    def test_fixed_sections_are_interpolated(self):
        assert "You are the Test Agent." in render(make_document())

    def test_unit_bodies_are_verbatim(self):
        text = render(make_document())
        assert '<preloaded_skill id="a/b">\n\nconst x = `${value}`;\n\n</preloaded_skill>' in text

    def test_tagged_fixed_section(self):
        assert "<critical_reminders>\n\nRemember.\n\n</critical_reminders>" in render(make_document())

    def test_section_order(self):
        text = render(make_document())
        assert text.index("You are") < text.index("const x") < text.index("Remember.")

    def test_empty_sections_are_skipped(self):
        document = make_document()
        document.sections.append(Section(name="empty", content="   ", tag="empty"))
        assert "<empty>" not in render(document)

    def test_deterministic(self):
        assert render(make_document()) == render(make_document())


class TestInterpolation:
    """Tests for ${...} variable substitution."""

    def test_resolve_nested(self):
        context = {"agent": {"title": "Dev"}}
        assert resolve_reference("${agent.title}", context) == "Dev"

    def test_resolve_missing(self):
        assert resolve_reference("${agent.missing}", {"agent": {}}) is None

    def test_unknown_reference_left_intact(self):
        assert interpolate("${nope.x} and ${agent.name}", {"agent": {"name": "a"}}) == "${nope.x} and a"

    def test_lists_are_joined(self):
        assert interpolate("${agent.tools}", {"agent": {"tools": ["Read", "Grep"]}}) == "Read, Grep"
