"""
Shared fixtures: unit stores and complete projects built in tmp_path.
"""

from pathlib import Path
from typing import Optional

import pytest
import yaml


def write_unit(
    content_root: Path,
    relative_dir: str,
    name: Optional[str] = None,
    body: str = "",
    metadata: Optional[dict] = None,
    description: Optional[str] = None,
    with_metadata: bool = True,
) -> Path:
    """Create a unit directory with SKILL.md and metadata.yaml."""
    unit_dir = content_root / relative_dir
    unit_dir.mkdir(parents=True, exist_ok=True)

    frontmatter = {}
    if name is not None:
        frontmatter["name"] = name
    if description is not None:
        frontmatter["description"] = description
    header = f"---\n{yaml.safe_dump(frontmatter, sort_keys=False)}---\n\n" if frontmatter else ""
    body = body or f"# {relative_dir}\n\nBody of {relative_dir}."
    (unit_dir / "SKILL.md").write_text(header + body + "\n")

    if with_metadata:
        data = metadata if metadata is not None else {
            "category": relative_dir.split("/")[0],
            "version": "1.0.0",
            "tags": ["test"],
        }
        (unit_dir / "metadata.yaml").write_text(yaml.safe_dump(data))
    return unit_dir


@pytest.fixture
def unit_store(tmp_path):
    """The methodology store used throughout the resolution examples."""
    root = tmp_path / "skills"
    write_unit(root, "methodology/universal/core-principles", name="core-principles")
    write_unit(root, "methodology/universal/investigation-requirements", name="investigation-requirements")
    write_unit(root, "methodology/implementation/write-verification", name="write-verification")
    return root


@pytest.fixture
def project(tmp_path):
    """A complete project with two agents, a `home` profile and one command."""
    root = tmp_path / "project"
    skills = root / "skills"
    write_unit(
        skills, "methodology/universal/core-principles",
        name="core-principles", body="CORE-PRINCIPLES-BODY",
        description="Principles every agent follows",
    )
    write_unit(
        skills, "methodology/universal/investigation-requirements",
        name="investigation-requirements", body="INVESTIGATION-BODY",
    )
    write_unit(
        skills, "frontend/react",
        name="react @vince", body="REACT-BODY uses ${props.value}",
        metadata={"category": "frontend", "version": 2, "tags": ["react"],
                  "usage": "when building React components"},
    )
    write_unit(
        skills, "frontend/testing",
        name="testing @vince", body="TESTING-BODY",
        metadata={"category": "frontend", "usage": "when writing frontend tests"},
    )

    (root / "agents.yaml").write_text(yaml.safe_dump({
        "agents": {
            "frontend-developer": {
                "title": "Frontend Developer",
                "description": "Implements frontend features",
                "model": "opus",
                "tools": ["Read", "Write", "Edit"],
                "core_prompts": "developer",
                "ending_prompts": "developer",
                "output_format": "output-formats-developer",
            },
            "reviewer": {
                "title": "Reviewer",
                "description": "Reviews code",
                "tools": ["Read"],
                "core_prompts": "reviewer",
            },
        }
    }, sort_keys=False))

    profile_dir = root / "profiles" / "home"
    profile_dir.mkdir(parents=True)
    (profile_dir / "CLAUDE.md").write_text("# Home profile\n")
    (profile_dir / "config.yaml").write_text(yaml.safe_dump({
        "name": "home",
        "description": "Home profile",
        "claude_md": "CLAUDE.md",
        "core_prompt_sets": {
            "developer": ["core-principles", "investigation-requirement"],
            "reviewer": ["core-principles"],
        },
        "ending_prompt_sets": {"developer": ["context-management"]},
        "agent_skills": {
            "frontend-developer": {
                "precompiled": ["methodology/universal", "frontend/react @vince"],
                "dynamic": [{"id": "frontend/testing @vince", "usage": "when tests are requested"}],
            },
            "reviewer": {
                "precompiled": ["methodology/universal/core-principles", "methodology/missing"],
            },
        },
    }, sort_keys=False))

    prompts = root / "core-prompts"
    prompts.mkdir()
    (prompts / "core-principles.md").write_text("CORE-PROMPT")
    (prompts / "investigation-requirement.md").write_text("INVESTIGATE-PROMPT")
    (prompts / "context-management.md").write_text("ENDING-PROMPT")
    (prompts / "output-formats-developer.md").write_text("OUTPUT-FORMAT")

    for agent in ("frontend-developer", "reviewer"):
        agent_dir = root / "agent-sources" / agent
        agent_dir.mkdir(parents=True)
        (agent_dir / "intro.md").write_text(f"You are the ${{agent.title}}. INTRO-{agent}")
        (agent_dir / "workflow.md").write_text(f"WORKFLOW-{agent}")
    dev_dir = root / "agent-sources" / "frontend-developer"
    (dev_dir / "critical-requirements.md").write_text("CRITICAL-REQUIREMENTS")
    (dev_dir / "critical-reminders.md").write_text("CRITICAL-REMINDERS")
    (dev_dir / "examples.md").write_text("EXAMPLES")

    commands = root / "commands"
    commands.mkdir()
    (commands / "review.md").write_text("REVIEW-COMMAND")
    (commands / "notes.txt").write_text("not a command")

    return root


@pytest.fixture
def stack_project(project):
    """The sample project plus a `work` stack with its own unit store."""
    stack_dir = project / "stacks" / "work"
    skills = stack_dir / "skills"
    write_unit(
        skills, "methodology/universal/core-principles",
        name="core-principles", body="STACK-PRINCIPLES-BODY",
    )
    write_unit(
        skills, "backend/api",
        name="api @work", body="API-BODY",
        metadata={"category": "backend", "usage": "when designing endpoints"},
    )
    (stack_dir / "CLAUDE.md").write_text("# Work stack\n")
    (stack_dir / "config.yaml").write_text(yaml.safe_dump({
        "name": "work",
        "description": "Work stack",
        "claude_md": "CLAUDE.md",
        "agents": ["reviewer", "frontend-developer"],
        "skills": ["backend"],
        "core_prompt_sets": {
            "developer": ["core-principles"],
            "reviewer": ["core-principles"],
        },
        "ending_prompt_sets": {"developer": ["context-management"]},
        "agent_skills": {
            "frontend-developer": {
                "precompiled": ["methodology/universal", "backend/api @work"],
            },
        },
    }, sort_keys=False))
    return project
