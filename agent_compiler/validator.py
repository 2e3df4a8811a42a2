"""
Agent Compiler - Validation
===========================

Checks a profile (or stack) and its agents before compiling: agent sources,
prompt set references, prompt files and the stack store. Reference resolution
problems are not checked here; they surface in the CompileReport.
"""

import logging
from pathlib import Path
from typing import Dict, List

from agent_compiler.config import ProjectLayout
from agent_compiler.models import AgentConfig, ProfileConfig, ValidationResult

logger = logging.getLogger(__name__)

REQUIRED_AGENT_FILES = ["intro.md", "workflow.md"]
OPTIONAL_AGENT_FILES = ["examples.md", "critical-requirements.md", "critical-reminders.md"]


def validate(
    layout: ProjectLayout,
    config_dir: Path,
    profile: ProfileConfig,
    agents: Dict[str, AgentConfig],
) -> ValidationResult:
    """
    Collect every configuration error and warning for a profile.

    config_dir is the directory of the profile or stack config; claude_md is
    resolved against it.
    """
    result = ValidationResult()

    if profile.claude_md:
        claude_path = config_dir / profile.claude_md
        if not claude_path.is_file():
            result.errors.append(f"CLAUDE.md not found: {claude_path}")

    if profile.stack and not layout.stack_skills_dir(profile.stack).is_dir():
        result.errors.append(f"Stack skills not found: {layout.stack_skills_dir(profile.stack)}")

    for name, agent in agents.items():
        agent_dir = layout.agent_source_dir(name)

        for file_name in REQUIRED_AGENT_FILES:
            if not (agent_dir / file_name).is_file():
                result.errors.append(f"Missing {file_name} for agent: {name}")

        for file_name in OPTIONAL_AGENT_FILES:
            if not (agent_dir / file_name).is_file():
                result.warnings.append(f"Optional file missing for {name}: {file_name}")

        if agent.core_prompts and agent.core_prompts not in profile.core_prompt_sets:
            result.errors.append(
                f'Invalid core_prompts reference "{agent.core_prompts}" for agent: {name}'
            )

        if agent.ending_prompts and agent.ending_prompts not in profile.ending_prompt_sets:
            result.errors.append(
                f'Invalid ending_prompts reference "{agent.ending_prompts}" for agent: {name}'
            )

        if agent.output_format and not layout.core_prompt(agent.output_format).is_file():
            result.warnings.append(
                f"Output format not found for {name}: {agent.output_format}.md"
            )

    for label, prompt_sets in (
        ("Core", profile.core_prompt_sets),
        ("Ending", profile.ending_prompt_sets),
    ):
        for prompt in _unique_prompts(prompt_sets):
            if not layout.core_prompt(prompt).is_file():
                result.errors.append(f"{label} prompt not found: {prompt}.md")

    logger.info(
        f"[Validator] {len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    return result


def _unique_prompts(prompt_sets: Dict[str, List[str]]) -> List[str]:
    unique: List[str] = []
    for prompts in prompt_sets.values():
        for prompt in prompts:
            if prompt not in unique:
                unique.append(prompt)
    return unique
