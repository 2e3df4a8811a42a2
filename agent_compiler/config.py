"""
Agent Compiler - Configuration
==============================

Loads agents.yaml, profile and stack configs, merges them into per-agent
configurations, and reads runtime settings from the environment.

    <project-root>/
        agents.yaml                     ← agent definitions
        profiles/<profile>/config.yaml  ← prompt sets + skill references
        stacks/<stack>/config.yaml      ← agents + stack skill references
        stacks/<stack>/skills/          ← unit store of the stack
        skills/                         ← central unit store
        agent-sources/<agent>/          ← intro.md, workflow.md, ...
        core-prompts/                   ← prompt fragments
        commands/                       ← slash commands, copied as-is
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from pydantic import BaseModel, ValidationError

from agent_compiler.errors import ConfigError
from agent_compiler.models import (
    AgentConfig,
    AgentsConfig,
    ProfileConfig,
    SkillAssignment,
    StackConfig,
)
from agent_compiler.parser import read_yaml

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "home"
DEFAULT_OUTPUT_DIR = ".claude"


class ProjectLayout:
    """Well-known locations inside a project root."""

    def __init__(self, root: Union[str, Path] = ".", output_dir: Optional[Union[str, Path]] = None):
        self.root = Path(root)
        self.output_dir = Path(output_dir) if output_dir else self.root / DEFAULT_OUTPUT_DIR
        self.skills_dir = self.root / "skills"
        self.agent_sources_dir = self.root / "agent-sources"
        self.core_prompts_dir = self.root / "core-prompts"
        self.profiles_dir = self.root / "profiles"
        self.stacks_dir = self.root / "stacks"
        self.commands_dir = self.root / "commands"
        self.agents_file = self.root / "agents.yaml"

    def profile_dir(self, profile: str) -> Path:
        return self.profiles_dir / profile

    def profile_file(self, profile: str) -> Path:
        return self.profile_dir(profile) / "config.yaml"

    def stack_dir(self, stack: str) -> Path:
        return self.stacks_dir / stack

    def stack_file(self, stack: str) -> Path:
        return self.stack_dir(stack) / "config.yaml"

    def stack_skills_dir(self, stack: str) -> Path:
        return self.stack_dir(stack) / "skills"

    def agent_source_dir(self, agent: str) -> Path:
        return self.agent_sources_dir / agent

    def core_prompt(self, name: str) -> Path:
        return self.core_prompts_dir / f"{name}.md"

    @property
    def compiled_agents_dir(self) -> Path:
        return self.output_dir / "agents"

    @property
    def compiled_skills_dir(self) -> Path:
        return self.output_dir / "skills"

    @property
    def compiled_commands_dir(self) -> Path:
        return self.output_dir / "commands"


class CompilerSettings(BaseModel):
    """Runtime settings, overridable from the environment."""
    max_workers: int = 1
    output_dir: str = DEFAULT_OUTPUT_DIR
    clean_output: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "CompilerSettings":
        """
        Build settings from AGENT_COMPILER_* variables and LOG_LEVEL.

        Raises:
            ConfigError: a variable does not hold a usable value.
        """
        try:
            return cls(
                max_workers=os.getenv("AGENT_COMPILER_MAX_WORKERS", "1"),
                output_dir=os.getenv("AGENT_COMPILER_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
                clean_output=os.getenv("AGENT_COMPILER_CLEAN", "true").lower() == "true",
                log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid environment settings: {e}") from e


# =============================================================================
# Loading
# =============================================================================

def _read_config(path: Path, model: type) -> BaseModel:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = read_yaml(path) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {path}, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e


def load_agents_config(path: Union[str, Path]) -> AgentsConfig:
    """Load agents.yaml."""
    config = _read_config(Path(path), AgentsConfig)
    logger.info(f"[Config] Loaded {len(config.agents)} agent definitions")
    return config


def load_profile_config(path: Union[str, Path]) -> ProfileConfig:
    """Load a profile's config.yaml."""
    config = _read_config(Path(path), ProfileConfig)
    logger.info(f"[Config] Loaded profile config with {len(config.agent_skills)} agents")
    return config


def load_stack_config(path: Union[str, Path]) -> StackConfig:
    """Load a stack's config.yaml."""
    config = _read_config(Path(path), StackConfig)
    logger.info(
        f"[Config] Loaded stack config with {len(config.agents)} agents, "
        f"{len(config.skills)} skills"
    )
    return config


def stack_to_profile_config(stack_id: str, stack: StackConfig) -> ProfileConfig:
    """
    View a stack as a profile so both compile through the same path.

    Agents come in the order the stack lists them, followed by any agent that
    only appears under agent_skills. An agent without its own skill entry gets
    the stack's skills as dynamic references.
    """
    names = list(stack.agents)
    names.extend(name for name in stack.agent_skills if name not in names)

    agent_skills: Dict[str, SkillAssignment] = {}
    for name in names:
        if name in stack.agent_skills:
            agent_skills[name] = stack.agent_skills[name]
        else:
            agent_skills[name] = SkillAssignment(dynamic=list(stack.skills))

    return ProfileConfig(
        name=stack.name or stack_id,
        description=stack.description,
        claude_md=stack.claude_md,
        stack=stack_id,
        core_prompt_sets=stack.core_prompt_sets,
        ending_prompt_sets=stack.ending_prompt_sets,
        agent_skills=agent_skills,
    )


def resolve_agents(agents_config: AgentsConfig, profile: ProfileConfig) -> Dict[str, AgentConfig]:
    """
    Merge agent definitions with the profile's skill references.

    Agents are compiled in the order the profile lists them.

    Raises:
        ConfigError: the profile names an agent agents.yaml does not define.
    """
    resolved: Dict[str, AgentConfig] = {}
    for agent_name, skills in profile.agent_skills.items():
        definition = agents_config.agents.get(agent_name)
        if definition is None:
            raise ConfigError(
                f'Agent "{agent_name}" in agent_skills but not found in agents.yaml'
            )
        resolved[agent_name] = AgentConfig(
            name=agent_name,
            skills=skills,
            **definition.model_dump(),
        )
    return resolved
