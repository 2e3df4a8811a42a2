"""
Agent Compiler - Core Models
============================

Pydantic models that define the schema for units, references, agent
configuration, compiled documents and compile reports.
These models are the contract between all layers of the compiler.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enums
# =============================================================================

class ReferenceKind(str, Enum):
    """How a skill reference was interpreted during resolution."""
    EXACT = "exact"
    DIRECTORY = "directory"
    UNRESOLVED = "unresolved"


class SectionKind(str, Enum):
    """Origin of a compiled document section."""
    FIXED = "fixed"
    UNIT = "unit"


class SectionAnchor(str, Enum):
    """Where a fixed section sits relative to the unit bodies."""
    BEFORE_UNITS = "before_units"
    AFTER_UNITS = "after_units"


# =============================================================================
# Units
# =============================================================================

class UnitMetadata(BaseModel):
    """Structured metadata stored next to a unit's SKILL.md."""
    model_config = ConfigDict(extra="ignore")

    category: Optional[str] = None
    version: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    usage: Optional[str] = None       # When an agent should invoke the unit
    description: Optional[str] = None

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> Any:
        # YAML reads `version: 1.0` as a float
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class Unit(BaseModel):
    """
    A loaded reusable content fragment (a skill).

    The body is opaque to the compiler: it is never parsed or interpolated.
    """
    identifier: str
    storage_path: str                 # Unit directory, relative to the content root
    name: str
    description: Optional[str] = None
    body: str = ""
    metadata: UnitMetadata = Field(default_factory=UnitMetadata)

    @property
    def usage(self) -> Optional[str]:
        return self.metadata.usage


# =============================================================================
# References
# =============================================================================

class Reference(BaseModel):
    """
    A single skill entry in an agent's configuration.

    Written either as a bare string or as a mapping with an `id` and an
    optional `usage` override.
    """
    raw: str
    usage: Optional[str] = None

    @classmethod
    def parse(cls, entry: Union[str, Dict[str, Any], "Reference"]) -> "Reference":
        if isinstance(entry, Reference):
            return entry
        if isinstance(entry, str):
            return cls(raw=entry.strip())
        if isinstance(entry, dict):
            raw = entry.get("id") or entry.get("raw")
            if not isinstance(raw, str) or not raw.strip():
                raise ValueError(f"Skill reference is missing an id: {entry!r}")
            return cls(raw=raw.strip(), usage=entry.get("usage"))
        raise ValueError(f"Unsupported skill reference: {entry!r}")


class ExactRef(BaseModel):
    """A reference naming exactly one indexed unit."""
    kind: ReferenceKind = ReferenceKind.EXACT
    reference: Reference
    identifier: str

    @property
    def identifiers(self) -> List[str]:
        return [self.identifier]


class DirectoryRef(BaseModel):
    """A reference naming every unit below a directory prefix."""
    kind: ReferenceKind = ReferenceKind.DIRECTORY
    reference: Reference
    prefix: str
    identifiers: List[str] = Field(default_factory=list)


ClassifiedRef = Union[ExactRef, DirectoryRef]


class ResolutionResult(BaseModel):
    """Ordered, deduplicated expansion of a reference list."""
    resolved: List[str] = Field(default_factory=list)
    unresolved: List[Reference] = Field(default_factory=list)
    usage: Dict[str, str] = Field(default_factory=dict)

    @property
    def unresolved_raw(self) -> List[str]:
        return [ref.raw for ref in self.unresolved]


# =============================================================================
# Agent Configuration
# =============================================================================

class SkillAssignment(BaseModel):
    """Precompiled and dynamic skill references for one agent."""
    precompiled: List[Reference] = Field(default_factory=list)
    dynamic: List[Reference] = Field(default_factory=list)

    @field_validator("precompiled", "dynamic", mode="before")
    @classmethod
    def _parse_references(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [Reference.parse(entry) for entry in value]
        return value


class AgentDefinition(BaseModel):
    """Base agent definition from agents.yaml (no skills; those are per profile)."""
    title: str
    description: str = ""
    model: Optional[str] = None
    tools: List[str] = Field(default_factory=list)
    core_prompts: Optional[str] = None      # Key into core_prompt_sets
    ending_prompts: Optional[str] = None    # Key into ending_prompt_sets
    output_format: Optional[str] = None     # core-prompts/<output_format>.md


class AgentsConfig(BaseModel):
    """Top-level structure of agents.yaml."""
    agents: Dict[str, AgentDefinition] = Field(default_factory=dict)


class ProfileConfig(BaseModel):
    """
    Profile configuration.

    References agents.yaml by name; the keys of `agent_skills` decide which
    agents get compiled, in file order.
    """
    name: str = ""
    description: Optional[str] = None
    claude_md: Optional[str] = None
    stack: Optional[str] = None             # Take units from stacks/<stack>/skills/
    core_prompt_sets: Dict[str, List[str]] = Field(default_factory=dict)
    ending_prompt_sets: Dict[str, List[str]] = Field(default_factory=dict)
    agent_skills: Dict[str, SkillAssignment] = Field(default_factory=dict)

    @field_validator("core_prompt_sets", "ending_prompt_sets", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("agent_skills", mode="before")
    @classmethod
    def _agents_without_skills(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            # `agent-name:` with nothing below it compiles without skills
            return {name: ({} if skills is None else skills) for name, skills in value.items()}
        return value


class StackConfig(BaseModel):
    """
    A stack: a self-contained unit store plus the agents compiled against it.

    Agents listed without an `agent_skills` entry may invoke every stack skill
    on demand.
    """
    name: str = ""
    description: Optional[str] = None
    claude_md: Optional[str] = None
    agents: List[str] = Field(default_factory=list)
    skills: List[Reference] = Field(default_factory=list)
    agent_skills: Dict[str, SkillAssignment] = Field(default_factory=dict)
    core_prompt_sets: Dict[str, List[str]] = Field(default_factory=dict)
    ending_prompt_sets: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("agents", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("skills", mode="before")
    @classmethod
    def _parse_skills(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [Reference.parse(entry) for entry in value]
        return value

    @field_validator("core_prompt_sets", "ending_prompt_sets", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("agent_skills", mode="before")
    @classmethod
    def _agents_without_skills(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {name: ({} if skills is None else skills) for name, skills in value.items()}
        return value


class AgentConfig(BaseModel):
    """Agent definition merged with its profile skill references."""
    name: str
    title: str
    description: str = ""
    model: Optional[str] = None
    tools: List[str] = Field(default_factory=list)
    core_prompts: Optional[str] = None
    ending_prompts: Optional[str] = None
    output_format: Optional[str] = None
    skills: SkillAssignment = Field(default_factory=SkillAssignment)


# =============================================================================
# Compiled Documents
# =============================================================================

class Section(BaseModel):
    """One section of a compiled document."""
    name: str
    kind: SectionKind = SectionKind.FIXED
    anchor: SectionAnchor = SectionAnchor.BEFORE_UNITS
    content: str = ""
    tag: Optional[str] = None            # Wrap content in <tag>...</tag>
    interpolate: bool = False            # Substitute ${agent.*} variables


class FixedSections(BaseModel):
    """The always-present sections, in their predefined order."""
    sections: List[Section] = Field(default_factory=list)

    @property
    def preamble(self) -> List[Section]:
        return [s for s in self.sections if s.anchor == SectionAnchor.BEFORE_UNITS]

    @property
    def closing(self) -> List[Section]:
        return [s for s in self.sections if s.anchor == SectionAnchor.AFTER_UNITS]


class AgentHeader(BaseModel):
    """Frontmatter fields of a compiled agent document."""
    name: str
    title: str = ""
    description: str = ""
    model: Optional[str] = None
    tools: List[str] = Field(default_factory=list)


class CompiledDocument(BaseModel):
    """Assembled, not yet rendered, document for one agent."""
    agent: AgentHeader
    sections: List[Section] = Field(default_factory=list)

    @property
    def section_names(self) -> List[str]:
        return [s.name for s in self.sections]


# =============================================================================
# Reports
# =============================================================================

class LoadFailure(BaseModel):
    """A unit that could not be loaded and was left out of a document."""
    identifier: str
    path: str
    cause: str


class AgentReport(BaseModel):
    """Outcome of compiling one agent."""
    agent: str
    resolved_count: int = 0
    dynamic_count: int = 0
    unresolved: List[str] = Field(default_factory=list)
    load_failures: List[LoadFailure] = Field(default_factory=list)
    error: Optional[str] = None
    output_path: Optional[str] = None

    @property
    def is_written(self) -> bool:
        return self.error is None and self.output_path is not None


class CompileReport(BaseModel):
    """Aggregated outcome of a compile run across all agents."""
    agents: List[AgentReport] = Field(default_factory=list)
    skills_written: List[str] = Field(default_factory=list)
    commands_written: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def get(self, agent: str) -> Optional[AgentReport]:
        return next((r for r in self.agents if r.agent == agent), None)

    @property
    def unresolved_count(self) -> int:
        return sum(len(r.unresolved) for r in self.agents)

    @property
    def has_failures(self) -> bool:
        return any(r.error or r.load_failures for r in self.agents)

    @property
    def is_success(self) -> bool:
        return not self.has_failures


class ValidationResult(BaseModel):
    """Result of checking a profile before compiling it."""
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors
