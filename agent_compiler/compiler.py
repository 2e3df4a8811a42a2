"""
Agent Compiler - Compiler Driver
================================

Runs the pipeline for every agent of a profile or stack:

    1. Build the unit index once (an ambiguous identifier stops the run
       before any previous output is removed)
    2. Resolve each agent's precompiled and dynamic references
    3. Load the resolved units (failures are recorded, the unit is omitted)
    4. Assemble fixed sections and unit bodies
    5. Render and write <output>/agents/<agent>.md
    6. Write standalone skills, copy commands and CLAUDE.md

Every skip lands in the CompileReport. Agents are independent of each other
and may be compiled on a thread pool.
"""

import logging
import re
import shutil
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from agent_compiler.assembler import assemble, build_skills_declaration
from agent_compiler.config import (
    CompilerSettings,
    ProjectLayout,
    load_agents_config,
    load_profile_config,
    load_stack_config,
    resolve_agents,
    stack_to_profile_config,
)
from agent_compiler.errors import ConfigError, LoadError, SourceError, WriteError
from agent_compiler.indexer import UnitIndex, build_index
from agent_compiler.loader import UnitLoader
from agent_compiler.models import (
    AgentConfig,
    AgentHeader,
    AgentReport,
    CompiledDocument,
    CompileReport,
    FixedSections,
    LoadFailure,
    ProfileConfig,
    Section,
    SectionAnchor,
    Unit,
)
from agent_compiler.parser import UNIT_FILE
from agent_compiler.renderer import render
from agent_compiler.resolver import resolve
from agent_compiler.validator import validate

logger = logging.getLogger(__name__)

PROMPT_SEPARATOR = "\n\n---\n\n"
NO_EXAMPLES = "## Examples\n\n_No examples defined._"
SLUG_PATTERN = re.compile(r"[^A-Za-z0-9._-]+")


def skill_slug(identifier: str) -> str:
    """Directory name for a unit's standalone output, e.g. frontend-react-vince."""
    return SLUG_PATTERN.sub("-", identifier).strip("-")


def format_prompt_name(name: str) -> str:
    """core-principles → Core Principles"""
    return " ".join(word.capitalize() for word in name.replace("-", " ").split())


class CompilerDriver:
    """
    Compiles agent documents from a project layout.

    The unit index is built per run and handed to every stage explicitly, so
    independent drivers never share state.
    """

    def __init__(
        self,
        layout: ProjectLayout,
        settings: Optional[CompilerSettings] = None,
        renderer: Callable[[CompiledDocument], str] = render,
    ):
        self.layout = layout
        self.settings = settings or CompilerSettings()
        self.renderer = renderer

    # =========================================================================
    # Public API
    # =========================================================================

    def compile_profile(self, profile_name: str) -> CompileReport:
        """
        Load, validate and compile a profile.

        Raises:
            ConfigError: configuration files are unusable or fail validation.
            IndexingError: the unit store contains an ambiguous identifier.
        """
        logger.info(f"[Compiler] Compiling profile: {profile_name}")
        profile = load_profile_config(self.layout.profile_file(profile_name))
        return self._compile_config(profile, self.layout.profile_dir(profile_name))

    def compile_stack(self, stack_id: str) -> CompileReport:
        """
        Load, validate and compile a stack against its own unit store.

        Raises:
            ConfigError: configuration files are unusable or fail validation.
            IndexingError: the stack's unit store contains an ambiguous identifier.
        """
        logger.info(f"[Compiler] Compiling stack: {stack_id}")
        stack = load_stack_config(self.layout.stack_file(stack_id))
        profile = stack_to_profile_config(stack_id, stack)
        return self._compile_config(profile, self.layout.stack_dir(stack_id))

    def _compile_config(self, profile: ProfileConfig, config_dir: Path) -> CompileReport:
        agents_config = load_agents_config(self.layout.agents_file)
        agents = resolve_agents(agents_config, profile)

        validation = validate(self.layout, config_dir, profile, agents)
        for warning in validation.warnings:
            logger.warning(f"[Compiler] {warning}")
        if not validation.valid:
            raise ConfigError(
                "Validation failed:\n" + "\n".join(f"  - {e}" for e in validation.errors)
            )

        index = build_index(self.skills_dir(profile))
        if self.settings.clean_output:
            self.clean_output()

        report = self.compile_all(agents, profile, index=index)
        report.warnings = validation.warnings + report.warnings
        self._write_commands(report)

        if profile.claude_md:
            self._copy_claude_md(config_dir / profile.claude_md, report)
        return report

    def skills_dir(self, profile: Optional[ProfileConfig] = None) -> Path:
        """Unit store for a profile: its stack's store, or the central one."""
        if profile is not None and profile.stack:
            return self.layout.stack_skills_dir(profile.stack)
        return self.layout.skills_dir

    def compile_all(
        self,
        agents: Union[Dict[str, AgentConfig], Iterable[AgentConfig]],
        profile: Optional[ProfileConfig] = None,
        index: Optional[UnitIndex] = None,
    ) -> CompileReport:
        """
        Compile every agent and aggregate the outcome.

        The index is built from the profile's unit store unless one is given.
        Only IndexingError propagates; per-agent problems are reported.
        """
        agent_list = list(agents.values()) if isinstance(agents, dict) else list(agents)
        profile = profile or ProfileConfig()

        if index is None:
            index = build_index(self.skills_dir(profile))
        loader = UnitLoader(index)

        def run(agent: AgentConfig) -> Tuple[AgentReport, List[Unit]]:
            return self.compile_agent(agent, profile, index, loader)

        if self.settings.max_workers > 1 and len(agent_list) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                outcomes = list(executor.map(run, agent_list))
        else:
            outcomes = [run(agent) for agent in agent_list]

        report = CompileReport(agents=[agent_report for agent_report, _ in outcomes])
        units = _unique_units(unit for _, agent_units in outcomes for unit in agent_units)
        self._write_skills(units, index, report)

        logger.info(
            f"[Compiler] {sum(1 for r in report.agents if r.is_written)}/{len(report.agents)} "
            f"agents written, {report.unresolved_count} unresolved references, "
            f"{len(report.skills_written)} skills"
        )
        return report

    def compile_agent(
        self,
        agent: AgentConfig,
        profile: ProfileConfig,
        index: UnitIndex,
        loader: Optional[UnitLoader] = None,
    ) -> Tuple[AgentReport, List[Unit]]:
        """
        Compile one agent and write its document.

        Returns the agent's report and every unit it loaded (precompiled and
        dynamic), for standalone skill output.
        """
        loader = loader or UnitLoader(index)
        report = AgentReport(agent=agent.name)

        precompiled = resolve(agent.skills.precompiled, index)
        dynamic = resolve(agent.skills.dynamic, index)
        report.unresolved = precompiled.unresolved_raw + dynamic.unresolved_raw

        precompiled_units = self._load_units(precompiled.resolved, loader, report)
        dynamic_units = self._load_units(dynamic.resolved, loader, report)
        report.resolved_count = len(precompiled.resolved)
        report.dynamic_count = len(dynamic.resolved)
        loaded = precompiled_units + dynamic_units

        try:
            fixed = self.fixed_sections(agent, profile, precompiled_units, dynamic_units, dynamic.usage)
        except SourceError as e:
            logger.error(f"[Compiler] {agent.name}: {e}")
            report.error = str(e)
            return report, loaded

        document = assemble(precompiled_units, fixed, _header(agent))
        output_path = self.layout.compiled_agents_dir / f"{agent.name}.md"
        try:
            _write_text(output_path, self.renderer(document))
        except WriteError as e:
            logger.error(f"[Compiler] {agent.name}: {e}")
            report.error = str(e)
            return report, loaded

        report.output_path = str(output_path)
        logger.info(
            f"[Compiler] ✓ {agent.name}.md ({report.resolved_count} preloaded, "
            f"{report.dynamic_count} dynamic, {len(report.unresolved)} unresolved)"
        )
        return report, loaded

    def fixed_sections(
        self,
        agent: AgentConfig,
        profile: ProfileConfig,
        precompiled: List[Unit],
        dynamic: List[Unit],
        usage: Optional[Dict[str, str]] = None,
    ) -> FixedSections:
        """
        Read the agent's fixed sections in canonical order.

        Raises:
            SourceError: intro.md, workflow.md or a configured prompt is
                missing, or any agent source cannot be read as UTF-8 text.
        """
        source_dir = self.layout.agent_source_dir(agent.name)
        core_names = profile.core_prompt_sets.get(agent.core_prompts, []) if agent.core_prompts else []
        ending_names = (
            profile.ending_prompt_sets.get(agent.ending_prompts, []) if agent.ending_prompts else []
        )

        before = [
            _fixed("intro", self._read_required(agent, source_dir / "intro.md")),
            _fixed("core-prompts", self._read_prompts(agent, core_names), tag="core_principles"),
            _fixed(
                "critical-requirements",
                self._read_optional(agent, source_dir / "critical-requirements.md"),
                tag="critical_requirements",
            ),
            build_skills_declaration(precompiled, dynamic, usage),
            _fixed("workflow", self._read_required(agent, source_dir / "workflow.md")),
        ]
        output_format = (
            self._read_optional(agent, self.layout.core_prompt(agent.output_format))
            if agent.output_format else ""
        )
        after = [
            _fixed("examples", self._read_optional(agent, source_dir / "examples.md") or NO_EXAMPLES),
            _fixed("output-format", output_format, tag="output_format"),
            _fixed("ending-prompts", self._read_prompts(agent, ending_names)),
            _fixed(
                "critical-reminders",
                self._read_optional(agent, source_dir / "critical-reminders.md"),
                tag="critical_reminders",
            ),
        ]
        for section in after:
            section.anchor = SectionAnchor.AFTER_UNITS

        return FixedSections(sections=[s for s in before + after if s.content.strip()])

    def clean_output(self) -> None:
        """Remove compiled agents, skills and commands from a previous run."""
        for directory in (
            self.layout.compiled_agents_dir,
            self.layout.compiled_skills_dir,
            self.layout.compiled_commands_dir,
        ):
            if directory.exists():
                shutil.rmtree(directory)
                logger.info(f"[Compiler] Cleaned {directory}")

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _load_units(
        self, identifiers: List[str], loader: UnitLoader, report: AgentReport
    ) -> List[Unit]:
        units: List[Unit] = []
        for identifier in identifiers:
            try:
                units.append(loader.load(identifier))
            except LoadError as e:
                logger.error(f"[Compiler] {report.agent}: {e}")
                report.load_failures.append(
                    LoadFailure(identifier=e.identifier, path=e.path, cause=e.cause)
                )
        return units

    def _read_source(self, agent: AgentConfig, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(agent.name, str(path), str(e)) from e

    def _read_required(self, agent: AgentConfig, path: Path) -> str:
        if not path.is_file():
            raise SourceError(agent.name, str(path))
        return self._read_source(agent, path)

    def _read_optional(self, agent: AgentConfig, path: Path) -> str:
        if not path.is_file():
            return ""
        return self._read_source(agent, path)

    def _read_prompts(self, agent: AgentConfig, names: List[str]) -> str:
        contents = [self._read_required(agent, self.layout.core_prompt(name)) for name in names]
        if not contents:
            return ""
        heading = "Included: " + ", ".join(format_prompt_name(n) for n in names)
        return f"<!-- {heading} -->\n\n" + PROMPT_SEPARATOR.join(c.strip() for c in contents)

    def _write_skills(self, units: List[Unit], index: UnitIndex, report: CompileReport) -> None:
        # Distinct identifiers may flatten to one directory name; the first keeps it
        owners: Dict[str, str] = {}
        for unit in units:
            slug = skill_slug(unit.identifier)
            if slug in owners:
                message = (
                    f"Skill {unit.identifier} not written: skills/{slug} "
                    f"already holds {owners[slug]}"
                )
                logger.warning(f"[Compiler] {message}")
                report.warnings.append(message)
                continue
            owners[slug] = unit.identifier

            source = index.location(unit.identifier) / UNIT_FILE
            target = self.layout.compiled_skills_dir / slug / UNIT_FILE
            try:
                _write_text(target, source.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, WriteError) as e:
                message = f"Skill {unit.identifier} not written: {e}"
                logger.error(f"[Compiler] {message}")
                report.warnings.append(message)
                continue
            report.skills_written.append(f"skills/{slug}/{UNIT_FILE}")

    def _write_commands(self, report: CompileReport) -> None:
        commands_dir = self.layout.commands_dir
        if not commands_dir.is_dir():
            logger.debug(f"[Compiler] No commands directory at {commands_dir}")
            return
        for source in sorted(commands_dir.glob("*.md")):
            target = self.layout.compiled_commands_dir / source.name
            try:
                _write_text(target, source.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, WriteError) as e:
                message = f"Command {source.name} not copied: {e}"
                logger.error(f"[Compiler] {message}")
                report.warnings.append(message)
                continue
            report.commands_written.append(f"commands/{source.name}")
        logger.info(f"[Compiler] {len(report.commands_written)} commands")

    def _copy_claude_md(self, source: Path, report: CompileReport) -> None:
        target = self.layout.output_dir.parent / "CLAUDE.md"
        try:
            _write_text(target, source.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, WriteError) as e:
            message = f"CLAUDE.md not copied: {e}"
            logger.error(f"[Compiler] {message}")
            report.warnings.append(message)
            return
        logger.info("[Compiler] ✓ CLAUDE.md")


def _driver(project_root: Union[str, Path], settings: Optional[CompilerSettings]) -> CompilerDriver:
    settings = settings or CompilerSettings.from_env()
    root = Path(project_root)
    return CompilerDriver(ProjectLayout(root, root / settings.output_dir), settings)


def compile_profile(
    project_root: Union[str, Path],
    profile_name: str,
    settings: Optional[CompilerSettings] = None,
) -> CompileReport:
    """Compile a profile with default layout and settings."""
    return _driver(project_root, settings).compile_profile(profile_name)


def compile_stack(
    project_root: Union[str, Path],
    stack_id: str,
    settings: Optional[CompilerSettings] = None,
) -> CompileReport:
    """Compile a stack with default layout and settings."""
    return _driver(project_root, settings).compile_stack(stack_id)


def _header(agent: AgentConfig) -> AgentHeader:
    return AgentHeader(
        name=agent.name,
        title=agent.title,
        description=agent.description,
        model=agent.model,
        tools=list(agent.tools),
    )


def _fixed(name: str, content: str, tag: Optional[str] = None) -> Section:
    return Section(name=name, content=content, tag=tag, interpolate=True)


def _write_text(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise WriteError(str(path), str(e)) from e


def _unique_units(units: Iterable[Unit]) -> List[Unit]:
    seen: Dict[str, Unit] = {}
    for unit in units:
        seen.setdefault(unit.identifier, unit)
    return list(seen.values())
