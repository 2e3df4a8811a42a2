"""
Agent Compiler
==============

Compiles prompt-template agents from reusable skill units.

Agents declare the skills they need as references: exact identifiers
("frontend/react @vince") or directory prefixes ("methodology/universal").
The compiler expands and deduplicates those references, loads each skill,
and merges them with the agent's own sections into one Markdown document
per agent.

Pipeline Stages:
    1. Unit Indexer     - Maps unit identifiers to directories in the store
    2. Resolver         - Expands exact and directory references, deduplicates
    3. Unit Loader      - Reads SKILL.md bodies and metadata.yaml
    4. Assembler        - Orders fixed sections and unit bodies
    5. Compiler Driver  - Runs the stages per agent and writes the output

Usage:
    from agent_compiler import CompilerDriver, ProjectLayout

    driver = CompilerDriver(ProjectLayout("."))
    report = driver.compile_profile("home")
    report = driver.compile_stack("work")
"""

from agent_compiler.compiler import CompilerDriver, compile_profile, compile_stack
from agent_compiler.config import CompilerSettings, ProjectLayout
from agent_compiler.indexer import UnitIndex, build_index
from agent_compiler.models import CompiledDocument, CompileReport, Reference, Unit
from agent_compiler.resolver import resolve

__all__ = [
    "CompilerDriver",
    "compile_profile",
    "compile_stack",
    "CompilerSettings",
    "ProjectLayout",
    "UnitIndex",
    "build_index",
    "CompiledDocument",
    "CompileReport",
    "Reference",
    "Unit",
    "resolve",
]
