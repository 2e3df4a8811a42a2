"""
Agent Compiler - CLI
====================

    python -m agent_compiler --profile home
    python -m agent_compiler --profile work --verbose --workers 4
    python -m agent_compiler --stack work
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from agent_compiler.compiler import CompilerDriver
from agent_compiler.config import DEFAULT_PROFILE, CompilerSettings, ProjectLayout
from agent_compiler.errors import ConfigError, IndexingError
from agent_compiler.models import CompileReport

logger = logging.getLogger("agent_compiler")


def build_parser(settings: CompilerSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agent_compiler",
        description="Compile agents and skills from a profile or a stack",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compile the default profile into ./.claude
  python -m agent_compiler

  # Compile another profile with four workers
  python -m agent_compiler --profile work --workers 4

  # Compile a stack against its own skills
  python -m agent_compiler --stack work

  # Keep files from previous runs
  python -m agent_compiler --no-clean
        """,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "-p", "--profile",
        default=None,
        help=f"Profile to compile (default: {DEFAULT_PROFILE})",
    )
    source.add_argument(
        "-s", "--stack",
        default=None,
        help="Stack to compile, using stacks/<stack>/skills as the unit store",
    )
    parser.add_argument(
        "--project-root",
        default=".",
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help=f"Output directory (default: <project-root>/{settings.output_dir})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.max_workers,
        help=f"Agents compiled in parallel (default: {settings.max_workers})",
    )
    parser.add_argument(
        "--no-clean",
        action="store_true",
        help="Do not remove previously compiled agents, skills and commands",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def print_report(report: CompileReport) -> None:
    """Print per-agent results and a summary."""
    if report.warnings:
        print("\n⚠️  Warnings:")
        for warning in report.warnings:
            print(f"   - {warning}")

    print("\n📄 Agents:")
    for agent in report.agents:
        marker = "✓" if agent.is_written else "✗"
        print(f"  {marker} {agent.agent}.md ({agent.resolved_count} skills)")
        for raw in agent.unresolved:
            print(f"      unresolved reference: {raw}")
        for failure in agent.load_failures:
            print(f"      not loaded: {failure.identifier} ({failure.cause})")
        if agent.error:
            print(f"      error: {agent.error}")

    print(f"\n📦 Skills: {len(report.skills_written)} written")
    print(f"📜 Commands: {len(report.commands_written)} copied")
    if report.is_success:
        print("\n✨ Done!\n")
    else:
        print("\n❌ Compiled with failures\n")


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = CompilerSettings.from_env()
    except ConfigError as e:
        print(f"\n❌ {e}\n", file=sys.stderr)
        return 1
    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings.max_workers = max(1, args.workers)
    if args.no_clean:
        settings.clean_output = False

    root = Path(args.project_root)
    layout = ProjectLayout(root, args.output_dir or root / settings.output_dir)
    driver = CompilerDriver(layout, settings)

    try:
        if args.stack:
            print(f"\n🚀 Compiling stack: {args.stack}\n")
            report = driver.compile_stack(args.stack)
        else:
            profile = args.profile or DEFAULT_PROFILE
            print(f"\n🚀 Compiling profile: {profile}\n")
            report = driver.compile_profile(profile)
    except (ConfigError, IndexingError) as e:
        logger.error(str(e))
        print(f"\n❌ {e}\n", file=sys.stderr)
        return 1

    print_report(report)
    return 0 if report.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
