#!/usr/bin/env python3
"""Agent History - browse AI coding CLI conversation logs.

Entry point for the CLI application.
"""

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from .config import ViewerConfig
from .providers import ProviderRegistry
from .render import (
    build_message_text,
    build_session_header,
    project_table,
    provider_table,
    session_table,
    unified_project_table,
)

console = Console()

# CLI flag -> provider id whose root it overrides
DIR_FLAGS = {
    "claude_dir": "claude",
    "codex_dir": "codex",
    "code_dir": "code",
    "opencode_dir": "opencode",
}


def setup_logging(debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=debug)],
    )


def build_registry(args) -> ProviderRegistry:
    """Registry from the environment, with per-provider directory flags applied."""
    config = ViewerConfig.from_env()
    for flag, provider_id in DIR_FLAGS.items():
        config = config.with_root(provider_id, getattr(args, flag, None))
    return ProviderRegistry.from_config(config)


def _require_provider(registry: ProviderRegistry, provider_id: str):
    provider = registry.get_provider(provider_id)
    if provider is None:
        known = ", ".join(p.name for p in registry.providers)
        console.print(f"[red]Unknown provider:[/red] {provider_id} (known: {known})")
        sys.exit(1)
    return provider


def cmd_providers(args):
    """List registered providers and whether their storage exists."""
    registry = build_registry(args)
    infos = registry.get_available_providers()

    if not args.status:
        for info in infos:
            mark = "[green]✓[/green]" if info.available else "[red]✗[/red]"
            console.print(f"  {mark} {info.icon} {info.name} ({info.id})")
        return

    console.print(provider_table(infos))
    for provider, info in zip(registry.providers, infos):
        if not info.available:
            continue
        result = provider.scan_projects()
        if result.ok:
            sessions = sum(p.session_count for p in result.items)
            console.print(f"{info.icon} {info.name}: {len(result.items)} projects, {sessions} sessions")
        else:
            console.print(f"{info.icon} {info.name}: [red]{result.error}[/red]")


def cmd_projects(args):
    """List projects, unified across providers or for a single provider."""
    registry = build_registry(args)

    if args.provider:
        provider = _require_provider(registry, args.provider)
        result = provider.scan_projects()
        if not result.ok:
            console.print(f"[red]{provider.display_name}:[/red] {result.error}")
            sys.exit(1)
        if not result.items:
            console.print("No projects found.")
            return
        console.print(project_table(result.items, title=f"{provider.display_name} Projects"))
        return

    projects = registry.get_unified_projects()
    if not projects:
        console.print("No projects found.")
        return
    console.print(unified_project_table(projects))


def cmd_sessions(args):
    """List the sessions of one provider project."""
    registry = build_registry(args)
    provider = _require_provider(registry, args.provider)

    result = provider.scan_sessions(args.project_id)
    if not result.ok:
        console.print(f"[red]{provider.display_name}:[/red] {result.error}")
        sys.exit(1)
    if not result.items:
        console.print(f"No sessions found for project: {args.project_id}")
        sys.exit(1)
    console.print(session_table(result.items, title=f"{provider.display_name} Sessions"))


def cmd_messages(args):
    """Print the transcript of one session."""
    registry = build_registry(args)
    provider = _require_provider(registry, args.provider)

    session = provider.get_session(args.project_id, args.session_id)
    if session is None:
        console.print(f"Session not found: {args.session_id}")
        sys.exit(1)

    result = provider.scan_messages(args.project_id, args.session_id)
    if not result.ok:
        console.print(f"[red]{provider.display_name}:[/red] {result.error}")
        sys.exit(1)

    console.print(build_session_header(session, len(result.items)))
    for i, msg in enumerate(result.items, 1):
        console.print(build_message_text(i, msg, show_thinking=args.thinking))


def main():
    """Main entry point for agent-history CLI."""
    parser = argparse.ArgumentParser(
        description="Browse conversation logs from multiple AI coding assistants",
        prog="agent-history",
    )
    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose logging"
    )
    parser.add_argument("--claude-dir", help="Claude Code data directory")
    parser.add_argument("--codex-dir", help="Codex data directory")
    parser.add_argument("--code-dir", help="Code data directory")
    parser.add_argument("--opencode-dir", help="OpenCode data directory")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    providers_parser = subparsers.add_parser("providers", help="List providers")
    providers_parser.add_argument("--status", "-s", action="store_true", help="Show detailed status")

    projects_parser = subparsers.add_parser("projects", help="List projects")
    projects_parser.add_argument("--provider", "-p", help="Only this provider's projects")

    sessions_parser = subparsers.add_parser("sessions", help="List sessions of a project")
    sessions_parser.add_argument("provider", help="Provider id")
    sessions_parser.add_argument("project_id", help="Provider project id")

    messages_parser = subparsers.add_parser("messages", help="Show a session transcript")
    messages_parser.add_argument("provider", help="Provider id")
    messages_parser.add_argument("project_id", help="Provider project id")
    messages_parser.add_argument("session_id", help="Session id")
    messages_parser.add_argument("--thinking", "-t", action="store_true", help="Include thinking")

    args = parser.parse_args()

    if args.version:
        from . import __version__
        print(f"agent-history {__version__}")
        return

    setup_logging(args.debug)

    if args.command == "providers":
        cmd_providers(args)
    elif args.command == "projects":
        cmd_projects(args)
    elif args.command == "sessions":
        cmd_sessions(args)
    elif args.command == "messages":
        cmd_messages(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
