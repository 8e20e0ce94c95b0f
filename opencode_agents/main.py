"""Main entry point for the opencode-agents CLI.

Installer flags (mutually exclusive):
- --global / --project DIR: fetch the distribution and install it
- --uninstall: remove agent configurations from the current directory
- --version: show the distribution version

Maintenance commands:
- validate agents|docs: front-matter and link checks
- context check|prune: AGENTS.md size management
- log: append a session summary to AGENTS.md
- doctor: validate prerequisites and installations
"""

import argparse
import dataclasses
import sys
from pathlib import Path

from opencode_agents.config import COLORS, Settings, console
from opencode_agents.docs_validation import validate_docs
from opencode_agents.errors import AgentsError, ErrorCategory, ErrorHandler
from opencode_agents.installer import install_global, install_project, uninstall
from opencode_agents.prerequisites import check_prerequisites
from opencode_agents.repository import checkout_repository, describe_version, read_version
from opencode_agents.session_log import (
    DEFAULT_PRUNE_TARGET_RATIO,
    append_session_entry,
    check_log_size,
    prune_session_log,
)
from opencode_agents.ui import (
    print_error,
    print_info,
    print_success,
    print_warning,
    render_validation_report,
    show_next_steps,
    show_usage,
)
from opencode_agents.validation import validate_agents


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _ratio(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {value!r}") from None
    if not 0 < number <= 1:
        raise argparse.ArgumentTypeError("ratio must be greater than 0 and at most 1")
    return number


def _add_log_file_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--file",
        dest="log_file",
        help="Session log to use (default: AGENTS.md in the project root)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="opencode-agents",
        description="OpenCode Agents - install and maintain AI agent configurations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate agent files or docs")
    validate_subparsers = validate_parser.add_subparsers(
        dest="validate_command", help="What to validate"
    )

    agents_parser = validate_subparsers.add_parser(
        "agents", help="Check agent, instruction, and prompt front-matter"
    )
    agents_parser.add_argument(
        "root", nargs="?", default=".", help="Directory containing .opencode/ (default: .)"
    )
    agents_parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as failures"
    )

    docs_parser = validate_subparsers.add_parser("docs", help="Check links in markdown files")
    docs_parser.add_argument(
        "root", nargs="?", default=".", help="Directory to scan (default: .)"
    )
    docs_parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as failures"
    )
    docs_parser.add_argument(
        "--check-external",
        action="store_true",
        help="Also request http(s) links and report unreachable ones",
    )

    # Context command
    context_parser = subparsers.add_parser(
        "context", help="Check or prune the AGENTS.md session log"
    )
    context_subparsers = context_parser.add_subparsers(
        dest="context_command", help="Context command"
    )

    check_parser = context_subparsers.add_parser("check", help="Report session log size")
    _add_log_file_args(check_parser)
    check_parser.add_argument(
        "--max-bytes", type=_positive_int, help="Size limit (default: 51200)"
    )

    prune_parser = context_subparsers.add_parser(
        "prune", help="Move old session entries to AGENTS.archive.md"
    )
    _add_log_file_args(prune_parser)
    prune_parser.add_argument(
        "--max-bytes", type=_positive_int, help="Size limit (default: 51200)"
    )
    prune_parser.add_argument(
        "--target-ratio",
        type=_ratio,
        default=DEFAULT_PRUNE_TARGET_RATIO,
        help="Prune down to this fraction of the limit (default: 0.5)",
    )
    prune_parser.add_argument(
        "--keep", type=_positive_int, default=1, help="Always keep this many recent entries"
    )
    prune_parser.add_argument(
        "--no-archive", action="store_true", help="Discard pruned entries instead of archiving"
    )
    prune_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be pruned without writing"
    )

    # Log command
    log_parser = subparsers.add_parser("log", help="Append a session summary to AGENTS.md")
    log_parser.add_argument("summary", help="Summary text for the entry")
    log_parser.add_argument("--title", help="Entry heading (default: Session <timestamp>)")
    _add_log_file_args(log_parser)

    # Doctor command
    subparsers.add_parser("doctor", help="Validate prerequisites and installations")

    # Installer flags
    action_group = parser.add_mutually_exclusive_group()
    action_group.add_argument(
        "-g",
        "--global",
        dest="install_global",
        action="store_true",
        help="Install agents globally (available in all projects)",
    )
    action_group.add_argument(
        "-p",
        "--project",
        metavar="DIR",
        help="Install agents for specific project directory",
    )
    action_group.add_argument(
        "-u",
        "--uninstall",
        action="store_true",
        help="Remove agents from current directory",
    )
    action_group.add_argument(
        "-v",
        "--version",
        dest="show_version",
        action="store_true",
        help="Show version information",
    )
    parser.add_argument(
        "--source",
        metavar="DIR",
        help="Install from a local checkout instead of cloning the repository",
    )
    parser.add_argument("--repo", help="Repository URL to clone")
    parser.add_argument("--ref", help="Branch or tag to clone")
    parser.add_argument(
        "-h", "--help", dest="show_help", action="store_true", help="Show this help message"
    )

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def _execute_install(args: argparse.Namespace, settings: Settings) -> int:
    """Fetch the distribution and run --global, --project, or --version."""
    source = Path(args.source).expanduser() if args.source else None

    required = settings.required_commands
    if source is not None:
        required = tuple(c for c in required if c != "git")
    check_prerequisites(required)

    if not args.show_version:
        print_info("🚀 Starting OpenCode Agents installation...")

    with checkout_repository(settings, source) as repo_dir:
        if args.show_version:
            console.print(describe_version(repo_dir, settings.docs_url))
            return 0

        version = read_version(repo_dir)
        if version:
            print_info(f"📦 Installing version {version}")

        if args.install_global:
            install_global(repo_dir, settings)
            show_next_steps("global", docs_url=settings.docs_url)
        else:
            project_dir = Path(args.project).expanduser().resolve()
            install_project(repo_dir, project_dir)
            show_next_steps("project", project_dir, docs_url=settings.docs_url)

    return 0


def _resolve_log_path(args: argparse.Namespace, settings: Settings) -> Path:
    if getattr(args, "log_file", None):
        return Path(args.log_file).expanduser()
    return settings.get_session_log_path()


def _execute_context_command(args: argparse.Namespace, settings: Settings) -> int:
    """Execute context check/prune."""
    log_path = _resolve_log_path(args, settings)
    max_bytes = args.max_bytes or settings.session_log_max_bytes

    if args.context_command == "check":
        status = check_log_size(log_path, max_bytes)
        if not status.exists:
            print_warning(f"No session log found at {log_path}")
            return 0

        message = (
            f"{log_path}: {status.size_bytes:,} of {max_bytes:,} bytes "
            f"({status.usage_percentage:.1f}%), {status.entry_count} entries"
        )
        if status.is_over_limit:
            print_error(message)
            print_info("Run 'opencode-agents context prune' to archive old entries.")
            return 1
        if status.is_warning:
            print_warning(message)
        else:
            print_success(message)
        return 0

    if args.context_command == "prune":
        if not log_path.is_file():
            raise AgentsError(
                ErrorCategory.TARGET_NOT_FOUND,
                f"Session log not found: {log_path}",
                context={"path": str(log_path)},
            )

        result = prune_session_log(
            log_path,
            max_bytes,
            target_ratio=args.target_ratio,
            keep_min=args.keep,
            archive=not args.no_archive,
            dry_run=args.dry_run,
        )
        if not result.pruned:
            print_success(
                f"Session log is within its limit ({result.size_before:,} of {max_bytes:,} bytes)"
            )
            return 0

        prefix = "Would remove" if result.dry_run else "Removed"
        print_success(
            f"{prefix} {result.removed_entries} old entries "
            f"({result.size_before:,} → {result.size_after:,} bytes, "
            f"{result.kept_entries} kept)"
        )
        if result.archive_path is not None and not result.dry_run:
            print_info(f"Archived to {result.archive_path}")
        if result.size_after > max_bytes:
            print_warning("Log is still over its limit; the newest entries are too large to remove.")
        return 0

    console.print("[yellow]Please specify a context subcommand: check or prune[/yellow]")
    return 1


def _execute_validate_command(args: argparse.Namespace) -> int:
    """Execute validate agents/docs."""
    if args.validate_command not in ("agents", "docs"):
        console.print("[yellow]Please specify what to validate: agents or docs[/yellow]")
        return 1

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        raise AgentsError(
            ErrorCategory.TARGET_NOT_FOUND,
            f"Directory does not exist: {root}",
            context={"path": str(root)},
        )

    if args.validate_command == "agents":
        report = validate_agents(root)
        render_validation_report(report, "Agent Configuration Validation", root)
    else:
        report = validate_docs(root, check_external=args.check_external)
        render_validation_report(report, "Documentation Link Validation", root)

    return report.exit_code(strict=args.strict)


def _execute_log_command(args: argparse.Namespace, settings: Settings) -> int:
    """Append a session entry."""
    if not args.summary.strip():
        raise AgentsError(ErrorCategory.USER_ERROR, "Session summary must not be empty")
    if args.title is not None and ("\n" in args.title or "\r" in args.title):
        raise AgentsError(ErrorCategory.USER_ERROR, "Session title must be a single line")

    log_path = _resolve_log_path(args, settings)
    append_session_entry(log_path, args.summary, title=args.title)
    print_success(f"Session summary appended to {log_path}")

    status = check_log_size(log_path, settings.session_log_max_bytes)
    if status.is_over_limit:
        print_warning(
            "Session log is over its size limit. Run 'opencode-agents context prune'."
        )
    return 0


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the exit code."""
    args = parse_args(argv)

    settings = Settings.from_environment()
    overrides = {}
    if args.repo:
        overrides["repo_url"] = args.repo
    if args.ref:
        overrides["repo_ref"] = args.ref
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    try:
        if args.show_help:
            show_usage()
            return 0
        if args.command == "validate":
            return _execute_validate_command(args)
        if args.command == "context":
            return _execute_context_command(args, settings)
        if args.command == "log":
            return _execute_log_command(args, settings)
        if args.command == "doctor":
            from opencode_agents.doctor import run_doctor

            return run_doctor(settings)

        # Uninstall does not need the repository
        if args.uninstall:
            uninstall(Path.cwd())
            print_success("Uninstallation completed!")
            return 0

        if args.install_global or args.project or args.show_version:
            return _execute_install(args, settings)

        show_usage()
        return 1
    except (AgentsError, OSError, ValueError) as e:
        report = ErrorHandler().handle(e)
        print_error(report.message)
        if report.suggestion:
            console.print(f"  {report.suggestion}", style=COLORS["dim"])
        return report.exit_code


def cli_main() -> None:
    """Entry point for console script."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - suppress ugly traceback
        console.print("\n\n[yellow]Interrupted[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    cli_main()
