"""UI rendering and display utilities for the CLI."""

from pathlib import Path

from rich import box
from rich.markup import escape
from rich.table import Table

from opencode_agents.config import COLORS, DOCS_URL, console
from opencode_agents.validation import Severity, ValidationReport


def _log(color_key: str, prefix: str, message: str) -> None:
    color = COLORS[color_key]
    console.print(f"[{color}]\\[{prefix}][/{color}] {escape(message)}")


def print_info(message: str) -> None:
    """Print an [INFO] line."""
    _log("info", "INFO", message)


def print_success(message: str) -> None:
    """Print a [SUCCESS] line."""
    _log("success", "SUCCESS", message)


def print_warning(message: str) -> None:
    """Print a [WARNING] line."""
    _log("warning", "WARNING", message)


def print_error(message: str) -> None:
    """Print an [ERROR] line."""
    _log("error", "ERROR", message)


def show_usage() -> None:
    """Show the installer usage banner."""
    console.print()
    console.print("🤖 OpenCode Agents Installation Script", style=f"bold {COLORS['primary']}")
    console.print()
    console.print("[bold]USAGE:[/bold]", style=COLORS["primary"])
    console.print("    opencode-agents [OPTIONS]")
    console.print("    opencode-agents <command> [ARGS]")
    console.print()
    console.print("[bold]OPTIONS:[/bold]", style=COLORS["primary"])
    console.print("    -g, --global                Install agents globally (available in all projects)")
    console.print("    -p, --project DIR           Install agents for specific project directory")
    console.print("    -u, --uninstall             Remove agents from current directory")
    console.print("    -v, --version               Show version information")
    console.print("    -h, --help                  Show this help message")
    console.print("    --source DIR                Install from a local checkout instead of cloning")
    console.print()
    console.print("[bold]COMMANDS:[/bold]", style=COLORS["primary"])
    console.print("    validate agents [ROOT]      Check agent, instruction and prompt front-matter")
    console.print("    validate docs [ROOT]        Check links in markdown documentation")
    console.print("    context check|prune         Check or prune the AGENTS.md session log")
    console.print("    log SUMMARY                 Append a session summary to AGENTS.md")
    console.print("    doctor                      Validate prerequisites and installations")
    console.print()
    console.print("[bold]EXAMPLES:[/bold]", style=COLORS["primary"])
    console.print("    opencode-agents --global                    # Install globally")
    console.print("    opencode-agents --project /path/to/project  # Install for specific project")
    console.print("    opencode-agents --project .                 # Install in current directory")
    console.print("    opencode-agents --uninstall                 # Remove from current directory")
    console.print()
    console.print("[bold]PREREQUISITES:[/bold]", style=COLORS["primary"])
    console.print("    - Git (for downloading)")
    console.print("    - Node.js/npm")
    console.print("    - Internet connection")
    console.print()
    console.print("[bold]FEATURES:[/bold]", style=COLORS["primary"])
    console.print("    ✓ Cross-platform (Windows/Linux/macOS)")
    console.print("    ✓ Automatic backups of existing installations")
    console.print("    ✓ Preserves user session history (AGENTS.md)")
    console.print("    ✓ Post-installation verification")
    console.print("    ✓ Includes examples and learning materials")
    console.print()
    console.print(f"For more information, visit: {DOCS_URL}", style=COLORS["dim"])
    console.print()


def show_next_steps(kind: str, project_path: Path | None = None, docs_url: str = DOCS_URL) -> None:
    """Show follow-up hints after a successful install.

    Args:
        kind: 'global' or 'project'
        project_path: Resolved project directory for project installs
        docs_url: Documentation link printed last
    """
    console.print()
    print_info("🎯 Next steps:")
    if kind == "project" and project_path is not None:
        print_info(f"1. cd {project_path}")
        print_info("2. Run 'opencode' to start using the agents")
        print_info("3. Type '@' to see available agents")
    else:
        print_info("1. Run 'opencode' to start using the agents")
        print_info("2. Type '@' to see available agents")
        print_info("3. Try: @codebase Create a user API endpoint")
    console.print()
    print_info(f"📚 Documentation: {docs_url}")


def render_validation_report(report: ValidationReport, title: str, root: Path | None = None) -> None:
    """Display validation issues in a table followed by a summary line.

    Args:
        report: The report to display
        title: Heading shown above the table
        root: Paths are shown relative to this directory when possible
    """
    console.print()
    console.print(f"[bold]{escape(title)}[/bold]", style=COLORS["primary"])
    console.print()

    if report.issues:
        table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        table.add_column("", width=3)
        table.add_column("File")
        table.add_column("Issue")

        for issue in report.issues:
            if issue.severity == Severity.ERROR:
                status = f"[{COLORS['error']}]✗[/{COLORS['error']}]"
            else:
                status = f"[{COLORS['warning']}]⚠[/{COLORS['warning']}]"

            display_path = issue.path
            if root is not None:
                try:
                    display_path = issue.path.relative_to(root)
                except ValueError:
                    pass

            table.add_row(status, escape(str(display_path)), escape(issue.message))

        console.print(table)

    summary = (
        f"Checked {report.checked_files} file(s): "
        f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
    )
    if report.errors:
        console.print(f"[bold {COLORS['error']}]{summary}[/bold {COLORS['error']}]")
    elif report.warnings:
        console.print(f"[bold {COLORS['warning']}]{summary}[/bold {COLORS['warning']}]")
    else:
        console.print(f"[bold {COLORS['success']}]✓ {summary}[/bold {COLORS['success']}]")
    console.print()
