"""Setup validation command for opencode-agents.

Validates prerequisites, repository access, and existing installations.
"""

from pathlib import Path

import requests
from rich.panel import Panel
from rich.table import Table

from opencode_agents.config import CONFIG_FILE_NAME, Settings, console
from opencode_agents.errors import AgentsError
from opencode_agents.installer import verify_installation
from opencode_agents.prerequisites import command_exists
from opencode_agents.session_log import check_log_size

PASS = "✓"
FAIL = "✗"
WARN = "⚠"
INFO = "ℹ"

STATUS_STYLES = {
    PASS: "green",
    FAIL: "red",
    WARN: "yellow",
    INFO: "blue",
}


def check_repository_access(repo_url: str, timeout: int = 5) -> tuple[bool, str]:
    """Check that the distribution repository answers over HTTP.

    Returns:
        (reachable, detail)
    """
    url = repo_url.removesuffix(".git")
    if not url.startswith(("http://", "https://")):
        return True, "Not an HTTP URL, skipped"
    try:
        response = requests.head(url, allow_redirects=True, timeout=timeout)
    except requests.RequestException as e:
        return False, str(e)
    if response.status_code >= 400:  # noqa: PLR2004
        return False, f"HTTP {response.status_code}"
    return True, url


def collect_checks(settings: Settings, cwd: Path | None = None) -> list[tuple[str, str, str]]:
    """Run every check.

    Args:
        settings: Current settings
        cwd: Directory treated as the project when not inside a git project

    Returns:
        List of (status, check, details) rows
    """
    results: list[tuple[str, str, str]] = []
    cwd = cwd or Path.cwd()

    # Check 1: prerequisites
    if command_exists("git"):
        results.append((PASS, "Git installed", ""))
    else:
        results.append((FAIL, "Git not found", "Required to download agents"))

    if command_exists("npm"):
        results.append((PASS, "Node.js/npm installed", ""))
    else:
        results.append((WARN, "Node.js/npm not found", "Needed to run OpenCode"))

    # Check 2: repository access
    reachable, detail = check_repository_access(settings.repo_url)
    if reachable:
        results.append((PASS, "Repository reachable", detail))
    else:
        results.append((WARN, "Repository not reachable", detail))

    # Check 3: global installation
    global_dir = settings.global_config_dir
    if global_dir.exists():
        problems = verify_installation(global_dir, global_dir / CONFIG_FILE_NAME)
        if problems:
            results.append((FAIL, "Global installation incomplete", "; ".join(problems)))
        else:
            results.append((PASS, "Global installation verified", str(global_dir)))
    else:
        results.append((INFO, "No global installation", str(global_dir)))

    # Check 4: project installation
    project_dir = settings.project_root or cwd
    install_dir = settings.get_project_install_dir(project_dir)
    if install_dir.exists():
        problems = verify_installation(install_dir, project_dir / CONFIG_FILE_NAME)
        if problems:
            results.append((FAIL, "Project installation incomplete", "; ".join(problems)))
        else:
            results.append((PASS, "Project installation verified", str(project_dir)))
    else:
        results.append((INFO, "No project installation", str(project_dir)))

    # Check 5: session log size
    log_path = settings.get_session_log_path(cwd)
    try:
        status = check_log_size(log_path, settings.session_log_max_bytes)
    except AgentsError as e:
        results.append((WARN, "Session log unreadable", e.message))
        return results

    if not status.exists:
        results.append((INFO, "No session log", str(status.path)))
    elif status.is_over_limit:
        results.append(
            (
                WARN,
                f"Session log over limit ({status.usage_percentage:.0f}%)",
                "Run: opencode-agents context prune",
            )
        )
    else:
        results.append(
            (PASS, f"Session log size OK ({status.usage_percentage:.0f}%)", str(status.path))
        )

    return results


def run_doctor(settings: Settings | None = None) -> int:
    """Run comprehensive setup validation.

    Returns:
        Exit code: 0 if all checks passed, 1 if any failures
    """
    settings = settings or Settings.from_environment()

    console.print()
    console.print(Panel.fit("[bold]OpenCode Agents Setup Validation[/bold]", border_style="cyan"))
    console.print()

    results = collect_checks(settings)
    all_passed = not any(status == FAIL for status, _, _ in results)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Status", style="bold", width=3)
    table.add_column("Check")
    table.add_column("Details", style="dim")

    for status, check, details in results:
        status_style = STATUS_STYLES.get(status, "white")
        table.add_row(
            f"[{status_style}]{status}[/{status_style}]",
            check,
            details,
        )

    console.print(table)
    console.print()

    if all_passed:
        console.print("[bold green]Everything looks good! 🎉[/bold green]")
    else:
        console.print(
            "[bold yellow]Some checks failed. Please review the issues above.[/bold yellow]"
        )

    console.print()
    return 0 if all_passed else 1
