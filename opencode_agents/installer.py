"""Installing and removing agent configurations.

GLOBAL INSTALL (~/.config/opencode, or ~/AppData/Local/opencode on Windows):
~/.config/opencode/
├── agent/            # from .opencode/agent
├── instructions/     # from .opencode/instructions
├── prompts/          # from .opencode/prompts
├── opencode.json
└── AGENTS.md         # carried over from the previous install when present

PROJECT INSTALL:
<project>/
├── .opencode/
│   ├── agent/
│   ├── instructions/
│   └── prompts/
├── opencode.json
├── AGENTS.md         # only created when missing
└── examples/
"""

import filecmp
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from opencode_agents.config import (
    AGENT_DIR_NAME,
    BACKUP_MARKER,
    CONFIG_FILE_NAME,
    EXAMPLES_DIR_NAME,
    OPENCODE_DIR_NAME,
    REQUIRED_INSTALL_DIRS,
    SESSION_LOG_NAME,
    Settings,
)
from opencode_agents.errors import AgentsError, ErrorCategory
from opencode_agents.ui import print_error, print_info, print_success, print_warning

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


@dataclass
class InstallResult:
    """Outcome of an install.

    Attributes:
        target: Directory the agent configurations were copied into
        backups: Paths existing content was moved or copied to
        copied_files: Number of files written
        session_log_created: AGENTS.md template was written
        session_log_preserved: An existing AGENTS.md was kept
        problems: Verification problems (empty when the install is valid)
    """

    target: Path
    backups: list[Path] = field(default_factory=list)
    copied_files: int = 0
    session_log_created: bool = False
    session_log_preserved: bool = False
    problems: list[str] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return not self.problems


@dataclass
class UninstallResult:
    """Outcome of an uninstall.

    Attributes:
        found: Whether any installation was detected
        removed: Paths that were deleted
    """

    found: bool
    removed: list[Path] = field(default_factory=list)


def copy_tree(src: Path, dest: Path) -> int:
    """Recursively copy src into dest, overwriting existing files.

    A missing source is a no-op.

    Returns:
        Number of files copied
    """
    if not src.exists():
        return 0

    if src.is_file():
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest)
        return 1

    dest.mkdir(parents=True, exist_ok=True)
    copied = 0
    for item in sorted(src.iterdir()):
        copied += copy_tree(item, dest / item.name)
    return copied


def _backup_name(path: Path, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    candidate = path.with_name(f"{path.name}{BACKUP_MARKER}{stamp}")
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}{BACKUP_MARKER}{stamp}_{counter}")
        counter += 1
    return candidate


def backup_path(path: Path, now: datetime | None = None) -> Path:
    """Move path aside to {path}.backup.{timestamp}.

    Args:
        path: File or directory to move
        now: Timestamp to use (defaults to the current time)

    Returns:
        The backup location
    """
    backup = _backup_name(path, now)
    path.rename(backup)
    return backup


def backup_file(path: Path, now: datetime | None = None) -> Path:
    """Copy a single file to {path}.backup.{timestamp}, leaving the original.

    Returns:
        The backup location
    """
    backup = _backup_name(path, now)
    shutil.copy2(path, backup)
    return backup


def verify_installation(install_dir: Path, config_file: Path) -> list[str]:
    """Check that an installation is complete.

    Args:
        install_dir: Directory holding agent/, instructions/ and prompts/
        config_file: Expected location of opencode.json

    Returns:
        List of problems; empty when the installation is valid
    """
    problems: list[str] = []

    for name in REQUIRED_INSTALL_DIRS:
        if not (install_dir / name).is_dir():
            problems.append(f"Missing required directory: {name}")

    if not config_file.is_file():
        problems.append(f"Missing configuration file: {CONFIG_FILE_NAME}")

    agent_dir = install_dir / AGENT_DIR_NAME
    if agent_dir.is_dir() and not any(agent_dir.glob("*.md")):
        problems.append("No agent files found in agent directory")

    return problems


def _copy_config(repo_dir: Path, config_dest: Path, result: InstallResult) -> None:
    config_src = repo_dir / CONFIG_FILE_NAME
    if not config_src.is_file():
        return
    if config_dest.is_file() and not filecmp.cmp(config_src, config_dest, shallow=False):
        backup = backup_file(config_dest)
        result.backups.append(backup)
        print_info(f"Backed up existing {CONFIG_FILE_NAME} to {backup}")
    shutil.copy2(config_src, config_dest)
    result.copied_files += 1
    print_success("✓ Configuration installed")


def install_global(repo_dir: Path, settings: Settings) -> InstallResult:
    """Install agents into the per-user OpenCode configuration directory.

    An existing directory is moved to a timestamped backup first; its AGENTS.md
    is carried over so session history survives the reinstall.

    Args:
        repo_dir: Validated distribution directory
        settings: Provides the global configuration directory

    Returns:
        InstallResult for the global directory
    """
    print_info("Installing agents globally...")

    global_dir = settings.global_config_dir
    result = InstallResult(target=global_dir)
    previous_install: Path | None = None

    if global_dir.exists():
        try:
            previous_install = backup_path(global_dir)
            result.backups.append(previous_install)
            print_info(f"Backed up existing installation to {previous_install}")
        except OSError as e:
            print_warning(f"Could not backup existing installation: {e}")

    global_dir.mkdir(parents=True, exist_ok=True)

    opencode_src = repo_dir / OPENCODE_DIR_NAME
    result.copied_files += copy_tree(opencode_src, global_dir)
    print_success("✓ Copied all agent configurations")

    _copy_config(repo_dir, global_dir / CONFIG_FILE_NAME, result)

    session_log = global_dir / SESSION_LOG_NAME
    previous_log = previous_install / SESSION_LOG_NAME if previous_install else None
    if previous_log is not None and previous_log.is_file():
        shutil.copy2(previous_log, session_log)
        result.session_log_preserved = True
        print_info("✓ Preserved existing session history")
    elif session_log.exists():
        result.session_log_preserved = True
        print_info("✓ Preserved existing session history")
    elif (repo_dir / SESSION_LOG_NAME).is_file():
        shutil.copy2(repo_dir / SESSION_LOG_NAME, session_log)
        result.session_log_created = True
        print_success("✓ Session log template created")

    result.problems = verify_installation(global_dir, global_dir / CONFIG_FILE_NAME)
    if result.problems:
        for problem in result.problems:
            print_error(problem)
        raise AgentsError(
            ErrorCategory.VERIFICATION_FAILED,
            "❌ Installation verification failed.",
            suggestion=f"Please check {global_dir}.",
            context={"problems": result.problems},
        )

    print_success("✅ Global installation completed successfully!")
    print_info("Agents are now available in all your projects.")
    return result


def install_project(repo_dir: Path, project_dir: Path) -> InstallResult:
    """Install agents into a project directory.

    Args:
        repo_dir: Validated distribution directory
        project_dir: Existing project root

    Returns:
        InstallResult for the project's .opencode directory

    Raises:
        AgentsError: TARGET_NOT_FOUND if project_dir does not exist,
            VERIFICATION_FAILED if the result is incomplete
    """
    print_info(f"Installing agents for project: {project_dir}")

    if not project_dir.is_dir():
        raise AgentsError(
            ErrorCategory.TARGET_NOT_FOUND,
            f"Project directory does not exist: {project_dir}",
            context={"path": str(project_dir)},
        )

    if not (project_dir / ".git").exists():
        print_warning(
            "Project directory is not a git repository. Agent session logging may be limited."
        )

    opencode_dir = project_dir / OPENCODE_DIR_NAME
    result = InstallResult(target=opencode_dir)

    if opencode_dir.is_dir() and any(opencode_dir.iterdir()):
        try:
            backup = backup_path(opencode_dir)
            result.backups.append(backup)
            print_info(f"Backed up existing .opencode to {backup}")
        except OSError as e:
            print_warning(f"Could not backup existing .opencode: {e}")
    opencode_dir.mkdir(parents=True, exist_ok=True)

    result.copied_files += copy_tree(repo_dir / OPENCODE_DIR_NAME, opencode_dir)
    print_success("✓ Copied all agent configurations")

    _copy_config(repo_dir, project_dir / CONFIG_FILE_NAME, result)

    session_log = project_dir / SESSION_LOG_NAME
    if session_log.exists():
        result.session_log_preserved = True
        print_info("✓ Preserved existing session history")
    elif (repo_dir / SESSION_LOG_NAME).is_file():
        shutil.copy2(repo_dir / SESSION_LOG_NAME, session_log)
        result.session_log_created = True
        print_success("✓ Session log template created")

    examples_src = repo_dir / EXAMPLES_DIR_NAME
    if examples_src.is_dir():
        result.copied_files += copy_tree(examples_src, project_dir / EXAMPLES_DIR_NAME)
        print_success("✓ Examples installed for learning")

    result.problems = verify_installation(opencode_dir, project_dir / CONFIG_FILE_NAME)
    if result.problems:
        for problem in result.problems:
            print_error(problem)
        raise AgentsError(
            ErrorCategory.VERIFICATION_FAILED,
            "❌ Installation verification failed. Please check the project directory.",
            context={"problems": result.problems, "path": str(project_dir)},
        )

    print_success("✅ Project installation completed successfully!")
    print_info(f"Agents configured for: {project_dir}")
    print_info(f"Configuration: {project_dir / CONFIG_FILE_NAME}")
    return result


def uninstall(target_dir: Path) -> UninstallResult:
    """Remove agent configurations from a directory.

    Removes opencode.json and the .opencode directory. AGENTS.md is kept.

    Args:
        target_dir: Directory to clean up (normally the current directory)

    Returns:
        UninstallResult describing what was removed
    """
    print_info("Uninstalling OpenCode Agents from current directory...")

    opencode_dir = target_dir / OPENCODE_DIR_NAME
    config_path = target_dir / CONFIG_FILE_NAME

    if not opencode_dir.exists() and not config_path.exists():
        print_warning("No OpenCode Agents installation found in current directory.")
        return UninstallResult(found=False)

    result = UninstallResult(found=True)

    if config_path.exists():
        config_path.unlink()
        result.removed.append(config_path)
        print_success(f"✅ Removed {CONFIG_FILE_NAME}")

    if opencode_dir.exists():
        shutil.rmtree(opencode_dir)
        result.removed.append(opencode_dir)
        print_success("✅ Removed agent configurations")

    print_success("✅ OpenCode Agents uninstalled from current directory!")
    print_info("Agent configurations removed (can be re-installed).")
    return result
