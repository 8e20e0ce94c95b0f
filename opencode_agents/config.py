"""Configuration, constants, and environment detection for the CLI."""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

import dotenv
from rich.console import Console

dotenv.load_dotenv()

__version__ = "1.0.0"

# Color scheme
COLORS = {
    "primary": "#10b981",
    "dim": "#6b7280",
    "info": "#3b82f6",
    "success": "#22c55e",
    "warning": "#fbbf24",
    "error": "#ef4444",
}

# Distribution source
DEFAULT_REPO_URL = "https://github.com/shahboura/agents-opencode.git"
DOCS_URL = "https://github.com/shahboura/agents-opencode"

# Install layout
OPENCODE_DIR_NAME = ".opencode"
AGENT_DIR_NAME = "agent"
INSTRUCTIONS_DIR_NAME = "instructions"
PROMPTS_DIR_NAME = "prompts"
REQUIRED_INSTALL_DIRS = (AGENT_DIR_NAME, INSTRUCTIONS_DIR_NAME, PROMPTS_DIR_NAME)
CONFIG_FILE_NAME = "opencode.json"
SESSION_LOG_NAME = "AGENTS.md"
SESSION_ARCHIVE_NAME = "AGENTS.archive.md"
EXAMPLES_DIR_NAME = "examples"
PACKAGE_FILE_NAME = "package.json"
BACKUP_MARKER = ".backup."

DEFAULT_REQUIRED_COMMANDS = ("git", "npm")
DEFAULT_LOG_MAX_BYTES = 50 * 1024

# Rich console instance
# Force UTF-8 encoding on Windows to support the status glyphs
if sys.platform == "win32":
    import io

    console = Console(
        highlight=False, file=io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")
    )
else:
    console = Console(highlight=False)


def find_project_root(start_path: Path | None = None) -> Path | None:
    """Find the project root by looking for .git directory.

    Walks up the directory tree from start_path (or cwd) looking for a .git
    directory, which indicates the project root.

    Args:
        start_path: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root if found, None otherwise.
    """
    current = Path(start_path or Path.cwd()).resolve()

    for parent in [current, *list(current.parents)]:
        if (parent / ".git").exists():
            return parent

    return None


def default_global_config_dir(home: Path | None = None, platform: str | None = None) -> Path:
    """Return the per-user OpenCode configuration directory.

    Args:
        home: Home directory. Defaults to Path.home()
        platform: Platform string as in sys.platform. Defaults to the running one.

    Returns:
        ~/AppData/Local/opencode on Windows, ~/.config/opencode elsewhere
    """
    home = home or Path.home()
    platform = platform or sys.platform
    if platform == "win32":
        return home / "AppData" / "Local" / "opencode"
    return home / ".config" / "opencode"


def _parse_commands(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_REQUIRED_COMMANDS
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _parse_int(raw: str | None, default: int) -> int:
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass
class Settings:
    """Settings and environment detection for opencode-agents.

    Attributes:
        home_dir: The user's home directory
        global_config_dir: Target of a global installation
        repo_url: Git URL the distribution is cloned from
        repo_ref: Optional branch or tag to clone
        required_commands: Executables that must be on PATH before installing
        session_log_max_bytes: Size limit for the AGENTS.md session log
        project_root: Current project root directory (if in a git project)
    """

    home_dir: Path
    global_config_dir: Path
    repo_url: str = DEFAULT_REPO_URL
    repo_ref: str | None = None
    required_commands: tuple[str, ...] = field(default=DEFAULT_REQUIRED_COMMANDS)
    session_log_max_bytes: int = DEFAULT_LOG_MAX_BYTES
    project_root: Path | None = None

    @classmethod
    def from_environment(cls, *, start_path: Path | None = None) -> "Settings":
        """Create settings by detecting the current environment.

        Args:
            start_path: Directory to start project detection from (defaults to cwd)

        Returns:
            Settings instance with detected configuration
        """
        home = Path.home()

        global_dir_override = os.environ.get("OPENCODE_AGENTS_GLOBAL_DIR")
        if global_dir_override:
            global_config_dir = Path(global_dir_override).expanduser()
        else:
            global_config_dir = default_global_config_dir(home)

        return cls(
            home_dir=home,
            global_config_dir=global_config_dir,
            repo_url=os.environ.get("OPENCODE_AGENTS_REPO") or DEFAULT_REPO_URL,
            repo_ref=os.environ.get("OPENCODE_AGENTS_REF") or None,
            required_commands=_parse_commands(
                os.environ.get("OPENCODE_AGENTS_REQUIRED_COMMANDS")
            ),
            session_log_max_bytes=_parse_int(
                os.environ.get("OPENCODE_AGENTS_LOG_MAX_BYTES"), DEFAULT_LOG_MAX_BYTES
            ),
            project_root=find_project_root(start_path),
        )

    @property
    def has_project(self) -> bool:
        """Check if currently in a git project."""
        return self.project_root is not None

    @property
    def docs_url(self) -> str:
        """Browsable URL for the distribution (the repo URL without .git)."""
        return self.repo_url.removesuffix(".git")

    def get_project_install_dir(self, project_dir: Path) -> Path:
        """Get the .opencode directory for a project.

        Args:
            project_dir: Root of the project

        Returns:
            Path to {project_dir}/.opencode
        """
        return project_dir / OPENCODE_DIR_NAME

    def get_session_log_path(self, start_dir: Path | None = None) -> Path:
        """Get the AGENTS.md path for the current project.

        Falls back to the start directory (or cwd) when not inside a git project.

        Returns:
            Path to AGENTS.md, regardless of whether it exists
        """
        base = self.project_root or Path(start_dir or Path.cwd())
        return base / SESSION_LOG_NAME
