"""Fetching and inspecting the OpenCode Agents distribution."""

import json
import shutil
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from opencode_agents.config import OPENCODE_DIR_NAME, PACKAGE_FILE_NAME, Settings
from opencode_agents.errors import AgentsError, ErrorCategory
from opencode_agents.ui import print_info, print_warning

TEMP_DIR_PREFIX = "opencode-install-"


class VersionCheckError(ValueError):
    """Raised when package.json exists but cannot be read."""


def clone_repository(repo_url: str, dest: Path, ref: str | None = None) -> None:
    """Shallow-clone the distribution into dest.

    Args:
        repo_url: Git URL to clone
        dest: Empty target directory
        ref: Optional branch or tag

    Raises:
        AgentsError: NETWORK_ERROR when git fails
    """
    print_info("Cloning OpenCode Agents repository...")

    cmd = ["git", "clone", "--depth", "1", "--quiet"]
    if ref:
        cmd += ["--branch", ref]
    cmd += [repo_url, str(dest)]

    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except (subprocess.CalledProcessError, OSError) as e:
        detail = getattr(e, "stderr", None) or str(e)
        raise AgentsError(
            ErrorCategory.NETWORK_ERROR,
            "Failed to clone repository. Please check your internet connection.",
            context={"repo_url": repo_url, "detail": detail.strip()},
        ) from e


def validate_repository(repo_dir: Path) -> None:
    """Check that repo_dir looks like an OpenCode Agents distribution.

    Raises:
        AgentsError: INVALID_REPOSITORY when .opencode is missing
    """
    if not (repo_dir / OPENCODE_DIR_NAME).is_dir():
        raise AgentsError(
            ErrorCategory.INVALID_REPOSITORY,
            "Invalid repository structure. Missing .opencode directory.",
            context={"repo_dir": str(repo_dir)},
        )


def _load_version(repo_dir: Path) -> str | None:
    package_path = repo_dir / PACKAGE_FILE_NAME
    if not package_path.exists():
        return None
    try:
        data = json.loads(package_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        raise VersionCheckError(str(e)) from e
    if not isinstance(data, dict):
        raise VersionCheckError("package.json is not an object")
    version = data.get("version")
    return str(version) if version else None


def read_version(repo_dir: Path) -> str | None:
    """Read the distribution version from package.json.

    Returns:
        The version string, or None if it is missing or unreadable
    """
    try:
        return _load_version(repo_dir)
    except VersionCheckError:
        return None


def describe_version(repo_dir: Path, docs_url: str) -> str:
    """Build the text printed by --version."""
    try:
        version = _load_version(repo_dir)
    except VersionCheckError:
        return "OpenCode Agents (version check failed)"
    if version is None:
        return "OpenCode Agents (version unknown)"
    return f"OpenCode Agents v{version}\nRepository: {docs_url}"


@contextmanager
def checkout_repository(settings: Settings, source: Path | None = None) -> Iterator[Path]:
    """Provide a directory holding the distribution.

    With a local source the directory is used as-is. Otherwise the repository
    is cloned into a temporary directory that is removed afterwards.

    Args:
        settings: Provides repo_url and repo_ref
        source: Optional local checkout to install from

    Yields:
        The validated distribution directory
    """
    if source is not None:
        source = source.resolve()
        if not source.is_dir():
            raise AgentsError(
                ErrorCategory.TARGET_NOT_FOUND,
                f"Source directory does not exist: {source}",
                context={"path": str(source)},
            )
        validate_repository(source)
        yield source
        return

    temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
    try:
        clone_repository(settings.repo_url, temp_dir, settings.repo_ref)
        validate_repository(temp_dir)
        yield temp_dir
    finally:
        try:
            shutil.rmtree(temp_dir)
        except OSError:
            print_warning(f"Failed to clean up temporary directory: {temp_dir}")
