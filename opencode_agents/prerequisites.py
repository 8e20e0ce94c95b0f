"""Checks for executables the installer depends on."""

import shutil
from collections.abc import Iterable

from opencode_agents.errors import AgentsError, ErrorCategory

# Message shown for well-known tools; others get a generic message
MISSING_COMMAND_MESSAGES = {
    "git": "Git is required but not installed. Please install git first.",
    "npm": "Node.js/npm is required but not installed. Please install Node.js first.",
}


def command_exists(command: str) -> bool:
    """Check whether an executable is available on PATH."""
    return shutil.which(command) is not None


def missing_commands(commands: Iterable[str]) -> list[str]:
    """Return the commands from the list that are not on PATH, in order."""
    return [command for command in commands if not command_exists(command)]


def check_prerequisites(commands: Iterable[str]) -> None:
    """Ensure every required command is installed.

    Args:
        commands: Executable names, checked in order

    Raises:
        AgentsError: PREREQUISITE_MISSING naming the first missing command
    """
    missing = missing_commands(commands)
    if not missing:
        return

    command = missing[0]
    message = MISSING_COMMAND_MESSAGES.get(
        command, f"{command} is required but not installed. Please install {command} first."
    )
    raise AgentsError(
        ErrorCategory.PREREQUISITE_MISSING,
        message,
        context={"command": command, "missing": missing},
    )
