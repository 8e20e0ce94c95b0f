"""OpenCode Agents installer and maintenance tools."""

from opencode_agents.config import __version__
from opencode_agents.main import cli_main

__all__ = ["__version__", "cli_main"]
