"""Shared fixtures for opencode-agents unit tests."""

import json
from pathlib import Path

import pytest

AGENT_MD = """---
description: Senior engineer for codebase-wide changes
mode: primary
tools:
  read: true
  edit: true
  bash: true
permission:
  bash: ask
  edit: allow
---

You are a careful senior engineer.
"""

INSTRUCTION_MD = """---
description: Python coding standards
applyTo: "**/*.py"
---

Use type hints.
"""

PROMPT_MD = """---
description: Review the current change
agent: review
---

Review the staged diff.
"""

SESSION_LOG_TEMPLATE = """# Agent Session Log

Agents append a summary here at the end of each session.
"""


def build_distribution(root: Path, version: str | None = "1.2.3") -> Path:
    """Create a minimal OpenCode Agents distribution under root."""
    opencode = root / ".opencode"
    (opencode / "agent").mkdir(parents=True)
    (opencode / "instructions").mkdir()
    (opencode / "prompts").mkdir()
    (opencode / "agent" / "codebase.md").write_text(AGENT_MD, encoding="utf-8")
    (opencode / "instructions" / "python.instructions.md").write_text(
        INSTRUCTION_MD, encoding="utf-8"
    )
    (opencode / "prompts" / "review.md").write_text(PROMPT_MD, encoding="utf-8")

    (root / "opencode.json").write_text(
        json.dumps({"$schema": "https://opencode.ai/config.json"}), encoding="utf-8"
    )
    (root / "AGENTS.md").write_text(SESSION_LOG_TEMPLATE, encoding="utf-8")
    (root / "examples").mkdir()
    (root / "examples" / "README.md").write_text("# Examples\n", encoding="utf-8")

    if version is not None:
        (root / "package.json").write_text(
            json.dumps({"name": "opencode-agents", "version": version}), encoding="utf-8"
        )
    return root


@pytest.fixture
def distribution(tmp_path: Path) -> Path:
    """A local distribution checkout."""
    return build_distribution(tmp_path / "dist")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty git project directory."""
    project_dir = tmp_path / "project"
    (project_dir / ".git").mkdir(parents=True)
    return project_dir
