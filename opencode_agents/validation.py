"""Front-matter validation for agents, instructions, and prompt templates.

Checks the files an OpenCode runtime loads from a .opencode directory:

- agent/*.md: description, mode (or name), tools, permission
- instructions/*.md: description, applyTo
- prompts/*.md: description, optional agent
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from opencode_agents.config import (
    AGENT_DIR_NAME,
    INSTRUCTIONS_DIR_NAME,
    OPENCODE_DIR_NAME,
    PROMPTS_DIR_NAME,
)
from opencode_agents.frontmatter import FrontMatterError, MarkdownDocument, load_markdown

AGENT_MODES = frozenset({"primary", "subagent", "all"})
PERMISSION_VALUES = frozenset({"allow", "ask", "deny"})


class Severity(Enum):
    """How serious a validation issue is."""

    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single problem found in a file."""

    path: Path
    message: str
    severity: Severity = Severity.ERROR


@dataclass
class ValidationReport:
    """Collected results of a validation run.

    Attributes:
        checked_files: Number of files inspected
        issues: Problems found, in file order
    """

    checked_files: int = 0
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def exit_code(self, strict: bool = False) -> int:
        """Return 1 on errors, or on warnings when strict."""
        if self.errors or (strict and self.warnings):
            return 1
        return 0

    def merge(self, other: "ValidationReport") -> None:
        self.checked_files += other.checked_files
        self.issues.extend(other.issues)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _check_description(doc: MarkdownDocument) -> list[ValidationIssue]:
    if "description" not in doc.metadata:
        return [ValidationIssue(doc.path, "Missing required field: description")]
    if not _is_non_empty_string(doc.metadata["description"]):
        return [ValidationIssue(doc.path, "Field 'description' must be a non-empty string")]
    return []


def _check_tools(path: Path, tools: Any) -> list[ValidationIssue]:
    if isinstance(tools, dict):
        bad = [str(name) for name, enabled in tools.items() if not isinstance(enabled, bool)]
        if bad:
            return [
                ValidationIssue(
                    path, f"Field 'tools' must map tool names to true/false: {', '.join(bad)}"
                )
            ]
        return []
    if isinstance(tools, list):
        if all(_is_non_empty_string(t) for t in tools):
            return []
        return [ValidationIssue(path, "Field 'tools' list must contain tool names")]
    return [ValidationIssue(path, "Field 'tools' must be a mapping or a list")]


def _is_permission(value: Any) -> bool:
    return isinstance(value, str) and value in PERMISSION_VALUES


def _check_permission(path: Path, permission: Any) -> list[ValidationIssue]:
    if not isinstance(permission, dict):
        return [ValidationIssue(path, "Field 'permission' must be a mapping")]

    issues = []
    for tool, rule in permission.items():
        if isinstance(rule, str):
            if not _is_permission(rule):
                issues.append(
                    ValidationIssue(
                        path,
                        f"Invalid permission for '{tool}': {rule!r} "
                        f"(expected one of {', '.join(sorted(PERMISSION_VALUES))})",
                    )
                )
        elif isinstance(rule, dict):
            bad = [str(p) for p, v in rule.items() if not _is_permission(v)]
            if bad:
                issues.append(
                    ValidationIssue(
                        path,
                        f"Invalid permission patterns for '{tool}': {', '.join(bad)}",
                    )
                )
        else:
            issues.append(
                ValidationIssue(path, f"Permission for '{tool}' must be a string or mapping")
            )
    return issues


def validate_agent_document(doc: MarkdownDocument) -> list[ValidationIssue]:
    """Validate an agent definition."""
    issues = _check_description(doc)
    meta = doc.metadata

    if "mode" not in meta and "name" not in meta:
        issues.append(ValidationIssue(doc.path, "Missing required field: mode (or name)"))
    if "mode" in meta and not (isinstance(meta["mode"], str) and meta["mode"] in AGENT_MODES):
        issues.append(
            ValidationIssue(
                doc.path,
                f"Invalid mode {meta['mode']!r} (expected one of {', '.join(sorted(AGENT_MODES))})",
            )
        )
    if "name" in meta and not _is_non_empty_string(meta["name"]):
        issues.append(ValidationIssue(doc.path, "Field 'name' must be a non-empty string"))

    if "tools" in meta:
        issues.extend(_check_tools(doc.path, meta["tools"]))
    else:
        issues.append(ValidationIssue(doc.path, "No 'tools' configured", Severity.WARNING))

    if "permission" in meta:
        issues.extend(_check_permission(doc.path, meta["permission"]))
    else:
        issues.append(ValidationIssue(doc.path, "No 'permission' configured", Severity.WARNING))

    if not doc.body.strip():
        issues.append(ValidationIssue(doc.path, "Agent has no instructions", Severity.WARNING))

    return issues


def validate_instruction_document(doc: MarkdownDocument) -> list[ValidationIssue]:
    """Validate a coding-standard instruction file."""
    issues = _check_description(doc)

    apply_to = doc.metadata.get("applyTo")
    if apply_to is None:
        issues.append(ValidationIssue(doc.path, "Missing required field: applyTo"))
    elif isinstance(apply_to, list):
        if not apply_to or not all(_is_non_empty_string(p) for p in apply_to):
            issues.append(
                ValidationIssue(doc.path, "Field 'applyTo' must list non-empty glob patterns")
            )
    elif not _is_non_empty_string(apply_to):
        issues.append(ValidationIssue(doc.path, "Field 'applyTo' must be a glob pattern"))

    return issues


def validate_prompt_document(doc: MarkdownDocument) -> list[ValidationIssue]:
    """Validate a reusable prompt template."""
    issues = _check_description(doc)
    if "agent" in doc.metadata and not _is_non_empty_string(doc.metadata["agent"]):
        issues.append(ValidationIssue(doc.path, "Field 'agent' must be a non-empty string"))
    return issues


DocumentValidator = Callable[[MarkdownDocument], list[ValidationIssue]]


def validate_file(path: Path, validator: DocumentValidator) -> list[ValidationIssue]:
    """Load a markdown file and run a validator on it.

    Unreadable files and broken front-matter are reported as issues rather
    than raised.
    """
    try:
        doc = load_markdown(path)
    except FrontMatterError as e:
        return [ValidationIssue(path, str(e))]
    except (OSError, UnicodeDecodeError) as e:
        return [ValidationIssue(path, f"Could not read file: {e}")]

    if not doc.has_front_matter:
        return [ValidationIssue(path, "Missing YAML front-matter block")]
    return validator(doc)


def validate_directory(directory: Path, validator: DocumentValidator) -> ValidationReport:
    """Validate every *.md file directly inside a directory, in sorted order."""
    report = ValidationReport()
    if not directory.is_dir():
        return report
    for path in sorted(directory.glob("*.md")):
        report.checked_files += 1
        report.issues.extend(validate_file(path, validator))
    return report


VALIDATORS: dict[str, DocumentValidator] = {
    AGENT_DIR_NAME: validate_agent_document,
    INSTRUCTIONS_DIR_NAME: validate_instruction_document,
    PROMPTS_DIR_NAME: validate_prompt_document,
}


def validate_agents(root: Path) -> ValidationReport:
    """Validate the .opencode tree under root.

    Args:
        root: Directory containing .opencode/ (a project or the repository)

    Returns:
        Combined report for agents, instructions, and prompts
    """
    opencode_dir = root / OPENCODE_DIR_NAME
    report = ValidationReport()

    if not opencode_dir.is_dir():
        report.issues.append(ValidationIssue(opencode_dir, "Missing .opencode directory"))
        return report

    for dir_name, validator in VALIDATORS.items():
        report.merge(validate_directory(opencode_dir / dir_name, validator))

    if not any((opencode_dir / AGENT_DIR_NAME).glob("*.md")):
        report.issues.append(
            ValidationIssue(opencode_dir / AGENT_DIR_NAME, "No agent files found")
        )

    return report
