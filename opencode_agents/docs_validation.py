"""Link checking for markdown documentation."""

import re
from collections.abc import Iterator
from pathlib import Path
from urllib.parse import unquote

import requests

from opencode_agents.config import BACKUP_MARKER
from opencode_agents.validation import Severity, ValidationIssue, ValidationReport

EXCLUDED_DIRS = frozenset({".git", "node_modules", ".venv", "venv", "__pycache__"})

# Inline links and images: [text](target "optional title")
LINK_RE = re.compile(r"!?\[(?:[^\[\]]|\[[^\]]*\])*\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'(][^)]*)?\)")
HEADING_RE = re.compile(r"^\s{0,3}(#{1,6})\s+(.+?)\s*#*\s*$")
FENCE_RE = re.compile(r"^\s{0,3}(```|~~~)")
INLINE_CODE_RE = re.compile(r"`+[^`]*`+")
SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

EXTERNAL_TIMEOUT_SECONDS = 10


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """Yield markdown files under root in sorted order, skipping tool dirs and backups."""
    for path in sorted(root.rglob("*.md")):
        rel_parts = path.relative_to(root).parts[:-1]
        if any(part in EXCLUDED_DIRS or BACKUP_MARKER in part for part in rel_parts):
            continue
        yield path


def _lines_outside_fences(content: str) -> list[tuple[int, str]]:
    """Return (line_number, text) pairs for lines outside fenced code blocks."""
    lines = []
    fence: str | None = None
    for number, line in enumerate(content.splitlines(), start=1):
        match = FENCE_RE.match(line)
        if match:
            if fence is None:
                fence = match.group(1)
            elif match.group(1) == fence:
                fence = None
            continue
        if fence is None:
            lines.append((number, line))
    return lines


def heading_slug(text: str) -> str:
    """Convert heading text to a GitHub-style anchor slug."""
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)  # keep link text
    text = text.strip().lower()
    text = re.sub(r"[^\w\- ]", "", text)
    return text.replace(" ", "-")


def collect_anchors(content: str) -> set[str]:
    """Return every heading anchor defined in a markdown document."""
    anchors: set[str] = set()
    seen: dict[str, int] = {}
    for _, line in _lines_outside_fences(content):
        match = HEADING_RE.match(line)
        if not match:
            continue
        slug = heading_slug(match.group(2))
        count = seen.get(slug, 0)
        seen[slug] = count + 1
        anchors.add(slug if count == 0 else f"{slug}-{count}")
    return anchors


def extract_links(content: str) -> list[tuple[int, str]]:
    """Return (line_number, target) for each inline link or image outside code."""
    links = []
    for number, line in _lines_outside_fences(content):
        for match in LINK_RE.finditer(INLINE_CODE_RE.sub("", line)):
            links.append((number, match.group(1)))
    return links


def check_external_link(url: str, session: requests.Session) -> str | None:
    """Check that an http(s) URL answers.

    Returns:
        A problem description, or None when the URL is reachable
    """
    try:
        response = session.head(url, allow_redirects=True, timeout=EXTERNAL_TIMEOUT_SECONDS)
        if response.status_code == 405:  # noqa: PLR2004
            response = session.get(
                url, allow_redirects=True, timeout=EXTERNAL_TIMEOUT_SECONDS, stream=True
            )
            response.close()
    except requests.RequestException as e:
        return f"Unreachable link {url}: {e}"
    if response.status_code >= 400:  # noqa: PLR2004
        return f"Broken link {url} (HTTP {response.status_code})"
    return None


class DocsValidator:
    """Validates links across the markdown files under a root directory."""

    def __init__(self, root: Path, *, check_external: bool = False) -> None:
        self.root = root.resolve()
        self.check_external = check_external
        self._anchor_cache: dict[Path, set[str]] = {}
        self._external_cache: dict[str, str | None] = {}
        self._session: requests.Session | None = None

    def _anchors_for(self, path: Path) -> set[str]:
        if path not in self._anchor_cache:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                content = ""
            self._anchor_cache[path] = collect_anchors(content)
        return self._anchor_cache[path]

    def _check_external(self, url: str) -> str | None:
        if url not in self._external_cache:
            if self._session is None:
                self._session = requests.Session()
            self._external_cache[url] = check_external_link(url, self._session)
        return self._external_cache[url]

    def check_link(self, source: Path, target: str) -> ValidationIssue | None:
        """Check one link target found in source."""
        if SCHEME_RE.match(target) or target.startswith("//"):
            if self.check_external and target.startswith(("http://", "https://")):
                problem = self._check_external(target)
                if problem:
                    return ValidationIssue(source, problem, Severity.WARNING)
            return None

        path_part, _, anchor = target.partition("#")
        path_part = unquote(path_part.split("?", 1)[0])

        if not path_part:
            resolved = source
        elif path_part.startswith("/"):
            resolved = (self.root / path_part.lstrip("/")).resolve()
        else:
            resolved = (source.parent / path_part).resolve()

        if not resolved.exists():
            return ValidationIssue(source, f"Broken link: {target}")

        if anchor and resolved.is_file() and resolved.suffix.lower() == ".md":
            if unquote(anchor).lower() not in self._anchors_for(resolved):
                return ValidationIssue(source, f"Missing anchor: {target}", Severity.WARNING)

        return None

    def validate_file(self, path: Path) -> list[ValidationIssue]:
        """Check every link in one markdown file."""
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return [ValidationIssue(path, f"Could not read file: {e}")]

        issues = []
        for line_number, target in extract_links(content):
            issue = self.check_link(path, target)
            if issue is not None:
                issue.message = f"line {line_number}: {issue.message}"
                issues.append(issue)
        return issues

    def run(self) -> ValidationReport:
        """Validate all markdown files under the root."""
        report = ValidationReport()
        try:
            for path in iter_markdown_files(self.root):
                report.checked_files += 1
                report.issues.extend(self.validate_file(path))
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None
        return report


def validate_docs(root: Path, *, check_external: bool = False) -> ValidationReport:
    """Validate links in all markdown files under root."""
    return DocsValidator(root, check_external=check_external).run()
