"""Size management for the AGENTS.md session log.

Agents append a summary to AGENTS.md at the end of every session, so the file
only grows. Large logs eat into the model's context window when the runtime
loads them. This module measures the log and moves the oldest entries to an
archive file once it passes a size limit.

The log layout is a free-form header followed by entries, oldest first:

    # Agent Session Log
    ...header text...

    ## Session 2025-01-10 09:30
    ...summary...

    ## Session 2025-01-11 14:05
    ...summary...

'## ' lines inside fenced code blocks do not start entries. Line endings are
kept as found, so a CRLF log stays CRLF after pruning.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from opencode_agents.config import SESSION_ARCHIVE_NAME
from opencode_agents.errors import AgentsError, ErrorCategory

# Usage thresholds, as a fraction of the size limit
LOG_WARNING_THRESHOLD = 0.75  # Yellow warning at 75%

DEFAULT_PRUNE_TARGET_RATIO = 0.5
ENTRY_PREFIX = "## "
ENTRY_TITLE_FORMAT = "Session %Y-%m-%d %H:%M"

LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")
FENCE_RE = re.compile(r"^\s{0,3}(```|~~~)")

DEFAULT_LOG_HEADER = """# Agent Session Log

Agents append a short summary here at the end of each session so the next
session can pick up where the last one stopped.
"""

ARCHIVE_HEADER = """# Agent Session Log Archive

Entries moved out of AGENTS.md to keep it within its size limit.
"""


@dataclass
class SessionLog:
    """A parsed session log.

    Attributes:
        header: Text before the first entry
        entries: Entry blocks, each starting with a '## ' heading, oldest first
    """

    header: str = ""
    entries: list[str] = field(default_factory=list)

    def render(self) -> str:
        return self.header + "".join(self.entries)


@dataclass
class LogSizeStatus:
    """Size of a session log relative to its limit."""

    path: Path
    exists: bool
    size_bytes: int
    max_bytes: int
    entry_count: int = 0

    @property
    def usage_percentage(self) -> float:
        if self.max_bytes == 0:
            return 0.0
        return (self.size_bytes / self.max_bytes) * 100

    @property
    def is_warning(self) -> bool:
        """Check if the log has reached the warning threshold (75%)."""
        return self.usage_percentage >= LOG_WARNING_THRESHOLD * 100

    @property
    def is_over_limit(self) -> bool:
        return self.size_bytes > self.max_bytes


@dataclass
class PruneResult:
    """Result of a prune.

    Attributes:
        pruned: Whether any entries were removed (or would be, on a dry run)
        removed_entries: Number of entries moved out of the log
        kept_entries: Number of entries left in the log
        size_before: Log size in bytes before pruning
        size_after: Log size in bytes after pruning
        archive_path: Where removed entries were written, if anywhere
        dry_run: Nothing was written
    """

    pruned: bool
    removed_entries: int
    kept_entries: int
    size_before: int
    size_after: int
    archive_path: Path | None = None
    dry_run: bool = False


def _byte_size(text: str) -> int:
    return len(text.encode("utf-8"))


def _newline_of(content: str) -> str:
    return "\r\n" if "\r\n" in content else "\n"


def _with_blank_line(text: str, newline: str) -> str:
    """Pad non-empty text so whatever follows starts after an empty line."""
    if not text:
        return text
    if not text.endswith("\n"):
        text += newline
    if not text.endswith(("\n\n", "\r\n\r\n")):
        text += newline
    return text


def _scan_lines(content: str) -> Iterator[tuple[int, str, bool]]:
    """Yield (offset, line, in_code) for every line; fence lines count as code."""
    fence: str | None = None
    for match in LINE_RE.finditer(content):
        line = match.group()
        fence_match = FENCE_RE.match(line)
        if fence_match:
            if fence is None:
                fence = fence_match.group(1)
            elif fence_match.group(1) == fence:
                fence = None
            yield match.start(), line, True
        else:
            yield match.start(), line, fence is not None


def _read_log(path: Path) -> str:
    """Read a log as text without translating line endings.

    Raises:
        AgentsError: USER_ERROR when the file is not UTF-8
    """
    try:
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise AgentsError(
            ErrorCategory.USER_ERROR,
            f"Session log is not valid UTF-8 text: {path}",
            suggestion="Re-save the file as UTF-8 and try again.",
            context={"path": str(path)},
        ) from e


def _write_log(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8", newline="")


def parse_session_log(content: str) -> SessionLog:
    """Split log content into header and entries."""
    starts = [
        offset
        for offset, line, in_code in _scan_lines(content)
        if not in_code and line.startswith(ENTRY_PREFIX)
    ]
    if not starts:
        return SessionLog(header=content)

    header = content[: starts[0]]
    bounds = [*starts, len(content)]
    entries = [content[bounds[i] : bounds[i + 1]] for i in range(len(starts))]
    return SessionLog(header=header, entries=entries)


def check_log_size(path: Path, max_bytes: int) -> LogSizeStatus:
    """Measure a session log.

    A missing file is reported with size 0. The size is the on-disk byte count.
    """
    if not path.is_file():
        return LogSizeStatus(path=path, exists=False, size_bytes=0, max_bytes=max_bytes)

    content = _read_log(path)
    return LogSizeStatus(
        path=path,
        exists=True,
        size_bytes=path.stat().st_size,
        max_bytes=max_bytes,
        entry_count=len(parse_session_log(content).entries),
    )


def _append_to_archive(archive_path: Path, entries: list[str], newline: str) -> None:
    if archive_path.exists():
        existing = _read_log(archive_path)
    else:
        existing = ARCHIVE_HEADER.replace("\n", newline)
    existing = _with_blank_line(existing, newline)

    chunk = "".join(entry if entry.endswith("\n") else entry + newline for entry in entries)
    _write_log(archive_path, existing + chunk)


def prune_session_log(
    path: Path,
    max_bytes: int,
    *,
    target_ratio: float = DEFAULT_PRUNE_TARGET_RATIO,
    keep_min: int = 1,
    archive: bool = True,
    dry_run: bool = False,
) -> PruneResult:
    """Remove the oldest entries from a log that is over its size limit.

    Entries are dropped oldest first until the log is at most
    max_bytes * target_ratio. The header and the newest keep_min entries are
    always kept, so the result can still exceed the target.

    Args:
        path: The session log
        max_bytes: Size limit that triggers pruning
        target_ratio: Fraction of max_bytes to prune down to
        keep_min: Minimum number of recent entries to keep
        archive: Append removed entries to AGENTS.archive.md next to the log
        dry_run: Report what would happen without writing

    Returns:
        PruneResult describing the change
    """
    if not 0 < target_ratio <= 1:
        raise ValueError(f"target_ratio must be in (0, 1], got {target_ratio}")
    keep_min = max(keep_min, 0)

    content = _read_log(path)
    size_before = _byte_size(content)
    log = parse_session_log(content)

    if size_before <= max_bytes:
        return PruneResult(
            pruned=False,
            removed_entries=0,
            kept_entries=len(log.entries),
            size_before=size_before,
            size_after=size_before,
            dry_run=dry_run,
        )

    target_bytes = int(max_bytes * target_ratio)
    removable = max(len(log.entries) - keep_min, 0)
    size = size_before
    removed = 0
    while removed < removable and size > target_bytes:
        size -= _byte_size(log.entries[removed])
        removed += 1

    removed_entries = log.entries[:removed]
    pruned_log = SessionLog(header=log.header, entries=log.entries[removed:])

    archive_path = path.with_name(SESSION_ARCHIVE_NAME) if archive and removed else None
    if not dry_run and removed:
        if archive_path is not None:
            _append_to_archive(archive_path, removed_entries, _newline_of(content))
        _write_log(path, pruned_log.render())

    return PruneResult(
        pruned=removed > 0,
        removed_entries=removed,
        kept_entries=len(pruned_log.entries),
        size_before=size_before,
        size_after=size,
        archive_path=archive_path,
        dry_run=dry_run,
    )


def append_session_entry(
    path: Path,
    summary: str,
    *,
    title: str | None = None,
    now: datetime | None = None,
) -> str:
    """Append a session summary to the log, creating the log if needed.

    '## ' headings in the summary (outside code fences) are demoted to '### '
    so the summary stays a single entry. The entry uses the log's existing
    line endings.

    Args:
        path: The session log
        summary: Entry body
        title: Heading text (defaults to "Session YYYY-MM-DD HH:MM")
        now: Timestamp for the default title

    Returns:
        The entry that was written

    Raises:
        ValueError: The summary is empty or the title spans several lines
    """
    if not summary.strip():
        raise ValueError("summary must not be empty")
    if title is not None and ("\n" in title or "\r" in title):
        raise ValueError("title must be a single line")

    existing = _read_log(path) if path.exists() else DEFAULT_LOG_HEADER
    newline = _newline_of(existing)

    body = "".join(
        "#" + line if not in_code and line.startswith(ENTRY_PREFIX) else line
        for _, line, in_code in _scan_lines(summary.strip().replace("\r\n", "\n"))
    )
    heading = title or (now or datetime.now()).strftime(ENTRY_TITLE_FORMAT)
    entry = f"{ENTRY_PREFIX}{heading}\n\n{body}\n".replace("\n", newline)

    path.parent.mkdir(parents=True, exist_ok=True)
    _write_log(path, _with_blank_line(existing, newline) + entry)
    return entry
