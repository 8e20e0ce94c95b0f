"""YAML front-matter parsing for markdown files."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

FENCE = "---"


class FrontMatterError(ValueError):
    """Raised when a front-matter block exists but is not a YAML mapping."""


@dataclass
class MarkdownDocument:
    """A markdown file split into metadata and body.

    Attributes:
        path: Source file
        metadata: Parsed front-matter (empty when there is none)
        body: Content after the front-matter block
        has_front_matter: Whether a front-matter block was found
    """

    path: Path
    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    has_front_matter: bool = False


def split_front_matter(content: str) -> tuple[str | None, str]:
    """Split a leading front-matter block from the body.

    The block must open with '---' on the first line and close with the
    next '---' line.

    Returns:
        (raw_yaml, body); raw_yaml is None when there is no block
    """
    content = content.removeprefix("\ufeff")
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != FENCE:
        return None, content

    for i in range(1, len(lines)):
        if lines[i].strip() == FENCE:
            raw = "".join(lines[1:i])
            body = "".join(lines[i + 1 :])
            return raw, body

    return None, content


def parse_front_matter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Parse the front-matter block of a markdown string.

    Returns:
        (metadata, body); metadata is None when there is no block and an
        empty dict when the block is empty

    Raises:
        FrontMatterError: The block is invalid YAML or not a mapping
    """
    raw, body = split_front_matter(content)
    if raw is None:
        return None, body

    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML in front-matter: {e}") from e

    if payload is None:
        return {}, body
    if not isinstance(payload, dict):
        raise FrontMatterError(
            f"Front-matter must be a mapping, got {type(payload).__name__}"
        )
    return payload, body


def load_markdown(path: Path) -> MarkdownDocument:
    """Read a markdown file and parse its front-matter.

    Raises:
        FrontMatterError: The block is invalid YAML or not a mapping
        OSError: The file cannot be read
    """
    content = path.read_text(encoding="utf-8")
    metadata, body = parse_front_matter(content)
    return MarkdownDocument(
        path=path,
        metadata=metadata or {},
        body=body,
        has_front_matter=metadata is not None,
    )
