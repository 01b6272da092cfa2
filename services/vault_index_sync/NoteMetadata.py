"""Title, tag and summary extraction from a note.

Pure derivations of the note content; nothing here is persisted on its own.
A malformed frontmatter header is treated as absent metadata.
"""

import posixpath
import re

from pydantic import BaseModel

from shared.helper.HelperFrontmatter import FrontmatterValue, split_frontmatter

_H1_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
# "#tag", "#multi-word", "#area/sub"; not "# Heading", "##", "page#anchor"
_INLINE_TAG_RE = re.compile(r"(?<![\w#/&])#([A-Za-z_][\w\-/]*)")
_FENCED_CODE_RE = re.compile(r"^```.*?^```[^\n]*$", re.MULTILINE | re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`[^`\n]*`")


class NoteMetadata(BaseModel):
    """Metadata stored alongside every point of a note."""

    title: str
    tags: list[str] = []
    summary: str = ""


def _as_string(value: FrontmatterValue | None) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def extract_title(path: str, content: str) -> str:
    """Resolve the title of a note.

    Precedence: frontmatter "title", first top level heading of the body,
    file name without the ".md" suffix.

    Args:
        path (str): Vault relative note path.
        content (str): Raw note content.

    Returns:
        str: The title, never empty for a non-empty path.
    """
    metadata, body = split_frontmatter(content)
    title = _as_string((metadata or {}).get("title"))
    if title:
        return title

    h1_match = _H1_RE.search(body)
    if h1_match:
        return h1_match.group(1).strip()

    filename = posixpath.basename(path.replace("\\", "/")) or path
    return filename[:-3] if filename.endswith(".md") else filename


def extract_tags(content: str) -> list[str]:
    """Collect frontmatter tags and inline "#tags" of the body, deduplicated in order of appearance.

    Args:
        content (str): Raw note content.

    Returns:
        list[str]: Tags without the leading "#".
    """
    metadata, body = split_frontmatter(content)
    tags: list[str] = []

    declared = (metadata or {}).get("tags")
    if isinstance(declared, str):
        declared = [tag for tag in re.split(r"[,\s]+", declared) if tag]
    for tag in declared or []:
        tag = tag.strip().lstrip("#")
        if tag:
            tags.append(tag)

    searchable = _INLINE_CODE_RE.sub("", _FENCED_CODE_RE.sub("", body))
    for match in _INLINE_TAG_RE.finditer(searchable):
        tag = match.group(1).rstrip("/")
        if tag:
            tags.append(tag)

    return list(dict.fromkeys(tags))


def extract_summary(content: str) -> str:
    """Return the frontmatter "summary" field, or an empty string."""
    metadata, _ = split_frontmatter(content)
    return _as_string((metadata or {}).get("summary"))


def extract_metadata(path: str, content: str) -> NoteMetadata:
    """Extract title, tags and summary in one go."""
    return NoteMetadata(
        title=extract_title(path, content),
        tags=extract_tags(content),
        summary=extract_summary(content),
    )
