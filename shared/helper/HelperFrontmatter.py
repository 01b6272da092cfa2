"""Parser for the ``---`` delimited metadata header of a markdown note.

Only the subset of YAML that notes use in practice is supported:
``key: value`` scalars (optionally quoted), inline lists ``[a, b]`` and
block lists made of ``- item`` lines. No external YAML dependency.
"""

import re

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_KEY_RE = re.compile(r"^([A-Za-z_][\w\-]*)\s*:(.*)$")

FrontmatterValue = str | list[str]


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _parse_inline_list(value: str) -> list[str]:
    inner = value.strip()[1:-1]
    return [_unquote(item) for item in inner.split(",") if item.strip()]


def _parse_block(block: str) -> dict[str, FrontmatterValue] | None:
    """Parse the text between the fences. Returns None if any line is not understood."""
    metadata: dict[str, FrontmatterValue] = {}
    current_key: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.rstrip()
        if not line.strip() or line.lstrip().startswith("#"):
            continue

        stripped = line.strip()
        # block list item belonging to the previous "key:" line
        if stripped.startswith("- ") or stripped == "-":
            if current_key is None:
                return None
            item = _unquote(stripped[1:])
            existing = metadata.get(current_key)
            if not isinstance(existing, list):
                existing = []
            if item:
                existing.append(item)
            metadata[current_key] = existing
            continue

        match = _KEY_RE.match(line)
        if not match:
            return None
        key, value = match.group(1), match.group(2).strip()
        if value.startswith("[") and value.endswith("]"):
            metadata[key] = _parse_inline_list(value)
            current_key = None
        elif value:
            metadata[key] = _unquote(value)
            current_key = None
        else:
            metadata[key] = ""
            current_key = key

    return metadata


def split_frontmatter(content: str) -> tuple[dict[str, FrontmatterValue] | None, str]:
    """Split a note into its metadata header and body.

    Args:
        content (str): Raw note content.

    Returns:
        tuple[dict | None, str]: The parsed metadata (None when there is no
        header or it cannot be parsed) and the body without the header.
        A malformed header is still removed from the body.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return None, content
    body = content[match.end():]
    return _parse_block(match.group(1) or ""), body


def strip_frontmatter(content: str) -> str:
    """Return ``content`` without its leading metadata header."""
    return split_frontmatter(content)[1]
