from enum import Enum

from pydantic import BaseModel


class BlockType(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    CODE = "code"
    BLOCKQUOTE = "blockquote"


class MarkdownBlock(BaseModel):
    """A structural unit of a note body.

    Attributes:
        type:    Kind of block.
        content: Raw text of the block, lines joined by "\\n". Code blocks include their fences.
        heading: Heading context active for the block. For heading blocks, their own text.
    """

    type: BlockType
    content: str
    heading: str | None = None


class PackUnit(BaseModel):
    """Smallest piece the chunk packer places into a chunk.

    Attributes:
        text:      The text of the unit.
        heading:   Heading context of the block the unit comes from.
        separator:    Joiner placed before the unit when it follows other text in
                      the same chunk, "\\n\\n" between blocks and " " between sentences.
        break_before: Close the open chunk before this unit even if it would fit.
        seed_overlap: Start a chunk opened by this unit with the overlap of the previous one.
    """

    text: str
    heading: str | None = None
    separator: str = "\n\n"
    break_before: bool = False
    seed_overlap: bool = True
