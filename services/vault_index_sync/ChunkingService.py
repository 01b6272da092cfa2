"""Markdown aware chunking of notes.

Splits a note body into blocks (headings, paragraphs, lists, code fences,
blockquotes), packs consecutive blocks into chunks under a token budget and
seeds each following chunk with a few trailing words of the previous one.
Blocks that alone exceed the budget are split into sentences and chunked on
their own, apart from neighbouring blocks. Code fences are never split.
"""

import math
import re

from services.vault_index_sync.models.MarkdownBlock import BlockType, MarkdownBlock, PackUnit
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperFrontmatter import strip_frontmatter
from shared.helper.HelperHash import hash_content
from shared.models.chunk import Chunk

PREVIEW_MAX_CHARS = 200          # max characters of a chunk preview
PREVIEW_MIN_WORD_BOUNDARY = 150  # cut at the last space only if it is behind this position
CHARS_PER_TOKEN = 4              # token estimate for English text
TOKENS_TO_WORDS_RATIO = 0.75     # 1 token ≈ 0.75 words, used for overlap

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+\.)\s")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_HEADING_MARKER_RE = re.compile(r"^#+\s+", re.MULTILINE)
_WHITESPACE_RE = re.compile(r"\s+")


def estimate_tokens(text: str) -> int:
    """Approximate the token count of a text as ceil(characters / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def generate_preview(content: str) -> str:
    """Build a single line preview of about 200 characters.

    Heading markers are removed and whitespace collapsed. Longer texts are
    cut at a word boundary when one exists late enough, and get "..." appended.

    Args:
        content (str): The chunk text.

    Returns:
        str: The preview.
    """
    cleaned = _HEADING_MARKER_RE.sub("", content)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    if len(cleaned) <= PREVIEW_MAX_CHARS:
        return cleaned

    truncated = cleaned[:PREVIEW_MAX_CHARS]
    last_space = truncated.rfind(" ")
    if last_space > PREVIEW_MIN_WORD_BOUNDARY:
        return f"{truncated[:last_space]}..."
    return f"{truncated}..."


def extract_overlap(content: str, overlap_tokens: int) -> str:
    """Return the trailing ~overlap_tokens * 0.75 words of content joined by single spaces."""
    if overlap_tokens <= 0:
        return ""
    words = content.split()
    word_count = math.ceil(overlap_tokens * TOKENS_TO_WORDS_RATIO)
    return " ".join(words[-word_count:])


def split_into_sentences(text: str) -> list[str]:
    """Split on ".", "!" or "?" followed by whitespace, keeping the punctuation."""
    return [sentence.strip() for sentence in _SENTENCE_SPLIT_RE.split(text) if sentence.strip()]


class ChunkingService:
    """Turns note content into an ordered list of chunks."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self.default_max_tokens = int(helper_config.get_number_val("VECTOR_CHUNK_SIZE", default=500))
        self.default_overlap_tokens = int(helper_config.get_number_val("VECTOR_CHUNK_OVERLAP", default=50))

    ##########################################
    ############### CHUNKING #################
    ##########################################

    def chunk_markdown(self, content: str, max_tokens: int | None = None, overlap_tokens: int | None = None) -> list[Chunk]:
        """Chunk a note into semantically coherent, overlapping pieces.

        Identical input and options always produce an identical result.

        Args:
            content (str): Raw note content, frontmatter allowed.
            max_tokens (int | None): Token budget per chunk. Defaults to VECTOR_CHUNK_SIZE.
            overlap_tokens (int | None): Overlap between chunks. Defaults to VECTOR_CHUNK_OVERLAP.

        Returns:
            list[Chunk]: Chunks in reading order. Empty for an empty body.

        Raises:
            ValueError: If max_tokens <= 0 or overlap_tokens < 0.
        """
        max_tokens = self.default_max_tokens if max_tokens is None else max_tokens
        overlap_tokens = self.default_overlap_tokens if overlap_tokens is None else overlap_tokens
        if max_tokens <= 0:
            raise ValueError(f"max_tokens must be greater than 0, got {max_tokens}.")
        if overlap_tokens < 0:
            raise ValueError(f"overlap_tokens must not be negative, got {overlap_tokens}.")

        body = strip_frontmatter(content)
        if not body.strip():
            return []

        blocks = self.parse_blocks(body)
        units = self._blocks_to_units(blocks, max_tokens)
        packed = self._pack_units(units, max_tokens, overlap_tokens)

        chunks: list[Chunk] = []
        for text, heading in packed:
            text = text.strip()
            if not text:
                continue
            chunks.append(Chunk(
                content=text,
                preview=generate_preview(text),
                chunk_index=len(chunks),
                heading=heading,
                content_hash=hash_content(text),
            ))
        return chunks

    ##########################################
    ############# BLOCK PARSING ##############
    ##########################################

    def parse_blocks(self, body: str) -> list[MarkdownBlock]:
        """Scan the body line by line into typed blocks.

        Args:
            body (str): Note body without frontmatter.

        Returns:
            list[MarkdownBlock]: Blocks in document order, blank blocks removed.
        """
        blocks: list[MarkdownBlock] = []
        current_heading: str | None = None
        open_type: BlockType | None = None
        open_lines: list[str] = []
        in_code = False

        def flush() -> None:
            nonlocal open_type, open_lines
            if open_type is not None:
                text = "\n".join(open_lines).rstrip()
                if text.strip():
                    blocks.append(MarkdownBlock(type=open_type, content=text, heading=current_heading))
            open_type = None
            open_lines = []

        def open_block(block_type: BlockType, line: str) -> None:
            nonlocal open_type, open_lines
            flush()
            open_type = block_type
            open_lines = [line]

        for line in body.splitlines():
            # fenced code is captured whole, blank lines included
            if line.startswith("```"):
                if in_code:
                    open_lines.append(line)
                    flush()
                    in_code = False
                else:
                    open_block(BlockType.CODE, line)
                    in_code = True
                continue
            if in_code:
                open_lines.append(line)
                continue

            heading_match = _HEADING_RE.match(line)
            if heading_match:
                flush()
                current_heading = heading_match.group(2).strip()
                blocks.append(MarkdownBlock(type=BlockType.HEADING, content=line.rstrip(), heading=current_heading))
                continue

            if not line.strip():
                flush()
                continue

            if line.startswith(">"):
                if open_type == BlockType.BLOCKQUOTE:
                    open_lines.append(line)
                else:
                    open_block(BlockType.BLOCKQUOTE, line)
                continue

            if _LIST_ITEM_RE.match(line):
                if open_type == BlockType.LIST:
                    open_lines.append(line)
                else:
                    open_block(BlockType.LIST, line)
                continue

            # plain text continues any open block (lazy continuation of lists and quotes)
            if open_type is None:
                open_block(BlockType.PARAGRAPH, line)
            else:
                open_lines.append(line)

        # an unclosed fence runs to the end of the note
        flush()
        return blocks

    ##########################################
    ################ PACKING #################
    ##########################################

    def _blocks_to_units(self, blocks: list[MarkdownBlock], max_tokens: int) -> list[PackUnit]:
        """Expand blocks above the budget into sentence units. Code blocks stay whole.

        The sentences of a split block form a run of their own: the open chunk
        is closed before the run, the run starts without an overlap seed, and
        the block after the run starts a new chunk.
        """
        units: list[PackUnit] = []
        after_split = False
        for block in blocks:
            if block.type == BlockType.CODE or estimate_tokens(block.content) <= max_tokens:
                units.append(PackUnit(text=block.content, heading=block.heading, break_before=after_split))
                after_split = False
                continue
            sentences = split_into_sentences(block.content)
            self.logging.debug(
                "Splitting oversized %s block (%d tokens) into %d sentences.",
                block.type.value, estimate_tokens(block.content), len(sentences),
            )
            for position, sentence in enumerate(sentences):
                units.append(PackUnit(
                    text=sentence,
                    heading=block.heading,
                    separator=" ",
                    break_before=position == 0,
                    seed_overlap=position != 0,
                ))
            after_split = True
        return units

    def _pack_units(self, units: list[PackUnit], max_tokens: int, overlap_tokens: int) -> list[tuple[str, str | None]]:
        """Greedily pack units into chunk texts under the budget.

        Each closed chunk seeds the next one with its trailing overlap words,
        unless the seed would push the next unit over the budget.

        Returns:
            list[tuple[str, str | None]]: Chunk text and heading of its last unit.
        """
        packed: list[tuple[str, str | None]] = []
        current: str | None = None
        current_heading: str | None = None

        def start(seed: str, unit: PackUnit) -> str:
            if seed:
                seeded = f"{seed}{unit.separator}{unit.text}"
                if estimate_tokens(seeded) <= max_tokens:
                    return seeded
            return unit.text

        for unit in units:
            if current is None:
                current = unit.text
                current_heading = unit.heading
                continue

            if not unit.break_before:
                candidate = f"{current}{unit.separator}{unit.text}"
                if estimate_tokens(candidate) <= max_tokens:
                    current = candidate
                    current_heading = unit.heading
                    continue

            packed.append((current, current_heading))
            seed = extract_overlap(current, overlap_tokens) if unit.seed_overlap else ""
            current = start(seed, unit)
            current_heading = unit.heading

        if current is not None:
            packed.append((current, current_heading))
        return packed
