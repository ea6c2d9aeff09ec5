"""
Statement Lexer

Splits raw MT940 text into ordered ``(tag id, block)`` pairs. Each block runs
from its marker up to the next accepted marker or the end of the text.

Free-text tags (``:86:``) can contain wrapped lines that happen to start
like a marker. Once inside such a tag, a following marker only starts a new
tag when it resolves to a catalogued tag id; anything else is folded back
into the free text. Reference and text tags accept nearly any line, so for
those the payload must also conform to the tag's pattern. Structured tags
always resynchronize and a bad payload fails later in the matcher.
"""
import logging
from typing import List, Mapping, NamedTuple

from swift_statements.services.logging import statement_logger
from .errors import MT940Error, NoTagsFoundError
from .matcher import strip_marker
from .tags import MARKER_RE, TAGS, Tag, resolve_tag_id

logger = logging.getLogger(__name__)

FREE_TEXT_TAGS = ("86",)
# Tags whose pattern is loose enough to be mistaken for wrapped free text
LOOSE_TAGS = ("20", "21", "25", "86")
SEPARATOR = "-"


class TagBlock(NamedTuple):
    """A tag id and its raw block, marker included."""
    tag_id: str
    block: str


def normalize(text: str) -> str:
    """Drop carriage returns, surrounding whitespace, blank and separator lines."""
    lines = []
    for line in text.replace("\r", "").split("\n"):
        line = line.strip()
        if not line or line == SEPARATOR:
            continue
        lines.append(line)
    return "\n".join(lines)


def _resynchronizes(tag_id: str, block: str, catalog: Mapping[str, Tag]) -> bool:
    """Whether a marker inside free text really starts a new tag."""
    tag = catalog.get(tag_id)
    if tag is None:
        return False
    if tag_id not in LOOSE_TAGS:
        return True
    try:
        tag.parse(strip_marker(block))
    except MT940Error:
        return False
    return True


def tokenize(text: str, catalog: Mapping[str, Tag] = TAGS) -> List[TagBlock]:
    """
    Split statement text into tag blocks in order of appearance.

    Raises:
        NoTagsFoundError: If the text contains no tag marker
    """
    data = normalize(text)
    candidates = list(MARKER_RE.finditer(data))
    if not candidates:
        raise NoTagsFoundError("No MT940 tag markers found", fragment=data[:40])

    if candidates[0].start() > 0:
        logger.debug("Ignoring %d characters before the first tag", candidates[0].start())

    accepted = []
    for index, match in enumerate(candidates):
        tag_id = resolve_tag_id(match.group("full_tag"), match.group("tag"), catalog)

        if accepted and accepted[-1][0] in FREE_TEXT_TAGS:
            end = candidates[index + 1].start() if index + 1 < len(candidates) else len(data)
            candidate_block = data[match.start():end]
            if not _resynchronizes(tag_id, candidate_block, catalog):
                statement_logger.tag_merged(
                    tag_id=tag_id,
                    into_tag_id=accepted[-1][0],
                    fragment=candidate_block.split("\n", 1)[0],
                )
                continue

        accepted.append((tag_id, match.start()))

    blocks = []
    for position, (tag_id, start) in enumerate(accepted):
        end = accepted[position + 1][1] if position + 1 < len(accepted) else len(data)
        blocks.append(TagBlock(tag_id, data[start:end].rstrip("\n")))

    logger.debug("Tokenized %d tag blocks from %d markers", len(blocks), len(candidates))
    return blocks
