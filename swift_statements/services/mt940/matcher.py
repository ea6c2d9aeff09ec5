"""
Tag Matcher

Strips the leading ``:id:`` marker from a tag block and matches the rest
against the tag's catalog pattern.
"""
import logging
from typing import Dict, List, Mapping

from .errors import CatalogContractError, MT940Error, MalformedTagError, UnknownTagError
from .tags import MARKER_RE, TAGS, Tag

logger = logging.getLogger(__name__)

TagResult = Dict[str, str]


def strip_marker(block: str) -> str:
    """Remove the tag marker at the start of a block, returning the trimmed payload."""
    marker = MARKER_RE.match(block)
    if marker is None:
        raise MalformedTagError(
            f"Block does not start with a tag marker: {block[:20]!r}",
            fragment=block,
        )
    return block[marker.end():].strip()


def match_tag(tag_id: str, block: str, catalog: Mapping[str, Tag] = TAGS) -> TagResult:
    """
    Parse one tag block into a mapping of field name to captured text.

    Raises:
        MalformedTagError: If the block has no leading marker
        UnknownTagError: If ``tag_id`` is not in the catalog
        TagDidNotMatchError: If the payload does not match the tag's pattern
    """
    payload = strip_marker(block)

    tag = catalog.get(tag_id)
    if tag is None:
        raise UnknownTagError(f"Unknown tag :{tag_id}:", tag_id=tag_id, fragment=block)

    return tag.parse(payload)


def match_sub_records(tag: Tag, payload: str) -> List[TagResult]:
    """Apply the tag's sub-pattern to each physical line of its payload."""
    if tag.sub_pattern is None:
        return []

    records = []
    for line in payload.split("\n"):
        match = tag.sub_pattern.fullmatch(line)
        if match is not None:
            records.append(match.groupdict(default=""))
    return records


def self_test(catalog: Mapping[str, Tag] = TAGS) -> int:
    """
    Match every catalog example and check that all declared groups come back.

    Returns:
        Number of examples verified

    Raises:
        CatalogContractError: If an example fails or a group is missing
    """
    verified = 0
    for tag_id, tag in catalog.items():
        for example in tag.examples:
            try:
                result = match_tag(tag_id, example, catalog)
            except MT940Error as e:
                raise CatalogContractError(
                    f"Example {example!r} failed: {e}",
                    tag_id=tag_id,
                    fragment=example,
                ) from e

            missing = [name for name in tag.group_names if name not in result]
            if missing:
                raise CatalogContractError(
                    f"Example {example!r} is missing groups {missing}",
                    tag_id=tag_id,
                    fragment=example,
                )
            verified += 1

    logger.debug("Verified %d catalog examples across %d tags", verified, len(catalog))
    return verified
