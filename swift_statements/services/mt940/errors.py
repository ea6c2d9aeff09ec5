"""
MT940 Parsing Errors

Every failure aborts the current parse. Errors carry a kind, the offending
tag id (when known) and the raw fragment that broke the contract; the
fragment is for diagnostics only.
"""
from enum import Enum
from typing import Optional


class MT940ErrorKind(str, Enum):
    """Kinds of statement parsing failure."""
    NO_TAGS_FOUND = "NO_TAGS_FOUND"
    UNKNOWN_TAG = "UNKNOWN_TAG"
    MALFORMED_TAG = "MALFORMED_TAG"
    TAG_DID_NOT_MATCH = "TAG_DID_NOT_MATCH"
    MALFORMED_AMOUNT = "MALFORMED_AMOUNT"
    INVALID_DATE = "INVALID_DATE"
    TAG_DOES_NOT_APPLY = "TAG_DOES_NOT_APPLY"
    CATALOG_CONTRACT = "CATALOG_CONTRACT"


class MT940Error(ValueError):
    """Base error for MT940 parsing."""

    kind: MT940ErrorKind

    def __init__(
        self,
        message: str,
        tag_id: Optional[str] = None,
        fragment: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.tag_id = tag_id
        self.fragment = fragment

    def __str__(self) -> str:
        if self.tag_id:
            return f"[{self.kind.value}] tag {self.tag_id}: {self.message}"
        return f"[{self.kind.value}] {self.message}"


class NoTagsFoundError(MT940Error):
    """The input contains no tag markers at all."""
    kind = MT940ErrorKind.NO_TAGS_FOUND


class UnknownTagError(MT940Error):
    """A marker was found but its id is not in the catalog."""
    kind = MT940ErrorKind.UNKNOWN_TAG


class MalformedTagError(MT940Error):
    """The block does not start with a tag marker."""
    kind = MT940ErrorKind.MALFORMED_TAG


class TagDidNotMatchError(MT940Error):
    """The tag payload does not conform to the tag's pattern."""
    kind = MT940ErrorKind.TAG_DID_NOT_MATCH


class MalformedAmountError(MT940Error):
    """An amount could not be converted to minor units."""
    kind = MT940ErrorKind.MALFORMED_AMOUNT


class InvalidDateError(MT940Error):
    """Date parts do not form a valid calendar date or time."""
    kind = MT940ErrorKind.INVALID_DATE


class TagDoesNotApplyError(MT940Error):
    """No assembler target accepted a parsed tag."""
    kind = MT940ErrorKind.TAG_DOES_NOT_APPLY


class CatalogContractError(MT940Error):
    """A catalog example failed to match or lost a capture group."""
    kind = MT940ErrorKind.CATALOG_CONTRACT
