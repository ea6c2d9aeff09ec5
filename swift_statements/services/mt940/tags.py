"""
MT940 Tag Catalog

Fixed, read-only table of every tag the parser understands. Each tag carries
a pattern with one named capture group per semantic field, an optional
per-line sub-pattern for payloads made of repeated sub-records, and example
payloads used by the catalog self-test.

Format of a tag marker: ``:`` + two digits or ``NS`` + optional letter + ``:``
at the start of a line, e.g. ``:20:``, ``:60F:``, ``:NS:``.
"""
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Pattern, Tuple

from .errors import TagDidNotMatchError

# Marker at the start of a line; some banks wrap right after the first colon
MARKER_RE = re.compile(
    r'^:\n?(?P<full_tag>(?P<tag>[0-9]{2}|NS)(?P<sub_tag>[A-Z])?):',
    re.MULTILINE,
)

SLUG_WORD_RE = re.compile(r'[A-Z][a-z]+')

BALANCE_RE = re.compile(
    r'(?P<status>[DC])'
    r'(?P<year>[0-9]{2})(?P<month>[0-9]{2})(?P<day>[0-9]{2})'
    r'(?P<currency>[A-Z]{3})'
    r'(?P<amount>[0-9,]{1,16})'
)

DATE_TIME_RE = re.compile(
    r'(?P<year>[0-9]{2})(?P<month>[0-9]{2})(?P<day>[0-9]{2})'
    r'(?P<hour>[0-9]{2})(?P<minute>[0-9]{2})'
    r'(?:(?P<sign>[+-])(?P<offset>[0-9]{4}))?'
)

STATEMENT_NUMBER_RE = re.compile(
    r'(?P<statement_number>[0-9]{1,5})(?:/?(?P<sequence_number>[0-9]{1,5}))?'
)

FLOOR_LIMIT_RE = re.compile(
    r'(?P<currency>[A-Z]{3})(?P<status>[DC ]?)(?P<amount>[0-9,]{1,16})'
)

SUM_ENTRIES_RE = re.compile(
    r'(?P<number>[0-9]*)(?P<currency>[A-Z]{3})(?P<amount>[0-9,]{1,15})'
)

STATEMENT_LINE_RE = re.compile(r'''
    (?P<year>[0-9]{2})                          # 6!n value date (YYMMDD)
    (?P<month>[0-9]{2})
    (?P<day>[0-9]{2})
    (?:(?P<entry_month>[0-9]{2})                # [4!n] entry date (MMDD)
       (?P<entry_day>[0-9]{2}))?
    (?P<status>R?[DC])                          # 2a debit/credit mark
    (?:(?P<funds_code>[A-Z])[\n ]?)?            # [1!a] funds code
    (?P<amount>[0-9,]{1,15})                    # 15d amount
    (?P<id>[A-Z][A-Z0-9 ]{3})?                  # 1!a3!c transaction type id
    (?P<customer_reference>(?:(?!//)[^\n]){0,16})   # 16x customer reference
    (?://(?P<bank_reference>[^\n]{0,23}))?      # [//16x] bank reference
    (?:\n?(?P<extra_details>[^\n]{0,34}))?      # [34x] supplementary details
''', re.VERBOSE)

# Free text, nominally 6 lines of 65 characters but banks do not stick to it
DETAILS_RE = re.compile(r'(?P<transaction_details>[\s\S]*)')

NON_SWIFT_RE = re.compile(
    r'(?P<non_swift>(?:[0-9]{2}[^\n]*\n)*[0-9]{2}[^\n]*|[^\n]*)'
)
NON_SWIFT_LINE_RE = re.compile(r'(?P<ns_id>[0-9]{2})?(?P<ns_data>[^\n]*)')


@dataclass(frozen=True)
class Tag:
    """A labeled MT940 field and the pattern its payload must match."""
    id: str
    name: str
    pattern: Pattern
    sub_pattern: Optional[Pattern] = None
    examples: Tuple[str, ...] = ()
    status: str = ""

    @property
    def slug(self) -> str:
        """Snake-case form of the name, e.g. ``final_opening_balance``."""
        return "_".join(SLUG_WORD_RE.findall(self.name)).lower()

    @property
    def group_names(self) -> Tuple[str, ...]:
        return tuple(self.pattern.groupindex)

    def parse(self, value: str) -> Dict[str, str]:
        """
        Match the whole payload and return every named group.

        Groups that did not participate in the match map to an empty string.
        """
        match = self.pattern.fullmatch(value)
        if match is None:
            raise TagDidNotMatchError(
                f"{self.name} payload does not match: {value!r}",
                tag_id=self.id,
                fragment=value,
            )
        return match.groupdict(default="")


def _balance(tag_id: str, name: str, *examples: str) -> Tag:
    return Tag(id=tag_id, name=name, pattern=BALANCE_RE, examples=examples)


TAGS: Mapping[str, Tag] = MappingProxyType({
    tag.id: tag for tag in (
        Tag(
            id="13",
            name="DateTimeIndication",
            pattern=DATE_TIME_RE,
            examples=(":13:1502191200",),
        ),
        Tag(
            id="13D",
            name="DateTimeIndication",
            pattern=DATE_TIME_RE,
            examples=(":13D:1502191200+0100", ":13D:2302281630-0500"),
        ),
        Tag(
            id="20",
            name="TransactionReferenceNumber",
            pattern=re.compile(r'(?P<transaction_reference>.{0,16})'),
            examples=(":20:0000000030210056", ":20:STATEMENT-001"),
        ),
        Tag(
            id="21",
            name="RelatedReference",
            pattern=re.compile(r'(?P<related_reference>.{0,16})'),
            examples=(":21:NONREF",),
        ),
        Tag(
            id="25",
            name="AccountIdentification",
            pattern=re.compile(r'(?P<account_identification>.{0,35})'),
            examples=(
                ":25:0123456789",
                ":25:NL08DEUT0319809633EUR",
                ":25:DK0230003617012345",
                ":25:FI0281199710012345",
                ":25:GB02DABA30128122012345",
                ":25:IE02DABA95182390012345",
                ":25:NO0281013312345",
                ":25:PL02236000050000004550212345",
                ":25:SE031200000001220012345",
                ":25:FI0734499400012345",
                ":25:81199710012345",
            ),
        ),
        Tag(
            id="28",
            name="StatementNumber",
            pattern=STATEMENT_NUMBER_RE,
            examples=(":28:27/01",),
        ),
        Tag(
            id="28C",
            name="StatementNumber",
            pattern=STATEMENT_NUMBER_RE,
            examples=(":28C:3/00001", ":28C:355/00001", ":28C:5/1", ":28C:00532/001"),
        ),
        Tag(
            id="34",
            name="FloorLimitIndicator",
            pattern=FLOOR_LIMIT_RE,
            examples=(":34:EURC250,00",),
        ),
        Tag(
            id="34F",
            name="FloorLimitIndicator",
            pattern=FLOOR_LIMIT_RE,
            examples=(":34F:EURD1000,00", ":34F:EUR500,"),
        ),
        _balance(
            "60", "OpeningBalance",
            ":60F:C111111EUR960", ":60F:C111118EUR5480,16", ":60F:C230306DKK985623,04",
        ),
        _balance("60F", "FinalOpeningBalance", ":60F:C180220GBP16,00"),
        _balance("60M", "IntermediateOpeningBalance", ":60M:D230228DKK12724930,14"),
        Tag(
            id="61",
            name="StatementLine",
            pattern=STATEMENT_LINE_RE,
            examples=(
                ":61:1112021202D43,6N477NONREF",
                ":61:2303010228CK366336,2NTRFArbi/deposit//1323333800",
                ":61:2401150115D123,45NMSCNONREF//1234567890",
                ":61:200101C500,00NTRFNONREF//B0001\nSupplementary details",
            ),
        ),
        _balance("62", "ClosingBalance", ":62:D180220GBP16,00"),
        _balance("62F", "FinalClosingBalance", ":62F:C230228DKK12724930,14"),
        _balance("62M", "IntermediateClosingBalance", ":62M:C230228DKK12724930,14"),
        _balance("64", "AvailableBalance", ":64:C230228DKK6698733,27", ":64:C180220GBP16,00"),
        _balance("65", "ForwardAvailableBalance", ":65:C230301DKK6698733,27"),
        Tag(
            id="86",
            name="InformationToAccountOwner",
            pattern=DETAILS_RE,
            examples=(
                ":86:/RREF/3825-0031367289 /EREF/1309101116-0000001 /ORDP//NAME/AB AG"
                "/REMI/Inv. 1000217666 - 22.724,00, Inv. 1000217693 - 68.130,00,"
                "inv. 1000217801 - 16.470,00 /RCMT/EUR 100.000,00 /CHRG/DKK 4,00",
                ":86:/IBAN/NL12BANK0123456789/NAME/John Doe\n/REMI/Invoice 2024-001",
            ),
        ),
        Tag(
            id="90D",
            name="SumDebitEntries",
            pattern=SUM_ENTRIES_RE,
            status="D",
            examples=(":90D:75EUR1234,56",),
        ),
        Tag(
            id="90C",
            name="SumCreditEntries",
            pattern=SUM_ENTRIES_RE,
            status="C",
            examples=(":90C:12EUR4321,00",),
        ),
        Tag(
            id="NS",
            name="NonSwift",
            pattern=NON_SWIFT_RE,
            sub_pattern=NON_SWIFT_LINE_RE,
            examples=(":NS:22Statement fixture\n23Second line", ":NS:free text"),
        ),
    )
})


def resolve_tag_id(full_tag: str, base_tag: str, catalog: Mapping[str, Tag] = TAGS) -> str:
    """
    Map a marker id onto a catalog id.

    The full id (``60F``) wins; otherwise the base id (``34F`` -> ``34``) is
    used when catalogued. Unknown ids are returned as-is.
    """
    if full_tag in catalog:
        return full_tag
    if base_tag in catalog:
        return base_tag
    return full_tag
