"""SWIFT MT940 statement parsing."""
from .assembler import AssemblerState, TransactionAssembler
from .errors import (
    CatalogContractError,
    InvalidDateError,
    MalformedAmountError,
    MalformedTagError,
    MT940Error,
    MT940ErrorKind,
    NoTagsFoundError,
    TagDidNotMatchError,
    TagDoesNotApplyError,
    UnknownTagError,
)
from .lexer import TagBlock, normalize, tokenize
from .matcher import match_sub_records, match_tag, self_test
from .models import (
    Amount,
    Balance,
    BalanceRole,
    NonSwiftRecord,
    StatementLine,
    SumEntries,
    Transaction,
    Transactions,
)
from .tags import TAGS, Tag
from .values import parse_amount, parse_date, parse_datetime_indication, resolve_entry_date

__all__ = [
    "AssemblerState",
    "TransactionAssembler",
    "CatalogContractError",
    "InvalidDateError",
    "MalformedAmountError",
    "MalformedTagError",
    "MT940Error",
    "MT940ErrorKind",
    "NoTagsFoundError",
    "TagDidNotMatchError",
    "TagDoesNotApplyError",
    "UnknownTagError",
    "TagBlock",
    "normalize",
    "tokenize",
    "match_sub_records",
    "match_tag",
    "self_test",
    "Amount",
    "Balance",
    "BalanceRole",
    "NonSwiftRecord",
    "StatementLine",
    "SumEntries",
    "Transaction",
    "Transactions",
    "TAGS",
    "Tag",
    "parse_amount",
    "parse_date",
    "parse_datetime_indication",
    "resolve_entry_date",
]
