"""
MT940 Statement Parsing Entry Points

raw text -> lexer -> tag blocks -> matcher -> assembler -> Transactions
"""
from typing import Mapping

from swift_statements.schemas.statement import StatementSchema
from swift_statements.services.logging import statement_logger
from .assembler import TransactionAssembler
from .errors import MT940Error
from .lexer import tokenize
from .models import Transactions
from .tags import TAGS, Tag


def assemble(text: str, catalog: Mapping[str, Tag] = TAGS) -> Transactions:
    """
    Parse raw MT940 text into a fresh ``Transactions`` envelope.

    Raises:
        MT940Error: On the first tag that breaks the format; nothing partial
            is returned
    """
    try:
        blocks = tokenize(text, catalog)
        transactions = TransactionAssembler(catalog).assemble(blocks)
    except MT940Error as e:
        statement_logger.statement_parse_failed(
            kind=e.kind.value,
            error=e.message,
            tag_id=e.tag_id,
        )
        raise

    statement_logger.statement_parsed(
        tag_count=len(blocks),
        transaction_count=len(transactions),
        account_identification=transactions.account_identification or None,
        statement_number=transactions.statement_number or None,
    )
    return transactions


def parse_statement(text: str) -> StatementSchema:
    """Parse raw MT940 text into a frozen statement snapshot."""
    return StatementSchema.model_validate(assemble(text), from_attributes=True)
