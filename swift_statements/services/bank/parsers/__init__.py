"""Bank statement file parsers."""
from .base_parser import BaseStatementParser, ParsedStatement, ParsedTransaction
from .mt940_parser import MT940Parser

__all__ = [
    "BaseStatementParser",
    "ParsedStatement",
    "ParsedTransaction",
    "MT940Parser",
]
