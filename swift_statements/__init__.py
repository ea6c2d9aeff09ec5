"""SWIFT MT940 bank statement parsing."""
from swift_statements.services.mt940.parser import assemble, parse_statement

__version__ = "0.1.0"

__all__ = ["assemble", "parse_statement"]
