"""
Base Parser Interface for Bank Statement Files

Every statement file format is turned into a ``ParsedStatement``: the flat
list of ``ParsedTransaction`` rows plus the account it belongs to, so that
callers never need to know which format a bank delivered.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterator, List, Optional


def compact_identifier(value: Optional[str]) -> Optional[str]:
    """IBAN/BIC without spaces, uppercase; empty becomes None."""
    if not value:
        return None
    return value.replace(" ", "").upper() or None


@dataclass
class ParsedTransaction:
    """
    One booked movement, flattened from a statement file.

    ``amount`` is signed: debits and credit reversals are negative.
    """
    booking_date: date
    amount: Decimal
    currency: str
    description: str
    value_date: Optional[date] = None
    transaction_type: Optional[str] = None  # :61: type id, e.g. NTRF
    reference: Optional[str] = None
    end_to_end_reference: Optional[str] = None
    transaction_id: Optional[str] = None  # Statement transaction reference (:20:)
    counterparty_name: Optional[str] = None
    counterparty_iban: Optional[str] = None
    counterparty_bic: Optional[str] = None

    def __post_init__(self):
        self.counterparty_iban = compact_identifier(self.counterparty_iban)
        self.counterparty_bic = compact_identifier(self.counterparty_bic)

    @property
    def is_debit(self) -> bool:
        return self.amount < 0


@dataclass
class ParsedStatement:
    """Rows of one statement file; unpacks as ``(transactions, account_iban)``."""
    transactions: List[ParsedTransaction] = field(default_factory=list)
    account_iban: Optional[str] = None
    account_identification: str = ""
    statement_number: str = ""
    currency: str = ""

    def __iter__(self) -> Iterator:
        return iter((self.transactions, self.account_iban))


class BaseStatementParser(ABC):
    """Interface every statement file format implements."""

    @abstractmethod
    def can_parse(self, file_bytes: bytes, filename: Optional[str] = None) -> bool:
        """Whether the content (and optional filename) looks like this format."""
        pass

    @abstractmethod
    def parse(self, file_bytes: bytes) -> ParsedStatement:
        """
        Parse a statement file into flat transactions.

        The account IBAN is None when the account identification holds none.

        Raises:
            ValueError: If the file cannot be decoded or parsed
        """
        pass

    @abstractmethod
    def get_format_name(self) -> str:
        pass
