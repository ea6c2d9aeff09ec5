"""
MT940 Domain Records

Mutable while the assembler works on them; handed out as frozen snapshots
(see ``swift_statements.schemas.statement``) once a parse completes.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .values import MINOR_UNIT_DIGITS, parse_amount, sign_for_status


class BalanceRole(str, Enum):
    """Role of a balance-shaped tag; the value is the tag's slug."""
    OPENING_BALANCE = "opening_balance"
    FINAL_OPENING_BALANCE = "final_opening_balance"
    INTERMEDIATE_OPENING_BALANCE = "intermediate_opening_balance"
    CLOSING_BALANCE = "closing_balance"
    FINAL_CLOSING_BALANCE = "final_closing_balance"
    INTERMEDIATE_CLOSING_BALANCE = "intermediate_closing_balance"
    AVAILABLE_BALANCE = "available_balance"
    FORWARD_AVAILABLE_BALANCE = "forward_available_balance"


OPENING_ROLES = (
    BalanceRole.OPENING_BALANCE,
    BalanceRole.FINAL_OPENING_BALANCE,
    BalanceRole.INTERMEDIATE_OPENING_BALANCE,
)

# Lookup order when deriving a statement currency from its balances
CURRENCY_ROLE_ORDER = (
    BalanceRole.FINAL_OPENING_BALANCE,
    BalanceRole.OPENING_BALANCE,
    BalanceRole.INTERMEDIATE_OPENING_BALANCE,
    BalanceRole.AVAILABLE_BALANCE,
    BalanceRole.FORWARD_AVAILABLE_BALANCE,
    BalanceRole.FINAL_CLOSING_BALANCE,
    BalanceRole.CLOSING_BALANCE,
    BalanceRole.INTERMEDIATE_CLOSING_BALANCE,
)


@dataclass(frozen=True)
class Amount:
    """Money as an exact count of minor units (cents)."""
    minor_units: int
    currency: str = ""

    @classmethod
    def from_text(cls, text: str, status: str, currency: str = "") -> "Amount":
        """Parse an MT940 amount and sign it from its debit/credit status."""
        return cls(parse_amount(text) * sign_for_status(status), currency)

    @property
    def value(self) -> Decimal:
        return Decimal(self.minor_units).scaleb(-MINOR_UNIT_DIGITS)

    def __str__(self) -> str:
        return f"{self.value} {self.currency}".strip()


@dataclass(frozen=True)
class Balance:
    """Opening, closing, intermediate or available balance."""
    role: BalanceRole
    status: str
    amount: Amount
    date: date

    def __str__(self) -> str:
        return f"{self.amount} @ {self.date.isoformat()}"


@dataclass(frozen=True)
class StatementLine:
    """One movement on the account (tag 61)."""
    value_date: date
    status: str
    amount: Amount
    entry_date: Optional[date] = None
    funds_code: str = ""
    transaction_type_id: str = ""
    customer_reference: str = ""
    bank_reference: str = ""
    extra_details: str = ""


@dataclass(frozen=True)
class SumEntries:
    """Number and sum of debit or credit entries (tags 90D/90C)."""
    status: str
    amount: Amount
    number: Optional[int] = None


@dataclass(frozen=True)
class NonSwiftRecord:
    """One line of a non-SWIFT (NS) tag."""
    ns_id: str
    ns_data: str


@dataclass
class Transaction:
    """A movement with its reference, balances and free-text details."""
    transaction_reference: str = ""
    related_reference: str = ""
    statement_line: Optional[StatementLine] = None
    balances: Dict[BalanceRole, Balance] = field(default_factory=dict)
    details: str = ""

    @property
    def amount(self) -> Optional[Amount]:
        return self.statement_line.amount if self.statement_line else None

    @property
    def final_opening_balance(self) -> Optional[Balance]:
        return self.balances.get(BalanceRole.FINAL_OPENING_BALANCE)

    @property
    def final_closing_balance(self) -> Optional[Balance]:
        return self.balances.get(BalanceRole.FINAL_CLOSING_BALANCE)

    @property
    def available_balance(self) -> Optional[Balance]:
        return self.balances.get(BalanceRole.AVAILABLE_BALANCE)

    @property
    def forward_available_balance(self) -> Optional[Balance]:
        return self.balances.get(BalanceRole.FORWARD_AVAILABLE_BALANCE)

    @property
    def currency(self) -> str:
        for role in CURRENCY_ROLE_ORDER:
            if role in self.balances:
                return self.balances[role].amount.currency
        return ""

    def is_empty(self) -> bool:
        return not (
            self.transaction_reference
            or self.related_reference
            or self.statement_line
            or self.balances
            or self.details
        )


@dataclass
class Transactions:
    """Statement envelope and the transactions parsed from it."""
    account_identification: str = ""
    statement_number: str = ""
    sequence_number: str = ""
    date_time_indication: Optional[datetime] = None
    d_floor_limit: Optional[Amount] = None
    c_floor_limit: Optional[Amount] = None
    sum_debit_entries: Optional[SumEntries] = None
    sum_credit_entries: Optional[SumEntries] = None
    non_swift: List[NonSwiftRecord] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)

    def add(self, transaction: Transaction) -> None:
        self.transactions.append(transaction)

    @property
    def currency(self) -> str:
        """Currency of the first balance found, falling back to the floor limits."""
        for role in CURRENCY_ROLE_ORDER:
            for transaction in self.transactions:
                balance = transaction.balances.get(role)
                if balance is not None:
                    return balance.amount.currency
        for limit in (self.c_floor_limit, self.d_floor_limit):
            if limit is not None:
                return limit.currency
        return ""

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)
