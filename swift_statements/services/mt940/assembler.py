"""
Transaction Assembler

Walks the ordered tag blocks of one statement and threads them into
``Transaction`` records and the ``Transactions`` envelope.

Each parsed tag is offered to an ordered list of targets (the open
transaction first, then the statement envelope); the first target that
accepts it wins. A tag no target accepts aborts the parse.

State machine:
- NO_OPEN_TRANSACTION: any transaction-level tag opens a transaction
- OPEN_TRANSACTION: a repeated :20: (with a reference already set) or a
  repeated :61: finalizes the open transaction and opens the next one
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from swift_statements.core.config import settings
from .errors import MT940Error, TagDoesNotApplyError
from .lexer import TagBlock
from .matcher import TagResult, match_sub_records, match_tag
from .models import (
    OPENING_ROLES,
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
from .values import parse_date, parse_datetime_indication, resolve_entry_date

logger = logging.getLogger(__name__)

Handler = Callable[[Tag, TagResult], bool]


class AssemblerState(str, Enum):
    """Whether a transaction is currently open."""
    NO_OPEN_TRANSACTION = "NO_OPEN_TRANSACTION"
    OPEN_TRANSACTION = "OPEN_TRANSACTION"


def build_balance(tag: Tag, result: TagResult) -> Balance:
    """Build a balance from any balance-shaped tag; the role comes from the tag name."""
    return Balance(
        role=BalanceRole(tag.slug),
        status=result["status"],
        amount=Amount.from_text(result["amount"], result["status"], result["currency"]),
        date=parse_date(result["year"], result["month"], result["day"]),
    )


class TagTarget(ABC):
    """Something a parsed tag can be applied to."""

    handlers: Dict[str, Handler]

    def apply(self, tag: Tag, result: TagResult) -> bool:
        """Apply the tag, returning False when this target does not take it."""
        handler = self.handlers.get(tag.id)
        if handler is None:
            return False
        return handler(tag, result)

    @abstractmethod
    def describe(self) -> str:
        pass


class TransactionTarget(TagTarget):
    """Routes transaction-level tags to the assembler's open transaction."""

    def __init__(self, assembler: "TransactionAssembler"):
        self.assembler = assembler
        self.handlers = {
            "20": self._transaction_reference,
            "21": self._related_reference,
            "60": self._opening_balance,
            "60F": self._opening_balance,
            "60M": self._opening_balance,
            "61": self._statement_line,
            "62": self._balance,
            "62F": self._balance,
            "62M": self._balance,
            "64": self._balance,
            "65": self._balance,
            "86": self._details,
        }

    def describe(self) -> str:
        return "transaction"

    def _transaction_reference(self, tag: Tag, result: TagResult) -> bool:
        transaction = self.assembler.current
        if transaction is not None and transaction.transaction_reference:
            self.assembler.finalize_transaction()
            transaction = None
        if transaction is None:
            transaction = self.assembler.open_transaction()
        transaction.transaction_reference = result["transaction_reference"]
        return True

    def _related_reference(self, tag: Tag, result: TagResult) -> bool:
        self.assembler.ensure_open().related_reference = result["related_reference"]
        return True

    def _opening_balance(self, tag: Tag, result: TagResult) -> bool:
        transaction = self.assembler.ensure_open()
        # Opening balances precede the movement they open
        if transaction.statement_line is not None:
            return False
        balance = build_balance(tag, result)
        transaction.balances[balance.role] = balance
        self.assembler.note_currency(balance.amount.currency)
        return True

    def _balance(self, tag: Tag, result: TagResult) -> bool:
        balance = build_balance(tag, result)
        self.assembler.ensure_open().balances[balance.role] = balance
        self.assembler.note_currency(balance.amount.currency)
        return True

    def _statement_line(self, tag: Tag, result: TagResult) -> bool:
        transaction = self.assembler.ensure_open()
        line = self._build_statement_line(transaction, result)

        if transaction.statement_line is not None:
            previous = transaction
            self.assembler.finalize_transaction()
            transaction = self.assembler.open_transaction(Transaction(
                transaction_reference=previous.transaction_reference,
                related_reference=previous.related_reference,
                balances={
                    role: balance
                    for role, balance in previous.balances.items()
                    if role in OPENING_ROLES
                },
            ))

        transaction.statement_line = line
        return True

    def _build_statement_line(self, transaction: Transaction, result: TagResult) -> StatementLine:
        value_date = parse_date(result["year"], result["month"], result["day"])
        entry_date = None
        if result["entry_month"]:
            entry_date = resolve_entry_date(
                value_date,
                result["entry_month"],
                result["entry_day"],
                self.assembler.entry_date_wrap_days,
            )

        currency = transaction.currency or self.assembler.currency
        return StatementLine(
            value_date=value_date,
            entry_date=entry_date,
            status=result["status"],
            funds_code=result["funds_code"],
            amount=Amount.from_text(result["amount"], result["status"], currency),
            transaction_type_id=result["id"],
            customer_reference=result["customer_reference"],
            bank_reference=result["bank_reference"],
            extra_details=result["extra_details"],
        )

    def _details(self, tag: Tag, result: TagResult) -> bool:
        transaction = self.assembler.ensure_open()
        text = result["transaction_details"]
        if text:
            transaction.details = f"{transaction.details}\n{text}" if transaction.details else text
        return True


class EnvelopeTarget(TagTarget):
    """Routes statement-level tags to the ``Transactions`` envelope."""

    def __init__(self, assembler: "TransactionAssembler"):
        self.assembler = assembler
        self.transactions = assembler.transactions
        self.handlers = {
            "13": self._date_time_indication,
            "13D": self._date_time_indication,
            "25": self._account_identification,
            "28": self._statement_number,
            "28C": self._statement_number,
            "34": self._floor_limit,
            "34F": self._floor_limit,
            "90D": self._sum_entries,
            "90C": self._sum_entries,
            "NS": self._non_swift,
        }

    def describe(self) -> str:
        return "statement"

    def _account_identification(self, tag: Tag, result: TagResult) -> bool:
        self.transactions.account_identification = result["account_identification"]
        return True

    def _statement_number(self, tag: Tag, result: TagResult) -> bool:
        self.transactions.statement_number = result["statement_number"]
        self.transactions.sequence_number = result["sequence_number"]
        return True

    def _date_time_indication(self, tag: Tag, result: TagResult) -> bool:
        self.transactions.date_time_indication = parse_datetime_indication(**result)
        return True

    def _floor_limit(self, tag: Tag, result: TagResult) -> bool:
        status = result["status"].strip()
        amount = Amount.from_text(result["amount"], status, result["currency"])
        if status in ("", "D"):
            self.transactions.d_floor_limit = amount
        if status in ("", "C"):
            self.transactions.c_floor_limit = amount
        self.assembler.note_currency(amount.currency)
        return True

    def _sum_entries(self, tag: Tag, result: TagResult) -> bool:
        sums = SumEntries(
            status=tag.status,
            amount=Amount.from_text(result["amount"], tag.status, result["currency"]),
            number=int(result["number"]) if result["number"] else None,
        )
        if tag.status == "D":
            self.transactions.sum_debit_entries = sums
        else:
            self.transactions.sum_credit_entries = sums
        return True

    def _non_swift(self, tag: Tag, result: TagResult) -> bool:
        for record in match_sub_records(tag, result["non_swift"]):
            self.transactions.non_swift.append(NonSwiftRecord(**record))
        return True


class TransactionAssembler:
    """
    Build a ``Transactions`` envelope from ordered tag blocks.

    Every call to ``assemble`` starts from a fresh envelope, so one assembler
    can be reused for several statements but not shared between threads.
    """

    def __init__(
        self,
        catalog: Mapping[str, Tag] = TAGS,
        entry_date_wrap_days: Optional[int] = None,
    ):
        self.catalog = catalog
        if entry_date_wrap_days is None:
            entry_date_wrap_days = settings.ENTRY_DATE_WRAP_DAYS
        self.entry_date_wrap_days = entry_date_wrap_days
        self.reset()

    def reset(self) -> None:
        self.state = AssemblerState.NO_OPEN_TRANSACTION
        self.transactions = Transactions()
        self.current: Optional[Transaction] = None
        # First currency seen on a balance or floor limit
        self.currency = ""
        self.targets: List[TagTarget] = [
            TransactionTarget(self),
            EnvelopeTarget(self),
        ]

    def note_currency(self, currency: str) -> None:
        if not self.currency:
            self.currency = currency

    def open_transaction(self, transaction: Optional[Transaction] = None) -> Transaction:
        self.current = transaction if transaction is not None else Transaction()
        self.state = AssemblerState.OPEN_TRANSACTION
        return self.current

    def ensure_open(self) -> Transaction:
        if self.current is None:
            return self.open_transaction()
        return self.current

    def finalize_transaction(self) -> None:
        if self.current is not None and not self.current.is_empty():
            self.transactions.add(self.current)
        self.current = None
        self.state = AssemblerState.NO_OPEN_TRANSACTION

    def apply(self, tag: Tag, result: TagResult) -> None:
        """
        Offer a parsed tag to each target in priority order.

        Raises:
            TagDoesNotApplyError: If no target accepts the tag
        """
        for target in self.targets:
            if target.apply(tag, result):
                return
        raise TagDoesNotApplyError(
            f"Tag :{tag.id}: ({tag.name}) does not apply to "
            + " or ".join(target.describe() for target in self.targets),
            tag_id=tag.id,
        )

    def assemble(self, blocks: Iterable[TagBlock]) -> Transactions:
        """
        Apply every tag block in order and return the finished envelope.

        Any matcher or value parser error aborts the whole parse; the error
        is tagged with the offending tag id and block.
        """
        self.reset()
        for tag_block in blocks:
            try:
                result = match_tag(tag_block.tag_id, tag_block.block, self.catalog)
                self.apply(self.catalog[tag_block.tag_id], result)
            except MT940Error as e:
                if e.tag_id is None:
                    e.tag_id = tag_block.tag_id
                if e.fragment is None:
                    e.fragment = tag_block.block
                self.reset()
                raise

        self.finalize_transaction()
        transactions = self.transactions
        logger.debug(
            "Assembled %d transactions for account %r",
            len(transactions),
            transactions.account_identification,
        )
        return transactions
