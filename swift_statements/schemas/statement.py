"""
Statement Schemas

Frozen pydantic snapshots of a parsed MT940 statement:
- Amounts, balances and statement lines
- Transactions
- Statement envelope
"""
import datetime as dt
from decimal import Decimal
from typing import Optional, Tuple
from pydantic import BaseModel, Field, field_validator

from swift_statements.services.mt940.models import BalanceRole


class AmountSchema(BaseModel):
    """Exact money amount."""
    minor_units: int = Field(..., description="Signed amount in minor units (cents)")
    currency: str = Field(default="", description="ISO 4217 currency code")
    value: Decimal = Field(..., description="Signed amount in major units")

    class Config:
        from_attributes = True
        frozen = True


class BalanceSchema(BaseModel):
    """Balance of any role."""
    role: BalanceRole
    status: str
    amount: AmountSchema
    date: dt.date

    class Config:
        from_attributes = True
        frozen = True


class StatementLineSchema(BaseModel):
    """Movement details from a :61: tag."""
    value_date: dt.date
    entry_date: Optional[dt.date] = None
    status: str
    funds_code: str = ""
    amount: AmountSchema
    transaction_type_id: str = ""
    customer_reference: str = ""
    bank_reference: str = ""
    extra_details: str = ""

    class Config:
        from_attributes = True
        frozen = True


class TransactionSchema(BaseModel):
    """One transaction of a statement."""
    transaction_reference: str = ""
    related_reference: str = ""
    statement_line: Optional[StatementLineSchema] = None
    balances: Tuple[BalanceSchema, ...] = Field(default=(), description="Balances in the order they were applied")
    details: str = ""

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("balances", mode="before")
    @classmethod
    def balances_from_roles(cls, v):
        if isinstance(v, dict):
            return tuple(v.values())
        return v

    def balance(self, role: BalanceRole) -> Optional[BalanceSchema]:
        for balance in self.balances:
            if balance.role == role:
                return balance
        return None


class SumEntriesSchema(BaseModel):
    status: str
    amount: AmountSchema
    number: Optional[int] = None

    class Config:
        from_attributes = True
        frozen = True


class NonSwiftRecordSchema(BaseModel):
    ns_id: str
    ns_data: str

    class Config:
        from_attributes = True
        frozen = True


class StatementSchema(BaseModel):
    """Parsed statement envelope with its transactions."""
    account_identification: str = ""
    statement_number: str = ""
    sequence_number: str = ""
    currency: str = ""
    date_time_indication: Optional[dt.datetime] = None
    d_floor_limit: Optional[AmountSchema] = None
    c_floor_limit: Optional[AmountSchema] = None
    sum_debit_entries: Optional[SumEntriesSchema] = None
    sum_credit_entries: Optional[SumEntriesSchema] = None
    non_swift: Tuple[NonSwiftRecordSchema, ...] = ()
    transactions: Tuple[TransactionSchema, ...] = ()

    class Config:
        from_attributes = True
        frozen = True
