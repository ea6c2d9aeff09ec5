"""
Unit Tests for the MT940 Transaction Assembler

Tests cover:
- Opening a new transaction per :20: reference
- Statement envelope metadata (:25:, :28C:, :13D:, :34F:, :90D:/:90C:, :NS:)
- Balance routing and carry-over across repeated :61: lines
- Entry date resolution inside statement lines
- Fail-fast error propagation with tag ids
- Frozen statement snapshots
"""
import re
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from swift_statements import assemble, parse_statement
from swift_statements.schemas.statement import StatementSchema
from swift_statements.services.mt940 import (
    TAGS,
    Amount,
    AssemblerState,
    BalanceRole,
    InvalidDateError,
    MalformedAmountError,
    MT940Error,
    MT940ErrorKind,
    NoTagsFoundError,
    Tag,
    TagDidNotMatchError,
    TagDoesNotApplyError,
    TransactionAssembler,
    Transactions,
    UnknownTagError,
    tokenize,
)


class TestTransactionBoundaries:
    """Tests for splitting tags into transactions."""

    def test_two_transactions(self, minimal_statement):
        transactions = assemble(minimal_statement)

        assert len(transactions) == 2
        first, second = transactions.transactions
        assert first.transaction_reference == "REF1"
        assert first.details == "details1"
        assert second.transaction_reference == "REF2"
        assert second.details == "details2"

    def test_statement_line_amounts(self, minimal_statement):
        first, second = assemble(minimal_statement).transactions

        assert first.amount == Amount(10000)
        assert second.amount == Amount(-2550)
        assert second.statement_line.bank_reference == "B2"
        assert second.statement_line.customer_reference == "NONREF"
        assert second.statement_line.transaction_type_id == "NTRF"

    def test_misdetected_markers_do_not_open_transactions(self, misdetection_statement):
        """One transaction per real :20: tag, not per marker-like line."""
        transactions = assemble(misdetection_statement)

        assert [t.transaction_reference for t in transactions] == ["REF1", "REF2"]
        assert transactions.transactions[0].details.startswith("Payment for order\n:20:ORDER")
        assert transactions.transactions[1].details == "details2"

    def test_repeated_statement_line_carries_over(self, full_statement):
        """A second :61: under the same :20: opens a transaction with the same opening balance."""
        first, second = assemble(full_statement).transactions

        assert first.transaction_reference == second.transaction_reference == "STATEMENT-001"
        assert first.final_opening_balance == second.final_opening_balance
        assert first.final_closing_balance is None
        assert second.final_closing_balance.amount == Amount(107345, "EUR")
        assert second.available_balance.date == date(2024, 1, 16)
        assert second.forward_available_balance.date == date(2024, 1, 17)

    def test_details_are_attached_to_their_movement(self, full_statement):
        first, second = assemble(full_statement).transactions

        assert first.details == "/IBAN/NL12BANK0123456789/NAME/John Doe\n/REMI/Invoice payment 2024-001"
        assert second.details == "/REMI/Bank fee"

    def test_repeated_details_are_appended(self):
        transactions = assemble(":20:REF1\n:61:2001010101C1,00NTRFNONREF\n:86:first\n:62F:C200101EUR1,00\n:86:second")

        assert transactions.transactions[0].details == "first\nsecond"

    def test_statement_without_movements(self):
        transactions = assemble(":20:REF1\n:25:ACC\n:60F:C200101EUR1,00\n:62F:C200101EUR1,00")

        assert len(transactions) == 1
        assert transactions.transactions[0].statement_line is None
        assert transactions.transactions[0].amount is None

    def test_envelope_only_statement_has_no_transactions(self):
        transactions = assemble(":25:NL08DEUT0319809633EUR\n:28C:3/00001")

        assert len(transactions) == 0
        assert transactions.account_identification == "NL08DEUT0319809633EUR"

    def test_statement_line_without_reference(self):
        """Movements before any :20: open an implicit transaction."""
        transactions = assemble(":61:2001010101C1,00NTRFNONREF")

        assert len(transactions) == 1
        assert transactions.transactions[0].transaction_reference == ""


class TestEnvelope:
    """Tests for statement-level tags."""

    def test_account_and_statement_number(self, minimal_statement):
        transactions = assemble(minimal_statement)

        assert transactions.account_identification == "NL08DEUT0319809633EUR"
        assert transactions.statement_number == "3"
        assert transactions.sequence_number == "00001"

    def test_statement_number_without_sequence(self):
        transactions = assemble(":28C:5\n:20:REF1")

        assert transactions.statement_number == "5"
        assert transactions.sequence_number == ""

    def test_date_time_indication(self, full_statement):
        transactions = assemble(full_statement)

        assert transactions.date_time_indication == datetime(
            2024, 1, 15, 16, 30, tzinfo=timezone(timedelta(hours=1))
        )

    def test_floor_limits(self, full_statement):
        transactions = assemble(full_statement)

        assert transactions.d_floor_limit == Amount(-100000, "EUR")
        assert transactions.c_floor_limit is None

    def test_floor_limit_without_status_sets_both(self):
        transactions = assemble(":34F:EUR500,")

        assert transactions.d_floor_limit == Amount(50000, "EUR")
        assert transactions.c_floor_limit == Amount(50000, "EUR")

    def test_sum_entries(self, full_statement):
        transactions = assemble(full_statement)

        assert transactions.sum_debit_entries.number == 1
        assert transactions.sum_debit_entries.amount == Amount(-5000, "EUR")
        assert transactions.sum_credit_entries.amount == Amount(12345, "EUR")

    def test_non_swift_records(self, full_statement):
        transactions = assemble(full_statement)

        assert [(r.ns_id, r.ns_data) for r in transactions.non_swift] == [
            ("22", "Statement fixture"),
            ("23", "Second line"),
        ]

    def test_currency_from_balances(self, full_statement):
        transactions = assemble(full_statement)

        assert transactions.currency == "EUR"
        assert all(t.amount.currency == "EUR" for t in transactions)

    def test_currency_unknown_without_balances(self, minimal_statement):
        transactions = assemble(minimal_statement)

        assert transactions.currency == ""
        assert transactions.transactions[0].amount.currency == ""

    def test_currency_is_tracked_while_assembling(self, monkeypatch):
        """Statement lines read the tracked currency, never rescanning finished transactions."""
        def rescan(self):
            pytest.fail("statement currency rescanned during assembly")

        monkeypatch.setattr(Transactions, "currency", property(rescan))
        text = (
            ":20:REF1\n"
            ":60F:C200101EUR1,00\n"
            ":61:2001010101C1,00NTRFNONREF\n"
            ":20:REF2\n"
            ":61:2001020102C2,00NTRFNONREF\n"
            ":20:REF3\n"
            ":61:2001030103C3,00NTRFNONREF"
        )

        transactions = TransactionAssembler().assemble(tokenize(text))

        assert [t.amount.currency for t in transactions] == ["EUR", "EUR", "EUR"]

    def test_currency_from_floor_limit(self):
        transactions = assemble(":34F:USDD1,00\n:20:REF1\n:61:2001010101C1,00NTRFNONREF")

        assert transactions.transactions[0].amount.currency == "USD"


class TestBalances:
    """Tests for balance-shaped tags."""

    def test_roles(self):
        transactions = assemble(
            ":20:REF1\n"
            ":60M:D200101DKK5,00\n"
            ":61:2001010101C1,00NTRFNONREF\n"
            ":62M:C200101DKK6,00"
        )
        balances = transactions.transactions[0].balances

        assert set(balances) == {
            BalanceRole.INTERMEDIATE_OPENING_BALANCE,
            BalanceRole.INTERMEDIATE_CLOSING_BALANCE,
        }
        opening = balances[BalanceRole.INTERMEDIATE_OPENING_BALANCE]
        assert opening.status == "D"
        assert opening.amount == Amount(-500, "DKK")
        assert str(opening) == "-5.00 DKK @ 2020-01-01"

    def test_opening_balance_after_movement_does_not_apply(self):
        with pytest.raises(TagDoesNotApplyError) as exc_info:
            assemble(":20:REF1\n:61:2001010101C1,00NTRFNONREF\n:60F:C200101EUR1,00")

        assert exc_info.value.tag_id == "60F"
        assert exc_info.value.kind == MT940ErrorKind.TAG_DOES_NOT_APPLY


class TestEntryDates:
    """Tests for entry date resolution inside :61:."""

    def test_entry_date_wraps_into_next_year(self):
        transactions = assemble(":20:REF1\n:61:2012310101C1,00NTRFNONREF")
        line = transactions.transactions[0].statement_line

        assert line.value_date == date(2020, 12, 31)
        assert line.entry_date == date(2021, 1, 1)

    def test_entry_date_wraps_into_previous_year(self):
        transactions = assemble(":20:REF1\n:61:2001011231C1,00NTRFNONREF")

        assert transactions.transactions[0].statement_line.entry_date == date(2019, 12, 31)

    def test_missing_entry_date(self):
        transactions = assemble(":20:REF1\n:61:200101C1,00NTRFNONREF")

        assert transactions.transactions[0].statement_line.entry_date is None

    def test_custom_wrap_window(self):
        assembler = TransactionAssembler(entry_date_wrap_days=10)
        transactions = assembler.assemble(tokenize(":20:REF1\n:61:2001200101C1,00NTRFNONREF"))

        assert transactions.transactions[0].statement_line.entry_date == date(2021, 1, 1)


class TestErrors:
    """Tests for fail-fast error handling."""

    def test_unknown_tag(self):
        with pytest.raises(UnknownTagError) as exc_info:
            assemble(":20:REF1\n:99:x")

        assert exc_info.value.tag_id == "99"

    def test_malformed_amount_carries_tag_id(self):
        with pytest.raises(MalformedAmountError) as exc_info:
            assemble(":20:REF1\n:61:2001010101C1,234NTRFNONREF")

        assert exc_info.value.tag_id == "61"
        assert exc_info.value.fragment == "1,234"

    def test_invalid_date_carries_tag_id(self):
        with pytest.raises(InvalidDateError) as exc_info:
            assemble(":20:REF1\n:60F:C200230EUR1,00")

        assert exc_info.value.tag_id == "60F"

    def test_tag_did_not_match(self):
        with pytest.raises(TagDidNotMatchError) as exc_info:
            assemble(":20:REF1\n:62F:garbage")

        assert exc_info.value.tag_id == "62F"
        assert "62F" in str(exc_info.value)

    def test_no_tags(self):
        with pytest.raises(NoTagsFoundError):
            assemble("just some text")

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            assemble(":99:x")

    def test_tag_without_target(self):
        """A catalogued tag no target handles does not apply."""
        catalog = dict(TAGS)
        catalog["99"] = Tag(id="99", name="Custom", pattern=re.compile(r'(?P<custom>.*)'))

        assembler = TransactionAssembler(catalog)
        with pytest.raises(TagDoesNotApplyError) as exc_info:
            assembler.assemble(tokenize(":20:REF1\n:99:x", catalog))

        assert exc_info.value.tag_id == "99"

    def test_failed_parse_leaves_no_partial_result(self):
        assembler = TransactionAssembler()
        with pytest.raises(MT940Error):
            assembler.assemble(tokenize(":20:REF1\n:61:2001010101C1,00NTRFNONREF\n:20:REF2\n:62F:bad"))

        assert len(assembler.transactions) == 0
        assert assembler.current is None


class TestAssemblerState:
    """Tests for the assembler state machine."""

    def test_initial_state(self):
        assert TransactionAssembler().state == AssemblerState.NO_OPEN_TRANSACTION

    def test_state_after_assemble(self, minimal_statement):
        assembler = TransactionAssembler()
        assembler.assemble(tokenize(minimal_statement))

        assert assembler.state == AssemblerState.NO_OPEN_TRANSACTION

    def test_reuse_starts_fresh(self, minimal_statement):
        assembler = TransactionAssembler()
        first = assembler.assemble(tokenize(minimal_statement))
        second = assembler.assemble(tokenize(minimal_statement))

        assert first is not second
        assert len(first) == len(second) == 2


class TestParseStatement:
    """Tests for the frozen statement snapshot."""

    def test_snapshot_fields(self, full_statement):
        statement = parse_statement(full_statement)

        assert isinstance(statement, StatementSchema)
        assert statement.account_identification == "NL91ABNA0417164300"
        assert statement.statement_number == "00532"
        assert statement.sequence_number == "001"
        assert statement.currency == "EUR"
        assert len(statement.transactions) == 2

        line = statement.transactions[0].statement_line
        assert line.amount.minor_units == 12345
        assert str(line.amount.value) == "123.45"
        assert line.entry_date == date(2024, 1, 15)

    def test_snapshot_balances_by_role(self, full_statement):
        statement = parse_statement(full_statement)
        transaction = statement.transactions[1]

        assert transaction.balance(BalanceRole.FINAL_CLOSING_BALANCE).amount.minor_units == 107345
        assert transaction.balance(BalanceRole.FINAL_OPENING_BALANCE).role == BalanceRole.FINAL_OPENING_BALANCE
        assert transaction.balance(BalanceRole.INTERMEDIATE_CLOSING_BALANCE) is None
        assert statement.sum_debit_entries.amount.minor_units == -5000
        assert statement.non_swift[0].ns_id == "22"

    def test_snapshot_is_frozen(self, minimal_statement):
        statement = parse_statement(minimal_statement)

        with pytest.raises(ValidationError):
            statement.account_identification = "other"
        with pytest.raises(ValidationError):
            statement.transactions[0].details = "other"
        assert isinstance(statement.transactions, tuple)

    def test_snapshot_balances_are_frozen(self, full_statement):
        transaction = parse_statement(full_statement).transactions[0]

        assert isinstance(transaction.balances, tuple)
        with pytest.raises(TypeError):
            transaction.balances[0] = None
        with pytest.raises(ValidationError):
            transaction.balances[0].status = "D"

    def test_parse_statement_propagates_errors(self):
        with pytest.raises(UnknownTagError):
            parse_statement(":99:x")
