"""
MT940 Parser - SWIFT Bank Statement Format

Decodes MT940 files (Statement Message) and flattens the transactions
assembled by ``swift_statements.services.mt940`` into ``ParsedTransaction``
rows.

Format: Plain text with tags like :20:, :25:, :60F:, :61:, :86:, :62F:
"""
import logging
import re
from typing import Optional, Tuple

from swift_statements.core.config import settings
from swift_statements.services.logging import statement_logger
from swift_statements.services.mt940.models import Transaction
from swift_statements.services.mt940.parser import assemble

from .base_parser import BaseStatementParser, ParsedStatement, ParsedTransaction

logger = logging.getLogger(__name__)

MT940_EXTENSIONS = ('.sta', '.mt940', '.940', '.txt')

# Customer reference placeholder used when the account owner gave none
NO_REFERENCE = "NONREF"


class MT940Parser(BaseStatementParser):
    """
    Parser for MT940 SWIFT bank statements.

    Each statement contains:
    - :20: Transaction Reference Number
    - :25: Account Identification
    - :28C: Statement Number / Sequence Number
    - :60F: Opening Balance
    - :61: Statement Line (transaction)
    - :86: Information to Account Owner (description)
    - :62F: Closing Balance
    """

    def can_parse(self, file_bytes: bytes, filename: Optional[str] = None) -> bool:
        """Check if file is MT940 format."""
        try:
            content, _ = self._decode(file_bytes)
        except ValueError:
            return False

        # MT940 files must have transaction reference and statement lines
        has_markers = ':20:' in content and ':61:' in content
        if filename and filename.lower().endswith(MT940_EXTENSIONS):
            return has_markers
        return has_markers and ':25:' in content

    def parse(self, file_bytes: bytes) -> ParsedStatement:
        """Parse MT940 file."""
        content, encoding = self._decode(file_bytes)
        statement_logger.statement_file_decoded(
            format_name=self.get_format_name(),
            encoding=encoding,
            file_size=len(file_bytes),
        )

        transactions = assemble(content)
        account_iban = self._extract_account_iban(transactions.account_identification)

        parsed = []
        for transaction in transactions:
            # Statements without movements still carry balances; nothing to book
            if transaction.statement_line is None:
                logger.debug("Skipping transaction %r without statement line",
                             transaction.transaction_reference)
                continue
            parsed.append(self._create_transaction(transaction))

        return ParsedStatement(
            transactions=parsed,
            account_iban=account_iban,
            account_identification=transactions.account_identification,
            statement_number=transactions.statement_number,
            currency=transactions.currency,
        )

    def get_format_name(self) -> str:
        return "MT940 (SWIFT)"

    def _decode(self, file_bytes: bytes) -> Tuple[str, str]:
        """Decode with the configured encodings, first match wins."""
        for encoding in settings.statement_encodings_list:
            try:
                return file_bytes.decode(encoding), encoding
            except (UnicodeDecodeError, LookupError):
                continue
        raise ValueError("Invalid encoding for MT940 file")

    def _extract_account_iban(self, account_info: str) -> Optional[str]:
        """Extract account IBAN from the :25: account identification."""
        if not account_info:
            return None

        # Format can be: NL91ABNA0417164300 or 12345/NL91ABNA0417164300
        parts = re.split(r'[/\s]', account_info.strip())
        for part in parts:
            # IBANs start with two letters followed by alphanumerics
            if len(part) > 10 and part[:2].isalpha() and part[2:].isalnum():
                return part.upper()

        return None

    def _create_transaction(self, transaction: Transaction) -> ParsedTransaction:
        """Create ParsedTransaction from an assembled transaction."""
        line = transaction.statement_line
        details = transaction.details

        return ParsedTransaction(
            booking_date=line.entry_date or line.value_date,
            amount=line.amount.value,
            currency=line.amount.currency,
            description=self._build_description(details),
            value_date=line.value_date,
            transaction_type=line.transaction_type_id or None,
            reference=self._extract_reference(line.bank_reference, line.customer_reference),
            end_to_end_reference=self._extract_subfield(details, "EREF"),
            transaction_id=transaction.transaction_reference or None,
            counterparty_name=self._extract_counterparty_name(details),
            counterparty_iban=self._extract_counterparty_iban(details),
            counterparty_bic=self._extract_counterparty_bic(details),
        )

    def _extract_reference(self, bank_reference: str, customer_reference: str) -> Optional[str]:
        if bank_reference.strip():
            return bank_reference.strip()
        if customer_reference.strip() and customer_reference.strip() != NO_REFERENCE:
            return customer_reference.strip()
        return None

    def _build_description(self, details: str) -> str:
        """Build description from :86: free text."""
        if not details:
            return "Bank transaction"

        full_text = ' '.join(line.strip() for line in details.split('\n') if line.strip())

        # :86: often has structured codes like:
        # /IBAN/NL12BANK0123456789/NAME/John Doe/REMI/Payment for invoice 123
        parts = []

        # Remittance information
        remi_match = re.search(r'/REMI/([^/]+)', full_text)
        if remi_match:
            parts.append(remi_match.group(1).strip())

        # End-to-end reference
        eref_match = re.search(r'/EREF/([^/]+)', full_text)
        if eref_match:
            parts.append(eref_match.group(1).strip())

        if not parts:
            cleaned = re.sub(r'^/[A-Z]{3,4}/', '', full_text)
            parts.append(cleaned.strip())

        return ' / '.join(parts) if parts else full_text

    def _extract_counterparty_name(self, details: str) -> Optional[str]:
        """Extract counterparty name from :86: free text."""
        text = details.replace('\n', '')
        match = re.search(r'/NAME/([^/]+)', text)
        if match:
            return match.group(1).strip()

        # Beneficiary
        match = re.search(r'/BENM/([^/]+)', text)
        if match:
            return match.group(1).strip()

        return None

    def _extract_counterparty_iban(self, details: str) -> Optional[str]:
        """Extract counterparty IBAN from :86: free text."""
        match = re.search(r'/IBAN/([A-Z]{2}[0-9A-Z]+)', details.replace('\n', ''))
        if match:
            return match.group(1).strip()

        return None

    def _extract_counterparty_bic(self, details: str) -> Optional[str]:
        """Extract counterparty BIC (8 or 11 characters) from :86: free text."""
        match = re.search(r'/BIC/([A-Z]{6}[0-9A-Z]{2}(?:[0-9A-Z]{3})?)(?=/|$)', details.replace('\n', ''))
        if match:
            return match.group(1)

        return None

    def _extract_subfield(self, details: str, code: str) -> Optional[str]:
        match = re.search(rf'/{code}/([^/]+)', details.replace('\n', ''))
        if match:
            return match.group(1).strip() or None
        return None
