"""
Pytest configuration and fixtures for statement parsing tests.

Provides raw MT940 statement texts shared across the lexer, assembler
and bank parser tests.
"""
import pytest


MINIMAL_STATEMENT = """\
:20:REF1
:25:NL08DEUT0319809633EUR
:28C:3/00001
:61:2001010101C100,00NTRFNONREF//B1
:86:details1
:20:REF2
:61:2001020102D25,50NTRFNONREF//B2
:86:details2
"""

FULL_STATEMENT = """\
:20:STATEMENT-001
:25:NL91ABNA0417164300
:28C:00532/001
:13D:2401151630+0100
:60F:C240114EUR1000,00
:61:2401150115C123,45NMSCNONREF//REF-123
:86:/IBAN/NL12BANK0123456789/NAME/John Doe
/REMI/Invoice payment 2024-001
:61:2401160116D50,00NMSCNONREF//FEE-001
:86:/REMI/Bank fee
:62F:C240116EUR1073,45
:64:C240116EUR1073,45
:65:C240117EUR1073,45
:34F:EURD1000,00
:90D:1EUR50,00
:90C:1EUR123,45
:NS:22Statement fixture
23Second line
-
"""

# A details block whose wrapped lines start like tag markers
MISDETECTION_STATEMENT = """\
:20:REF1
:25:NL08DEUT0319809633EUR
:61:2001010101C100,00NTRFNONREF
:86:Payment for order
:20:ORDER REFERENCE 2020-0001 AS AGREED
:21:NOT A REAL TAG LINE
continued text
:99:unknown looking line
:20:REF2
:61:2001020102D25,50NTRFNONREF
:86:details2
"""


@pytest.fixture
def minimal_statement() -> str:
    return MINIMAL_STATEMENT


@pytest.fixture
def full_statement() -> str:
    return FULL_STATEMENT


@pytest.fixture
def misdetection_statement() -> str:
    return MISDETECTION_STATEMENT
