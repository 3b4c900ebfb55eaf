"""
OFX statement parsing.

- Institution classification and repair tables (institutions/)
- Text repair, record extraction, date and record normalization
- Pipeline entry point ``parse_statement``
- File-level adapter ``OfxStatementParser``
"""

from .exceptions import StatementImportError, InvalidStatementError

from .institutions import InstitutionRegistry, detect_institution, get_profile
from .repair import repair_text, apply_rules, GLOBAL_REPAIR_RULES
from .tokenizer import extract_records
from .dates import parse_ofx_date
from .assembler import assemble_transaction

from .pipeline import parse_statement, transactions_to_frame
from .sources.ofx import OfxStatementParser

__all__ = [
    'StatementImportError',
    'InvalidStatementError',
    'InstitutionRegistry',
    'detect_institution',
    'get_profile',
    'repair_text',
    'apply_rules',
    'GLOBAL_REPAIR_RULES',
    'extract_records',
    'parse_ofx_date',
    'assemble_transaction',
    'parse_statement',
    'transactions_to_frame',
    'OfxStatementParser',
]
