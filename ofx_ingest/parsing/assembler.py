"""
Record Assembler

Turns the raw tag values of one block into a NormalizedTransaction.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from ofx_ingest.common.logging_config import get_logger
from ofx_ingest.common.models import (
    Direction,
    InstitutionMatch,
    NormalizedTransaction,
    RawRecordFields,
    SKIP_BAD_AMOUNT,
    SKIP_MISSING_FIELDS,
)
from .dates import parse_ofx_date
from .institutions.profile import InstitutionProfile
from .repair import repair_text

logger = get_logger(__name__)

CENTS = Decimal("0.01")
WHITESPACE = re.compile(r'\s+')
# Non-printable characters other than whitespace
NON_ASCII = re.compile(r'[^\s\x20-\x7e]')


@dataclass(frozen=True)
class AssemblyOutcome:
    transaction: Optional[NormalizedTransaction] = None
    skip_reason: Optional[str] = None
    date_is_fallback: bool = False

    @property
    def skipped(self) -> bool:
        return self.transaction is None


def parse_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """
    Parses a signed TRNAMT value.

    Accepts "-150.00", "+10", "1,234.56" and the Brazilian "-1.234,56" /
    "150,00". Returns None for anything that is not a finite number.
    """
    if not amount_str:
        return None
    clean = amount_str.strip().replace(' ', '')
    if ',' in clean and '.' in clean:
        if clean.rfind(',') > clean.rfind('.'):
            clean = clean.replace('.', '').replace(',', '.')
        else:
            clean = clean.replace(',', '')
    elif ',' in clean:
        clean = clean.replace(',', '.')
    try:
        value = Decimal(clean)
        if not value.is_finite():
            return None
        # Out-of-range magnitudes cannot be expressed in cents
        value.quantize(CENTS)
    except InvalidOperation:
        return None
    return value


def normalize_text(text: str) -> str:
    """Drops non-ASCII, collapses whitespace and trims."""
    if not text:
        return ''
    text = NON_ASCII.sub('', text)
    return WHITESPACE.sub(' ', text).strip()


def repair_field(value: Optional[str], profile: InstitutionProfile) -> Optional[str]:
    """
    Runs the repair tables over a tag value that still holds non-ASCII text.

    Only decoded entities (``Cobran&ccedil;a``) get here: the document-level
    repair already removed every other non-ASCII character.
    """
    if value and NON_ASCII.search(value):
        return repair_text(value, profile)
    return value


def build_description(fields: RawRecordFields, profile: InstitutionProfile) -> str:
    memo = repair_field(fields.memo, profile)
    name = repair_field(fields.name, profile)
    if memo and name and memo != name and profile.merge_name_and_memo:
        description = f"{name} - {memo}"
    elif memo:
        description = memo
    elif name:
        description = name
    else:
        ref = fields.refnum or fields.checknum or fields.fitid or ''
        description = f"Transacao {ref}".strip()
    return normalize_text(description)


def assemble_transaction(
    fields: RawRecordFields,
    match: InstitutionMatch,
    profile: InstitutionProfile,
    now: Optional[datetime] = None,
) -> AssemblyOutcome:
    """
    Builds a NormalizedTransaction, or reports why the block was skipped.

    Missing FITID or TRNAMT skips the record; an unreadable TRNAMT skips it
    as a bad amount. An unreadable date never does.
    """
    if not fields.fitid or not fields.amount:
        logger.debug("Record skipped: missing FITID or TRNAMT", fitid=fields.fitid)
        return AssemblyOutcome(skip_reason=SKIP_MISSING_FIELDS)

    amount = parse_amount(fields.amount)
    if amount is None:
        logger.debug(f"Record skipped: unparseable amount {fields.amount!r}", fitid=fields.fitid)
        return AssemblyOutcome(skip_reason=SKIP_BAD_AMOUNT)

    direction = Direction.CREDIT if amount > 0 else Direction.DEBIT
    posted = parse_ofx_date(fields.posted, now)
    if posted.is_fallback:
        logger.warning("Transaction date replaced by processing time", fitid=fields.fitid, raw_date=fields.posted)

    transaction = NormalizedTransaction(
        external_id=fields.fitid,
        posted_at=posted.value,
        amount=abs(amount).quantize(CENTS),
        direction=direction,
        description=build_description(fields, profile),
        raw_type=(fields.trn_type or '').upper(),
        source_institution=match.label,
        reference=fields.refnum or fields.checknum or '',
        date_is_fallback=posted.is_fallback,
    )
    return AssemblyOutcome(transaction=transaction, date_is_fallback=posted.is_fallback)
