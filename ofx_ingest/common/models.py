from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Collection, List, Optional, Tuple


class Institution(str, Enum):
    """Institutions with dedicated repair/classification rules."""
    C6_BANK = "C6 BANK"
    SAFRA = "SAFRA"
    BANCO_DO_BRASIL = "BANCO DO BRASIL"
    UNKNOWN = "UNKNOWN"


class Direction(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


# Reasons a transaction block is skipped
SKIP_MISSING_FIELDS = "missing_fields"
SKIP_BAD_AMOUNT = "bad_amount"


@dataclass(frozen=True)
class InstitutionMatch:
    """
    Result of classifying a statement.

    ``label`` is what ends up in ``source_institution``: the profile label for
    known institutions, or the raw FI/BANKID/ORG tag value otherwise.
    """
    institution: Institution
    label: str
    matched_by: str = "none"

    @property
    def is_known(self) -> bool:
        return self.institution is not Institution.UNKNOWN


@dataclass
class RawRecordFields:
    """Raw tag values of one <STMTTRN> block. Absent tags are None."""
    fitid: Optional[str] = None
    posted: Optional[str] = None
    amount: Optional[str] = None
    trn_type: Optional[str] = None
    memo: Optional[str] = None
    name: Optional[str] = None
    checknum: Optional[str] = None
    refnum: Optional[str] = None


@dataclass(frozen=True)
class NormalizedTransaction:
    """
    Canonical, ledger-ready transaction.
    ``amount`` is always >= 0; the sign lives in ``direction``.
    """
    external_id: str
    posted_at: datetime
    amount: Decimal
    direction: Direction
    description: str
    raw_type: str
    source_institution: str
    reference: str = ""  # REFNUM, or CHECKNUM when REFNUM is absent
    date_is_fallback: bool = False

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.direction is Direction.CREDIT else -self.amount

    def to_dict(self):
        return {
            'external_id': self.external_id,
            'posted_at': self.posted_at.isoformat(),
            'amount': str(self.amount),
            'direction': self.direction.value,
            'description': self.description,
            'raw_type': self.raw_type,
            'source_institution': self.source_institution,
            'reference': self.reference,
            'date_is_fallback': self.date_is_fallback,
        }


@dataclass(frozen=True)
class ImportScope:
    """Fingerprints already ingested for the target wallet/account."""
    existing_fingerprints: Collection[str] = frozenset()


@dataclass(frozen=True)
class StatementAccount:
    """Statement-level identity tags, kept raw for logging and API output."""
    bank_id: str = ""
    account_id: str = ""
    period_start: str = ""
    period_end: str = ""


@dataclass(frozen=True)
class ImportDiagnostics:
    total: int = 0
    credits: int = 0
    debits: int = 0
    skipped_missing_fields: int = 0
    skipped_bad_amount: int = 0
    date_range_start: Optional[datetime] = None
    date_range_end: Optional[datetime] = None
    detected_institution: str = Institution.UNKNOWN.value
    date_fallback_count: int = 0
    duplicate_external_ids: int = 0
    no_blocks_found: bool = False
    notes: Tuple[str, ...] = ()

    def to_dict(self):
        return {
            'total': self.total,
            'credits': self.credits,
            'debits': self.debits,
            'skipped_missing_fields': self.skipped_missing_fields,
            'skipped_bad_amount': self.skipped_bad_amount,
            'date_range_start': self.date_range_start.isoformat() if self.date_range_start else None,
            'date_range_end': self.date_range_end.isoformat() if self.date_range_end else None,
            'detected_institution': self.detected_institution,
            'date_fallback_count': self.date_fallback_count,
            'duplicate_external_ids': self.duplicate_external_ids,
            'no_blocks_found': self.no_blocks_found,
            'notes': list(self.notes),
        }


@dataclass(frozen=True)
class ImportResult:
    transactions: List[NormalizedTransaction]
    fingerprint: str
    already_imported: bool
    diagnostics: ImportDiagnostics
    account: StatementAccount = field(default_factory=StatementAccount)
