"""
Import diagnostics.

Counts what happened to every block of a statement so that
``total == len(transactions) + skipped_missing_fields + skipped_bad_amount``
holds for every call.
"""
from datetime import datetime
from typing import List, Optional

from ofx_ingest.common.models import (
    Direction,
    ImportDiagnostics,
    Institution,
    NormalizedTransaction,
    SKIP_BAD_AMOUNT,
    SKIP_MISSING_FIELDS,
)


class DiagnosticsCollector:
    """Mutable accumulator; ``finalize()`` produces the frozen summary."""

    def __init__(self, detected_institution: str = Institution.UNKNOWN.value):
        self.detected_institution = detected_institution
        self.total = 0
        self.credits = 0
        self.debits = 0
        self.skipped_missing_fields = 0
        self.skipped_bad_amount = 0
        self.date_fallback_count = 0
        self.duplicate_external_ids = 0
        self.no_blocks_found = False
        self.date_range_start: Optional[datetime] = None
        self.date_range_end: Optional[datetime] = None
        self.notes: List[str] = []

    def note(self, message: str):
        self.notes.append(message)

    def record_skipped_empty(self, count: int):
        """Blocks dropped by the extractor for lacking both FITID and TRNAMT."""
        self.total += count
        self.skipped_missing_fields += count

    def record_skip(self, reason: str):
        self.total += 1
        if reason == SKIP_BAD_AMOUNT:
            self.skipped_bad_amount += 1
        elif reason == SKIP_MISSING_FIELDS:
            self.skipped_missing_fields += 1
        else:
            raise ValueError(f"Unknown skip reason: {reason}")

    def record_transaction(self, transaction: NormalizedTransaction):
        self.total += 1
        if transaction.direction is Direction.CREDIT:
            self.credits += 1
        else:
            self.debits += 1
        if transaction.date_is_fallback:
            self.date_fallback_count += 1

        posted = transaction.posted_at
        if self.date_range_start is None or posted < self.date_range_start:
            self.date_range_start = posted
        if self.date_range_end is None or posted > self.date_range_end:
            self.date_range_end = posted

    def record_duplicate_id(self):
        self.duplicate_external_ids += 1

    def finalize(self) -> ImportDiagnostics:
        return ImportDiagnostics(
            total=self.total,
            credits=self.credits,
            debits=self.debits,
            skipped_missing_fields=self.skipped_missing_fields,
            skipped_bad_amount=self.skipped_bad_amount,
            date_range_start=self.date_range_start,
            date_range_end=self.date_range_end,
            detected_institution=self.detected_institution,
            date_fallback_count=self.date_fallback_count,
            duplicate_external_ids=self.duplicate_external_ids,
            no_blocks_found=self.no_blocks_found,
            notes=tuple(self.notes),
        )
