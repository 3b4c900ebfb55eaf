"""
Statement Import Pipeline

Runs one OFX statement through classification, repair, record extraction,
assembly and the deduplication gate, and returns the normalized
transactions with their diagnostics.
"""
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

import pandas as pd

from ofx_ingest.common.logging_config import get_logger
from ofx_ingest.common.models import ImportResult, ImportScope, NormalizedTransaction
from ofx_ingest.core.diagnostics import DiagnosticsCollector
from ofx_ingest.core.fingerprint import check_fingerprint, compute_fingerprint, read_statement_account
from .assembler import assemble_transaction
from .exceptions import InvalidStatementError
from .institutions.registry import InstitutionRegistry, default_registry
from .repair import repair_text
from .tokenizer import extract_records

logger = get_logger(__name__)

TRANSACTION_COLUMNS = [
    'external_id', 'posted_at', 'amount', 'direction', 'description',
    'raw_type', 'source_institution', 'reference', 'date_is_fallback',
]


def _unique_id(external_id: str, seen: dict) -> str:
    """Suffixes repeated FITIDs ("T1", "T1-2", "T1-3") in document order."""
    occurrences = seen.get(external_id, 0) + 1
    seen[external_id] = occurrences
    if occurrences == 1:
        return external_id
    candidate = f"{external_id}-{occurrences}"
    while candidate in seen:
        occurrences += 1
        candidate = f"{external_id}-{occurrences}"
    seen[external_id] = occurrences
    seen[candidate] = 1
    return candidate


def parse_statement(
    raw_text: str,
    scope: Optional[ImportScope] = None,
    *,
    now: Optional[datetime] = None,
    registry: Optional[InstitutionRegistry] = None,
) -> ImportResult:
    """
    Parse an OFX statement into normalized transactions.

    Args:
        raw_text: Decoded statement text (non-empty)
        scope: Fingerprints already imported for the target account
        now: Fallback timestamp for unreadable dates; defaults to the call time
        registry: Institution registry; the built-in profiles by default

    Returns:
        ImportResult. When the fingerprint is already in ``scope``,
        ``already_imported`` is True and ``transactions`` is empty.

    Raises:
        InvalidStatementError: ``raw_text`` is not a non-empty string
    """
    if not isinstance(raw_text, str):
        raise InvalidStatementError(f"Statement text must be str, got {type(raw_text).__name__}")
    if not raw_text.strip():
        raise InvalidStatementError("Statement text is empty")

    scope = scope or ImportScope()
    registry = registry or default_registry
    now = now or datetime.now()

    match = registry.detect(raw_text)
    profile = registry.get_profile(match.institution)
    collector = DiagnosticsCollector(match.label)
    if match.matched_by == "none":
        collector.note("Institution not identified; generic repair rules only")
    elif not match.is_known:
        collector.note(f"No dedicated rules for institution {match.label!r}; generic repair rules only")

    repaired = repair_text(raw_text, profile if match.is_known else None)
    account = read_statement_account(repaired)
    fingerprint = compute_fingerprint(repaired)

    logger.info(
        "Processing OFX statement",
        institution=match.label,
        matched_by=match.matched_by,
        account=account.account_id or "desconhecido",
        period_start=account.period_start or "N/D",
        period_end=account.period_end or "N/D",
    )

    decision = check_fingerprint(fingerprint, scope.existing_fingerprints)
    if not decision.accepted:
        collector.note("Statement already imported")
        return ImportResult(
            transactions=[],
            fingerprint=fingerprint,
            already_imported=True,
            diagnostics=collector.finalize(),
            account=account,
        )

    extraction = extract_records(repaired)
    collector.record_skipped_empty(extraction.skipped_empty)
    if extraction.blocks_seen == 0:
        collector.no_blocks_found = True
        collector.note("No transaction blocks found")
        logger.warning("No transaction blocks found in statement", institution=match.label)

    transactions = []
    seen_ids = {}
    for fields in extraction.records:
        outcome = assemble_transaction(fields, match, profile, now)
        if outcome.skipped:
            collector.record_skip(outcome.skip_reason)
            continue
        transaction = outcome.transaction
        unique_id = _unique_id(transaction.external_id, seen_ids)
        if unique_id != transaction.external_id:
            logger.warning(
                "Repeated FITID in statement, suffix added",
                fitid=transaction.external_id,
                external_id=unique_id,
            )
            collector.record_duplicate_id()
            transaction = replace(transaction, external_id=unique_id)
        collector.record_transaction(transaction)
        transactions.append(transaction)

    diagnostics = collector.finalize()
    if diagnostics.date_fallback_count:
        logger.warning(
            "Some transaction dates could not be read and were set to the processing time",
            count=diagnostics.date_fallback_count,
        )
    logger.info(
        "Statement parsed",
        total=diagnostics.total,
        credits=diagnostics.credits,
        debits=diagnostics.debits,
        skipped_missing_fields=diagnostics.skipped_missing_fields,
        skipped_bad_amount=diagnostics.skipped_bad_amount,
        fingerprint=fingerprint,
    )

    return ImportResult(
        transactions=transactions,
        fingerprint=fingerprint,
        already_imported=False,
        diagnostics=diagnostics,
        account=account,
    )


def transactions_to_frame(transactions: Iterable[NormalizedTransaction]) -> pd.DataFrame:
    """DataFrame view of the transactions, one row per transaction, in order."""
    rows = [
        {
            'external_id': t.external_id,
            'posted_at': t.posted_at,
            'amount': t.amount,
            'direction': t.direction.value,
            'description': t.description,
            'raw_type': t.raw_type,
            'source_institution': t.source_institution,
            'reference': t.reference,
            'date_is_fallback': t.date_is_fallback,
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
